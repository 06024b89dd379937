'''
    Material validation and section slug resolution.

    validate_and_prepare_material() takes what the admin submitted plus the
    stored record (on update) and returns a ResolvedMaterial ready to persist,
    or raises one of the errors in errors.py. Checks run cheapest first:

        1. title non-empty                      -> TitleRequired
        2. section exists (repository)          -> SectionRequired
        3. file_type is one of FileType         -> InvalidFileType
        4. youtube: url present + id extracted  -> YoutubeUrlRequired / InvalidYoutubeUrl
           gdrive:  url present                 -> FileUrlRequired
           image:   upload or existing image    -> ImageRequired (unless allowed)
        5. image upload stored (ImageStore)     -> UploadRejected / BlobWriteFailed

    Storing the blob is the only side effect and it runs last, so a rejected
    submission never leaves an orphaned file behind. The previous image is NOT
    released here: ResolvedMaterial.stale_image_path tells the caller what to
    release once the row is written.

    Internally a material's reference is a tagged union (GoogleDriveRef,
    ImageRef, YouTubeRef); it is flattened to file_url/image_path only at the
    persistence boundary (ResolvedMaterial.as_fields()).
'''

from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Union

from . import errors
from .models import FileType
from .references import extract_youtube_id, slugify


# ---------- reference union ----------
@dataclass(frozen=True)
class GoogleDriveRef:
    file_type: str  # gdrive_pdf | gdrive_word
    url: str


@dataclass(frozen=True)
class ImageRef:
    path: str
    file_type: str = field(default=FileType.IMAGE, init=False)


@dataclass(frozen=True)
class YouTubeRef:
    url: str
    file_type: str = field(default=FileType.YOUTUBE, init=False)

    @property
    def video_id(self):
        return extract_youtube_id(self.url)


Reference = Union[GoogleDriveRef, ImageRef, YouTubeRef]


def reference_from_fields(file_type, file_url, image_path) -> Optional[Reference]:
    if file_type in (FileType.GDRIVE_PDF, FileType.GDRIVE_WORD) and file_url:
        return GoogleDriveRef(file_type=file_type, url=file_url)
    if file_type == FileType.IMAGE and image_path:
        return ImageRef(path=image_path)
    if file_type == FileType.YOUTUBE and file_url:
        return YouTubeRef(url=file_url)
    return None


# ---------- payload / result ----------
@dataclass
class MaterialPayload:
    """What the admin form submitted. `image` is an uploaded Django File or None."""
    section_id: Any
    title: str
    file_type: str
    file_url: Optional[str] = None
    description: str = ''
    image: Any = None

    @classmethod
    def from_form(cls, data, files=None):
        files = files or {}
        return cls(
            section_id=data.get('section_id'),
            title=data.get('title') or '',
            file_type=data.get('file_type') or '',
            file_url=data.get('file_url'),
            description=data.get('description') or '',
            image=files.get('image'),
        )


@dataclass
class ResolvedMaterial:
    section_id: int
    title: str
    description: str
    file_type: str
    reference: Optional[Reference]
    # blob written by this validation run (release it if the row write fails)
    new_image_path: Optional[str] = None
    # blob the stored record owned but no longer will (release after the write)
    stale_image_path: Optional[str] = None

    @property
    def file_url(self):
        if isinstance(self.reference, (GoogleDriveRef, YouTubeRef)):
            return self.reference.url
        return None

    @property
    def image_path(self):
        if isinstance(self.reference, ImageRef):
            return self.reference.path
        return None

    def as_fields(self):
        return {
            'section_id': self.section_id,
            'title': self.title,
            'description': self.description,
            'file_type': self.file_type,
            'file_url': self.file_url,
            'image_path': self.image_path,
        }


def _parse_section_id(value):
    try:
        section_id = int(value)
    except (TypeError, ValueError):
        return None
    return section_id if section_id > 0 else None


def validate_and_prepare_material(payload, existing=None, *, repository, images, allow_empty_image=False):
    """
    Validate `payload` and resolve the fields to persist.

    existing   - the stored Material when updating (its image_path is the one
                 we may replace); None when creating.
    repository - anything with section_exists(id) -> bool.
    images     - an ImageStore.
    """
    title = (payload.title or '').strip()
    if not title:
        raise errors.TitleRequired()

    section_id = _parse_section_id(payload.section_id)
    if section_id is None or not repository.section_exists(section_id):
        raise errors.SectionRequired()

    file_type = payload.file_type
    if file_type not in FileType.values:
        raise errors.InvalidFileType()

    file_url = (payload.file_url or '').strip()
    description = (payload.description or '').strip()
    prior_image_path = getattr(existing, 'image_path', None) or None

    if file_type == FileType.YOUTUBE:
        if not file_url:
            raise errors.YoutubeUrlRequired()
        if extract_youtube_id(file_url) is None:
            raise errors.InvalidYoutubeUrl()
    elif file_type in (FileType.GDRIVE_PDF, FileType.GDRIVE_WORD):
        if not file_url:
            raise errors.FileUrlRequired()
    elif payload.image is None and prior_image_path is None and not allow_empty_image:
        raise errors.ImageRequired()

    # Only side effect, and only after every cheap check passed.
    new_image_path = None
    if file_type == FileType.IMAGE and payload.image is not None:
        new_image_path = images.store(payload.image)

    # One of file_url/image_path, never both.
    if file_type == FileType.IMAGE:
        image_path = new_image_path or prior_image_path
        reference = ImageRef(path=image_path) if image_path else None
    elif file_type == FileType.YOUTUBE:
        image_path = None
        reference = YouTubeRef(url=file_url)
    else:
        image_path = None
        reference = GoogleDriveRef(file_type=file_type, url=file_url)

    stale_image_path = None
    if prior_image_path and prior_image_path != image_path:
        stale_image_path = prior_image_path

    return ResolvedMaterial(
        section_id=section_id,
        title=title,
        description=description,
        file_type=file_type,
        reference=reference,
        new_image_path=new_image_path,
        stale_image_path=stale_image_path,
    )


def resolve_section_slug(name, explicit_slug, slug_taken: Callable[[str], bool]):
    """
    Final slug for a section: the admin's slug if given, else derived from the
    name. Both go through slugify() so the stored slug is always URL-safe.
    `slug_taken(slug)` asks the repository whether another section owns it.
    """
    name = (name or '').strip()
    if not name:
        raise errors.NameRequired()

    explicit_slug = (explicit_slug or '').strip()
    slug = slugify(explicit_slug or name)
    if not slug:
        raise errors.SlugRequired()
    if slug_taken(slug):
        raise errors.SlugConflict()
    return slug
