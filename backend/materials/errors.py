'''
    Errors raised by the materials core.

    Every error carries a stable `code` (for API clients) and a `message`
    (shown to the admin user). Views turn these into 400/500 responses;
    nothing in the core writes a Section/Material row before validation passes.
'''


class MaterialsError(Exception):
    code = 'error'
    message = 'Something went wrong.'

    def __init__(self, message=None):
        if message is not None:
            self.message = message
        super().__init__(self.message)


# ---------- validation (user-recoverable) ----------
class ValidationError(MaterialsError):
    code = 'invalid'
    message = 'Invalid input.'


class TitleRequired(ValidationError):
    code = 'title_required'
    message = 'Title is required.'


class SectionRequired(ValidationError):
    code = 'section_required'
    message = 'Please select a section.'


class InvalidFileType(ValidationError):
    code = 'invalid_file_type'
    message = 'Invalid file type.'


class YoutubeUrlRequired(ValidationError):
    code = 'youtube_url_required'
    message = 'YouTube URL is required for YouTube materials.'


class InvalidYoutubeUrl(ValidationError):
    code = 'invalid_youtube_url'
    message = 'Invalid YouTube URL. Please provide a valid YouTube video link.'


class FileUrlRequired(ValidationError):
    code = 'file_url_required'
    message = 'A Google Drive link is required for document materials.'


class ImageRequired(ValidationError):
    code = 'image_required'
    message = 'Please upload an image for image materials.'


class NameRequired(ValidationError):
    code = 'name_required'
    message = 'Section name is required.'


class SlugRequired(ValidationError):
    code = 'slug_required'
    message = 'Could not build a URL slug from this name. Please enter one.'


class SlugConflict(ValidationError):
    code = 'slug_conflict'
    message = 'This slug already exists. Please choose another.'


# ---------- blob storage ----------
class StorageError(MaterialsError):
    code = 'storage_error'
    message = 'Image storage failed.'


class UploadRejected(StorageError):
    """The upload failed the size/extension checks; nothing was written."""
    TOO_LARGE = 'too_large'
    BAD_EXTENSION = 'bad_extension'
    # no size attribute and not seekable, so the limit cannot be checked
    UNREADABLE = 'unreadable'

    code = 'image_upload_failed'
    message = 'Failed to upload image. Check file type and size.'

    def __init__(self, reason, message=None):
        self.reason = reason
        super().__init__(message)


class BlobWriteFailed(StorageError):
    code = 'blob_write_failed'
    message = 'Could not save the uploaded image. Please try again.'
