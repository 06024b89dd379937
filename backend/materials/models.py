'''
    Sections group materials; a material is one learning asset of exactly one kind.

    Material rows flatten the reference into two nullable columns:
        file_url   - Google Drive (pdf/word) or YouTube share link
        image_path - blob name of a locally stored image, owned by this row
    Invariant: exactly one of them is used, decided by file_type. The
    validator enforces it; `Material.reference` gives the typed view back.
'''

from django.db import models


class FileType(models.TextChoices):
    # value stored in the DB column, label shown by the admin and the API (file_type_label)
    GDRIVE_PDF = 'gdrive_pdf', 'Gdrive pdf'
    GDRIVE_WORD = 'gdrive_word', 'Gdrive word'
    IMAGE = 'image', 'Image'
    YOUTUBE = 'youtube', 'Youtube'


class Section(models.Model):
    """
    A named group of materials, shown as one page on the public site.

    The page is addressed by `slug` (GET /api/sections/by-slug/<slug>/), so the
    slug is what has to stay stable and unique; the name is free text.
    """
    name = models.CharField(max_length=255)  # display name, trimmed before saving
    # URL-safe and unique; derived from name when the admin leaves it blank
    # unique=True also gives the slug lookup its index
    slug = models.SlugField(max_length=255, unique=True)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)  # listing order

    class Meta:
        # newest first; id breaks ties between rows created in the same instant
        ordering = ['-created_at', '-id']

    def __str__(self):
        return self.name


class Material(models.Model):
    """
    One learning asset inside a section.

    - gdrive_pdf / gdrive_word / youtube: `file_url` holds the share link, `image_path` is NULL.
    - image: `image_path` holds the blob name in storage, `file_url` is NULL.
    """
    # DB-level cascade is a backstop only; services.delete_section removes
    # materials itself so their image blobs get released.
    # related_name lets the section listing count section.materials
    section = models.ForeignKey(Section, on_delete=models.CASCADE, related_name='materials')
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True, default='')  # optional free text under the title
    # one of FileType; indexed for the per-type dashboard counters and admin filter
    file_type = models.CharField(max_length=20, choices=FileType.choices, db_index=True)
    # the link exactly as the admin pasted it (trimmed); embed URLs are derived at read time
    file_url = models.CharField(max_length=1000, null=True, blank=True)
    # e.g. images/img_<uuid>.png, written only by ImageStore, never typed in
    image_path = models.CharField(max_length=255, null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        ordering = ['-created_at', '-id']
        # the section page lists one section's materials newest first
        indexes = [
            models.Index(fields=['section', 'created_at'], name='material_section_created_idx'),
        ]

    @property
    def reference(self):
        """Typed reference (GoogleDriveRef / ImageRef / YouTubeRef) or None."""
        # imported here: validation imports the models module
        from .validation import reference_from_fields
        return reference_from_fields(self.file_type, self.file_url, self.image_path)

    def __str__(self):
        return f"{self.title} ({self.get_file_type_display()})"
