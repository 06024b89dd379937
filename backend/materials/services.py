'''
    Section and material operations used by the views and the Django admin.

    ContentService wires the validator, the repository and the ImageStore
    together and owns the ordering of blob operations around row writes:
        - a new image is stored before the row is written (by the validator)
        - the replaced/removed image is released only after the row is written
        - if the row write fails, the freshly stored image is released again
    Release is best-effort (ImageStore.release never raises).
'''

import logging

from django.conf import settings
from django.db import transaction

from .repository import ContentRepository
from .storage import ImageStore
from .validation import resolve_section_slug, validate_and_prepare_material

logger = logging.getLogger(__name__)


class ContentService:

    def __init__(self, repository=None, images=None, allow_empty_image=None):
        self.repository = repository or ContentRepository()
        self.images = images or ImageStore()
        if allow_empty_image is None:
            allow_empty_image = getattr(settings, 'MATERIALS', {}).get('ALLOW_EMPTY_IMAGE', False)
        self.allow_empty_image = allow_empty_image

    # ---------- sections ----------
    def save_section(self, name, slug=None, existing=None):
        exclude_id = existing.pk if existing is not None else None
        slug = resolve_section_slug(
            name, slug, lambda candidate: self.repository.slug_taken(candidate, exclude_id=exclude_id),
        )
        name = name.strip()
        if existing is not None:
            section = self.repository.update_section(existing, name, slug)
            logger.info("Updated section %s (%s)", section.pk, slug)
        else:
            section = self.repository.create_section(name, slug)
            logger.info("Created section %s (%s)", section.pk, slug)
        return section

    def delete_section(self, section):
        """Delete the section and its materials, then release their images."""
        with transaction.atomic():
            materials = list(self.repository.materials(section_id=section.pk))
            self.repository.delete_materials(materials)
            self.repository.delete_section(section)

        for material in materials:
            self.images.release(material.image_path)
        logger.info("Deleted section %s with %d materials", section.pk, len(materials))

    # ---------- materials ----------
    def prepare_material(self, payload, existing=None):
        return validate_and_prepare_material(
            payload,
            existing,
            repository=self.repository,
            images=self.images,
            allow_empty_image=self.allow_empty_image,
        )

    def save_material(self, payload, existing=None):
        resolved = self.prepare_material(payload, existing)
        return self.persist_material(resolved, existing)

    def persist_material(self, resolved, existing=None, instance=None):
        """
        Write an already validated material and settle its image blobs.

        `instance` is an unsaved Material built elsewhere (the Django admin add
        form); it becomes the new row instead of a fresh one.
        """
        try:
            with transaction.atomic():
                if existing is not None:
                    material = self.repository.update_material(existing, resolved.as_fields())
                elif instance is not None:
                    material = self.repository.update_material(instance, resolved.as_fields())
                else:
                    material = self.repository.create_material(resolved.as_fields())
        except Exception:
            # the row never made it, so the image we just stored has no owner
            self.images.release(resolved.new_image_path)
            raise

        self.images.release(resolved.stale_image_path)
        logger.info(
            "%s material %s (%s)",
            "Updated" if existing is not None else "Created", material.pk, material.file_type,
        )
        return material

    def delete_material(self, material):
        image_path = material.image_path
        self.repository.delete_material(material)
        self.images.release(image_path)
        logger.info("Deleted material %s", material.pk)
