'''
Django admin registration (dev tooling).

The admin must not be a back door around the rules the API enforces, so:
- Section forms resolve the slug with resolve_section_slug (URL-safe, unique).
- Material forms run validate_and_prepare_material in clean(); image_path is
  read-only and only changes through an uploaded file, and save_model writes
  through ContentService so replaced/removed image blobs get released.
- Deletes go through ContentService as well (cascade + blob release).
'''
from django import forms
from django.contrib import admin

from .errors import MaterialsError
from .models import Material, Section
from .repository import ContentRepository
from .services import ContentService
from .validation import MaterialPayload, resolve_section_slug


def _form_error(exc):
    # typed core error -> Django form error, keeping the stable code
    return forms.ValidationError(exc.message, code=exc.code)


class SectionAdminForm(forms.ModelForm):
    # plain CharField: the admin may type "My Slug!" and we normalise it,
    # instead of SlugField accepting "Bad_Slug" as-is
    slug = forms.CharField(max_length=255, required=False, help_text="Leave blank to derive it from the name.")

    class Meta:
        model = Section
        fields = ['name', 'slug']

    def clean(self):
        cleaned = super().clean()
        if self.errors:
            return cleaned
        exclude_id = self.instance.pk
        try:
            cleaned['slug'] = resolve_section_slug(
                cleaned.get('name'),
                cleaned.get('slug'),
                lambda candidate: ContentRepository().slug_taken(candidate, exclude_id=exclude_id),
            )
        except MaterialsError as exc:
            raise _form_error(exc)
        cleaned['name'] = cleaned['name'].strip()
        return cleaned


class MaterialAdminForm(forms.ModelForm):
    # the only way to set image_path: upload a file, ImageStore names it
    image = forms.FileField(required=False, help_text="jpg, jpeg, png, gif or webp, up to 5 MB.")

    class Meta:
        model = Material
        fields = ['section', 'title', 'description', 'file_type', 'file_url']

    def clean(self):
        cleaned = super().clean()
        # field errors (missing section, bad choice) are already reported
        if self.errors:
            return cleaned
        section = cleaned.get('section')
        payload = MaterialPayload(
            section_id=section.pk if section else None,
            title=cleaned.get('title') or '',
            file_type=cleaned.get('file_type') or '',
            file_url=cleaned.get('file_url'),
            description=cleaned.get('description') or '',
            image=cleaned.get('image'),
        )
        existing = self.instance if self.instance.pk else None
        try:
            # may store the uploaded image, so it runs last in clean()
            self.resolved = ContentService().prepare_material(payload, existing)
        except MaterialsError as exc:
            raise _form_error(exc)
        return cleaned


@admin.register(Section)
class SectionAdmin(admin.ModelAdmin):
    form = SectionAdminForm
    list_display = ('name', 'slug', 'created_at')

    def delete_model(self, request, obj):
        ContentService().delete_section(obj)

    def delete_queryset(self, request, queryset):
        service = ContentService()
        for section in queryset:
            service.delete_section(section)


@admin.register(Material)
class MaterialAdmin(admin.ModelAdmin):
    form = MaterialAdminForm
    list_display = ('title', 'section', 'file_type', 'created_at')
    list_filter = ('file_type', 'section')
    readonly_fields = ('image_path', 'created_at')

    def save_model(self, request, obj, form, change):
        # change: obj still carries the stored image_path (not a form field)
        ContentService().persist_material(
            form.resolved,
            existing=obj if change else None,
            instance=None if change else obj,
        )

    def delete_model(self, request, obj):
        ContentService().delete_material(obj)

    def delete_queryset(self, request, queryset):
        service = ContentService()
        for material in queryset:
            service.delete_material(material)
