'''
     Serializers for sections and materials.

     Writes don't go through ModelSerializer validation. The *WriteSerializer
     classes only check the shape of the input (strings, length caps matching
     the model columns); the views then hand the cleaned form to ContentService,
     which runs the material validator / slug resolution and raises the typed errors.
     Materials expose display-ready URLs:
        embed_url - iframe src (Drive/Docs preview, YouTube embed) or the image URL
        image_url - served URL of the stored image (image materials only)
        open_url  - "open in new tab" link (original Drive link / YouTube watch page)
'''

from rest_framework import serializers

from .models import FileType, Material, Section
from .references import normalize_reference_for_display, youtube_watch_url
from .storage import ImageStore


class SectionSerializer(serializers.ModelSerializer):
    # annotated by ContentRepository.sections(); 0 for freshly created rows
    material_count = serializers.SerializerMethodField()

    class Meta:
        model = Section
        fields = ['id', 'name', 'slug', 'created_at', 'material_count']
        read_only_fields = fields

    def get_material_count(self, obj):
        count = getattr(obj, 'material_count', None)
        if count is None:
            count = obj.materials.count()
        return count


class SectionWriteSerializer(serializers.Serializer):
    # Blank is allowed here so an empty name still reaches resolve_section_slug
    # and comes back as the typed name_required error.
    name = serializers.CharField(allow_blank=True, default='', max_length=255, trim_whitespace=True)
    slug = serializers.CharField(allow_blank=True, default='', max_length=255, trim_whitespace=True)


class MaterialWriteSerializer(serializers.Serializer):
    '''
    Shape check for the material form (multipart or JSON).

    Lists, dicts and booleans are rejected here with a field error (400), so the
    validator only ever sees strings. Emptiness, section existence, file type
    and YouTube id checks stay in validate_and_prepare_material so they keep
    their own error codes. section_id is a CharField for the same reason:
    "abc" or "" must end up as section_required, not as a DRF field error.
    '''
    section_id = serializers.CharField(allow_blank=True, allow_null=True, required=False)
    title = serializers.CharField(allow_blank=True, default='', max_length=255, trim_whitespace=False)
    description = serializers.CharField(allow_blank=True, allow_null=True, default='', trim_whitespace=False)
    file_type = serializers.CharField(allow_blank=True, default='', max_length=20)
    file_url = serializers.CharField(allow_blank=True, allow_null=True, required=False, max_length=1000)


class MaterialSerializer(serializers.ModelSerializer):
    # section_id instead of a nested section, plus the two fields the pages print;
    # ContentRepository.materials() select_related's the section so these cost no query
    section_id = serializers.IntegerField(read_only=True)
    section_name = serializers.CharField(source='section.name', read_only=True)
    section_slug = serializers.CharField(source='section.slug', read_only=True)
    # "Gdrive pdf", "Youtube", ... from FileType labels
    file_type_label = serializers.CharField(source='get_file_type_display', read_only=True)
    # computed at read time from the stored link / blob name, never stored
    embed_url = serializers.SerializerMethodField()
    image_url = serializers.SerializerMethodField()
    open_url = serializers.SerializerMethodField()

    class Meta:
        model = Material
        fields = [
            'id', 'section_id', 'section_name', 'section_slug', 'title', 'description',
            'file_type', 'file_type_label', 'file_url', 'image_path', 'image_url',
            'embed_url', 'open_url', 'created_at',
        ]
        read_only_fields = fields

    # an ImageStore may come in the serializer context; default_storage otherwise
    def _images(self):
        return self.context.get('images') or ImageStore()

    def get_image_url(self, obj):
        if obj.file_type != FileType.IMAGE:
            return None
        return self._images().url(obj.image_path)

    # what the page puts in its iframe / img tag; unrecognised links pass through as stored
    def get_embed_url(self, obj):
        if obj.file_type == FileType.IMAGE:
            return self.get_image_url(obj)
        return normalize_reference_for_display(obj.file_type, obj.file_url)

    # "open in new tab": YouTube gets the canonical watch page, Drive the link as pasted
    def get_open_url(self, obj):
        if obj.file_type == FileType.YOUTUBE:
            return youtube_watch_url(obj.file_url)
        if obj.file_type == FileType.IMAGE:
            return self.get_image_url(obj)
        return obj.file_url
