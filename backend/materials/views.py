from rest_framework import viewsets, status
from rest_framework.response import Response
from rest_framework.decorators import action
from rest_framework.exceptions import NotFound

from .errors import BlobWriteFailed, MaterialsError
from .models import Material, Section
from .repository import ContentRepository
from .serializers import (
    MaterialSerializer,
    MaterialWriteSerializer,
    SectionSerializer,
    SectionWriteSerializer,
)
from .services import ContentService
from .validation import MaterialPayload

# Fields a PATCH may leave out; they keep the stored value.
MATERIAL_FORM_FIELDS = ('section_id', 'title', 'description', 'file_type', 'file_url')


class ContentErrorsMixin:
    """Turn core errors into {'detail', 'code'} responses (400, or 500 for blob writes)."""

    # Every typed error from the validator, slug resolution or ImageStore ends up here.
    # The admin UI switches on `code`; `detail` is the message it shows as-is.
    # Anything else (DRF field errors, 404s, 403s) keeps DRF's own handling.
    def handle_exception(self, exc):
        if isinstance(exc, MaterialsError):
            # the storage backend failing is our problem, not the user's input
            code = status.HTTP_500_INTERNAL_SERVER_ERROR if isinstance(exc, BlobWriteFailed) else status.HTTP_400_BAD_REQUEST
            return Response({'detail': exc.message, 'code': exc.code}, status=code)
        return super().handle_exception(exc)

    # One service per request; it picks up default_storage and settings.MATERIALS,
    # which tests swap with override_settings.
    def get_service(self):
        return ContentService(repository=ContentRepository())


class SectionViewSet(ContentErrorsMixin, viewsets.ModelViewSet):
    # Reads are public (visitors browse sections); writes need the admin token.
    # The token check is the global IsAdminOrReadOnly permission in settings.
    queryset = Section.objects.all()
    serializer_class = SectionSerializer

    # GET /api/sections/ and /api/sections/<id>/
    # The repository annotates material_count in the same query, so the
    # listing doesn't run one COUNT per section.
    def get_queryset(self):
        return ContentRepository().sections()

    # POST /api/sections/ {"name": "...", "slug": "" }
    # SectionWriteSerializer only checks shapes; slug derivation and the
    # uniqueness check happen in ContentService.save_section.
    def create(self, request, *args, **kwargs):
        form = SectionWriteSerializer(data=request.data)
        form.is_valid(raise_exception=True)
        section = self.get_service().save_section(form.validated_data['name'], form.validated_data['slug'])
        return Response(self.get_serializer(section).data, status=status.HTTP_201_CREATED)

    # PUT/PATCH /api/sections/<id>/
    # The section being edited may keep its own slug (exclude_id in slug_taken).
    def update(self, request, *args, **kwargs):
        partial = kwargs.pop('partial', False)
        instance = self.get_object()
        form = SectionWriteSerializer(data=request.data)
        form.is_valid(raise_exception=True)

        name = form.validated_data['name']
        slug = form.validated_data['slug']
        # PATCH without a field keeps what is stored
        if partial and 'name' not in request.data:
            name = instance.name
        if partial and 'slug' not in request.data:
            slug = instance.slug

        section = self.get_service().save_section(name, slug, existing=instance)
        return Response(self.get_serializer(section).data)

    # DELETE /api/sections/<id>/
    # Not the default perform_destroy: the service deletes the materials first
    # and then releases their image blobs, which a DB cascade can't do.
    def destroy(self, request, *args, **kwargs):
        instance = self.get_object()
        self.get_service().delete_section(instance)
        return Response(status=status.HTTP_204_NO_CONTENT)

    # GET /api/sections/by-slug/<slug>/ : the public section page is addressed by slug
    # The url_path regex only lets through slugs slugify() can produce;
    # anything else falls through to a router 404.
    @action(detail=False, methods=['get'], url_path=r'by-slug/(?P<slug>[a-z0-9-]+)')
    def by_slug(self, request, slug=None):
        section = ContentRepository().get_section_by_slug(slug)
        if section is None:
            raise NotFound("Section not found.")
        return Response(self.get_serializer(section).data)


class MaterialViewSet(ContentErrorsMixin, viewsets.ModelViewSet):
    queryset = Material.objects.all()
    serializer_class = MaterialSerializer

    # GET /api/materials/?section=<id> or ?section_slug=<slug>
    # The public section page uses the slug, the admin list uses the id.
    # select_related('section') in the repository feeds section_name/section_slug
    # without a query per row; the (section, created_at) index serves the filter.
    def get_queryset(self):
        qp = self.request.query_params
        # a non-numeric ?section is ignored rather than a 500
        try:
            section_id = int(qp.get('section')) if qp.get('section') else None
        except ValueError:
            section_id = None
        return ContentRepository().materials(section_id=section_id, section_slug=qp.get('section_slug'))

    # Builds the validator input from the request. The shape check runs first, so
    # a JSON list or object where a string belongs is a 400 field error, never a crash.
    # PATCH fills the missing fields from the stored row before that check.
    def _payload(self, request, existing=None, partial=False):
        # .get() takes the last value of a multipart field, the whole value for JSON
        data = {key: request.data.get(key) for key in MATERIAL_FORM_FIELDS if key in request.data}
        if partial and existing is not None:
            for key in MATERIAL_FORM_FIELDS:
                data.setdefault(key, getattr(existing, key))

        form = MaterialWriteSerializer(data=data)
        form.is_valid(raise_exception=True)
        # the image (if any) comes from request.FILES, untouched by the serializer
        return MaterialPayload.from_form(form.validated_data, request.FILES)

    # POST /api/materials/ (multipart when an image is attached, JSON otherwise)
    # Validation, image store and row insert all happen in save_material;
    # a failure anywhere leaves neither a row nor an orphan blob.
    def create(self, request, *args, **kwargs):
        material = self.get_service().save_material(self._payload(request))
        return Response(self.get_serializer(material).data, status=status.HTTP_201_CREATED)

    # PUT/PATCH /api/materials/<id>/
    # Without a new upload an image material keeps its stored image; the old
    # blob is only released once the row points somewhere else.
    def update(self, request, *args, **kwargs):
        partial = kwargs.pop('partial', False)
        instance = self.get_object()
        payload = self._payload(request, existing=instance, partial=partial)
        material = self.get_service().save_material(payload, existing=instance)
        # re-read so section_name/section_slug reflect a moved material
        material = ContentRepository().get_material(material.pk)
        return Response(self.get_serializer(material).data)

    # DELETE /api/materials/<id>/ : row first, then its image blob (best-effort)
    def destroy(self, request, *args, **kwargs):
        instance = self.get_object()
        self.get_service().delete_material(instance)
        return Response(status=status.HTTP_204_NO_CONTENT)

    # GET /api/materials/stats/ : admin dashboard counters
    # {"sections": n, "materials": n, "by_file_type": {"youtube": n, ...}}
    # detail=False because the counts cover the whole table, not one material.
    @action(detail=False, methods=['get'], url_path='stats')
    def stats(self, request):
        return Response(ContentRepository().counts())
