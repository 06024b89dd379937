'''
    Persistence for sections and materials, backed by the Django ORM.

    Services and the validator only talk to this class, never to the
    model managers directly, so tests can hand them any object with the
    same methods (section_exists, slug_taken, ...).
'''

from django.db.models import Count

from .models import Material, Section


class ContentRepository:

    # ---------- sections ----------
    def section_exists(self, section_id):
        return Section.objects.filter(pk=section_id).exists()

    def slug_taken(self, slug, exclude_id=None):
        qs = Section.objects.filter(slug=slug)
        if exclude_id:
            qs = qs.exclude(pk=exclude_id)
        return qs.exists()

    def sections(self):
        # newest first, with material_count for the listing page
        return Section.objects.annotate(material_count=Count('materials')).order_by('-created_at', '-id')

    def get_section_by_slug(self, slug):
        return self.sections().filter(slug=slug).first()

    def create_section(self, name, slug):
        return Section.objects.create(name=name, slug=slug)

    def update_section(self, section, name, slug):
        section.name = name
        section.slug = slug
        section.save(update_fields=['name', 'slug'])
        return section

    def delete_section(self, section):
        Section.objects.filter(pk=section.pk).delete()

    # ---------- materials ----------
    def materials(self, section_id=None, section_slug=None):
        qs = Material.objects.select_related('section').order_by('-created_at', '-id')
        if section_id:
            qs = qs.filter(section_id=section_id)
        if section_slug:
            qs = qs.filter(section__slug=section_slug)
        return qs

    def get_material(self, material_id):
        return self.materials().filter(pk=material_id).first()

    def create_material(self, fields):
        return Material.objects.create(**fields)

    def update_material(self, material, fields):
        for name, value in fields.items():
            setattr(material, name, value)
        if material.pk is None:
            # unsaved instance (Django admin add form): plain insert
            material.save()
        else:
            material.save(update_fields=list(fields))
        return material

    def delete_material(self, material):
        Material.objects.filter(pk=material.pk).delete()

    def delete_materials(self, materials):
        Material.objects.filter(pk__in=[m.pk for m in materials]).delete()

    # ---------- dashboard ----------
    def counts(self):
        by_type = dict(
            Material.objects.order_by()
            .values_list('file_type')
            .annotate(n=Count('id'))
        )
        return {
            'sections': Section.objects.count(),
            'materials': sum(by_type.values()),
            'by_file_type': by_type,
        }
