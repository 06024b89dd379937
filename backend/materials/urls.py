"""
App-level URL routing for the materials API.

DefaultRouter generates, for each ViewSet:
- /api/sections/                      [GET=list, POST=create]
- /api/sections/{id}/                 [GET, PUT, PATCH, DELETE]
- /api/sections/by-slug/{slug}/       [GET]  (@action)
- /api/materials/                     [GET=list (?section=, ?section_slug=), POST=create]
- /api/materials/{id}/                [GET, PUT, PATCH, DELETE]
- /api/materials/stats/               [GET]  (@action)

The '/api/' prefix is added by core/urls.py.
"""
from django.urls import path, include
from rest_framework.routers import DefaultRouter
from .views import MaterialViewSet, SectionViewSet

router = DefaultRouter()
router.register(r'sections', SectionViewSet)
router.register(r'materials', MaterialViewSet)

urlpatterns = [
    path('', include(router.urls)),
]
