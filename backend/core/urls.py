"""
Project-level URL routing.

- /admin/ : Django admin (dev tooling)
- /api/   : All API endpoints, delegated to the `materials` app.
- static(settings.MEDIA_URL) : Serve uploaded images from MEDIA_ROOT in development.
"""
from django.contrib import admin
from django.urls import path, include
from django.conf import settings
from django.conf.urls.static import static

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/', include('materials.urls')),
] + static(settings.MEDIA_URL, document_root=settings.MEDIA_ROOT)
