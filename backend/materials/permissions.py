'''
Visitors can browse everything; only the admin area may write.

There is a single shared admin area, so "admin" just means the request
carries the configured token in the X-Admin-Token header
(settings.MATERIALS['ADMIN_TOKEN']). The core services assume this gate
already ran.
'''
import hmac

from django.conf import settings
from rest_framework.permissions import BasePermission, SAFE_METHODS


def _admin_token():
    return getattr(settings, 'MATERIALS', {}).get('ADMIN_TOKEN') or ''


class IsAdminOrReadOnly(BasePermission):
    message = "Missing or invalid X-Admin-Token header."

    def has_permission(self, request, view):
        if request.method in SAFE_METHODS:
            return True
        # Supports both X-Admin-Token: (curl/fetch) and HTTP_X_ADMIN_TOKEN (how Django exposes it in tests).
        sent = request.headers.get('X-Admin-Token') or request.META.get('HTTP_X_ADMIN_TOKEN') or ''
        expected = _admin_token()
        # an unset token never opens the admin area
        return bool(expected) and hmac.compare_digest(sent.encode(), expected.encode())
