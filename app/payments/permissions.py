"""
Permission classes for the payment settings API.

The split rule and earnings endpoints are operated by marketplace staff
through an API key rather than user accounts:

    X-Admin-Key: <PAYMENT_ADMIN_API_KEY>

When PAYMENT_ADMIN_API_KEY is empty every request is refused.
"""

from __future__ import annotations

import hmac
from typing import TYPE_CHECKING

from django.conf import settings
from rest_framework import permissions

if TYPE_CHECKING:
    from rest_framework.request import Request
    from rest_framework.views import APIView


class HasAdminKey(permissions.BasePermission):
    """Allows access only when X-Admin-Key matches the configured key."""

    message = "A valid X-Admin-Key header is required."

    def has_permission(self, request: Request, view: APIView) -> bool:
        expected = settings.PAYMENT_ADMIN_API_KEY
        if not expected:
            return False
        provided = request.headers.get("X-Admin-Key", "")
        return hmac.compare_digest(provided.encode("utf-8"), expected.encode("utf-8"))
