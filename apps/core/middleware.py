"""
API key authentication middleware.

Requests under /api/ require a valid API key in the X-API-KEY header.
Health probes and the admin site are exempt.
"""

import hmac
import logging

from django.conf import settings
from django.http import JsonResponse

logger = logging.getLogger(__name__)

# Paths that don't require authentication
EXEMPT_PATHS = (
    '/health',
    '/admin/',
)


def _error(status_code, code, detail):
    return JsonResponse(
        {
            'error': True,
            'status_code': status_code,
            'code': code,
            'detail': detail,
        },
        status=status_code,
    )


class APIKeyMiddleware:
    """
    Middleware that checks for a valid API key in the X-API-KEY header.

    If API_KEYS is empty in settings (e.g., during testing), the middleware
    is effectively disabled and all requests pass through.
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        if request.path.startswith(EXEMPT_PATHS):
            return self.get_response(request)

        api_keys = getattr(settings, 'API_KEYS', [])
        if not api_keys:
            return self.get_response(request)

        provided_key = request.META.get('HTTP_X_API_KEY', '')

        if not provided_key:
            logger.warning("Request to %s rejected: missing API key", request.path)
            return _error(
                401,
                'authentication_required',
                'Authentication required. Provide X-API-KEY header.',
            )

        if not any(hmac.compare_digest(provided_key.encode(), key.encode()) for key in api_keys):
            logger.warning("Request to %s rejected: invalid API key", request.path)
            return _error(403, 'invalid_api_key', 'Invalid API key.')

        return self.get_response(request)
