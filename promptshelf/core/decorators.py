import logging
from functools import wraps

from django.http import JsonResponse
from django.utils.cache import patch_cache_control

from .exceptions import CatalogError, ValidationFailed

logger = logging.getLogger(__name__)


def cache_control_header(max_age=300, s_maxage=None, public=False, private=False):
    """
    Decorator to set the Cache-Control header for a view.

    Usage:
        @cache_control_header(max_age=600, public=True)
        def my_view(request):
            ...

    :param max_age: Time in seconds for browser caching.
    :param s_maxage: Time in seconds for shared cache (CDN).
    :param public: If True, marks as public (cachable by CDNs even if authed - USE CAUTION).
    :param private: If True, marks as private (only browser cache).
    """
    def decorator(view_func):
        @wraps(view_func)
        def _wrapped_view(request, *args, **kwargs):
            response = view_func(request, *args, **kwargs)

            # Errors must not be cached downstream
            if response.status_code >= 400:
                patch_cache_control(response, no_store=True)
                return response

            kwargs_dict = {'max_age': max_age}
            if s_maxage is not None:
                kwargs_dict['s_maxage'] = s_maxage
            if public:
                kwargs_dict['public'] = True
            if private:
                kwargs_dict['private'] = True

            patch_cache_control(response, **kwargs_dict)
            return response
        return _wrapped_view
    return decorator


def uid_required(view_func):
    """Reject requests without a signed-in session uid (JSON 401)."""
    @wraps(view_func)
    def _wrapped_view(request, *args, **kwargs):
        if not request.session.get('uid'):
            return JsonResponse({'success': False, 'error': 'Sign in required'}, status=401)
        return view_func(request, *args, **kwargs)
    return _wrapped_view


def error_response(error):
    """Toast-style JSON body for a CatalogError."""
    body = {'success': False, 'error': error.message or error.__class__.__name__}
    if isinstance(error, ValidationFailed):
        body['errors'] = error.errors
    return JsonResponse(body, status=error.status_code)


def json_action(view_func):
    """
    Map CatalogError subclasses raised by the service layer onto JSON
    responses with the matching status code.
    """
    @wraps(view_func)
    def _wrapped_view(request, *args, **kwargs):
        try:
            return view_func(request, *args, **kwargs)
        except CatalogError as e:
            log = logger.error if e.status_code >= 500 else logger.info
            log(f"{request.method} {request.path} failed: {e.__class__.__name__}: {e.message}")
            return error_response(e)
    return _wrapped_view
