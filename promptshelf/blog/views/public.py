import logging

from django.conf import settings
from django.http import JsonResponse
from django.views.decorators.http import require_GET

from core.decorators import cache_control_header, json_action
from core.exceptions import CatalogError, ValidationFailed
from core.services import db
from core.utils import parse_page_params, serialize_document

logger = logging.getLogger(__name__)


def _empty_listing(page_size):
    return {
        'posts': [],
        'pagination': {
            'currentPage': 1,
            'totalPages': 0,
            'totalItems': 0,
            'pageSize': page_size,
            'hasMore': False,
        },
    }


@require_GET
@cache_control_header(max_age=60, public=True)
def blog_list_api(request):
    """Published posts, most recently published first"""
    default_page_size = settings.PROMPTS_PAGE_SIZE
    category = request.GET.get('category') or 'all'

    try:
        page, page_size = parse_page_params(request.GET, default_page_size)
        result = db.get_paginated_posts(None if category == 'all' else category, page, page_size)
    except ValidationFailed as e:
        body = _empty_listing(default_page_size)
        body['errors'] = e.errors
        return JsonResponse(body, status=400)
    except CatalogError as e:
        logger.warning(f"Blog listing degraded to empty: {e.__class__.__name__}: {e.message}")
        return JsonResponse(_empty_listing(default_page_size), status=500)
    except Exception:
        logger.exception("Unexpected error fetching blog posts")
        return JsonResponse(_empty_listing(default_page_size), status=500)

    return JsonResponse({
        'posts': serialize_document(result['items']),
        'pagination': {
            'currentPage': result['page'],
            'totalPages': result['total_pages'],
            'totalItems': result['total'],
            'pageSize': result['page_size'],
            'hasMore': result['has_more'],
        },
    })


@require_GET
@json_action
def blog_detail_api(request, slug):
    """Display a single published post and count the view"""
    post = db.get_post_by_slug(slug)

    # Only admins see drafts and archived posts
    if not post or (post.get('status') != 'published' and not db.is_admin(request.session.get('uid'))):
        return JsonResponse({'success': False, 'error': 'Post not found'}, status=404)

    if post.get('status') == 'published':
        try:
            db.increment_views(post['id'])
            post['views'] = (post.get('views') or 0) + 1
        except CatalogError as e:
            # A lost view is not worth failing the read
            logger.warning(f"Could not count view for post {post['id']}: {e.message}")

    return JsonResponse({
        'post': serialize_document(post),
        'related': serialize_document(db.get_related_posts(post)),
    })


@require_GET
@cache_control_header(max_age=300, public=True)
def blog_category_list_api(request):
    try:
        categories = db.get_blog_categories()
    except CatalogError as e:
        logger.warning(f"Blog category listing degraded to empty: {e.__class__.__name__}: {e.message}")
        return JsonResponse({'categories': []}, status=500)
    return JsonResponse({'categories': serialize_document(categories)})
