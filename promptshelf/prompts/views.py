import logging

from django.conf import settings
from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_POST

from core.decorators import cache_control_header, json_action, uid_required
from core.exceptions import CatalogError, ValidationFailed
from core.services import db
from core.utils import parse_json_body, parse_page_params, serialize_document

logger = logging.getLogger(__name__)


def _listing_body(prompts, page, page_size, total_pages, total, has_more):
    return {
        'prompts': serialize_document(prompts),
        'pagination': {
            'currentPage': page,
            'totalPages': total_pages,
            'totalItems': total,
            'pageSize': page_size,
            'hasMore': has_more,
        },
    }


def _empty_listing(page_size):
    return _listing_body([], 1, page_size, 0, 0, False)


@require_GET
@cache_control_header(max_age=60, public=True)
def prompt_list_api(request):
    """
    Approved prompts, newest first, one page at a time.
    Always answers with the same JSON shape so list pages can render an
    empty state instead of failing.
    """
    default_page_size = settings.PROMPTS_PAGE_SIZE
    category = request.GET.get('category') or 'All'

    try:
        page, page_size = parse_page_params(request.GET, default_page_size)
        result = db.get_paginated_prompts(None if category == 'All' else category, page, page_size)
    except ValidationFailed as e:
        body = _empty_listing(default_page_size)
        body['errors'] = e.errors
        return JsonResponse(body, status=400)
    except CatalogError as e:
        logger.warning(f"Prompt listing degraded to empty: {e.__class__.__name__}: {e.message}")
        return JsonResponse(_empty_listing(default_page_size), status=500)
    except Exception:
        logger.exception("Unexpected error fetching prompts")
        return JsonResponse(_empty_listing(default_page_size), status=500)

    return JsonResponse(_listing_body(
        result['items'], result['page'], result['page_size'],
        result['total_pages'], result['total'], result['has_more'],
    ))


@require_GET
@json_action
def prompt_detail_api(request, slug):
    uid = request.session.get('uid')
    prompt = db.get_prompt_by_slug(slug)
    if not prompt or not db.can_view_prompt(prompt, uid):
        return JsonResponse({'success': False, 'error': 'Prompt not found'}, status=404)

    related = db.get_related_prompts(prompt) if prompt.get('status') == 'approved' else []
    return JsonResponse({
        'prompt': serialize_document(prompt),
        'related': serialize_document(related),
    })


@csrf_exempt
@require_POST
@uid_required
@json_action
def prompt_submit(request):
    uid = request.session['uid']
    prompt_id = db.create_prompt(parse_json_body(request), uid)
    prompt = db.get_prompt_by_id(prompt_id)

    if prompt['status'] == 'approved':
        message = 'Prompt published'
    else:
        message = 'Prompt submitted for review'
    return JsonResponse({
        'success': True,
        'message': message,
        'id': prompt_id,
        'slug': prompt['slug'],
        'status': prompt['status'],
    }, status=201)


@require_GET
@uid_required
@json_action
def my_prompts_api(request):
    prompts = db.get_prompts_by_user(request.session['uid'])
    return JsonResponse({'prompts': serialize_document(prompts)})


@csrf_exempt
@require_POST
@uid_required
@json_action
def prompt_vote(request, prompt_id):
    vote_type = parse_json_body(request).get('vote_type')
    db.vote_prompt(prompt_id, vote_type)
    return JsonResponse({'success': True})


@require_GET
@cache_control_header(max_age=300, public=True)
def category_list_api(request):
    try:
        categories = db.get_active_categories()
    except CatalogError as e:
        logger.warning(f"Category listing degraded to empty: {e.__class__.__name__}: {e.message}")
        return JsonResponse({'categories': []}, status=500)
    return JsonResponse({'categories': serialize_document(categories)})
