"""
JSON endpoints behind the admin dashboard.

Every action is authorized inside the service layer (require_admin), so these
views only read the session uid and shape toast-style responses:
{'success': bool, 'message' | 'error': str, ...}.
"""
from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_POST, require_http_methods

from core.decorators import json_action, uid_required
from core.exceptions import ValidationFailed
from core.services import db
from core.utils import parse_json_body, serialize_document

MODERATION_MESSAGES = {
    'approve': 'Prompt approved',
    'reject': 'Prompt rejected',
}


@require_GET
@uid_required
@json_action
def admin_stats(request):
    uid = request.session['uid']
    return JsonResponse({
        'prompts': db.get_admin_stats(uid),
        'blog': db.get_blog_stats(uid),
    })


@require_GET
@uid_required
@json_action
def admin_category_totals(request):
    return JsonResponse({'categories': db.get_category_totals(request.session['uid'])})


@require_GET
@uid_required
@json_action
def admin_prompt_list(request):
    prompts = db.get_all_prompts(
        request.session['uid'],
        status=request.GET.get('status'),
        category=request.GET.get('category'),
    )
    return JsonResponse({'prompts': serialize_document(prompts)})


@require_GET
@uid_required
@json_action
def admin_pending_prompts(request):
    prompts = db.get_pending_prompts(request.session['uid'])
    return JsonResponse({'prompts': serialize_document(prompts)})


@csrf_exempt
@require_POST
@uid_required
@json_action
def admin_moderate_prompt(request, prompt_id):
    action = parse_json_body(request).get('action')
    prompt = db.transition_prompt(prompt_id, action, request.session['uid'])
    return JsonResponse({
        'success': True,
        'message': MODERATION_MESSAGES[action],
        'status': prompt['status'],
    })


@csrf_exempt
@require_POST
@uid_required
@json_action
def admin_prompt_edit(request, prompt_id):
    db.update_prompt(prompt_id, parse_json_body(request), request.session['uid'])
    return JsonResponse({'success': True, 'message': 'Prompt updated'})


@csrf_exempt
@require_POST
@uid_required
@json_action
def admin_prompt_delete(request, prompt_id):
    db.delete_prompt(prompt_id, request.session['uid'])
    return JsonResponse({'success': True, 'message': 'Prompt deleted'})


@csrf_exempt
@require_POST
@uid_required
@json_action
def admin_bulk_create_prompts(request):
    rows = parse_json_body(request).get('prompts')
    if not isinstance(rows, list):
        raise ValidationFailed({'prompts': ['Expected a list of prompts.']})

    result = db.bulk_create_prompts(rows, request.session['uid'])
    return JsonResponse({
        'success': True,
        'message': f"Imported {result['created']} prompts, skipped {len(result['skipped'])}",
        **result,
    })


@csrf_exempt
@require_http_methods(['GET', 'POST'])
@uid_required
@json_action
def admin_categories(request):
    uid = request.session['uid']
    if request.method == 'POST':
        category_id = db.create_category(parse_json_body(request), uid)
        return JsonResponse({'success': True, 'message': 'Category created', 'id': category_id}, status=201)

    return JsonResponse({'categories': serialize_document(db.list_categories(uid))})


@csrf_exempt
@require_POST
@uid_required
@json_action
def admin_category_edit(request, category_id):
    db.update_category(category_id, parse_json_body(request), request.session['uid'])
    return JsonResponse({'success': True, 'message': 'Category updated'})


@csrf_exempt
@require_POST
@uid_required
@json_action
def admin_category_toggle(request, category_id):
    is_active = bool(parse_json_body(request).get('is_active'))
    db.toggle_category_status(category_id, is_active, request.session['uid'])
    return JsonResponse({
        'success': True,
        'message': 'Category activated' if is_active else 'Category deactivated',
        'is_active': is_active,
    })


@csrf_exempt
@require_POST
@uid_required
@json_action
def admin_category_delete(request, category_id):
    db.delete_category(category_id, request.session['uid'])
    return JsonResponse({'success': True, 'message': 'Category deleted'})


@csrf_exempt
@require_POST
@uid_required
@json_action
def admin_blog_category_create(request):
    category_id = db.create_blog_category(parse_json_body(request), request.session['uid'])
    return JsonResponse({'success': True, 'message': 'Blog category created', 'id': category_id}, status=201)


@csrf_exempt
@require_POST
@uid_required
@json_action
def admin_blog_category_edit(request, category_id):
    db.update_blog_category(category_id, parse_json_body(request), request.session['uid'])
    return JsonResponse({'success': True, 'message': 'Blog category updated'})


@csrf_exempt
@require_POST
@uid_required
@json_action
def admin_blog_category_delete(request, category_id):
    db.delete_blog_category(category_id, request.session['uid'])
    return JsonResponse({'success': True, 'message': 'Blog category deleted'})


@require_GET
@uid_required
@json_action
def admin_user_list(request):
    users = db.get_all_users(request.session['uid'])
    return JsonResponse({'users': serialize_document(users)})


@csrf_exempt
@require_POST
@uid_required
@json_action
def admin_user_role(request, user_id):
    uid = request.session['uid']
    if parse_json_body(request).get('is_admin'):
        db.assign_admin_role(user_id, uid)
        message = 'Admin role assigned'
    else:
        db.remove_admin_role(user_id, uid)
        message = 'Admin role removed'
    return JsonResponse({'success': True, 'message': message})


@csrf_exempt
@require_POST
@uid_required
@json_action
def admin_reconcile_counts(request):
    corrections = db.reconcile_counts(request.session['uid'])
    return JsonResponse({
        'success': True,
        'message': f"Corrected {len(corrections)} category counters",
        'corrections': corrections,
    })
