from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_POST

from core.decorators import json_action, uid_required
from core.services import db
from core.utils import parse_json_body, serialize_document

STATUS_MESSAGES = {
    'publish': 'Post published',
    'unpublish': 'Post moved back to drafts',
    'archive': 'Post archived',
    'restore': 'Post restored to drafts',
}


@require_GET
@uid_required
@json_action
def blog_manage_status(request):
    """All posts in every status, for the admin post list"""
    posts = db.get_all_posts(request.session['uid'])
    return JsonResponse({'posts': serialize_document(posts)})


@csrf_exempt
@require_POST
@uid_required
@json_action
def blog_create(request):
    uid = request.session['uid']
    post_id = db.create_post(parse_json_body(request), uid)
    post = db.get_post_by_id(post_id)
    return JsonResponse({
        'success': True,
        'message': 'Draft saved',
        'id': post_id,
        'slug': post['slug'],
    }, status=201)


@csrf_exempt
@require_POST
@uid_required
@json_action
def blog_edit(request, post_id):
    db.update_post(post_id, parse_json_body(request), request.session['uid'])
    post = db.get_post_by_id(post_id)
    return JsonResponse({'success': True, 'message': 'Post updated', 'slug': post['slug']})


@csrf_exempt
@require_POST
@uid_required
@json_action
def blog_delete(request, post_id):
    db.delete_post(post_id, request.session['uid'])
    return JsonResponse({'success': True, 'message': 'Post deleted'})


@csrf_exempt
@require_POST
@uid_required
@json_action
def blog_quick_status_change(request, post_id):
    """Run one lifecycle action (publish/unpublish/archive/restore) on a post"""
    action = parse_json_body(request).get('action')
    post = db.transition_post(post_id, action, request.session['uid'])
    return JsonResponse({
        'success': True,
        'message': STATUS_MESSAGES[action],
        'status': post['status'],
    })
