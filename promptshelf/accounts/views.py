import logging

from django.contrib.auth import login, logout
from django.contrib.auth.models import User
from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_POST
from firebase_admin import auth

from core.decorators import json_action, uid_required
from core.services import db
from core.utils import parse_json_body, serialize_document

logger = logging.getLogger(__name__)


@csrf_exempt
@require_POST
@json_action
def firebase_login(request):
    """
    Exchange a Firebase ID token for a Django session. The first sign-in
    creates the Firestore profile (never as admin).
    """
    id_token = parse_json_body(request).get('idToken')
    if not id_token:
        return JsonResponse({'status': 'error', 'message': 'No token provided'}, status=400)

    try:
        decoded_token = auth.verify_id_token(id_token)
    except (auth.InvalidIdTokenError, ValueError) as e:
        logger.info(f"Rejected ID token: {e}")
        return JsonResponse({'status': 'error', 'message': 'Invalid token'}, status=401)
    except auth.CertificateFetchError as e:
        logger.error(f"Could not fetch token signing keys: {e}")
        return JsonResponse({'status': 'error', 'message': 'Sign-in is temporarily unavailable'}, status=503)

    uid = decoded_token['uid']
    email = decoded_token.get('email', '')
    name = decoded_token.get('name', '')

    # Get or create Django user
    user, created = User.objects.get_or_create(username=uid)
    user.email = email
    if created:
        user.set_unusable_password()
    user.save()

    profile = db.get_or_create_user_profile(uid, email, name)

    login(request, user, backend='django.contrib.auth.backends.ModelBackend')

    # Store UID in session for easy access
    request.session['uid'] = uid
    request.session.save()

    return JsonResponse({
        'status': 'success',
        'uid': uid,
        'is_admin': profile.get('is_admin', False) is True,
    })


@csrf_exempt
@require_POST
def logout_view(request):
    """Logout from both Django and the Firebase session uid."""
    request.session.pop('uid', None)
    logout(request)
    return JsonResponse({'status': 'success'})


@require_GET
@uid_required
@json_action
def profile_api(request):
    profile = db.require_user(request.session['uid'])
    return JsonResponse({'profile': serialize_document(profile)})


@csrf_exempt
@require_POST
@uid_required
@json_action
def profile_update(request):
    db.update_user_profile(request.session['uid'], parse_json_body(request))
    return JsonResponse({'success': True, 'message': 'Profile updated'})
