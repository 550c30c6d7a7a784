import logging

from core.exceptions import NotAuthorized, ValidationFailed
from core.forms import UserProfileForm, validate

logger = logging.getLogger(__name__)

USERS = 'users'


class UserMixin:
    def get_user_profile(self, uid):
        if not uid:
            return None
        return self.get_document(USERS, uid)

    def get_or_create_user_profile(self, uid, email, display_name=None):
        """
        Return the profile for `uid`, creating it on first sign-in.
        New profiles never start as admin.
        """
        profile = self.get_user_profile(uid)
        if profile:
            return profile

        user_data = {
            'email': email or '',
            'display_name': display_name or '',
            'bio': '',
            'avatar': None,
            'social_media': {},
            'is_admin': False,
        }
        self.create_document(USERS, user_data, doc_id=uid)
        logger.info(f"Created user profile for {uid}")
        return self.get_user_profile(uid)

    def update_user_profile(self, uid, updates):
        """Self-service profile edit; the admin flag cannot be set here."""
        if 'is_admin' in updates:
            raise NotAuthorized("Admin role changes go through assign_admin_role/remove_admin_role")
        cleaned = validate(UserProfileForm, updates, only=updates.keys())
        self.update_document(USERS, uid, cleaned)

    def is_admin(self, uid):
        user = self.get_user_profile(uid)
        return user.get('is_admin', False) is True if user else False

    def require_admin(self, uid):
        """Return the actor's profile, or raise NotAuthorized unless it is an admin."""
        user = self.get_user_profile(uid)
        if not user:
            raise NotAuthorized("Unknown user")
        if user.get('is_admin', False) is not True:
            raise NotAuthorized("Admin privileges required")
        return user

    def require_user(self, uid):
        user = self.get_user_profile(uid)
        if not user:
            raise NotAuthorized("Sign in required")
        return user

    def get_all_users(self, actor_uid):
        self.require_admin(actor_uid)
        return self.get_collection(USERS)

    def set_admin(self, uid, is_admin):
        """Unchecked role write, for bootstrap scripts (make_admin command)."""
        if not self.get_user_profile(uid):
            raise ValidationFailed({'uid': [f"No user profile for '{uid}'."]})
        self.update_document(USERS, uid, {'is_admin': is_admin})

    def assign_admin_role(self, uid, actor_uid):
        self.require_admin(actor_uid)
        self.set_admin(uid, True)
        logger.info(f"Admin {actor_uid} assigned admin role to user {uid}")

    def remove_admin_role(self, uid, actor_uid):
        self.require_admin(actor_uid)
        if uid == actor_uid:
            raise ValidationFailed({'uid': ["You cannot remove your own admin role."]})
        self.set_admin(uid, False)
        logger.info(f"Admin {actor_uid} removed admin role from user {uid}")
