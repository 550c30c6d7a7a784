from .base import BaseFirestoreService
from .users import UserMixin
from .categories import CategoryMixin
from .prompts import PromptMixin
from .blogs import BlogMixin
from .moderation import ModerationMixin
from .admin import AdminMixin

class FirestoreService(
    UserMixin,
    CategoryMixin,
    PromptMixin,
    BlogMixin,
    ModerationMixin,
    AdminMixin,
    BaseFirestoreService
):
    """
    Main service class combining all mixins.
    """
    pass

# Create singleton instance
db = FirestoreService()
