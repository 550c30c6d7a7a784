import logging

from core.exceptions import DanglingReference, DocumentNotFound, NotAuthorized, ValidationFailed
from core.forms import PromptForm, validate
from core.pagination import paginate, sort_newest_first
from core.slugs import generate_slug

logger = logging.getLogger(__name__)

PROMPTS = 'prompts'
PROMPT_STATUSES = ('pending', 'approved', 'rejected')

# Literal routes under prompts/ that a detail slug would never reach
RESERVED_PROMPT_SLUGS = ('submit', 'mine')

# Fields owned by the workflow or the store, never set through create/update
PROTECTED_PROMPT_FIELDS = ('status', 'approved_by', 'created_by', 'upvotes', 'downvotes', 'slug', 'created_at', 'updated_at')


class PromptMixin:
    def _require_category(self, name):
        category = self.get_category_by_name(name)
        if not category:
            raise DanglingReference('category', name)
        return category

    def _prompt_slug(self, title, exclude_id=None):
        slug = generate_slug(title)
        if not slug:
            raise ValidationFailed({'title': ["Title must contain letters or digits."]})
        return self.unique_slug(PROMPTS, slug, exclude_id=exclude_id, reserved=RESERVED_PROMPT_SLUGS)

    def create_prompt(self, data, actor_uid):
        """
        Submit a prompt. Contributors' prompts start pending; an admin's
        prompt is approved on creation with approved_by set to the admin.
        """
        author = self.require_user(actor_uid)
        cleaned = validate(PromptForm, data)
        category = self._require_category(cleaned['category'])

        is_admin = author.get('is_admin', False) is True
        status = 'approved' if is_admin else 'pending'

        prompt = {
            'title': cleaned['title'],
            'description': cleaned['description'],
            'category': category['name'],
            'full_prompt': cleaned['full_prompt'],
            'slug': self._prompt_slug(cleaned['title']),
            'tags': cleaned['tags'],
            'images': cleaned['images'],
            'status': status,
            'created_by': actor_uid,
            'upvotes': 0,
            'downvotes': 0,
        }
        if is_admin:
            prompt['approved_by'] = actor_uid

        prompt_id = self.create_document(PROMPTS, prompt)
        logger.info(f"Prompt {prompt_id} created by {actor_uid} as {status}")

        if self.counts_toward_category('prompt', status):
            self.adjust_prompt_count(category['name'], 1)
        return prompt_id

    def get_prompt_by_id(self, prompt_id):
        return self.get_document(PROMPTS, prompt_id)

    def get_prompt_by_slug(self, slug):
        return self.get_first_by_field(PROMPTS, 'slug', slug)

    def list_prompts_by_status(self, status, category=None):
        """
        Prompts in `status`, newest first. The store is queried on status
        only; the category filter is applied in memory.
        """
        if status not in PROMPT_STATUSES:
            raise ValidationFailed({'status': [f"Unknown prompt status '{status}'."]})

        prompts = self.query_by_field(PROMPTS, 'status', status)
        if category and category != 'All':
            key = category.strip().lower()
            prompts = [p for p in prompts if (p.get('category') or '').strip().lower() == key]
        return sort_newest_first(prompts)

    def get_approved_prompts(self, category=None):
        return self.list_prompts_by_status('approved', category)

    def get_paginated_prompts(self, category=None, page=1, page_size=12):
        return paginate(self.get_approved_prompts(category), page, page_size)

    def get_all_prompts(self, actor_uid, status=None, category=None):
        """Every prompt for the admin list, optionally narrowed to one status."""
        self.require_admin(actor_uid)
        if status:
            return self.list_prompts_by_status(status, category)
        return sort_newest_first(self.get_collection(PROMPTS))

    def get_prompts_by_user(self, uid):
        return sort_newest_first(self.query_by_field(PROMPTS, 'created_by', uid))

    def get_related_prompts(self, prompt, limit=3):
        related = [
            p for p in self.get_approved_prompts(prompt.get('category'))
            if p['id'] != prompt.get('id')
        ]
        return related[:limit]

    def can_view_prompt(self, prompt, uid):
        """Approved prompts are public; others only to their author and admins."""
        if prompt.get('status') == 'approved':
            return True
        if not uid:
            return False
        return prompt.get('created_by') == uid or self.is_admin(uid)

    def _require_prompt_editor(self, prompt, actor_uid):
        # Authors may edit their own prompt until it has been moderated
        actor = self.require_user(actor_uid)
        if actor.get('is_admin', False) is True:
            return actor
        if prompt.get('created_by') == actor_uid and prompt.get('status') == 'pending':
            return actor
        raise NotAuthorized("You can't change this prompt")

    def update_prompt(self, prompt_id, updates, actor_uid):
        prompt = self.get_prompt_by_id(prompt_id)
        if not prompt:
            raise DocumentNotFound(PROMPTS, prompt_id)
        self._require_prompt_editor(prompt, actor_uid)

        protected = [field for field in PROTECTED_PROMPT_FIELDS if field in updates]
        if protected:
            raise ValidationFailed({field: ["This field can't be changed directly."] for field in protected})

        cleaned = validate(PromptForm, {**prompt, **updates}, only=updates.keys())

        old_category = prompt.get('category')
        if 'category' in cleaned:
            cleaned['category'] = self._require_category(cleaned['category'])['name']
        if 'title' in cleaned and cleaned['title'] != prompt.get('title'):
            cleaned['slug'] = self._prompt_slug(cleaned['title'], exclude_id=prompt_id)

        self.update_document(PROMPTS, prompt_id, cleaned)

        new_category = cleaned.get('category', old_category)
        if new_category != old_category and self.counts_toward_category('prompt', prompt.get('status')):
            self.adjust_prompt_count(old_category, -1)
            self.adjust_prompt_count(new_category, 1)

    def delete_prompt(self, prompt_id, actor_uid):
        """Hard delete, no cascade."""
        prompt = self.get_prompt_by_id(prompt_id)
        if not prompt:
            raise DocumentNotFound(PROMPTS, prompt_id)
        actor = self.require_user(actor_uid)
        if actor.get('is_admin', False) is not True and prompt.get('created_by') != actor_uid:
            raise NotAuthorized("You can't delete this prompt")

        self.delete_document(PROMPTS, prompt_id)
        logger.info(f"Prompt {prompt_id} deleted by {actor_uid}")

        if self.counts_toward_category('prompt', prompt.get('status')):
            self.adjust_prompt_count(prompt.get('category'), -1)

    def vote_prompt(self, prompt_id, vote_type):
        if vote_type not in ('upvote', 'downvote'):
            raise ValidationFailed({'vote_type': ["Vote must be 'upvote' or 'downvote'."]})
        field = 'upvotes' if vote_type == 'upvote' else 'downvotes'
        self.increment_field(PROMPTS, prompt_id, field, 1)
