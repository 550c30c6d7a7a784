"""
Lifecycle transitions for prompts and blog posts.

Every transition is admin-only and checked here, not by callers. Status
fields only change through these methods; update_prompt/update_post refuse
to touch them.

Two admins moderating the same document at once are not serialized: the
later write wins.
"""
import logging

from firebase_admin import firestore

from core.exceptions import DocumentNotFound, InvalidTransition, ValidationFailed

logger = logging.getLogger(__name__)

# action -> (allowed source statuses, target status)
PROMPT_TRANSITIONS = {
    'approve': ({'pending'}, 'approved'),
    'reject': ({'pending'}, 'rejected'),
}

POST_TRANSITIONS = {
    'publish': ({'draft'}, 'published'),
    'unpublish': ({'published'}, 'draft'),
    'archive': ({'draft', 'published'}, 'archived'),
    'restore': ({'archived'}, 'draft'),
}


class ModerationMixin:
    def _status_count_delta(self, kind, old_status, new_status):
        return int(self.counts_toward_category(kind, new_status)) - int(self.counts_toward_category(kind, old_status))

    def transition_prompt(self, prompt_id, action, actor_uid):
        self.require_admin(actor_uid)
        if not isinstance(action, str) or action not in PROMPT_TRANSITIONS:
            raise ValidationFailed({'action': [f"Unknown prompt action '{action}'."]})

        prompt = self.get_document('prompts', prompt_id)
        if not prompt:
            raise DocumentNotFound('prompts', prompt_id)

        sources, target = PROMPT_TRANSITIONS[action]
        current = prompt.get('status')
        if current not in sources:
            raise InvalidTransition(action, current)

        update = {'status': target, 'approved_by': actor_uid}
        self.update_document('prompts', prompt_id, update)
        logger.info(f"Prompt {prompt_id} {current} -> {target} by {actor_uid}")

        self.adjust_prompt_count(prompt.get('category'), self._status_count_delta('prompt', current, target))
        return {**prompt, **update}

    def approve_prompt(self, prompt_id, actor_uid):
        return self.transition_prompt(prompt_id, 'approve', actor_uid)

    def reject_prompt(self, prompt_id, actor_uid):
        return self.transition_prompt(prompt_id, 'reject', actor_uid)

    def transition_post(self, post_id, action, actor_uid):
        self.require_admin(actor_uid)
        if not isinstance(action, str) or action not in POST_TRANSITIONS:
            raise ValidationFailed({'action': [f"Unknown post action '{action}'."]})

        post = self.get_document('blog_posts', post_id)
        if not post:
            raise DocumentNotFound('blog_posts', post_id)

        sources, target = POST_TRANSITIONS[action]
        current = post.get('status')
        if current not in sources:
            raise InvalidTransition(action, current)

        update = {'status': target}
        if action == 'publish':
            update['published_at'] = firestore.SERVER_TIMESTAMP
        self.update_document('blog_posts', post_id, update)
        logger.info(f"Blog post {post_id} {current} -> {target} by {actor_uid}")

        self.adjust_post_count(post.get('category'), self._status_count_delta('post', current, target))
        return {**post, 'status': target}

    def publish_post(self, post_id, actor_uid):
        return self.transition_post(post_id, 'publish', actor_uid)

    def unpublish_post(self, post_id, actor_uid):
        return self.transition_post(post_id, 'unpublish', actor_uid)

    def archive_post(self, post_id, actor_uid):
        return self.transition_post(post_id, 'archive', actor_uid)

    def restore_post(self, post_id, actor_uid):
        return self.transition_post(post_id, 'restore', actor_uid)
