import logging
from collections import Counter

from core.exceptions import ValidationFailed
from core.forms import PromptForm, validate
from core.services.prompts import RESERVED_PROMPT_SLUGS
from core.slugs import generate_slug

logger = logging.getLogger(__name__)


class AdminMixin:
    """
    Dashboard rollups. Each one scans whole collections and reduces in
    memory, so cost grows with collection size and nothing is cached.
    """

    def get_admin_stats(self, actor_uid):
        self.require_admin(actor_uid)
        users = self.get_collection('users')
        prompts = self.get_collection('prompts')
        by_status = Counter(p.get('status') for p in prompts)

        return {
            'total_users': len(users),
            'total_prompts': len(prompts),
            'pending_prompts': by_status['pending'],
            'approved_prompts': by_status['approved'],
            'rejected_prompts': by_status['rejected'],
        }

    def get_blog_stats(self, actor_uid):
        self.require_admin(actor_uid)
        posts = self.get_collection('blog_posts')
        by_status = Counter(p.get('status') for p in posts)

        return {
            'total_posts': len(posts),
            'draft_posts': by_status['draft'],
            'published_posts': by_status['published'],
            'archived_posts': by_status['archived'],
            'total_views': sum(p.get('views') or 0 for p in posts),
        }

    def get_category_totals(self, actor_uid):
        """Stored counter next to the recomputed count for every prompt category."""
        self.require_admin(actor_uid)
        actual_counts = self.count_prompts_by_category()

        totals = []
        categories = sorted(self.get_collection('categories'), key=lambda c: (c.get('name') or '').lower())
        for category in categories:
            stored = category.get('prompt_count', 0)
            actual = actual_counts.get((category.get('name') or '').strip().lower(), 0)
            totals.append({
                'id': category['id'],
                'name': category.get('name'),
                'slug': category.get('slug'),
                'is_active': bool(category.get('is_active')),
                'stored_count': stored,
                'actual_count': actual,
                'drifted': stored != actual,
            })
        return totals

    def list_categories(self, actor_uid):
        """All prompt categories, inactive ones included."""
        self.require_admin(actor_uid)
        return self.get_all_categories()

    def get_pending_prompts(self, actor_uid):
        self.require_admin(actor_uid)
        return self.list_prompts_by_status('pending')

    def reconcile_counts(self, actor_uid):
        self.require_admin(actor_uid)
        return self.reconcile_category_counts()

    def bulk_create_prompts(self, rows, actor_uid):
        """
        Import already-parsed rows as approved prompts. Rows that fail
        validation are skipped and reported; unknown categories are created.
        """
        self.require_admin(actor_uid)

        documents = []
        skipped = []
        reserved_slugs = set(RESERVED_PROMPT_SLUGS)
        category_counts = Counter()
        # first spelling seen wins for categories that differ only by case
        spellings = {}

        for index, row in enumerate(rows):
            if not isinstance(row, dict):
                skipped.append({'row': index, 'errors': {'row': ["Expected an object."]}})
                continue
            try:
                cleaned = validate(PromptForm, {'description': '', 'category': 'Uncategorized', **row})
            except ValidationFailed as e:
                logger.warning(f"Skipping import row {index}: {e.errors}")
                skipped.append({'row': index, 'errors': e.errors})
                continue

            cleaned['category'] = spellings.setdefault(cleaned['category'].strip().lower(), cleaned['category'].strip())

            slug = generate_slug(cleaned['title'])
            if not slug:
                skipped.append({'row': index, 'errors': {'title': ["Title must contain letters or digits."]}})
                continue
            slug = self.unique_slug('prompts', slug, reserved=reserved_slugs)
            reserved_slugs.add(slug)

            documents.append({
                'title': cleaned['title'],
                'description': cleaned['description'],
                'category': cleaned['category'],
                'full_prompt': cleaned['full_prompt'],
                'slug': slug,
                'tags': cleaned['tags'],
                'images': [],
                'status': 'approved',
                'created_by': actor_uid,
                'approved_by': actor_uid,
                'upvotes': 0,
                'downvotes': 0,
            })
            category_counts[cleaned['category']] += 1

        # Resolve categories first so imported prompts carry the canonical name
        categories_created = []
        for name in list(category_counts):
            category = self.get_category_by_name(name)
            if not category:
                self.create_document('categories', {
                    'name': name,
                    'slug': generate_slug(name),
                    'description': f"Auto-created category for {name} prompts",
                    'is_active': True,
                    'prompt_count': 0,
                    'created_by': actor_uid,
                })
                categories_created.append(name)
                continue
            if category['name'] != name:
                for document in documents:
                    if document['category'] == name:
                        document['category'] = category['name']

        doc_ids = self.batch_create('prompts', documents) if documents else []
        logger.info(f"Admin {actor_uid} imported {len(doc_ids)} prompts, skipped {len(skipped)}")

        if self.counts_toward_category('prompt', 'approved'):
            for name, count in category_counts.items():
                self.adjust_prompt_count(name, count)

        return {
            'created': len(doc_ids),
            'ids': doc_ids,
            'skipped': skipped,
            'categories_created': categories_created,
        }
