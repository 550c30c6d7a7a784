import logging
from collections import Counter

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured

from core.exceptions import CatalogError, DocumentNotFound, ValidationFailed
from core.forms import BlogCategoryForm, CategoryForm, validate
from core.pagination import sort_newest_first
from core.slugs import generate_slug

logger = logging.getLogger(__name__)

CATEGORIES = 'categories'
BLOG_CATEGORIES = 'blog_categories'

# Status that makes an entity publicly visible, per entity kind
VISIBLE_STATUS = {
    'prompt': 'approved',
    'post': 'published',
}

DEFAULT_CATEGORIES = [
    ("Content Creation", "AI prompts for creating engaging content, social media posts, and marketing materials"),
    ("Programming", "Code review, debugging, development assistance and technical problem solving"),
    ("Business", "Strategy, planning, analysis and business development prompts"),
    ("Writing", "Creative writing, copywriting, editing and storytelling assistance"),
    ("Data Science", "Data analysis, machine learning, statistics and insights generation"),
    ("Design", "UX/UI design, visual design feedback and creative direction"),
    ("Marketing", "Digital marketing, advertising campaigns and brand strategy"),
    ("Education", "Learning materials, tutoring, course creation and educational content"),
]


def _name_key(name):
    return (name or '').strip().lower()


class CategoryMixin:
    # Counter policy

    def counts_toward_category(self, kind, status):
        """
        Whether an entity of `kind` in `status` is included in its category's
        stored count. 'all' counts every entity from create to delete,
        'visible' only approved prompts / published posts.
        """
        policy = getattr(settings, 'CATEGORY_COUNT_POLICY', 'all')
        if policy == 'visible':
            return status == VISIBLE_STATUS[kind]
        if policy != 'all':
            raise ImproperlyConfigured(f"CATEGORY_COUNT_POLICY must be 'all' or 'visible', not {policy!r}")
        return True

    def adjust_prompt_count(self, category_name, delta):
        """
        Best-effort counter write after an entity write. A failure leaves the
        counter drifted (logged) and is repaired by reconcile_category_counts.
        """
        if not delta:
            return True
        try:
            category = self.get_category_by_name(category_name)
            if not category:
                logger.warning(f"No category named '{category_name}' to adjust prompt_count")
                return False
            self.increment_field(CATEGORIES, category['id'], 'prompt_count', delta)
            return True
        except CatalogError as e:
            logger.warning(f"prompt_count for '{category_name}' may have drifted by {delta}: {e}")
            return False

    def adjust_post_count(self, category_slug, delta):
        if not delta:
            return True
        try:
            category = self.get_blog_category_by_slug(category_slug)
            if not category:
                logger.warning(f"No blog category '{category_slug}' to adjust post_count")
                return False
            self.increment_field(BLOG_CATEGORIES, category['id'], 'post_count', delta)
            return True
        except CatalogError as e:
            logger.warning(f"post_count for '{category_slug}' may have drifted by {delta}: {e}")
            return False

    # Prompt categories

    def create_category(self, data, actor_uid):
        self.require_admin(actor_uid)
        cleaned = validate(CategoryForm, {'is_active': True, **data})
        slug = generate_slug(cleaned['name'])
        if not slug:
            raise ValidationFailed({'name': ["Name must contain letters or digits."]})
        if self.get_category_by_slug(slug) or self.get_category_by_name(cleaned['name']):
            raise ValidationFailed({'name': ["A category with this name already exists."]})

        return self.create_document(CATEGORIES, {
            'name': cleaned['name'].strip(),
            'slug': slug,
            'description': cleaned['description'],
            'is_active': cleaned['is_active'],
            'prompt_count': 0,
            'created_by': actor_uid,
        })

    def get_all_categories(self):
        return sort_newest_first(self.get_collection(CATEGORIES))

    def get_active_categories(self):
        categories = [c for c in self.get_collection(CATEGORIES) if c.get('is_active')]
        return sorted(categories, key=lambda c: _name_key(c.get('name')))

    def get_category_by_slug(self, slug):
        return self.get_first_by_field(CATEGORIES, 'slug', slug)

    def get_category_by_name(self, name):
        """Case-insensitive match; prompts reference categories by display name."""
        key = _name_key(name)
        for category in self.get_collection(CATEGORIES):
            if _name_key(category.get('name')) == key:
                return category
        return None

    def update_category(self, category_id, updates, actor_uid):
        self.require_admin(actor_uid)
        category = self.get_document(CATEGORIES, category_id)
        if not category:
            raise DocumentNotFound(CATEGORIES, category_id)

        cleaned = validate(CategoryForm, {**category, **updates}, only=updates.keys())
        if 'name' in cleaned and _name_key(cleaned['name']) != _name_key(category['name']):
            if self.query_by_field('prompts', 'category', category['name']):
                raise ValidationFailed({'name': ["Prompts still reference this category; move them first."]})
            cleaned['slug'] = generate_slug(cleaned['name'])
        self.update_document(CATEGORIES, category_id, cleaned)

    def toggle_category_status(self, category_id, is_active, actor_uid):
        self.update_category(category_id, {'is_active': is_active}, actor_uid)

    def delete_category(self, category_id, actor_uid):
        self.require_admin(actor_uid)
        category = self.get_document(CATEGORIES, category_id)
        if not category:
            raise DocumentNotFound(CATEGORIES, category_id)
        if category.get('prompt_count'):
            logger.warning(f"Deleting category '{category.get('name')}' with {category['prompt_count']} prompts still assigned")
        self.delete_document(CATEGORIES, category_id)

    def seed_default_categories(self, created_by='system'):
        """Create the default categories unless any category exists. Returns created names."""
        if self.get_collection(CATEGORIES):
            logger.info("Categories already exist, skipping seed")
            return []

        created = []
        for name, description in DEFAULT_CATEGORIES:
            self.create_document(CATEGORIES, {
                'name': name,
                'slug': generate_slug(name),
                'description': description,
                'is_active': True,
                'prompt_count': 0,
                'created_by': created_by,
            })
            created.append(name)
        return created

    # Blog categories

    def create_blog_category(self, data, actor_uid):
        self.require_admin(actor_uid)
        cleaned = validate(BlogCategoryForm, data)
        slug = generate_slug(cleaned['name'])
        if not slug:
            raise ValidationFailed({'name': ["Name must contain letters or digits."]})
        if self.get_blog_category_by_slug(slug):
            raise ValidationFailed({'name': ["A blog category with this name already exists."]})

        return self.create_document(BLOG_CATEGORIES, {
            'name': cleaned['name'].strip(),
            'slug': slug,
            'description': cleaned['description'],
            'color': cleaned['color'] or None,
            'post_count': 0,
        })

    def get_blog_categories(self):
        return sorted(self.get_collection(BLOG_CATEGORIES), key=lambda c: _name_key(c.get('name')))

    def get_blog_category_by_slug(self, slug):
        return self.get_first_by_field(BLOG_CATEGORIES, 'slug', slug)

    def update_blog_category(self, category_id, updates, actor_uid):
        self.require_admin(actor_uid)
        category = self.get_document(BLOG_CATEGORIES, category_id)
        if not category:
            raise DocumentNotFound(BLOG_CATEGORIES, category_id)

        cleaned = validate(BlogCategoryForm, {**category, **updates}, only=updates.keys())
        if 'name' in cleaned:
            new_slug = generate_slug(cleaned['name'])
            if new_slug != category['slug']:
                if self.query_by_field('blog_posts', 'category', category['slug']):
                    raise ValidationFailed({'name': ["Posts still reference this category; move them first."]})
                cleaned['slug'] = new_slug
        self.update_document(BLOG_CATEGORIES, category_id, cleaned)

    def delete_blog_category(self, category_id, actor_uid):
        self.require_admin(actor_uid)
        if not self.get_document(BLOG_CATEGORIES, category_id):
            raise DocumentNotFound(BLOG_CATEGORIES, category_id)
        self.delete_document(BLOG_CATEGORIES, category_id)

    # Reconciliation

    def count_prompts_by_category(self):
        """Counts recomputed from the prompts collection, keyed by lowercased name."""
        return Counter(
            _name_key(p.get('category'))
            for p in self.get_collection('prompts')
            if self.counts_toward_category('prompt', p.get('status'))
        )

    def count_posts_by_category(self):
        return Counter(
            p.get('category')
            for p in self.get_collection('blog_posts')
            if self.counts_toward_category('post', p.get('status'))
        )

    def reconcile_category_counts(self, dry_run=False):
        """
        Rewrite every stored category counter that differs from the count
        recomputed from the source collections. Returns the corrections made,
        or with `dry_run` the corrections that would be made, without writing.
        """
        corrections = []

        prompt_counts = self.count_prompts_by_category()
        for category in self.get_collection(CATEGORIES):
            actual = prompt_counts.get(_name_key(category.get('name')), 0)
            stored = category.get('prompt_count', 0)
            if stored != actual:
                if not dry_run:
                    self.update_document(CATEGORIES, category['id'], {'prompt_count': actual})
                corrections.append({
                    'collection': CATEGORIES, 'id': category['id'], 'name': category.get('name'),
                    'field': 'prompt_count', 'stored': stored, 'actual': actual,
                })

        post_counts = self.count_posts_by_category()
        for category in self.get_collection(BLOG_CATEGORIES):
            actual = post_counts.get(category.get('slug'), 0)
            stored = category.get('post_count', 0)
            if stored != actual:
                if not dry_run:
                    self.update_document(BLOG_CATEGORIES, category['id'], {'post_count': actual})
                corrections.append({
                    'collection': BLOG_CATEGORIES, 'id': category['id'], 'name': category.get('name'),
                    'field': 'post_count', 'stored': stored, 'actual': actual,
                })

        if dry_run:
            return corrections
        for correction in corrections:
            logger.info(f"Reconciled {correction['collection']}/{correction['id']} {correction['field']}: {correction['stored']} -> {correction['actual']}")
        return corrections
