import logging

from core.exceptions import DanglingReference, DocumentNotFound, ValidationFailed
from core.forms import BlogPostForm, validate
from core.pagination import paginate, sort_newest_first
from core.slugs import calculate_read_time, generate_excerpt, generate_slug

logger = logging.getLogger(__name__)

BLOG_POSTS = 'blog_posts'
POST_STATUSES = ('draft', 'published', 'archived')

PROTECTED_POST_FIELDS = ('status', 'author', 'views', 'slug', 'published_at', 'created_at', 'updated_at')
SEO_FIELDS = ('meta_title', 'meta_description', 'keywords')


def _form_data(post):
    """Flatten a stored post so it can be re-validated with BlogPostForm."""
    seo = post.get('seo') or {}
    return {**post, **{field: seo.get(field) for field in SEO_FIELDS}}


class BlogMixin:
    def _require_blog_category(self, slug):
        category = self.get_blog_category_by_slug(slug)
        if not category:
            raise DanglingReference('category', slug)
        return category

    def _post_slug(self, title, exclude_id=None):
        slug = generate_slug(title)
        if not slug:
            raise ValidationFailed({'title': ["Title must contain letters or digits."]})
        return self.unique_slug(BLOG_POSTS, slug, exclude_id=exclude_id)

    def create_post(self, data, actor_uid):
        """Create a blog post in draft. Admins only."""
        self.require_admin(actor_uid)
        cleaned = validate(BlogPostForm, data)
        self._require_blog_category(cleaned['category'])

        post = {
            'title': cleaned['title'],
            'content': cleaned['content'],
            'excerpt': cleaned['excerpt'] or generate_excerpt(cleaned['content']),
            'slug': self._post_slug(cleaned['title']),
            'featured_image': cleaned['featured_image'] or None,
            'category': cleaned['category'],
            'tags': cleaned['tags'],
            'status': 'draft',
            'author': actor_uid,
            'seo': {
                'meta_title': cleaned['meta_title'] or None,
                'meta_description': cleaned['meta_description'] or None,
                'keywords': cleaned['keywords'],
            },
            'read_time': calculate_read_time(cleaned['content']),
            'views': 0,
        }
        post_id = self.create_document(BLOG_POSTS, post)
        logger.info(f"Blog post {post_id} created by {actor_uid}")

        if self.counts_toward_category('post', 'draft'):
            self.adjust_post_count(post['category'], 1)
        return post_id

    def get_post_by_id(self, post_id):
        return self.get_document(BLOG_POSTS, post_id)

    def get_post_by_slug(self, slug):
        return self.get_first_by_field(BLOG_POSTS, 'slug', slug)

    def list_posts_by_status(self, status, category_slug=None):
        if status not in POST_STATUSES:
            raise ValidationFailed({'status': [f"Unknown post status '{status}'."]})

        posts = self.query_by_field(BLOG_POSTS, 'status', status)
        if category_slug and category_slug != 'all':
            posts = [p for p in posts if p.get('category') == category_slug]
        return sort_newest_first(posts)

    def get_published_posts(self, category_slug=None, limit=None):
        """Published posts, most recently published first."""
        posts = sort_newest_first(self.list_posts_by_status('published', category_slug), 'published_at')
        return posts[:limit] if limit else posts

    def get_paginated_posts(self, category_slug=None, page=1, page_size=12):
        return paginate(self.list_posts_by_status('published', category_slug), page, page_size, sort_field='published_at')

    def get_all_posts(self, actor_uid):
        self.require_admin(actor_uid)
        return sort_newest_first(self.get_collection(BLOG_POSTS))

    def get_posts_by_author(self, uid):
        return sort_newest_first(self.query_by_field(BLOG_POSTS, 'author', uid))

    def get_related_posts(self, post, limit=3):
        related = [
            p for p in self.get_published_posts(post.get('category'))
            if p['id'] != post.get('id')
        ]
        return related[:limit]

    def update_post(self, post_id, updates, actor_uid):
        self.require_admin(actor_uid)
        post = self.get_post_by_id(post_id)
        if not post:
            raise DocumentNotFound(BLOG_POSTS, post_id)

        protected = [field for field in PROTECTED_POST_FIELDS if field in updates]
        if protected:
            raise ValidationFailed({field: ["This field can't be changed directly."] for field in protected})

        cleaned = validate(BlogPostForm, {**_form_data(post), **updates}, only=updates.keys())

        seo_updates = {field: cleaned.pop(field) for field in SEO_FIELDS if field in cleaned}
        if seo_updates:
            cleaned['seo'] = {**(post.get('seo') or {}), **seo_updates}
        if 'category' in cleaned:
            self._require_blog_category(cleaned['category'])
        if 'title' in cleaned and cleaned['title'] != post.get('title'):
            cleaned['slug'] = self._post_slug(cleaned['title'], exclude_id=post_id)
        if 'content' in cleaned:
            cleaned['read_time'] = calculate_read_time(cleaned['content'])
            if not post.get('excerpt') and 'excerpt' not in cleaned:
                cleaned['excerpt'] = generate_excerpt(cleaned['content'])

        self.update_document(BLOG_POSTS, post_id, cleaned)

        old_category = post.get('category')
        new_category = cleaned.get('category', old_category)
        if new_category != old_category and self.counts_toward_category('post', post.get('status')):
            self.adjust_post_count(old_category, -1)
            self.adjust_post_count(new_category, 1)

    def delete_post(self, post_id, actor_uid):
        self.require_admin(actor_uid)
        post = self.get_post_by_id(post_id)
        if not post:
            raise DocumentNotFound(BLOG_POSTS, post_id)

        self.delete_document(BLOG_POSTS, post_id)
        logger.info(f"Blog post {post_id} deleted by {actor_uid}")

        if self.counts_toward_category('post', post.get('status')):
            self.adjust_post_count(post.get('category'), -1)

    def increment_views(self, post_id):
        """Server-side increment, so concurrent readers never lose a view."""
        self.increment_field(BLOG_POSTS, post_id, 'views', 1)
