import threading
from io import StringIO
from unittest.mock import patch

from django.core.exceptions import ImproperlyConfigured
from django.core.management import call_command
from django.test import SimpleTestCase, TestCase, override_settings

from core.exceptions import (
    DanglingReference,
    DocumentNotFound,
    InvalidTransition,
    NotAuthorized,
    ScanLimitExceeded,
    StoreUnavailable,
    ValidationFailed,
)
from core.forms import PromptForm, validate
from core.pagination import paginate, sort_newest_first
from core.slugs import calculate_read_time, generate_excerpt, generate_slug
from core.utils import parse_page_params
from testsupport import FirestoreTestMixin


class SlugTest(SimpleTestCase):
    def test_title_with_punctuation(self):
        self.assertEqual(generate_slug("My Cool Prompt!"), "my-cool-prompt")

    def test_whitespace_and_hyphen_runs_collapse(self):
        self.assertEqual(generate_slug("  Hello   --  World  "), "hello-world")

    def test_non_ascii_is_dropped(self):
        self.assertEqual(generate_slug("Café Déjà Vu"), "caf-dj-vu")

    def test_only_symbols_gives_empty_slug(self):
        self.assertEqual(generate_slug("!!!"), "")
        self.assertEqual(generate_slug(None), "")

    def test_slugs_are_normalized(self):
        for title in ["My Cool Prompt!", "  a  b  ", "--x--y--", "Data Science 101", "C++ & Rust"]:
            slug = generate_slug(title)
            self.assertRegex(slug, r'^[a-z0-9-]*$')
            self.assertNotIn('--', slug)
            self.assertFalse(slug.startswith('-') or slug.endswith('-'))
            # Slugging a slug changes nothing
            self.assertEqual(generate_slug(slug), slug)

    def test_read_time(self):
        self.assertEqual(calculate_read_time(''), 0)
        self.assertEqual(calculate_read_time('word ' * 200), 1)
        self.assertEqual(calculate_read_time('word ' * 201), 2)

    def test_excerpt_cuts_on_word_boundary(self):
        excerpt = generate_excerpt('<p>' + 'lorem ipsum ' * 40 + '</p>')
        self.assertTrue(excerpt.endswith('...'))
        self.assertLessEqual(len(excerpt), 163)
        self.assertNotIn('<p>', excerpt)
        self.assertEqual(generate_excerpt('Short text'), 'Short text')


class PaginationTest(SimpleTestCase):
    def _items(self, count):
        from datetime import datetime, timedelta, timezone
        start = datetime(2024, 1, 1, tzinfo=timezone.utc)
        return [{'id': str(i), 'created_at': start + timedelta(minutes=i)} for i in range(count)]

    def test_twenty_five_items_in_pages_of_twelve(self):
        items = self._items(25)

        first = paginate(items, 1, 12)
        self.assertEqual(len(first['items']), 12)
        self.assertTrue(first['has_more'])
        self.assertEqual(first['total'], 25)
        self.assertEqual(first['total_pages'], 3)
        self.assertEqual(first['items'][0]['id'], '24')

        third = paginate(items, 3, 12)
        self.assertEqual(len(third['items']), 1)
        self.assertFalse(third['has_more'])
        self.assertEqual(third['items'][0]['id'], '0')

        fourth = paginate(items, 4, 12)
        self.assertEqual(fourth['items'], [])
        self.assertFalse(fourth['has_more'])

    def test_pages_partition_the_items(self):
        items = self._items(31)
        for page_size in (1, 5, 12, 31, 50):
            result = paginate(items, 1, page_size)
            seen = []
            for page in range(1, result['total_pages'] + 1):
                seen.extend(item['id'] for item in paginate(items, page, page_size)['items'])
            self.assertEqual(len(seen), len(items))
            self.assertEqual(set(seen), {item['id'] for item in items})

    def test_same_input_same_page(self):
        items = self._items(10)
        self.assertEqual(paginate(items, 2, 3), paginate(list(items), 2, 3))

    def test_empty_and_out_of_range(self):
        empty = paginate([], 1, 12)
        self.assertEqual(empty['items'], [])
        self.assertEqual(empty['total_pages'], 0)
        self.assertFalse(empty['has_more'])
        self.assertEqual(paginate(self._items(3), 0, 12)['items'], [])
        self.assertEqual(paginate(self._items(3), -1, 12)['items'], [])

    def test_page_size_must_be_positive(self):
        with self.assertRaises(ValidationFailed):
            paginate(self._items(3), 1, 0)

    def test_missing_timestamp_sorts_first(self):
        items = self._items(2) + [{'id': 'pending-write'}]
        self.assertEqual(sort_newest_first(items)[0]['id'], 'pending-write')

    def test_iso_strings_are_ordered(self):
        items = [
            {'id': 'old', 'published_at': '2024-01-01T00:00:00+00:00'},
            {'id': 'new', 'published_at': '2024-06-01T00:00:00+00:00'},
        ]
        self.assertEqual([i['id'] for i in sort_newest_first(items, 'published_at')], ['new', 'old'])

    def test_page_params(self):
        self.assertEqual(parse_page_params({}), (1, 12))
        self.assertEqual(parse_page_params({'page': '3', 'pageSize': '5'}), (3, 5))
        with self.assertRaises(ValidationFailed) as ctx:
            parse_page_params({'page': 'abc'})
        self.assertIn('page', ctx.exception.errors)


class FormValidationTest(SimpleTestCase):
    def test_tags_accept_comma_string(self):
        cleaned = validate(PromptForm, {
            'title': 'T', 'category': 'Marketing', 'full_prompt': 'P', 'tags': 'a, b,, c ',
        })
        self.assertEqual(cleaned['tags'], ['a', 'b', 'c'])

    def test_missing_required_fields(self):
        with self.assertRaises(ValidationFailed) as ctx:
            validate(PromptForm, {'title': ''})
        self.assertIn('title', ctx.exception.errors)
        self.assertIn('full_prompt', ctx.exception.errors)

    def test_only_returns_requested_keys(self):
        cleaned = validate(PromptForm, {'title': 'T', 'category': 'C', 'full_prompt': 'P'}, only=['title'])
        self.assertEqual(cleaned, {'title': 'T'})


class DocumentStoreTest(FirestoreTestMixin, TestCase):
    def test_create_and_read_back(self):
        doc_id = self.db.create_document('prompts', {'title': 'x', 'id': 'ignored'})
        doc = self.db.get_document('prompts', doc_id)
        self.assertEqual(doc['id'], doc_id)
        self.assertEqual(doc['title'], 'x')
        self.assertIsNotNone(doc['created_at'])
        self.assertNotIn('id', self.store.raw('prompts', doc_id))

    def test_missing_document_is_none(self):
        self.assertIsNone(self.db.get_document('prompts', 'nope'))

    def test_update_missing_document(self):
        with self.assertRaises(DocumentNotFound):
            self.db.update_document('prompts', 'nope', {'title': 'x'})

    def test_store_outage_is_not_an_empty_result(self):
        self.db.create_document('prompts', {'title': 'x'})
        self.store.unavailable = True
        with self.assertRaises(StoreUnavailable):
            self.db.get_collection('prompts')
        with self.assertRaises(StoreUnavailable):
            self.db.query_by_field('prompts', 'status', 'approved')

    @override_settings(CATALOG_MAX_SCAN=3)
    def test_scan_limit(self):
        for i in range(4):
            self.db.create_document('prompts', {'title': str(i)})
        with self.assertRaises(ScanLimitExceeded):
            self.db.get_collection('prompts')

    def test_batch_create_spans_batches(self):
        with patch('core.services.base.BATCH_WRITE_LIMIT', 2):
            ids = self.db.batch_create('prompts', [{'title': str(i)} for i in range(5)])
        self.assertEqual(len(ids), 5)
        self.assertEqual(len(self.db.get_collection('prompts')), 5)

    def test_unique_slug(self):
        self.db.create_document('prompts', {'slug': 'taken'})
        self.assertEqual(self.db.unique_slug('prompts', 'free'), 'free')
        self.assertRegex(self.db.unique_slug('prompts', 'taken'), r'^taken-\d+$')


class UserProfileTest(FirestoreTestMixin, TestCase):
    def test_first_sign_in_creates_non_admin(self):
        profile = self.db.get_or_create_user_profile('alice', 'alice@example.com', 'Alice')
        self.assertFalse(profile['is_admin'])
        self.assertEqual(profile['email'], 'alice@example.com')
        again = self.db.get_or_create_user_profile('alice', 'other@example.com')
        self.assertEqual(again['email'], 'alice@example.com')

    def test_profile_update_cannot_grant_admin(self):
        self.make_user('alice')
        with self.assertRaises(NotAuthorized):
            self.db.update_user_profile('alice', {'is_admin': True})
        self.assertFalse(self.db.is_admin('alice'))

    def test_role_management(self):
        self.make_user('root', is_admin=True)
        self.make_user('alice')
        with self.assertRaises(NotAuthorized):
            self.db.assign_admin_role('root', 'alice')

        self.db.assign_admin_role('alice', 'root')
        self.assertTrue(self.db.is_admin('alice'))
        self.db.remove_admin_role('alice', 'root')
        self.assertFalse(self.db.is_admin('alice'))

        with self.assertRaises(ValidationFailed):
            self.db.remove_admin_role('root', 'root')

    def test_unknown_user_is_not_admin(self):
        self.assertFalse(self.db.is_admin('ghost'))
        with self.assertRaises(NotAuthorized):
            self.db.require_admin('ghost')


class PromptServiceTest(FirestoreTestMixin, TestCase):
    def setUp(self):
        super().setUp()
        self.make_user('admin', is_admin=True)
        self.make_user('alice')
        self.category_id = self.make_category('Marketing')

    def test_slug_from_title(self):
        prompt_id = self.db.create_prompt(self.prompt_data(title="My Cool Prompt!"), 'alice')
        self.assertEqual(self.db.get_prompt_by_id(prompt_id)['slug'], 'my-cool-prompt')

    def test_colliding_slug_gets_suffix(self):
        first = self.db.get_prompt_by_id(self.db.create_prompt(self.prompt_data(), 'alice'))
        second = self.db.get_prompt_by_id(self.db.create_prompt(self.prompt_data(), 'alice'))
        self.assertEqual(first['slug'], 'summarize-a-meeting')
        self.assertNotEqual(second['slug'], first['slug'])
        self.assertTrue(second['slug'].startswith('summarize-a-meeting-'))

    def test_retitle_to_route_name_avoids_reserved_slug(self):
        prompt_id = self.db.create_prompt(self.prompt_data(), 'admin')
        self.db.update_prompt(prompt_id, {'title': 'Mine'}, 'admin')
        slug = self.db.get_prompt_by_id(prompt_id)['slug']
        self.assertNotEqual(slug, 'mine')
        self.assertTrue(slug.startswith('mine-'))

    def test_contributor_prompt_is_pending(self):
        prompt = self.db.get_prompt_by_id(self.db.create_prompt(self.prompt_data(), 'alice'))
        self.assertEqual(prompt['status'], 'pending')
        self.assertNotIn('approved_by', prompt)
        self.assertEqual(prompt['tags'], ['summary', 'meetings'])
        self.assertEqual(prompt['upvotes'], 0)

    def test_admin_prompt_is_approved(self):
        prompt = self.db.get_prompt_by_id(self.db.create_prompt(self.prompt_data(), 'admin'))
        self.assertEqual(prompt['status'], 'approved')
        self.assertEqual(prompt['approved_by'], 'admin')

    def test_category_must_exist(self):
        with self.assertRaises(DanglingReference):
            self.db.create_prompt(self.prompt_data(category='Nope'), 'alice')

    def test_category_match_is_case_insensitive(self):
        prompt_id = self.db.create_prompt(self.prompt_data(category='marketing'), 'alice')
        self.assertEqual(self.db.get_prompt_by_id(prompt_id)['category'], 'Marketing')

    def test_unknown_author(self):
        with self.assertRaises(NotAuthorized):
            self.db.create_prompt(self.prompt_data(), 'ghost')

    def test_status_cannot_be_updated_directly(self):
        prompt_id = self.db.create_prompt(self.prompt_data(), 'alice')
        with self.assertRaises(ValidationFailed):
            self.db.update_prompt(prompt_id, {'status': 'approved'}, 'admin')

    def test_author_edits_only_while_pending(self):
        prompt_id = self.db.create_prompt(self.prompt_data(), 'alice')
        self.db.update_prompt(prompt_id, {'title': 'Better Title'}, 'alice')
        prompt = self.db.get_prompt_by_id(prompt_id)
        self.assertEqual(prompt['slug'], 'better-title')
        self.assertIsNotNone(prompt['updated_at'])

        self.db.approve_prompt(prompt_id, 'admin')
        with self.assertRaises(NotAuthorized):
            self.db.update_prompt(prompt_id, {'title': 'Again'}, 'alice')

    def test_listing_filters_status_and_category(self):
        self.make_category('Writing')
        self.db.create_prompt(self.prompt_data(title='A'), 'admin')
        self.db.create_prompt(self.prompt_data(title='B', category='Writing'), 'admin')
        self.db.create_prompt(self.prompt_data(title='C'), 'alice')

        self.assertEqual([p['title'] for p in self.db.get_approved_prompts()], ['B', 'A'])
        self.assertEqual([p['title'] for p in self.db.get_approved_prompts('Marketing')], ['A'])
        self.assertEqual([p['title'] for p in self.db.list_prompts_by_status('pending')], ['C'])
        with self.assertRaises(ValidationFailed):
            self.db.list_prompts_by_status('deleted')

    def test_paginated_marketing_prompts(self):
        for i in range(25):
            self.db.create_prompt(self.prompt_data(title=f'Prompt {i}'), 'admin')

        page1 = self.db.get_paginated_prompts('Marketing', 1, 12)
        self.assertEqual(len(page1['items']), 12)
        self.assertTrue(page1['has_more'])
        self.assertEqual(page1['items'][0]['title'], 'Prompt 24')

        page3 = self.db.get_paginated_prompts('Marketing', 3, 12)
        self.assertEqual(len(page3['items']), 1)
        self.assertFalse(page3['has_more'])

        page4 = self.db.get_paginated_prompts('Marketing', 4, 12)
        self.assertEqual(page4['items'], [])

    def test_visibility(self):
        self.make_user('bob')
        prompt = self.db.get_prompt_by_id(self.db.create_prompt(self.prompt_data(), 'alice'))
        self.assertTrue(self.db.can_view_prompt(prompt, 'alice'))
        self.assertTrue(self.db.can_view_prompt(prompt, 'admin'))
        self.assertFalse(self.db.can_view_prompt(prompt, 'bob'))
        self.assertFalse(self.db.can_view_prompt(prompt, None))

    def test_votes(self):
        prompt_id = self.db.create_prompt(self.prompt_data(), 'admin')
        self.db.vote_prompt(prompt_id, 'upvote')
        self.db.vote_prompt(prompt_id, 'upvote')
        self.db.vote_prompt(prompt_id, 'downvote')
        prompt = self.db.get_prompt_by_id(prompt_id)
        self.assertEqual((prompt['upvotes'], prompt['downvotes']), (2, 1))
        with self.assertRaises(ValidationFailed):
            self.db.vote_prompt(prompt_id, 'sideways')

    def test_related_prompts_exclude_self(self):
        ids = [self.db.create_prompt(self.prompt_data(title=f'P{i}'), 'admin') for i in range(5)]
        prompt = self.db.get_prompt_by_id(ids[0])
        related = self.db.get_related_prompts(prompt)
        self.assertEqual(len(related), 3)
        self.assertNotIn(ids[0], [p['id'] for p in related])

    def test_delete_by_other_user(self):
        self.make_user('bob')
        prompt_id = self.db.create_prompt(self.prompt_data(), 'alice')
        with self.assertRaises(NotAuthorized):
            self.db.delete_prompt(prompt_id, 'bob')
        self.db.delete_prompt(prompt_id, 'alice')
        self.assertIsNone(self.db.get_prompt_by_id(prompt_id))

    def test_all_prompts_is_admin_only(self):
        self.db.create_prompt(self.prompt_data(), 'alice')
        with self.assertRaises(NotAuthorized):
            self.db.get_all_prompts('alice')
        self.assertEqual(len(self.db.get_all_prompts('admin')), 1)
        self.assertEqual(self.db.get_all_prompts('admin', status='approved'), [])


class PromptModerationTest(FirestoreTestMixin, TestCase):
    def setUp(self):
        super().setUp()
        self.make_user('admin', is_admin=True)
        self.make_user('alice')
        self.make_category('Marketing')
        self.prompt_id = self.db.create_prompt(self.prompt_data(), 'alice')

    def test_approve_pending_prompt(self):
        result = self.db.approve_prompt(self.prompt_id, 'admin')
        self.assertEqual(result['status'], 'approved')

        prompt = self.db.get_prompt_by_id(self.prompt_id)
        self.assertEqual(prompt['status'], 'approved')
        self.assertEqual(prompt['approved_by'], 'admin')
        self.assertIn(self.prompt_id, [p['id'] for p in self.db.list_prompts_by_status('approved')])

    def test_reject_is_terminal(self):
        self.db.reject_prompt(self.prompt_id, 'admin')
        self.assertEqual(self.db.get_prompt_by_id(self.prompt_id)['status'], 'rejected')
        with self.assertRaises(InvalidTransition):
            self.db.approve_prompt(self.prompt_id, 'admin')
        with self.assertRaises(InvalidTransition):
            self.db.reject_prompt(self.prompt_id, 'admin')

    def test_approved_cannot_be_rejected(self):
        self.db.approve_prompt(self.prompt_id, 'admin')
        with self.assertRaises(InvalidTransition) as ctx:
            self.db.reject_prompt(self.prompt_id, 'admin')
        self.assertEqual(ctx.exception.current_status, 'approved')

    def test_non_admin_cannot_moderate(self):
        with self.assertRaises(NotAuthorized):
            self.db.approve_prompt(self.prompt_id, 'alice')
        self.assertEqual(self.db.get_prompt_by_id(self.prompt_id)['status'], 'pending')

    def test_unknown_action_and_prompt(self):
        with self.assertRaises(ValidationFailed):
            self.db.transition_prompt(self.prompt_id, 'publish', 'admin')
        with self.assertRaises(DocumentNotFound):
            self.db.approve_prompt('missing', 'admin')


class PostModerationTest(FirestoreTestMixin, TestCase):
    def setUp(self):
        super().setUp()
        self.make_user('admin', is_admin=True)
        self.make_blog_category('Guides')
        self.post_id = self.db.create_post(self.post_data(), 'admin')

    def test_publish_stamps_published_at(self):
        self.db.publish_post(self.post_id, 'admin')
        post = self.db.get_post_by_id(self.post_id)
        self.assertEqual(post['status'], 'published')
        self.assertIsNotNone(post['published_at'])

    def test_archive_and_restore(self):
        self.db.publish_post(self.post_id, 'admin')
        self.db.archive_post(self.post_id, 'admin')
        self.assertEqual(self.db.get_post_by_id(self.post_id)['status'], 'archived')

        with self.assertRaises(InvalidTransition):
            self.db.publish_post(self.post_id, 'admin')

        self.db.restore_post(self.post_id, 'admin')
        self.assertEqual(self.db.get_post_by_id(self.post_id)['status'], 'draft')

    def test_unpublish(self):
        with self.assertRaises(InvalidTransition):
            self.db.unpublish_post(self.post_id, 'admin')
        self.db.publish_post(self.post_id, 'admin')
        self.db.unpublish_post(self.post_id, 'admin')
        self.assertEqual(self.db.get_post_by_id(self.post_id)['status'], 'draft')

    def test_non_admin_cannot_publish(self):
        self.make_user('alice')
        with self.assertRaises(NotAuthorized):
            self.db.publish_post(self.post_id, 'alice')


class CategoryCounterTest(FirestoreTestMixin, TestCase):
    def setUp(self):
        super().setUp()
        self.make_user('admin', is_admin=True)
        self.make_user('alice')
        self.category_id = self.make_category('Marketing')
        self.blog_category_id = self.make_blog_category('Guides')

    def prompt_count(self):
        return self.store.raw('categories', self.category_id)['prompt_count']

    def post_count(self):
        return self.store.raw('blog_categories', self.blog_category_id)['post_count']

    def test_all_policy_counts_every_prompt(self):
        prompt_id = self.db.create_prompt(self.prompt_data(), 'alice')
        self.assertEqual(self.prompt_count(), 1)
        self.db.reject_prompt(prompt_id, 'admin')
        self.assertEqual(self.prompt_count(), 1)
        self.db.delete_prompt(prompt_id, 'admin')
        self.assertEqual(self.prompt_count(), 0)

    @override_settings(CATEGORY_COUNT_POLICY='visible')
    def test_visible_policy_counts_approved_only(self):
        prompt_id = self.db.create_prompt(self.prompt_data(), 'alice')
        self.assertEqual(self.prompt_count(), 0)
        self.db.approve_prompt(prompt_id, 'admin')
        self.assertEqual(self.prompt_count(), 1)
        self.db.delete_prompt(prompt_id, 'admin')
        self.assertEqual(self.prompt_count(), 0)

    @override_settings(CATEGORY_COUNT_POLICY='visible')
    def test_visible_policy_follows_post_lifecycle(self):
        post_id = self.db.create_post(self.post_data(), 'admin')
        self.assertEqual(self.post_count(), 0)
        self.db.publish_post(post_id, 'admin')
        self.assertEqual(self.post_count(), 1)
        self.db.archive_post(post_id, 'admin')
        self.assertEqual(self.post_count(), 0)

    @override_settings(CATEGORY_COUNT_POLICY='visble')
    def test_unknown_policy_is_rejected(self):
        with self.assertRaises(ImproperlyConfigured):
            self.db.counts_toward_category('prompt', 'approved')

    def test_recategorizing_moves_the_count(self):
        writing_id = self.make_category('Writing')
        prompt_id = self.db.create_prompt(self.prompt_data(), 'admin')
        self.db.update_prompt(prompt_id, {'category': 'Writing'}, 'admin')
        self.assertEqual(self.prompt_count(), 0)
        self.assertEqual(self.store.raw('categories', writing_id)['prompt_count'], 1)

    def test_failed_counter_write_does_not_fail_the_entity_write(self):
        with patch.object(self.db, 'increment_field', side_effect=StoreUnavailable('down')):
            prompt_id = self.db.create_prompt(self.prompt_data(), 'alice')

        self.assertIsNotNone(self.db.get_prompt_by_id(prompt_id))
        self.assertEqual(self.prompt_count(), 0)

        corrections = self.db.reconcile_category_counts()
        self.assertEqual(len(corrections), 1)
        self.assertEqual(corrections[0]['stored'], 0)
        self.assertEqual(corrections[0]['actual'], 1)
        self.assertEqual(self.prompt_count(), 1)
        self.assertEqual(self.db.reconcile_category_counts(), [])

    def test_reconcile_fixes_post_counts(self):
        self.db.create_post(self.post_data(), 'admin')
        self.db.update_document('blog_categories', self.blog_category_id, {'post_count': 7})
        corrections = self.db.reconcile_category_counts()
        self.assertEqual([c['field'] for c in corrections], ['post_count'])
        self.assertEqual(self.post_count(), 1)


class CategoryServiceTest(FirestoreTestMixin, TestCase):
    def setUp(self):
        super().setUp()
        self.make_user('admin', is_admin=True)
        self.make_user('alice')

    def test_create_category(self):
        category_id = self.db.create_category({'name': 'Data Science'}, 'admin')
        category = self.db.get_category_by_slug('data-science')
        self.assertEqual(category['id'], category_id)
        self.assertTrue(category['is_active'])
        self.assertEqual(category['prompt_count'], 0)
        self.assertEqual(category['created_by'], 'admin')

    def test_duplicate_name_rejected(self):
        self.db.create_category({'name': 'Writing'}, 'admin')
        with self.assertRaises(ValidationFailed):
            self.db.create_category({'name': 'writing'}, 'admin')

    def test_non_admin_cannot_create(self):
        with self.assertRaises(NotAuthorized):
            self.db.create_category({'name': 'Writing'}, 'alice')

    def test_rename_blocked_while_referenced(self):
        category_id = self.make_category('Marketing')
        self.db.create_prompt(self.prompt_data(), 'alice')
        with self.assertRaises(ValidationFailed):
            self.db.update_category(category_id, {'name': 'Growth'}, 'admin')
        self.db.update_category(category_id, {'description': 'Ads'}, 'admin')
        self.assertEqual(self.db.get_category_by_name('marketing')['description'], 'Ads')

    def test_inactive_categories_hidden_from_active_list(self):
        category_id = self.make_category('Marketing')
        self.make_category('Art')
        self.db.toggle_category_status(category_id, False, 'admin')
        self.assertEqual([c['name'] for c in self.db.get_active_categories()], ['Art'])
        self.assertEqual(len(self.db.list_categories('admin')), 2)

    def test_seed_default_categories_once(self):
        created = self.db.seed_default_categories()
        self.assertEqual(len(created), 8)
        self.assertEqual(self.db.seed_default_categories(), [])

    def test_blog_category_color(self):
        with self.assertRaises(ValidationFailed):
            self.db.create_blog_category({'name': 'News', 'color': 'blue'}, 'admin')
        self.db.create_blog_category({'name': 'News', 'color': '#3366ff'}, 'admin')
        self.assertEqual(self.db.get_blog_category_by_slug('news')['color'], '#3366ff')


class AdminServiceTest(FirestoreTestMixin, TestCase):
    def setUp(self):
        super().setUp()
        self.make_user('admin', is_admin=True)
        self.make_user('alice')
        self.make_category('Marketing')

    def test_admin_stats(self):
        pending = self.db.create_prompt(self.prompt_data(title='A'), 'alice')
        self.db.create_prompt(self.prompt_data(title='B'), 'alice')
        self.db.create_prompt(self.prompt_data(title='C'), 'admin')
        self.db.reject_prompt(pending, 'admin')

        stats = self.db.get_admin_stats('admin')
        self.assertEqual(stats, {
            'total_users': 2,
            'total_prompts': 3,
            'pending_prompts': 1,
            'approved_prompts': 1,
            'rejected_prompts': 1,
        })
        with self.assertRaises(NotAuthorized):
            self.db.get_admin_stats('alice')

    def test_category_totals_flag_drift(self):
        self.db.create_prompt(self.prompt_data(), 'alice')
        self.make_category('Writing', prompt_count=4)
        totals = {row['name']: row for row in self.db.get_category_totals('admin')}
        self.assertFalse(totals['Marketing']['drifted'])
        self.assertTrue(totals['Writing']['drifted'])
        self.assertEqual(totals['Writing']['actual_count'], 0)

    def test_bulk_import(self):
        rows = [
            {'title': 'Cold Email', 'category': 'marketing', 'full_prompt': 'Write an email'},
            {'title': 'Lit Review', 'category': 'research', 'full_prompt': 'Review papers'},
            {'title': 'Lit Review', 'category': 'Research', 'full_prompt': 'Review more papers'},
            {'title': 'Broken', 'category': 'Marketing'},
            'not a row',
        ]
        result = self.db.bulk_create_prompts(rows, 'admin')

        self.assertEqual(result['created'], 3)
        self.assertEqual([s['row'] for s in result['skipped']], [3, 4])
        self.assertEqual(result['categories_created'], ['research'])

        prompts = [self.db.get_prompt_by_id(i) for i in result['ids']]
        self.assertEqual({p['status'] for p in prompts}, {'approved'})
        self.assertEqual(prompts[0]['category'], 'Marketing')
        self.assertEqual(len({p['slug'] for p in prompts}), 3)

        self.assertEqual(self.db.get_category_by_name('Marketing')['prompt_count'], 1)
        self.assertEqual(self.db.get_category_by_name('research')['prompt_count'], 2)

    def test_bulk_import_is_admin_only(self):
        with self.assertRaises(NotAuthorized):
            self.db.bulk_create_prompts([], 'alice')


class BlogServiceTest(FirestoreTestMixin, TestCase):
    def setUp(self):
        super().setUp()
        self.make_user('admin', is_admin=True)
        self.make_blog_category('Guides')

    def test_create_post_defaults(self):
        post = self.db.get_post_by_id(self.db.create_post(self.post_data(), 'admin'))
        self.assertEqual(post['status'], 'draft')
        self.assertEqual(post['slug'], 'writing-better-prompts')
        self.assertEqual(post['views'], 0)
        self.assertEqual(post['read_time'], 1)
        self.assertTrue(post['excerpt'].endswith('...'))
        self.assertEqual(post['seo'], {'meta_title': None, 'meta_description': None, 'keywords': []})

    def test_post_category_must_exist(self):
        with self.assertRaises(DanglingReference):
            self.db.create_post(self.post_data(category='news'), 'admin')

    def test_update_merges_seo(self):
        post_id = self.db.create_post(self.post_data(meta_title='Prompts'), 'admin')
        self.db.update_post(post_id, {'keywords': 'ai, prompts'}, 'admin')
        seo = self.db.get_post_by_id(post_id)['seo']
        self.assertEqual(seo['meta_title'], 'Prompts')
        self.assertEqual(seo['keywords'], ['ai', 'prompts'])

    def test_published_posts_newest_publication_first(self):
        first = self.db.create_post(self.post_data(title='First'), 'admin')
        second = self.db.create_post(self.post_data(title='Second'), 'admin')
        self.db.create_post(self.post_data(title='Draft'), 'admin')
        self.db.publish_post(second, 'admin')
        self.db.publish_post(first, 'admin')

        self.assertEqual([p['title'] for p in self.db.get_published_posts()], ['First', 'Second'])
        page = self.db.get_paginated_posts('guides', 1, 1)
        self.assertEqual(page['items'][0]['title'], 'First')
        self.assertEqual(page['total'], 2)

    def test_concurrent_view_increments(self):
        post_id = self.db.create_post(self.post_data(), 'admin')
        self.db.update_document('blog_posts', post_id, {'views': 10})

        barrier = threading.Barrier(2)

        def read():
            barrier.wait()
            self.db.increment_views(post_id)

        threads = [threading.Thread(target=read) for _ in range(2)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        self.assertGreaterEqual(self.db.get_post_by_id(post_id)['views'], 11)

    def test_increment_views_on_missing_post(self):
        with self.assertRaises(DocumentNotFound):
            self.db.increment_views('missing')


class ManagementCommandTest(FirestoreTestMixin, TestCase):
    def test_seed_categories(self):
        out = StringIO()
        call_command('seed_categories', stdout=out)
        self.assertIn('Seeded 8 categories', out.getvalue())
        self.assertEqual(len(self.db.get_active_categories()), 8)

    def test_make_admin(self):
        self.make_user('alice')
        call_command('make_admin', 'alice', stdout=StringIO())
        self.assertTrue(self.db.is_admin('alice'))
        call_command('make_admin', 'alice', '--revoke', stdout=StringIO())
        self.assertFalse(self.db.is_admin('alice'))

    def test_reconcile_category_counts(self):
        category_id = self.make_category('Marketing', prompt_count=5)
        out = StringIO()
        call_command('reconcile_category_counts', '--dry-run', stdout=out)
        self.assertIn('1 counters drifted (dry run)', out.getvalue())
        self.assertEqual(self.store.raw('categories', category_id)['prompt_count'], 5)

        call_command('reconcile_category_counts', stdout=StringIO())
        self.assertEqual(self.store.raw('categories', category_id)['prompt_count'], 0)

    def test_dry_run_reports_blog_category_drift(self):
        category_id = self.make_blog_category('Guides', post_count=7)
        out = StringIO()
        call_command('reconcile_category_counts', '--dry-run', stdout=out)
        self.assertIn('blog_categories/Guides post_count: 7 -> 0', out.getvalue())
        self.assertIn('1 counters drifted (dry run)', out.getvalue())
        self.assertEqual(self.store.raw('blog_categories', category_id)['post_count'], 7)

        out = StringIO()
        call_command('reconcile_category_counts', stdout=out)
        self.assertIn('Corrected 1 counters', out.getvalue())
        self.assertEqual(self.store.raw('blog_categories', category_id)['post_count'], 0)
