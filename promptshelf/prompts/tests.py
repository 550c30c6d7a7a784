from unittest.mock import patch

from django.test import TestCase, override_settings
from django.urls import reverse

from testsupport import FirestoreTestMixin


class PromptListApiTest(FirestoreTestMixin, TestCase):
    def setUp(self):
        super().setUp()
        self.make_user('admin', is_admin=True)
        self.make_category('Marketing')
        self.make_category('Writing')
        self.url = reverse('prompt_list_api')

    def test_pagination_shape(self):
        for i in range(25):
            self.db.create_prompt(self.prompt_data(title=f'Prompt {i}'), 'admin')

        response = self.client.get(self.url, {'category': 'Marketing', 'pageSize': 12})
        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(len(data['prompts']), 12)
        self.assertEqual(data['pagination'], {
            'currentPage': 1,
            'totalPages': 3,
            'totalItems': 25,
            'pageSize': 12,
            'hasMore': True,
        })
        self.assertIn('max-age=60', response['Cache-Control'])

        last = self.client.get(self.url, {'category': 'Marketing', 'page': 3, 'pageSize': 12}).json()
        self.assertEqual(len(last['prompts']), 1)
        self.assertFalse(last['pagination']['hasMore'])

        beyond = self.client.get(self.url, {'category': 'Marketing', 'page': 4, 'pageSize': 12}).json()
        self.assertEqual(beyond['prompts'], [])

    def test_defaults(self):
        self.db.create_prompt(self.prompt_data(category='Writing'), 'admin')
        data = self.client.get(self.url).json()
        self.assertEqual(data['pagination']['currentPage'], 1)
        self.assertEqual(data['pagination']['pageSize'], 12)
        self.assertEqual(len(data['prompts']), 1)
        self.assertIsInstance(data['prompts'][0]['created_at'], str)

    @override_settings(PROMPTS_PAGE_SIZE=5)
    def test_default_page_size_setting(self):
        data = self.client.get(self.url).json()
        self.assertEqual(data['pagination']['pageSize'], 5)

    def test_pending_prompts_are_not_listed(self):
        self.make_user('alice')
        self.db.create_prompt(self.prompt_data(), 'alice')
        data = self.client.get(self.url).json()
        self.assertEqual(data['prompts'], [])
        self.assertEqual(data['pagination']['totalItems'], 0)

    def test_bad_page_params(self):
        response = self.client.get(self.url, {'page': 'two'})
        self.assertEqual(response.status_code, 400)
        data = response.json()
        self.assertEqual(data['prompts'], [])
        self.assertIn('page', data['errors'])
        self.assertIn('no-store', response['Cache-Control'])

        self.assertEqual(self.client.get(self.url, {'pageSize': 0}).status_code, 400)

    def test_store_outage_returns_empty_listing(self):
        self.store.unavailable = True
        response = self.client.get(self.url)
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json()['prompts'], [])
        self.assertEqual(response.json()['pagination']['totalItems'], 0)

    def test_unexpected_error_returns_empty_listing(self):
        with patch.object(self.db, 'get_paginated_prompts', side_effect=RuntimeError('boom')):
            response = self.client.get(self.url)
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json()['prompts'], [])


class PromptDetailApiTest(FirestoreTestMixin, TestCase):
    def setUp(self):
        super().setUp()
        self.make_user('admin', is_admin=True)
        self.make_user('alice')
        self.make_user('bob')
        self.make_category('Marketing')

    def test_approved_prompt_with_related(self):
        self.db.create_prompt(self.prompt_data(title='Other'), 'admin')
        self.db.create_prompt(self.prompt_data(), 'admin')
        response = self.client.get(reverse('prompt_detail_api', args=['summarize-a-meeting']))
        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(data['prompt']['title'], 'Summarize a Meeting')
        self.assertEqual([p['title'] for p in data['related']], ['Other'])

    def test_pending_prompt_visible_to_author_only(self):
        self.db.create_prompt(self.prompt_data(), 'alice')
        url = reverse('prompt_detail_api', args=['summarize-a-meeting'])

        self.assertEqual(self.client.get(url).status_code, 404)
        self.sign_in('bob')
        self.assertEqual(self.client.get(url).status_code, 404)
        self.sign_in('alice')
        self.assertEqual(self.client.get(url).status_code, 200)

    def test_unknown_slug(self):
        self.assertEqual(self.client.get(reverse('prompt_detail_api', args=['nope'])).status_code, 404)

    def test_prompt_titled_like_a_route_is_reachable(self):
        for title in ('Submit', 'Mine'):
            prompt = self.db.get_prompt_by_id(self.db.create_prompt(self.prompt_data(title=title), 'admin'))
            self.assertNotIn(prompt['slug'], ('submit', 'mine'))
            self.assertTrue(prompt['slug'].startswith(title.lower() + '-'))
            response = self.client.get(reverse('prompt_detail_api', args=[prompt['slug']]))
            self.assertEqual(response.status_code, 200)
            self.assertEqual(response.json()['prompt']['title'], title)


class PromptSubmitTest(FirestoreTestMixin, TestCase):
    def setUp(self):
        super().setUp()
        self.make_user('admin', is_admin=True)
        self.make_user('alice')
        self.make_category('Marketing')
        self.url = reverse('prompt_submit')

    def test_requires_sign_in(self):
        response = self.client.post(self.url, self.prompt_data(), content_type='application/json')
        self.assertEqual(response.status_code, 401)
        self.assertFalse(response.json()['success'])

    def test_contributor_submission_is_pending(self):
        self.sign_in('alice')
        response = self.client.post(self.url, self.prompt_data(title='My Cool Prompt!'), content_type='application/json')
        self.assertEqual(response.status_code, 201)
        data = response.json()
        self.assertEqual(data['status'], 'pending')
        self.assertEqual(data['slug'], 'my-cool-prompt')
        self.assertEqual(data['message'], 'Prompt submitted for review')

    def test_admin_submission_is_published(self):
        self.sign_in('admin')
        data = self.client.post(self.url, self.prompt_data(), content_type='application/json').json()
        self.assertEqual(data['status'], 'approved')
        self.assertEqual(data['message'], 'Prompt published')

    def test_validation_errors(self):
        self.sign_in('alice')
        response = self.client.post(self.url, {'title': 'x'}, content_type='application/json')
        self.assertEqual(response.status_code, 400)
        self.assertIn('full_prompt', response.json()['errors'])

    def test_unknown_category(self):
        self.sign_in('alice')
        response = self.client.post(self.url, self.prompt_data(category='Nope'), content_type='application/json')
        self.assertEqual(response.status_code, 400)
        self.assertFalse(response.json()['success'])

    def test_invalid_json(self):
        self.sign_in('alice')
        response = self.client.post(self.url, 'not json', content_type='application/json')
        self.assertEqual(response.status_code, 400)

    def test_my_prompts(self):
        self.sign_in('alice')
        self.client.post(self.url, self.prompt_data(), content_type='application/json')
        data = self.client.get(reverse('my_prompts_api')).json()
        self.assertEqual([p['status'] for p in data['prompts']], ['pending'])


class PromptVoteTest(FirestoreTestMixin, TestCase):
    def setUp(self):
        super().setUp()
        self.make_user('admin', is_admin=True)
        self.make_category('Marketing')
        self.prompt_id = self.db.create_prompt(self.prompt_data(), 'admin')
        self.sign_in('admin')

    def test_upvote(self):
        url = reverse('prompt_vote', args=[self.prompt_id])
        response = self.client.post(url, {'vote_type': 'upvote'}, content_type='application/json')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(self.db.get_prompt_by_id(self.prompt_id)['upvotes'], 1)

    def test_bad_vote_type(self):
        url = reverse('prompt_vote', args=[self.prompt_id])
        response = self.client.post(url, {'vote_type': 'meh'}, content_type='application/json')
        self.assertEqual(response.status_code, 400)

    def test_vote_on_missing_prompt(self):
        url = reverse('prompt_vote', args=['missing'])
        response = self.client.post(url, {'vote_type': 'upvote'}, content_type='application/json')
        self.assertEqual(response.status_code, 404)


class CategoryListApiTest(FirestoreTestMixin, TestCase):
    def test_active_categories_by_name(self):
        self.make_category('Writing')
        self.make_category('Art')
        self.make_category('Hidden', is_active=False)
        data = self.client.get(reverse('category_list_api')).json()
        self.assertEqual([c['name'] for c in data['categories']], ['Art', 'Writing'])

    def test_store_outage(self):
        self.store.unavailable = True
        response = self.client.get(reverse('category_list_api'))
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json(), {'categories': []})

