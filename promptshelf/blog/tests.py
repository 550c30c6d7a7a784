from unittest.mock import patch

from django.test import TestCase
from django.urls import reverse

from core.exceptions import StoreUnavailable
from testsupport import FirestoreTestMixin


class BlogPublicApiTest(FirestoreTestMixin, TestCase):
    def setUp(self):
        super().setUp()
        self.make_user('admin', is_admin=True)
        self.make_blog_category('Guides')
        self.make_blog_category('News')

    def publish(self, **overrides):
        post_id = self.db.create_post(self.post_data(**overrides), 'admin')
        self.db.publish_post(post_id, 'admin')
        return post_id

    def test_list_published_posts(self):
        self.publish(title='One')
        self.publish(title='Two', category='news')
        self.db.create_post(self.post_data(title='Draft'), 'admin')

        data = self.client.get(reverse('blog_list_api')).json()
        self.assertEqual([p['title'] for p in data['posts']], ['Two', 'One'])
        self.assertEqual(data['pagination']['totalItems'], 2)

        news = self.client.get(reverse('blog_list_api'), {'category': 'news'}).json()
        self.assertEqual([p['title'] for p in news['posts']], ['Two'])

    def test_list_outage(self):
        self.store.unavailable = True
        response = self.client.get(reverse('blog_list_api'))
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json()['posts'], [])

    def test_detail_counts_view(self):
        post_id = self.publish()
        response = self.client.get(reverse('blog_detail_api', args=['writing-better-prompts']))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['post']['views'], 1)
        self.assertEqual(self.db.get_post_by_id(post_id)['views'], 1)

    def test_detail_survives_failed_view_count(self):
        self.publish()
        with patch.object(self.db, 'increment_views', side_effect=StoreUnavailable('down')):
            response = self.client.get(reverse('blog_detail_api', args=['writing-better-prompts']))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['post']['views'], 0)

    def test_drafts_hidden_from_public(self):
        self.db.create_post(self.post_data(), 'admin')
        url = reverse('blog_detail_api', args=['writing-better-prompts'])
        self.assertEqual(self.client.get(url).status_code, 404)

        self.sign_in('admin')
        response = self.client.get(url)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['post']['views'], 0)

    def test_categories(self):
        data = self.client.get(reverse('blog_category_list_api')).json()
        self.assertEqual([c['slug'] for c in data['categories']], ['guides', 'news'])


class BlogEditorApiTest(FirestoreTestMixin, TestCase):
    def setUp(self):
        super().setUp()
        self.make_user('admin', is_admin=True)
        self.make_user('alice')
        self.make_blog_category('Guides')

    def test_create_requires_admin(self):
        self.sign_in('alice')
        response = self.client.post(reverse('blog_create'), self.post_data(), content_type='application/json')
        self.assertEqual(response.status_code, 403)
        self.assertFalse(response.json()['success'])

    def test_create_edit_delete(self):
        self.sign_in('admin')
        response = self.client.post(reverse('blog_create'), self.post_data(), content_type='application/json')
        self.assertEqual(response.status_code, 201)
        post_id = response.json()['id']

        response = self.client.post(
            reverse('blog_edit', args=[post_id]), {'title': 'Prompting 101'}, content_type='application/json'
        )
        self.assertEqual(response.json()['slug'], 'prompting-101')

        response = self.client.post(reverse('blog_delete', args=[post_id]))
        self.assertEqual(response.status_code, 200)
        self.assertIsNone(self.db.get_post_by_id(post_id))

    def test_edit_cannot_set_status(self):
        post_id = self.db.create_post(self.post_data(), 'admin')
        self.sign_in('admin')
        response = self.client.post(
            reverse('blog_edit', args=[post_id]), {'status': 'published'}, content_type='application/json'
        )
        self.assertEqual(response.status_code, 400)
        self.assertIn('status', response.json()['errors'])

    def test_status_change(self):
        post_id = self.db.create_post(self.post_data(), 'admin')
        self.sign_in('admin')
        url = reverse('blog_quick_status_change', args=[post_id])

        data = self.client.post(url, {'action': 'publish'}, content_type='application/json').json()
        self.assertEqual(data['status'], 'published')
        self.assertEqual(data['message'], 'Post published')

        response = self.client.post(url, {'action': 'publish'}, content_type='application/json')
        self.assertEqual(response.status_code, 409)

        response = self.client.post(url, {'action': 'explode'}, content_type='application/json')
        self.assertEqual(response.status_code, 400)

        response = self.client.post(url, {'action': {'to': 'archived'}}, content_type='application/json')
        self.assertEqual(response.status_code, 400)
        self.assertIn('action', response.json()['errors'])

    def test_manage_lists_every_status(self):
        self.db.create_post(self.post_data(title='Draft'), 'admin')
        archived = self.db.create_post(self.post_data(title='Old'), 'admin')
        self.db.archive_post(archived, 'admin')
        self.sign_in('admin')
        data = self.client.get(reverse('blog_manage_status')).json()
        self.assertEqual({p['status'] for p in data['posts']}, {'draft', 'archived'})

    def test_missing_post(self):
        self.sign_in('admin')
        response = self.client.post(reverse('blog_delete', args=['missing']))
        self.assertEqual(response.status_code, 404)
