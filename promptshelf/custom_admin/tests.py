from django.test import TestCase
from django.urls import reverse

from testsupport import FirestoreTestMixin


class AdminApiTest(FirestoreTestMixin, TestCase):
    def setUp(self):
        super().setUp()
        self.make_user('admin', is_admin=True)
        self.make_user('alice')
        self.category_id = self.make_category('Marketing')
        self.prompt_id = self.db.create_prompt(self.prompt_data(), 'alice')
        self.sign_in('admin')

    def post(self, name, data=None, args=None):
        return self.client.post(reverse(name, args=args), data or {}, content_type='application/json')

    def test_non_admin_is_refused(self):
        self.sign_in('alice')
        for name in ('admin_stats', 'admin_pending_prompts', 'admin_user_list', 'admin_categories'):
            response = self.client.get(reverse(name))
            self.assertEqual(response.status_code, 403, name)

        response = self.post('admin_moderate_prompt', {'action': 'approve'}, args=[self.prompt_id])
        self.assertEqual(response.status_code, 403)
        self.assertEqual(self.db.get_prompt_by_id(self.prompt_id)['status'], 'pending')

    def test_anonymous_is_refused(self):
        self.client.logout()
        self.assertEqual(self.client.get(reverse('admin_stats')).status_code, 401)

    def test_stats(self):
        data = self.client.get(reverse('admin_stats')).json()
        self.assertEqual(data['prompts']['pending_prompts'], 1)
        self.assertEqual(data['prompts']['total_users'], 2)
        self.assertEqual(data['blog']['total_posts'], 0)

    def test_moderation(self):
        pending = self.client.get(reverse('admin_pending_prompts')).json()
        self.assertEqual([p['id'] for p in pending['prompts']], [self.prompt_id])

        response = self.post('admin_moderate_prompt', {'action': 'approve'}, args=[self.prompt_id])
        self.assertEqual(response.json(), {'success': True, 'message': 'Prompt approved', 'status': 'approved'})
        self.assertEqual(self.db.get_prompt_by_id(self.prompt_id)['approved_by'], 'admin')

        response = self.post('admin_moderate_prompt', {'action': 'reject'}, args=[self.prompt_id])
        self.assertEqual(response.status_code, 409)

        response = self.post('admin_moderate_prompt', {'action': 'approve'}, args=['missing'])
        self.assertEqual(response.status_code, 404)

    def test_moderation_rejects_non_string_action(self):
        response = self.post('admin_moderate_prompt', {'action': ['approve']}, args=[self.prompt_id])
        self.assertEqual(response.status_code, 400)
        self.assertIn('action', response.json()['errors'])
        self.assertEqual(self.db.get_prompt_by_id(self.prompt_id)['status'], 'pending')

    def test_prompt_list_by_status(self):
        data = self.client.get(reverse('admin_prompt_list'), {'status': 'pending'}).json()
        self.assertEqual(len(data['prompts']), 1)
        response = self.client.get(reverse('admin_prompt_list'), {'status': 'bogus'})
        self.assertEqual(response.status_code, 400)

    def test_prompt_edit_and_delete(self):
        response = self.post('admin_prompt_edit', {'description': 'Sharper'}, args=[self.prompt_id])
        self.assertEqual(response.status_code, 200)
        self.assertEqual(self.db.get_prompt_by_id(self.prompt_id)['description'], 'Sharper')

        self.post('admin_prompt_delete', args=[self.prompt_id])
        self.assertIsNone(self.db.get_prompt_by_id(self.prompt_id))

    def test_bulk_import(self):
        rows = [
            {'title': 'Ad Copy', 'category': 'Marketing', 'full_prompt': 'Write ad copy'},
            {'title': 'Missing body'},
        ]
        data = self.post('admin_bulk_create_prompts', {'prompts': rows}).json()
        self.assertTrue(data['success'])
        self.assertEqual(data['created'], 1)
        self.assertEqual(len(data['skipped']), 1)

        response = self.post('admin_bulk_create_prompts', {'prompts': 'nope'})
        self.assertEqual(response.status_code, 400)

    def test_category_crud(self):
        response = self.post('admin_categories', {'name': 'Writing', 'description': 'Words'})
        self.assertEqual(response.status_code, 201)
        category_id = response.json()['id']

        names = [c['name'] for c in self.client.get(reverse('admin_categories')).json()['categories']]
        self.assertEqual(sorted(names), ['Marketing', 'Writing'])

        data = self.post('admin_category_toggle', {'is_active': False}, args=[category_id]).json()
        self.assertEqual(data['message'], 'Category deactivated')
        self.assertFalse(self.db.get_category_by_slug('writing')['is_active'])

        self.post('admin_category_edit', {'name': 'Copywriting'}, args=[category_id])
        self.assertIsNotNone(self.db.get_category_by_slug('copywriting'))

        self.post('admin_category_delete', args=[category_id])
        self.assertIsNone(self.db.get_category_by_slug('copywriting'))

    def test_blog_category_crud(self):
        response = self.post('admin_blog_category_create', {'name': 'Guides', 'color': '#112233'})
        self.assertEqual(response.status_code, 201)
        category_id = response.json()['id']

        self.post('admin_blog_category_edit', {'description': 'How-tos'}, args=[category_id])
        self.assertEqual(self.db.get_blog_category_by_slug('guides')['description'], 'How-tos')

        self.post('admin_blog_category_delete', args=[category_id])
        self.assertIsNone(self.db.get_blog_category_by_slug('guides'))

    def test_user_roles(self):
        users = self.client.get(reverse('admin_user_list')).json()['users']
        self.assertEqual({u['id'] for u in users}, {'admin', 'alice'})

        self.post('admin_user_role', {'is_admin': True}, args=['alice'])
        self.assertTrue(self.db.is_admin('alice'))
        self.post('admin_user_role', {'is_admin': False}, args=['alice'])
        self.assertFalse(self.db.is_admin('alice'))

        response = self.post('admin_user_role', {'is_admin': False}, args=['admin'])
        self.assertEqual(response.status_code, 400)

    def test_category_totals_and_reconcile(self):
        self.db.update_document('categories', self.category_id, {'prompt_count': 9})
        totals = self.client.get(reverse('admin_category_totals')).json()['categories']
        self.assertTrue(totals[0]['drifted'])

        data = self.post('admin_reconcile_counts').json()
        self.assertEqual(len(data['corrections']), 1)
        self.assertEqual(self.store.raw('categories', self.category_id)['prompt_count'], 1)
