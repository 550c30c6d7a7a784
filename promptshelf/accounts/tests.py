from unittest.mock import patch

from django.test import Client, TestCase
from django.urls import reverse
from firebase_admin import auth

from testsupport import FirestoreTestMixin


class FirebaseLoginTest(FirestoreTestMixin, TestCase):
    def setUp(self):
        super().setUp()
        self.url = reverse('firebase_login')

    @patch('accounts.views.auth.verify_id_token')
    def test_first_login_creates_profile(self, mock_verify):
        mock_verify.return_value = {'uid': 'alice', 'email': 'alice@example.com', 'name': 'Alice Doe'}

        response = self.client.post(self.url, {'idToken': 'token'}, content_type='application/json')

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {'status': 'success', 'uid': 'alice', 'is_admin': False})
        self.assertEqual(self.client.session['uid'], 'alice')
        profile = self.db.get_user_profile('alice')
        self.assertEqual(profile['display_name'], 'Alice Doe')
        self.assertFalse(profile['is_admin'])

    @patch('accounts.views.auth.verify_id_token')
    def test_existing_admin_keeps_role(self, mock_verify):
        self.make_user('root', is_admin=True)
        mock_verify.return_value = {'uid': 'root', 'email': 'root@example.com'}
        data = self.client.post(self.url, {'idToken': 'token'}, content_type='application/json').json()
        self.assertTrue(data['is_admin'])

    def test_missing_token(self):
        response = self.client.post(self.url, {}, content_type='application/json')
        self.assertEqual(response.status_code, 400)

    @patch('accounts.views.auth.verify_id_token', side_effect=auth.InvalidIdTokenError('bad token'))
    def test_invalid_token(self, mock_verify):
        response = self.client.post(self.url, {'idToken': 'forged'}, content_type='application/json')
        self.assertEqual(response.status_code, 401)
        self.assertNotIn('uid', self.client.session)

    @patch('accounts.views.auth.verify_id_token', side_effect=auth.CertificateFetchError('keys unreachable', None))
    def test_key_fetch_outage(self, mock_verify):
        response = self.client.post(self.url, {'idToken': 'token'}, content_type='application/json')
        self.assertEqual(response.status_code, 503)
        self.assertEqual(response.json()['status'], 'error')
        self.assertNotIn('uid', self.client.session)


class LogoutTest(FirestoreTestMixin, TestCase):
    def setUp(self):
        super().setUp()
        self.make_user('alice')
        self.client = Client(enforce_csrf_checks=True)
        self.sign_in('alice')

    def test_logout_without_csrf_token(self):
        response = self.client.post(reverse('logout'))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {'status': 'success'})
        self.assertNotIn('uid', self.client.session)

    def test_logout_requires_post(self):
        response = self.client.get(reverse('logout'))
        self.assertEqual(response.status_code, 405)
        self.assertEqual(self.client.session['uid'], 'alice')


class ProfileApiTest(FirestoreTestMixin, TestCase):
    def setUp(self):
        super().setUp()
        self.make_user('alice')
        self.sign_in('alice')

    def test_profile(self):
        data = self.client.get(reverse('profile_api')).json()
        self.assertEqual(data['profile']['id'], 'alice')

    def test_update_profile(self):
        response = self.client.post(
            reverse('profile_update'),
            {'bio': 'Prompt tinkerer', 'social_media': {'x': '@alice'}},
            content_type='application/json',
        )
        self.assertEqual(response.status_code, 200)
        profile = self.db.get_user_profile('alice')
        self.assertEqual(profile['bio'], 'Prompt tinkerer')
        self.assertEqual(profile['social_media'], {'x': '@alice'})

    def test_cannot_self_promote(self):
        response = self.client.post(reverse('profile_update'), {'is_admin': True}, content_type='application/json')
        self.assertEqual(response.status_code, 403)
        self.assertFalse(self.db.is_admin('alice'))
