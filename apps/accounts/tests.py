from datetime import date

from django.test import TestCase
from django.urls import reverse
from rest_framework.test import APIClient

from apps.accounts import profiles
from apps.accounts.context import Actor
from apps.accounts.models import User
from apps.applications.exceptions import Forbidden, NotFound, Unauthenticated


class ProfileCompletenessTests(TestCase):
    def setUp(self):
        self.user = User.objects.create_user(
            username='ada@example.com', email='ada@example.com', password='SecurePass123'
        )

    def test_new_account_is_incomplete_student(self):
        self.assertEqual(self.user.role, 'student')
        self.assertFalse(self.user.profile_completed)
        self.assertFalse(profiles.is_profile_complete(self.user.pk))

    def test_profile_completes_once_required_fields_are_filled(self):
        profiles.update_profile(self.user.pk, {'phone': '555-0100', 'date_of_birth': date(2000, 1, 1)})
        self.assertFalse(profiles.is_profile_complete(self.user.pk))

        user = profiles.update_profile(self.user.pk, {'previous_education': 'BSc Mathematics'})

        self.assertTrue(user.profile_completed)
        self.assertTrue(profiles.is_profile_complete(self.user.pk))

    def test_clearing_a_required_field_reopens_the_gate(self):
        profiles.update_profile(self.user.pk, {
            'phone': '555-0100', 'date_of_birth': date(2000, 1, 1), 'previous_education': 'BSc',
        })

        profiles.update_profile(self.user.pk, {'phone': ''})

        self.assertFalse(profiles.is_profile_complete(self.user.pk))

    def test_unknown_user(self):
        self.assertFalse(profiles.is_profile_complete(9999))
        with self.assertRaises(NotFound):
            profiles.get_profile(9999)


class ActorTests(TestCase):
    def test_superuser_acts_as_admin(self):
        root = User.objects.create_superuser(username='root', email='root@example.com', password='SecurePass123')
        actor = Actor.from_user(root)

        self.assertTrue(actor.is_admin)
        actor.require_admin()
        with self.assertRaises(Forbidden):
            actor.require_student()

    def test_anonymous_user_is_unauthenticated(self):
        from django.contrib.auth.models import AnonymousUser

        with self.assertRaises(Unauthenticated):
            Actor.from_user(AnonymousUser())


class AccountApiTests(TestCase):
    def setUp(self):
        self.client = APIClient()

    def register(self, **overrides):
        payload = {'name': 'Ada Lovelace', 'email': 'Ada@Example.com', 'password': 'SecurePass123'}
        payload.update(overrides)
        return self.client.post(reverse('register'), payload)

    def test_register_creates_student_and_issues_tokens(self):
        response = self.register()

        self.assertEqual(response.status_code, 201)
        data = response.json()['data']
        self.assertEqual(data['user']['role'], 'student')
        self.assertEqual(data['user']['email'], 'ada@example.com')
        self.assertEqual(data['user']['first_name'], 'Ada')
        self.assertEqual(data['user']['last_name'], 'Lovelace')
        self.assertFalse(data['user']['profile_completed'])
        self.assertIn('access', data['tokens'])

    def test_register_ignores_requested_role(self):
        self.register(role='admin')
        self.assertEqual(User.objects.get(email='ada@example.com').role, 'student')

    def test_register_rejects_duplicate_email_and_weak_password(self):
        self.register()

        response = self.register()
        self.assertEqual(response.status_code, 400)
        self.assertIn('email', response.json()['errors'])

        response = self.register(email='other@example.com', password='123')
        self.assertEqual(response.status_code, 400)
        self.assertIn('password', response.json()['errors'])

    def test_login_and_bearer_token_resolve_the_user(self):
        self.register()

        response = self.client.post(reverse('login'), {'email': 'ada@example.com', 'password': 'SecurePass123'})
        self.assertEqual(response.status_code, 200)
        access = response.json()['data']['tokens']['access']

        self.client.credentials(HTTP_AUTHORIZATION=f'Bearer {access}')
        response = self.client.get(reverse('current-user'))

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['data']['email'], 'ada@example.com')
        self.assertEqual(response.json()['data']['role'], 'student')

    def test_login_with_wrong_password(self):
        self.register()

        response = self.client.post(reverse('login'), {'email': 'ada@example.com', 'password': 'wrong-password'})

        self.assertEqual(response.status_code, 401)
        self.assertFalse(response.json()['success'])

    def test_me_requires_authentication(self):
        self.assertEqual(self.client.get(reverse('current-user')).status_code, 401)

    def test_profile_update_recomputes_completion(self):
        user = User.objects.create_user(username='ada', email='ada@example.com', password='SecurePass123')
        self.client.force_authenticate(user)

        response = self.client.put(reverse('user-profile'), {
            'phone': '555-0100',
            'date_of_birth': '2000-01-01',
            'previous_education': 'BSc Mathematics',
            'city': 'London',
            'emergency_contact_name': 'Charles Babbage',
        })

        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.json()['data']['profile_completed'])
        user.refresh_from_db()
        self.assertEqual(user.city, 'London')
        self.assertTrue(user.profile_completed)

    def test_profile_update_rejects_unknown_and_read_only_fields(self):
        user = User.objects.create_user(username='ada', email='ada@example.com', password='SecurePass123')
        self.client.force_authenticate(user)

        response = self.client.put(reverse('user-profile'), {'phone': '555-0100', 'role': 'admin'})

        self.assertEqual(response.status_code, 400)
        self.assertIn('role', response.json()['errors'])
        user.refresh_from_db()
        self.assertEqual(user.role, 'student')
        self.assertEqual(user.phone, '')
