from decimal import Decimal

from django.test import TestCase
from django.urls import reverse
from rest_framework.test import APIClient

from apps.accounts.context import Actor
from apps.accounts.models import User
from apps.applications.exceptions import CourseNotFound, Forbidden
from apps.courses import catalog
from apps.courses.models import Course


class CourseCatalogTests(TestCase):
    def setUp(self):
        self.admin = Actor.from_user(User.objects.create_user(
            username='registrar', email='registrar@example.com', password='SecurePass123', role='admin'
        ))
        self.student = Actor.from_user(User.objects.create_user(
            username='student', email='student@example.com', password='SecurePass123'
        ))
        self.data = {
            'title': 'Data Science',
            'description': 'Statistics and machine learning',
            'duration': '6 Months',
            'tuition': Decimal('2500.00'),
        }

    def test_create_and_get(self):
        course = catalog.create_course(self.data, self.admin)

        self.assertEqual(catalog.get_course(course.pk), course)
        self.assertEqual(catalog.list_courses(), [course])
        self.assertEqual(catalog.resolve_course('Data Science'), course)
        self.assertEqual(catalog.resolve_course(str(course.pk)), course)

    def test_students_cannot_create_or_delete(self):
        with self.assertRaises(Forbidden):
            catalog.create_course(self.data, self.student)

        course = Course.objects.create(**self.data)
        with self.assertRaises(Forbidden):
            catalog.delete_course(course.pk, self.student)
        self.assertTrue(Course.objects.filter(pk=course.pk).exists())

    def test_missing_course(self):
        with self.assertRaises(CourseNotFound):
            catalog.get_course(9999)
        with self.assertRaises(CourseNotFound):
            catalog.resolve_course('Underwater Basket Weaving')
        with self.assertRaises(CourseNotFound):
            catalog.delete_course(9999, self.admin)

    def test_numeric_title_falls_back_to_title_lookup(self):
        course = Course.objects.create(**{**self.data, 'title': '2024'})
        self.assertNotEqual(course.pk, 2024)

        self.assertEqual(catalog.resolve_course('2024'), course)
        self.assertEqual(catalog.resolve_course(str(course.pk)), course)


class CourseApiTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.admin_user = User.objects.create_user(
            username='registrar', email='registrar@example.com', password='SecurePass123', role='admin'
        )
        self.student_user = User.objects.create_user(
            username='student', email='student@example.com', password='SecurePass123'
        )
        self.payload = {
            'title': 'Web Development',
            'description': 'HTML, CSS and JavaScript',
            'duration': '3 Months',
            'tuition': 1500,
            'instructor': 'Grace Hopper',
            'start_date': '2026-01-10',
            'end_date': '2026-04-10',
        }

    def test_listing_requires_authentication(self):
        self.assertEqual(self.client.get(reverse('course-list-create')).status_code, 401)

    def test_admin_creates_course(self):
        self.client.force_authenticate(self.admin_user)

        response = self.client.post(reverse('course-list-create'), self.payload)

        self.assertEqual(response.status_code, 201)
        data = response.json()['data']
        self.assertEqual(data['title'], 'Web Development')
        self.assertEqual(Decimal(str(data['tuition'])), Decimal('1500'))

        self.client.force_authenticate(self.student_user)
        response = self.client.get(reverse('course-detail', args=[data['id']]))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['data']['instructor'], 'Grace Hopper')

    def test_student_cannot_create_course(self):
        self.client.force_authenticate(self.student_user)

        response = self.client.post(reverse('course-list-create'), self.payload)

        self.assertEqual(response.status_code, 403)
        self.assertFalse(Course.objects.exists())

    def test_course_validation(self):
        self.client.force_authenticate(self.admin_user)

        response = self.client.post(reverse('course-list-create'), {**self.payload, 'tuition': -5})
        self.assertEqual(response.status_code, 400)
        self.assertIn('tuition', response.json()['errors'])

        response = self.client.post(reverse('course-list-create'), {**self.payload, 'end_date': '2025-12-01'})
        self.assertEqual(response.status_code, 400)
        self.assertIn('end_date', response.json()['errors'])

        self.client.post(reverse('course-list-create'), self.payload)
        response = self.client.post(reverse('course-list-create'), self.payload)
        self.assertEqual(response.status_code, 400)
        self.assertIn('title', response.json()['errors'])

    def test_delete_course(self):
        course = Course.objects.create(
            title='Cloud Basics', description='AWS and GCP', duration='6 Weeks', tuition=Decimal('900')
        )

        self.client.force_authenticate(self.student_user)
        self.assertEqual(self.client.delete(reverse('course-detail', args=[course.pk])).status_code, 403)

        self.client.force_authenticate(self.admin_user)
        response = self.client.delete(reverse('course-detail', args=[course.pk]))

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['data']['applications_removed'], 0)
        self.assertEqual(self.client.get(reverse('course-detail', args=[course.pk])).status_code, 404)
