from io import StringIO
from datetime import date, timedelta
from decimal import Decimal
from unittest import mock

from django.core import mail
from django.core.management import call_command
from django.db import DatabaseError, IntegrityError
from django.test import TestCase
from django.urls import reverse
from django.utils import timezone

from rest_framework.test import APIClient

from apps.accounts.context import Actor
from apps.accounts.models import User
from apps.courses import catalog
from apps.courses.models import Course
from apps.applications import services
from apps.applications.exceptions import (
    CourseNotFound, DuplicateApplication, Forbidden, ProfileIncomplete,
    StorageError, ValidationError, ApplicationNotFound,
)
from apps.applications.models import Application


def make_student(username, complete=True):
    extra = {}
    if complete:
        extra = {
            'phone': '555-0100',
            'date_of_birth': date(2001, 5, 17),
            'previous_education': 'High School Diploma',
        }
    return User.objects.create_user(
        username=username,
        email=f'{username}@example.com',
        password='SecurePass123',
        first_name=username.capitalize(),
        last_name='Student',
        role='student',
        **extra
    )


def make_course(title, **kwargs):
    values = {
        'description': f'{title} course',
        'duration': '3 Months',
        'tuition': Decimal('1200.00'),
    }
    values.update(kwargs)
    return Course.objects.create(title=title, **values)


def snapshot_for(user):
    return {
        'first_name': user.first_name,
        'last_name': user.last_name,
        'email': user.email,
        'phone': '555-0100',
        'date_of_birth': date(2001, 5, 17),
        'previous_education': 'High School Diploma',
    }


class ApplicationLifecycleTests(TestCase):
    def setUp(self):
        self.admin_user = User.objects.create_superuser(
            username='admin', email='admin@example.com', password='SecurePass123'
        )
        self.admin = Actor.from_user(self.admin_user)

        self.student_user = make_student('xavier')
        self.student = Actor.from_user(self.student_user)

        self.course_a = make_course('A')
        self.course_b = make_course('B')

    def submit(self, course, actor=None, user=None):
        return services.submit(actor or self.student, snapshot_for(user or self.student_user), course.pk)

    def test_submit_creates_pending_application_with_snapshot(self):
        application = self.submit(self.course_a)

        self.assertEqual(application.status, 'pending')
        self.assertEqual(application.student_id, self.student_user.pk)
        self.assertEqual(application.desired_course, self.course_a)
        self.assertEqual(application.first_name, 'Xavier')
        self.assertEqual(application.previous_education, 'High School Diploma')
        self.assertIsNotNone(application.created_at)

    def test_second_submit_while_pending_is_duplicate(self):
        self.submit(self.course_a)

        with self.assertRaises(DuplicateApplication):
            self.submit(self.course_a)
        self.assertEqual(Application.objects.count(), 1)

    def test_second_submit_after_acceptance_is_duplicate(self):
        application = self.submit(self.course_a)
        services.update_status(self.admin, application.pk, 'accepted')

        with self.assertRaises(DuplicateApplication):
            self.submit(self.course_a)

    def test_reapplying_after_rejection_is_allowed(self):
        application = self.submit(self.course_a)
        services.update_status(self.admin, application.pk, 'rejected')

        second = self.submit(self.course_a)
        self.assertEqual(second.status, 'pending')
        self.assertEqual(Application.objects.filter(student=self.student_user).count(), 2)

    def test_incomplete_profile_blocks_submission_regardless_of_payload(self):
        incomplete = make_student('yolanda', complete=False)
        actor = Actor.from_user(incomplete)

        with self.assertRaises(ProfileIncomplete):
            services.submit(actor, {}, self.course_a.pk)
        with self.assertRaises(ProfileIncomplete):
            services.submit(actor, snapshot_for(incomplete), self.course_a.pk)
        self.assertFalse(Application.objects.exists())

    def test_submit_requires_existing_course(self):
        with self.assertRaises(CourseNotFound):
            services.submit(self.student, snapshot_for(self.student_user), 9999)

    def test_submit_accepts_course_title_from_legacy_clients(self):
        application = services.submit(self.student, snapshot_for(self.student_user), 'B')
        self.assertEqual(application.desired_course, self.course_b)

    def test_submit_rejects_missing_and_unknown_snapshot_fields(self):
        snapshot = snapshot_for(self.student_user)
        del snapshot['phone']
        snapshot['nickname'] = 'X'

        with self.assertRaises(ValidationError) as ctx:
            services.submit(self.student, snapshot, self.course_a.pk)
        self.assertIn('phone', ctx.exception.errors)
        self.assertIn('nickname', ctx.exception.errors)

    def test_admin_cannot_submit(self):
        with self.assertRaises(Forbidden):
            services.submit(self.admin, snapshot_for(self.student_user), self.course_a.pk)

    def test_concurrent_submit_loses_to_uniqueness_constraint(self):
        self.submit(self.course_a)

        # The second caller passed the existence check before the first committed
        with mock.patch('apps.applications.services._has_active_application', side_effect=[False, True]):
            with self.assertRaises(DuplicateApplication):
                self.submit(self.course_a)

        self.assertEqual(
            Application.objects.filter(student=self.student_user, desired_course=self.course_a).count(), 1
        )

    def test_other_integrity_errors_are_storage_errors(self):
        with mock.patch.object(Application.objects, 'create', side_effect=IntegrityError('NOT NULL constraint failed')):
            with self.assertLogs('apps.applications.services', level='ERROR'):
                with self.assertRaises(StorageError):
                    self.submit(self.course_a)
        self.assertFalse(Application.objects.exists())

    def test_accepting_adds_course_to_enrollment(self):
        application = self.submit(self.course_a)

        updated = services.update_status(self.admin, application.pk, 'accepted')

        self.assertEqual(updated.status, 'accepted')
        self.assertEqual(updated.created_at, application.created_at)
        self.assertEqual(updated.reviewed_by_id, self.admin_user.pk)
        mine = services.list_for_student(self.student, self.student_user.pk)
        self.assertEqual([(a.pk, a.status) for a in mine], [(application.pk, 'accepted')])
        self.assertEqual(services.get_enrollment(self.student, self.student_user.pk), [self.course_a])

    def test_update_to_same_status_is_a_no_op(self):
        application = self.submit(self.course_a)
        first = services.update_status(self.admin, application.pk, 'rejected')

        again = services.update_status(self.admin, application.pk, 'rejected')

        self.assertEqual(again.status, 'rejected')
        self.assertEqual(again.reviewed_at, first.reviewed_at)

    def test_flipping_a_decision_is_allowed_and_logged(self):
        application = self.submit(self.course_a)
        services.update_status(self.admin, application.pk, 'accepted')

        with self.assertLogs('apps.applications.services', level='WARNING') as logs:
            updated = services.update_status(self.admin, application.pk, 'rejected')

        self.assertEqual(updated.status, 'rejected')
        self.assertIn('changed from accepted to rejected', logs.output[0])
        self.assertEqual(services.get_enrollment(self.student, self.student_user.pk), [])

    def test_reaccepting_rejected_application_while_another_is_active(self):
        old = self.submit(self.course_a)
        services.update_status(self.admin, old.pk, 'rejected')
        self.submit(self.course_a)

        with self.assertRaises(DuplicateApplication):
            services.update_status(self.admin, old.pk, 'accepted')

    def test_update_status_preconditions(self):
        application = self.submit(self.course_a)

        with self.assertRaises(Forbidden):
            services.update_status(self.student, application.pk, 'accepted')
        with self.assertRaises(ValidationError):
            services.update_status(self.admin, application.pk, 'pending')
        with self.assertRaises(ApplicationNotFound):
            services.update_status(self.admin, 9999, 'accepted')

    def test_list_for_admin_filters_by_status_newest_first(self):
        now = timezone.now()
        other = make_student('zoe')
        other_actor = Actor.from_user(other)

        oldest = self.submit(self.course_a)
        middle = services.submit(other_actor, snapshot_for(other), self.course_a.pk)
        newest = self.submit(self.course_b)
        Application.objects.filter(pk=oldest.pk).update(created_at=now - timedelta(days=3))
        Application.objects.filter(pk=middle.pk).update(created_at=now - timedelta(days=2))
        Application.objects.filter(pk=newest.pk).update(created_at=now - timedelta(days=1))
        services.update_status(self.admin, middle.pk, 'accepted')

        pending = services.list_for_admin(self.admin, status='pending')

        self.assertEqual([a.pk for a in pending], [newest.pk, oldest.pk])
        self.assertTrue(all(a.status == 'pending' for a in pending))
        self.assertEqual(
            [a.pk for a in services.list_for_admin(self.admin)],
            [newest.pk, middle.pk, oldest.pk]
        )

    def test_list_for_admin_requires_admin_and_known_status(self):
        with self.assertRaises(Forbidden):
            services.list_for_admin(self.student)
        with self.assertRaises(ValidationError):
            services.list_for_admin(self.admin, status='archived')

    def test_students_only_read_their_own_applications(self):
        other = make_student('zoe')

        with self.assertRaises(Forbidden):
            services.list_for_student(self.student, other.pk)
        with self.assertRaises(Forbidden):
            services.get_enrollment(self.student, other.pk)

        application = services.submit(Actor.from_user(other), snapshot_for(other), self.course_a.pk)
        with self.assertRaises(Forbidden):
            services.get_application(self.student, application.pk)
        self.assertEqual(services.get_application(self.admin, application.pk), application)

    def test_delete_removes_application_from_all_views(self):
        application = self.submit(self.course_a)

        services.delete(self.admin, application.pk)

        self.assertEqual(services.list_for_admin(self.admin), [])
        self.assertEqual(services.list_for_student(self.student, self.student_user.pk), [])
        with self.assertRaises(ApplicationNotFound):
            services.delete(self.admin, application.pk)

    def test_only_admin_can_delete(self):
        application = self.submit(self.course_a)

        with self.assertRaises(Forbidden):
            services.delete(self.student, application.pk)
        self.assertTrue(Application.objects.filter(pk=application.pk).exists())

    def test_batch_submission_then_decisions(self):
        results = services.submit_many(
            self.student, snapshot_for(self.student_user), [self.course_a.pk, self.course_b.pk]
        )
        self.assertTrue(all(application is not None and error is None for _, application, error in results))
        by_course = {application.desired_course.title: application for _, application, _ in results}

        services.update_status(self.admin, by_course['A'].pk, 'accepted')
        services.update_status(self.admin, by_course['B'].pk, 'rejected')

        self.assertEqual(services.get_enrollment(self.student, self.student_user.pk), [self.course_a])
        statuses = {a.desired_course.title: a.status for a in services.list_for_student(self.student, self.student_user.pk)}
        self.assertEqual(statuses, {'A': 'accepted', 'B': 'rejected'})

    def test_batch_submission_reports_partial_success_per_course(self):
        self.submit(self.course_a)

        results = services.submit_many(
            self.student, snapshot_for(self.student_user), [self.course_a.pk, self.course_b.pk, 9999]
        )

        outcome = [(application is not None, type(error).__name__ if error else None) for _, application, error in results]
        self.assertEqual(outcome, [
            (False, 'DuplicateApplication'),
            (True, None),
            (False, 'CourseNotFound'),
        ])

    def test_storage_failures_are_logged_and_raised(self):
        with mock.patch.object(Application.objects, 'select_related', side_effect=DatabaseError('disk I/O error')):
            with self.assertLogs('apps.applications.services', level='ERROR'):
                with self.assertRaises(StorageError) as ctx:
                    services.list_for_student(self.student, self.student_user.pk)
        self.assertNotIn('disk', ctx.exception.message)

    def test_status_counts(self):
        first = self.submit(self.course_a)
        self.submit(self.course_b)
        services.update_status(self.admin, first.pk, 'accepted')

        self.assertEqual(services.status_counts(), {
            'total_received': 2, 'pending': 1, 'accepted': 1, 'rejected': 0,
        })

    def test_notifications_sent_on_submit_and_decision(self):
        application = self.submit(self.course_a)
        services.update_status(self.admin, application.pk, 'accepted')

        self.assertEqual(len(mail.outbox), 2)
        self.assertIn('Application Received', mail.outbox[0].subject)
        self.assertEqual(mail.outbox[0].to, ['xavier@example.com'])
        self.assertIn('accepted', mail.outbox[1].subject)

    def test_notification_failure_does_not_fail_submission(self):
        with mock.patch('apps.applications.notifications.send_mail', side_effect=OSError('SMTP down')):
            with self.assertLogs('apps.applications.notifications', level='ERROR'):
                application = self.submit(self.course_a)
        self.assertEqual(application.status, 'pending')

    def test_course_deletion_cascades_to_applications(self):
        self.submit(self.course_a)
        self.submit(self.course_b)

        removed = catalog.delete_course(self.course_a.pk, self.admin)

        self.assertEqual(removed, 1)
        self.assertEqual(
            [a.desired_course_id for a in services.list_for_student(self.student, self.student_user.pk)],
            [self.course_b.pk]
        )


class ApplicationApiTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.admin_user = User.objects.create_user(
            username='registrar', email='registrar@example.com', password='SecurePass123', role='admin'
        )
        self.student_user = make_student('xavier')
        self.course_a = make_course('A')
        self.course_b = make_course('B')

        self.payload = {
            'first_name': 'Xavier',
            'last_name': 'Student',
            'email': 'xavier@example.com',
            'phone': '555-0100',
            'date_of_birth': '2001-05-17',
            'previous_education': 'High School Diploma',
        }

    def post_application(self, **extra):
        return self.client.post(reverse('application-list-create'), {**self.payload, **extra})

    def test_submit_requires_authentication(self):
        response = self.post_application(desired_course=self.course_a.pk)
        self.assertEqual(response.status_code, 401)

    def test_submit_single_course(self):
        self.client.force_authenticate(self.student_user)

        response = self.post_application(desired_course=self.course_a.pk)

        self.assertEqual(response.status_code, 201)
        data = response.json()['data']
        self.assertEqual(data['status'], 'pending')
        self.assertEqual(data['desired_course'], self.course_a.pk)
        self.assertEqual(data['desired_course_title'], 'A')
        self.assertEqual(data['student']['id'], self.student_user.pk)

    def test_submit_duplicate_returns_400(self):
        self.client.force_authenticate(self.student_user)
        self.post_application(desired_course=self.course_a.pk)

        response = self.post_application(desired_course=self.course_a.pk)

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['code'], 'duplicate_application')

    def test_submit_with_incomplete_profile_returns_400_before_validation(self):
        self.client.force_authenticate(make_student('yolanda', complete=False))

        response = self.client.post(reverse('application-list-create'), {'garbage': True})

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['code'], 'profile_incomplete')
        self.assertFalse(Application.objects.exists())

    def test_submit_rejects_unknown_fields(self):
        self.client.force_authenticate(self.student_user)

        response = self.post_application(desired_course=self.course_a.pk, status='accepted')

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['code'], 'validation_error')
        self.assertIn('status', response.json()['errors'])
        self.assertFalse(Application.objects.exists())

    def test_submit_unknown_course_returns_404(self):
        self.client.force_authenticate(self.student_user)

        response = self.post_application(desired_course=9999)

        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()['code'], 'not_found')

    def test_batch_submission_partial_success(self):
        self.client.force_authenticate(self.student_user)
        self.post_application(desired_course=self.course_a.pk)

        response = self.post_application(desired_courses=[self.course_a.pk, self.course_b.pk])

        self.assertEqual(response.status_code, 207)
        report = response.json()['data']
        self.assertEqual([item['success'] for item in report], [False, True])
        self.assertEqual(report[0]['code'], 'duplicate_application')

    def test_batch_submission_all_created(self):
        self.client.force_authenticate(self.student_user)

        response = self.post_application(desired_courses=[self.course_a.pk, self.course_b.pk])

        self.assertEqual(response.status_code, 201)
        self.assertEqual(Application.objects.filter(student=self.student_user).count(), 2)

    def test_admin_list_with_filter_and_statistics(self):
        self.client.force_authenticate(self.student_user)
        self.post_application(desired_courses=[self.course_a.pk, self.course_b.pk])
        accepted = Application.objects.get(desired_course=self.course_a)
        Application.objects.filter(pk=accepted.pk).update(status='accepted')

        response = self.client.get(reverse('application-list-create'))
        self.assertEqual(response.status_code, 403)

        self.client.force_authenticate(self.admin_user)
        response = self.client.get(reverse('application-list-create'), {'status': 'pending'})

        self.assertEqual(response.status_code, 200)
        body = response.json()['data']
        self.assertEqual([a['desired_course_title'] for a in body['applications']], ['B'])
        self.assertEqual(body['applications'][0]['student']['email'], 'xavier@example.com')
        self.assertEqual(body['statistics']['total_received'], 2)
        self.assertEqual(body['statistics']['accepted'], 1)

    def test_student_sees_only_own_applications(self):
        other = make_student('zoe')
        self.client.force_authenticate(other)
        self.post_application(desired_course=self.course_a.pk)

        self.client.force_authenticate(self.student_user)
        self.post_application(desired_course=self.course_b.pk)
        response = self.client.get(reverse('my-applications'))

        self.assertEqual(response.status_code, 200)
        self.assertEqual([a['desired_course_title'] for a in response.json()['data']], ['B'])

        theirs = Application.objects.get(student=other)
        response = self.client.get(reverse('application-detail', args=[theirs.pk]))
        self.assertEqual(response.status_code, 403)

    def test_admin_accepts_and_course_appears_in_my_courses(self):
        self.client.force_authenticate(self.student_user)
        application_id = self.post_application(desired_course=self.course_a.pk).json()['data']['id']

        self.client.force_authenticate(self.admin_user)
        response = self.client.put(reverse('application-detail', args=[application_id]), {'status': 'accepted'})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['data']['status'], 'accepted')

        self.client.force_authenticate(self.student_user)
        response = self.client.get(reverse('my-courses'))
        self.assertEqual([c['title'] for c in response.json()['data']], ['A'])

    def test_status_update_validation_and_permissions(self):
        self.client.force_authenticate(self.student_user)
        application_id = self.post_application(desired_course=self.course_a.pk).json()['data']['id']

        response = self.client.put(reverse('application-detail', args=[application_id]), {'status': 'accepted'})
        self.assertEqual(response.status_code, 403)

        self.client.force_authenticate(self.admin_user)
        response = self.client.put(reverse('application-detail', args=[application_id]), {'status': 'pending'})
        self.assertEqual(response.status_code, 400)

        response = self.client.put(reverse('application-detail', args=[9999]), {'status': 'rejected'})
        self.assertEqual(response.status_code, 404)

    def test_admin_deletes_application(self):
        self.client.force_authenticate(self.student_user)
        application_id = self.post_application(desired_course=self.course_a.pk).json()['data']['id']

        self.client.force_authenticate(self.admin_user)
        response = self.client.delete(reverse('application-detail', args=[application_id]))
        self.assertEqual(response.status_code, 200)

        self.assertEqual(self.client.get(reverse('application-list-create')).json()['count'], 0)
        self.client.force_authenticate(self.student_user)
        self.assertEqual(self.client.get(reverse('my-applications')).json()['data'], [])

    def test_storage_error_is_generic(self):
        self.client.force_authenticate(self.admin_user)

        with mock.patch('apps.applications.services.list_for_admin', side_effect=StorageError()):
            response = self.client.get(reverse('application-list-create'))

        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json(), {
            'success': False,
            'error': 'An error occurred. Please try again.',
            'code': 'storage_error',
        })


class ExportApplicationsCommandTests(TestCase):
    def test_exports_durable_record_shape(self):
        student = make_student('xavier')
        course = make_course('A')
        services.submit(Actor.from_user(student), snapshot_for(student), course.pk)

        out = StringIO()
        call_command('export_applications', '--status', 'pending', stdout=out, stderr=StringIO())

        lines = out.getvalue().strip().splitlines()
        self.assertEqual(lines[0].split(',')[:3], ['id', 'student_id', 'student_email'])
        self.assertEqual(len(lines), 2)
        self.assertIn('xavier@example.com', lines[1])
        self.assertIn(',A,pending,', lines[1])


class ApplicationAdminSiteTests(TestCase):
    def setUp(self):
        self.admin_user = User.objects.create_superuser(
            username='admin', email='admin@example.com', password='SecurePass123'
        )
        self.client.force_login(self.admin_user)

        student = make_student('xavier')
        self.application = services.submit(Actor.from_user(student), snapshot_for(student), make_course('A').pk)

    def test_change_form_cannot_alter_status_or_submitted_details(self):
        services.update_status(Actor.from_user(self.admin_user), self.application.pk, 'accepted')

        response = self.client.post(
            reverse('admin:applications_application_change', args=[self.application.pk]),
            {'status': 'pending', 'first_name': 'Mallory', 'desired_course': '', '_save': 'Save'}
        )

        self.assertEqual(response.status_code, 302)
        self.application.refresh_from_db()
        self.assertEqual(self.application.status, 'accepted')
        self.assertEqual(self.application.first_name, 'Xavier')

    def test_applications_cannot_be_added_from_admin(self):
        response = self.client.get(reverse('admin:applications_application_add'))
        self.assertEqual(response.status_code, 403)

    def test_decision_actions_go_through_lifecycle(self):
        response = self.client.post(reverse('admin:applications_application_changelist'), {
            'action': 'reject_applications',
            '_selected_action': [self.application.pk],
        })

        self.assertEqual(response.status_code, 302)
        self.application.refresh_from_db()
        self.assertEqual(self.application.status, 'rejected')
        self.assertEqual(self.application.reviewed_by, self.admin_user)
        self.assertIsNotNone(self.application.reviewed_at)
