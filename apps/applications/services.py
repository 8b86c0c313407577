# apps/applications/services.py
"""
Application lifecycle: submission rules, status decisions and the
student/admin views over applications.

Every operation takes the request's ``Actor`` explicitly and either returns
the created/updated record or raises an ``ApplicationError``. Nothing is
written when a precondition fails.
"""
import logging

from django.db import DatabaseError, IntegrityError, transaction
from django.db.models import Count, Q
from django.utils import timezone

from apps.accounts import profiles
from apps.courses import catalog
from apps.courses.models import Course
from .exceptions import (
    ApplicationError, ApplicationNotFound, DuplicateApplication, Forbidden,
    ProfileIncomplete, StorageError, ValidationError,
)
from .models import Application
from .notifications import send_application_received_email, send_decision_email

log = logging.getLogger(__name__)

SNAPSHOT_FIELDS = ('first_name', 'last_name', 'email', 'phone', 'date_of_birth', 'previous_education')


def _clean_snapshot(snapshot):
    errors = {}
    for field in SNAPSHOT_FIELDS:
        if snapshot.get(field) in (None, ''):
            errors[field] = f'{field.replace("_", " ").capitalize()} is required'
    for field in set(snapshot) - set(SNAPSHOT_FIELDS):
        errors[field] = 'Unknown field.'
    if errors:
        raise ValidationError(errors=errors)
    return {field: snapshot[field] for field in SNAPSHOT_FIELDS}


def _has_active_application(student_id, course_id, exclude_id=None):
    try:
        applications = Application.objects.filter(
            student_id=student_id,
            desired_course_id=course_id,
            status__in=Application.ACTIVE_STATUSES,
        )
        if exclude_id is not None:
            applications = applications.exclude(pk=exclude_id)
        return applications.exists()
    except DatabaseError:
        log.exception("Duplicate check failed for student %s course %s", student_id, course_id)
        raise StorageError()


def ensure_can_apply(actor):
    """Role and profile gate checked before anything about the payload."""
    actor.require_student()
    if not profiles.is_profile_complete(actor.id):
        raise ProfileIncomplete()


def submit(actor, snapshot, desired_course):
    """
    Create a pending application for ``actor`` and ``desired_course``.

    ``desired_course`` is a course id (or a course title, as older clients
    send). The snapshot is stored exactly as given.
    """
    ensure_can_apply(actor)
    values = _clean_snapshot(snapshot)
    course = catalog.resolve_course(desired_course)

    if _has_active_application(actor.id, course.pk):
        raise DuplicateApplication(f'You already have an active application for {course.title}')

    try:
        with transaction.atomic():
            application = Application.objects.create(
                student_id=actor.id,
                desired_course=course,
                status=Application.STATUS_PENDING,
                **values
            )
    except IntegrityError:
        if not _has_active_application(actor.id, course.pk):
            log.exception("Failed to save application for student %s course %s", actor.id, course.pk)
            raise StorageError()
        # Lost a race with a concurrent submission for the same pairing
        log.info("Rejected concurrent duplicate for student %s course %s", actor.id, course.pk)
        raise DuplicateApplication(f'You already have an active application for {course.title}')
    except DatabaseError:
        log.exception("Failed to save application for student %s course %s", actor.id, course.pk)
        raise StorageError()

    log.info("Application %s submitted by student %s for course %s", application.pk, actor.id, course.pk)
    send_application_received_email(application)
    return application


def submit_many(actor, snapshot, desired_courses):
    """
    Submit one application per requested course.

    Each course is an independent ``submit``; failures are reported per
    course and do not undo the ones that succeeded. Returns a list of
    ``(desired_course, application_or_None, error_or_None)``.
    """
    ensure_can_apply(actor)

    results = []
    for desired_course in desired_courses:
        try:
            results.append((desired_course, submit(actor, snapshot, desired_course), None))
        except ApplicationError as e:
            results.append((desired_course, None, e))
    return results


def get_application(actor, application_id):
    try:
        application = Application.objects.select_related('student', 'desired_course').get(pk=application_id)
    except Application.DoesNotExist:
        raise ApplicationNotFound()
    except DatabaseError:
        log.exception("Failed to load application %s", application_id)
        raise StorageError()

    if not actor.is_admin and application.student_id != actor.id:
        raise Forbidden('You can only view your own applications')
    return application


def update_status(actor, application_id, new_status):
    """
    Record an admin decision.

    Setting the status an application already has is a no-op. Flipping one
    decision to the other is allowed but logged.
    """
    actor.require_admin()
    if new_status not in Application.DECISION_STATUSES:
        raise ValidationError(
            'Invalid status',
            errors={'status': f'Must be one of: {", ".join(Application.DECISION_STATUSES)}'}
        )

    try:
        with transaction.atomic():
            application = Application.objects.select_for_update().get(pk=application_id)
            if application.status == new_status:
                return application

            previous = application.status
            application.status = new_status
            application.reviewed_by_id = actor.id
            application.reviewed_at = timezone.now()
            application.save(update_fields=['status', 'reviewed_by', 'reviewed_at'])
    except Application.DoesNotExist:
        raise ApplicationNotFound()
    except IntegrityError:
        if not _has_active_application(application.student_id, application.desired_course_id, exclude_id=application.pk):
            log.exception("Failed to update application %s", application_id)
            raise StorageError()
        # Re-accepting a rejected application while a newer one holds the slot
        raise DuplicateApplication('The student already has an active application for this course')
    except DatabaseError:
        log.exception("Failed to update application %s", application_id)
        raise StorageError()

    if previous in Application.DECISION_STATUSES:
        log.warning(
            "Application %s changed from %s to %s by admin %s",
            application.pk, previous, new_status, actor.id
        )
    else:
        log.info("Application %s %s by admin %s", application.pk, new_status, actor.id)

    send_decision_email(application)
    return application


def delete(actor, application_id):
    actor.require_admin()
    try:
        deleted, _ = Application.objects.filter(pk=application_id).delete()
    except DatabaseError:
        log.exception("Failed to delete application %s", application_id)
        raise StorageError()

    if not deleted:
        raise ApplicationNotFound()
    log.info("Application %s deleted by admin %s", application_id, actor.id)


def list_for_admin(actor, status=None):
    """All applications, newest first, optionally narrowed to one status."""
    actor.require_admin()
    if status and status not in dict(Application.STATUS_CHOICES):
        raise ValidationError('Invalid status filter', errors={'status': 'Unknown status'})

    applications = Application.objects.select_related('student', 'desired_course')
    if status:
        applications = applications.filter(status=status)

    try:
        return list(applications.order_by('-created_at', '-id'))
    except DatabaseError:
        log.exception("Failed to list applications")
        raise StorageError()


def list_for_student(actor, student_id):
    if not actor.is_admin and actor.id != student_id:
        raise Forbidden('You can only view your own applications')

    try:
        return list(
            Application.objects.select_related('student', 'desired_course')
            .filter(student_id=student_id)
            .order_by('-created_at', '-id')
        )
    except DatabaseError:
        log.exception("Failed to list applications for student %s", student_id)
        raise StorageError()


def get_enrollment(actor, student_id):
    """Courses the student holds an accepted application for."""
    if not actor.is_admin and actor.id != student_id:
        raise Forbidden('You can only view your own courses')

    try:
        return list(
            Course.objects.filter(
                applications__student_id=student_id,
                applications__status=Application.STATUS_ACCEPTED,
            ).distinct().order_by('title')
        )
    except DatabaseError:
        log.exception("Failed to load enrollment for student %s", student_id)
        raise StorageError()


def status_counts():
    try:
        return Application.objects.aggregate(
            total_received=Count('id'),
            pending=Count('id', filter=Q(status=Application.STATUS_PENDING)),
            accepted=Count('id', filter=Q(status=Application.STATUS_ACCEPTED)),
            rejected=Count('id', filter=Q(status=Application.STATUS_REJECTED)),
        )
    except DatabaseError:
        log.exception("Failed to count applications")
        raise StorageError()
