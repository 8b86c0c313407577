# apps/courses/catalog.py
"""Course catalog operations shared by the course API and the application lifecycle."""
import logging

from django.db import DatabaseError, transaction

from apps.applications.exceptions import CourseNotFound, StorageError
from .models import Course

log = logging.getLogger(__name__)


def list_courses():
    try:
        return list(Course.objects.all())
    except DatabaseError:
        log.exception("Failed to list courses")
        raise StorageError()


def get_course(course_id):
    try:
        return Course.objects.get(pk=course_id)
    except (Course.DoesNotExist, ValueError, TypeError):
        raise CourseNotFound()
    except DatabaseError:
        log.exception("Failed to load course %s", course_id)
        raise StorageError()


def get_course_by_title(title):
    try:
        return Course.objects.get(title=title)
    except Course.DoesNotExist:
        raise CourseNotFound(f'Course "{title}" not found')
    except DatabaseError:
        log.exception("Failed to load course titled %r", title)
        raise StorageError()


def create_course(data, actor):
    """Persist a course from already-validated ``data`` (admin only)."""
    actor.require_admin()
    try:
        course = Course.objects.create(**data)
    except DatabaseError:
        log.exception("Failed to create course %r", data.get('title'))
        raise StorageError()

    log.info("Course %s (%s) created by user %s", course.pk, course.title, actor.id)
    return course


def delete_course(course_id, actor):
    """
    Delete a course (admin only).

    Applications for the course are removed with it; the number removed is
    returned so callers can report it.
    """
    actor.require_admin()
    course = get_course(course_id)
    try:
        with transaction.atomic():
            removed = course.applications.count()
            course.delete()
    except DatabaseError:
        log.exception("Failed to delete course %s", course_id)
        raise StorageError()

    log.info("Course %s deleted by user %s; %d application(s) removed", course_id, actor.id, removed)
    return removed


def resolve_course(reference):
    """Look a course up by id, falling back to its title for legacy clients."""
    if isinstance(reference, int):
        return get_course(reference)
    if isinstance(reference, str) and reference.strip().isdigit():
        try:
            return get_course(int(reference))
        except CourseNotFound:
            # Numeric titles such as "2024"
            return get_course_by_title(reference.strip())
    if isinstance(reference, str) and reference.strip():
        return get_course_by_title(reference.strip())
    raise CourseNotFound()
