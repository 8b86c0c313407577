# apps/accounts/profiles.py
"""
Account/profile store used by the application lifecycle.

Only ``is_profile_complete`` is consulted at submission time; the other
operations back the ``/users/`` endpoints.
"""
import logging

from django.db import DatabaseError

from apps.applications.exceptions import NotFound, StorageError
from .models import User

log = logging.getLogger(__name__)

PROFILE_FIELDS = (
    'first_name', 'last_name', 'phone', 'date_of_birth', 'previous_education',
    'street', 'city', 'state', 'zip_code', 'country',
    'emergency_contact_name', 'emergency_contact_relationship', 'emergency_contact_phone',
)


def get_profile(user_id):
    try:
        return User.objects.get(pk=user_id)
    except User.DoesNotExist:
        raise NotFound('User not found')
    except DatabaseError:
        log.exception("Failed to load profile for user %s", user_id)
        raise StorageError()


def is_profile_complete(user_id):
    try:
        completed = User.objects.filter(pk=user_id).values_list('profile_completed', flat=True).first()
    except DatabaseError:
        log.exception("Failed to read profile state for user %s", user_id)
        raise StorageError()
    return bool(completed)


def update_profile(user_id, fields):
    """Apply validated profile ``fields`` and return the refreshed account."""
    user = get_profile(user_id)
    changed = []
    for name, value in fields.items():
        if name not in PROFILE_FIELDS:
            continue
        setattr(user, name, value)
        changed.append(name)

    try:
        user.save(update_fields=changed or None)
    except DatabaseError:
        log.exception("Failed to update profile for user %s", user_id)
        raise StorageError()

    log.info("Profile updated for user %s (completed=%s)", user.pk, user.profile_completed)
    return user
