# apps/applications/exceptions.py
"""
Typed failures raised by the portal's core operations.

Each error carries a stable ``code`` for API clients, a user-facing
``message`` and the HTTP status the API layer answers with.
"""


class ApplicationError(Exception):
    code = 'error'
    status_code = 400
    default_message = 'Request could not be processed'

    def __init__(self, message=None, errors=None):
        self.message = message or self.default_message
        self.errors = errors
        super().__init__(self.message)

    def as_dict(self):
        payload = {
            'success': False,
            'error': self.message,
            'code': self.code,
        }
        if self.errors:
            payload['errors'] = self.errors
        return payload


class Unauthenticated(ApplicationError):
    code = 'unauthenticated'
    status_code = 401
    default_message = 'Authentication required'


class Forbidden(ApplicationError):
    code = 'forbidden'
    status_code = 403
    default_message = 'You do not have permission to perform this action'


class NotFound(ApplicationError):
    code = 'not_found'
    status_code = 404
    default_message = 'Not found'


class CourseNotFound(NotFound):
    default_message = 'Course not found'


class ApplicationNotFound(NotFound):
    default_message = 'Application not found'


class ProfileIncomplete(ApplicationError):
    code = 'profile_incomplete'
    default_message = 'Please complete your profile before submitting applications'


class DuplicateApplication(ApplicationError):
    code = 'duplicate_application'
    default_message = 'You already have an active application for this course'


class ValidationError(ApplicationError):
    code = 'validation_error'
    default_message = 'Validation failed'


class StorageError(ApplicationError):
    code = 'storage_error'
    status_code = 500
    default_message = 'An error occurred. Please try again.'


def error_response(exc):
    """Render an ``ApplicationError`` in the API's failure envelope."""
    from rest_framework.response import Response

    return Response(exc.as_dict(), status=exc.status_code)
