# apps/applications/notifications.py
import logging

from django.conf import settings
from django.core.mail import send_mail

log = logging.getLogger(__name__)


def _send(subject, message, recipient):
    try:
        send_mail(
            subject=subject,
            message=message,
            from_email=settings.DEFAULT_FROM_EMAIL,
            recipient_list=[recipient],
            fail_silently=False,
        )
    except Exception:
        log.exception("Failed to send %r to %s", subject, recipient)
        return False
    log.debug("Sent %r to %s", subject, recipient)
    return True


def send_application_received_email(application):
    """
    Confirm a submission to the address given on the application.

    Returns True when the mail was handed to the backend.
    """
    subject = f'{settings.PORTAL_NAME} - Application Received: {application.desired_course.title}'

    message = f"""
Dear {application.applicant_name},

Thank you for applying to {application.desired_course.title}.

Application ID: {application.pk}
Submitted: {application.created_at:%Y-%m-%d %H:%M} UTC
Status: {application.get_status_display()}

We will email you again once an administrator has reviewed your application.
You can follow its progress from your dashboard at any time.

Best regards,
{settings.PORTAL_NAME} Admissions
    """
    return _send(subject, message, application.email)


def send_decision_email(application):
    """Tell the applicant their application was accepted or rejected."""
    course_title = application.desired_course.title

    if application.status == 'accepted':
        subject = f'{settings.PORTAL_NAME} - Congratulations! You have been accepted to {course_title}'
        body = (
            f"Congratulations! Your application for {course_title} has been accepted.\n"
            f"The course now appears under My Courses on your dashboard."
        )
    else:
        subject = f'{settings.PORTAL_NAME} - Update on your application to {course_title}'
        body = (
            f"Thank you for your interest in {course_title}. After careful review we are\n"
            f"unable to offer you a place at this time. You are welcome to apply again."
        )

    message = f"""
Dear {application.applicant_name},

{body}

Application ID: {application.pk}

Best regards,
{settings.PORTAL_NAME} Admissions
    """
    return _send(subject, message, application.email)
