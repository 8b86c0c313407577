# apps/applications/models.py
from django.db import models
from django.db.models import Q
from django.utils import timezone
from apps.accounts.models import User
from apps.courses.models import Course


class Application(models.Model):
    """One student's request to enroll in one course"""

    STATUS_PENDING = 'pending'
    STATUS_ACCEPTED = 'accepted'
    STATUS_REJECTED = 'rejected'

    STATUS_CHOICES = (
        (STATUS_PENDING, 'Pending'),
        (STATUS_ACCEPTED, 'Accepted'),
        (STATUS_REJECTED, 'Rejected'),
    )

    # Statuses that hold the (student, course) slot
    ACTIVE_STATUSES = (STATUS_PENDING, STATUS_ACCEPTED)
    DECISION_STATUSES = (STATUS_ACCEPTED, STATUS_REJECTED)

    student = models.ForeignKey(User, on_delete=models.CASCADE, related_name='applications')
    desired_course = models.ForeignKey(Course, on_delete=models.CASCADE, related_name='applications')

    # Applicant details as submitted
    first_name = models.CharField(max_length=100)
    last_name = models.CharField(max_length=100)
    email = models.EmailField()
    phone = models.CharField(max_length=20)
    date_of_birth = models.DateField()
    previous_education = models.CharField(max_length=255)

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDING)
    created_at = models.DateTimeField(default=timezone.now, editable=False)

    # Admin review
    reviewed_by = models.ForeignKey(
        User, on_delete=models.SET_NULL, null=True, blank=True,
        related_name='reviewed_applications'
    )
    reviewed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ['-created_at', '-id']
        constraints = [
            models.UniqueConstraint(
                fields=['student', 'desired_course'],
                condition=Q(status__in=['pending', 'accepted']),
                name='unique_active_application_per_course',
            ),
        ]

    @property
    def applicant_name(self):
        return " ".join(filter(None, [self.first_name, self.last_name]))

    @property
    def is_decided(self):
        return self.status in self.DECISION_STATUSES

    def __str__(self):
        return f"#{self.pk} {self.applicant_name} - {self.desired_course} ({self.status})"
