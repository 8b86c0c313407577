# apps/accounts/models.py
from django.db import models
from django.contrib.auth.models import AbstractUser


class User(AbstractUser):
    """Portal account: identity, role and the profile gate for applications"""

    ROLE_CHOICES = (
        ('student', 'Student'),
        ('admin', 'Admin'),
    )

    # Fields that must be filled in before any application can be submitted
    REQUIRED_PROFILE_FIELDS = ('phone', 'date_of_birth', 'previous_education')

    email = models.EmailField(unique=True)
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default='student')

    # Personal details
    phone = models.CharField(max_length=20, blank=True)
    date_of_birth = models.DateField(null=True, blank=True)
    previous_education = models.CharField(max_length=255, blank=True)

    # Address
    street = models.CharField(max_length=255, blank=True)
    city = models.CharField(max_length=100, blank=True)
    state = models.CharField(max_length=100, blank=True)
    zip_code = models.CharField(max_length=20, blank=True)
    country = models.CharField(max_length=100, blank=True)

    # Emergency contact
    emergency_contact_name = models.CharField(max_length=200, blank=True)
    emergency_contact_relationship = models.CharField(max_length=50, blank=True)
    emergency_contact_phone = models.CharField(max_length=20, blank=True)

    # Derived from the required profile fields on every save
    profile_completed = models.BooleanField(default=False, editable=False)

    def save(self, *args, **kwargs):
        self.profile_completed = self.has_required_profile_fields()
        update_fields = kwargs.get('update_fields')
        if update_fields is not None and 'profile_completed' not in update_fields:
            kwargs['update_fields'] = list(update_fields) + ['profile_completed']
        super().save(*args, **kwargs)

    def has_required_profile_fields(self):
        return all(getattr(self, field) not in (None, '') for field in self.REQUIRED_PROFILE_FIELDS)

    @property
    def is_admin(self):
        return self.role == 'admin' or self.is_superuser

    @property
    def full_name(self):
        return self.get_full_name() or self.username

    def __str__(self):
        return self.username
