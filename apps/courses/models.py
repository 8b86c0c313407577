# apps/courses/models.py
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models


class Course(models.Model):
    """Course offerings students can apply to"""
    title = models.CharField(max_length=200, unique=True)
    description = models.TextField()
    duration = models.CharField(max_length=50)  # e.g., "3 Months", "6 Weeks"
    tuition = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(0)])
    instructor = models.CharField(max_length=200, blank=True)

    # Schedule
    start_date = models.DateField(null=True, blank=True)
    end_date = models.DateField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['title']

    def clean(self):
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise ValidationError({'end_date': 'End date cannot be before the start date.'})

    def __str__(self):
        return self.title
