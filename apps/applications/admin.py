# apps/applications/admin.py
from django.contrib import admin, messages

from apps.accounts.context import Actor
from . import services
from .exceptions import ApplicationError
from .models import Application


@admin.register(Application)
class ApplicationAdmin(admin.ModelAdmin):
    """Read-only view of applications; decisions go through the actions below"""

    list_display = ['id', 'first_name', 'last_name', 'desired_course', 'status', 'created_at']
    list_filter = ['status', 'desired_course', 'created_at']
    search_fields = ['first_name', 'last_name', 'email', 'desired_course__title', 'student__email']
    actions = ['accept_applications', 'reject_applications']

    readonly_fields = [
        'student', 'desired_course', 'status', 'created_at',
        'first_name', 'last_name', 'email', 'phone', 'date_of_birth', 'previous_education',
        'reviewed_by', 'reviewed_at',
    ]

    fieldsets = (
        ('Application Info', {
            'fields': ('student', 'desired_course', 'status', 'created_at')
        }),
        ('Applicant Details', {
            'fields': ('first_name', 'last_name', 'email', 'phone', 'date_of_birth', 'previous_education')
        }),
        ('Admin Review', {
            'fields': ('reviewed_by', 'reviewed_at')
        }),
    )

    def has_add_permission(self, request):
        # Applications are only created by students through the API
        return False

    @admin.action(description='Accept selected applications')
    def accept_applications(self, request, queryset):
        self._decide(request, queryset, Application.STATUS_ACCEPTED)

    @admin.action(description='Reject selected applications')
    def reject_applications(self, request, queryset):
        self._decide(request, queryset, Application.STATUS_REJECTED)

    def _decide(self, request, queryset, new_status):
        actor = Actor.from_user(request.user)
        updated = 0
        for application_id in queryset.values_list('pk', flat=True):
            try:
                services.update_status(actor, application_id, new_status)
            except ApplicationError as e:
                self.message_user(request, f'Application #{application_id}: {e.message}', level=messages.ERROR)
            else:
                updated += 1

        if updated:
            self.message_user(request, f'{updated} application(s) marked {new_status}.', level=messages.SUCCESS)
