# apps/accounts/admin.py
from django.contrib import admin
from django.contrib.auth.admin import UserAdmin
from .models import User


@admin.register(User)
class PortalUserAdmin(UserAdmin):
    list_display = ['username', 'email', 'first_name', 'last_name', 'role', 'profile_completed', 'is_active']
    list_filter = ['role', 'profile_completed', 'is_active', 'is_staff']
    search_fields = ['username', 'email', 'first_name', 'last_name']
    readonly_fields = ['profile_completed', 'last_login', 'date_joined']

    fieldsets = UserAdmin.fieldsets + (
        ('Portal Role', {
            'fields': ('role',)
        }),
        ('Profile', {
            'fields': ('profile_completed', 'phone', 'date_of_birth', 'previous_education')
        }),
        ('Address', {
            'fields': ('street', 'city', 'state', 'zip_code', 'country')
        }),
        ('Emergency Contact', {
            'fields': ('emergency_contact_name', 'emergency_contact_relationship', 'emergency_contact_phone')
        }),
    )
