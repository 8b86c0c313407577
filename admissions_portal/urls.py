# admissions_portal/urls.py
from django.contrib import admin
from django.urls import path, include

urlpatterns = [
    path('admin/', admin.site.urls),

    # API endpoints
    path('api/v1/auth/', include('apps.accounts.urls')),
    path('api/v1/users/', include('apps.accounts.user_urls')),
    path('api/v1/courses/', include('apps.courses.urls')),
    path('api/v1/applications/', include('apps.applications.urls')),
]

admin.site.site_header = "Admissions Portal Administration"
admin.site.site_title = "Admissions Admin"
admin.site.index_title = "Courses and applications"
