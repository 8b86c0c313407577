# apps/applications/urls.py
from django.urls import path
from . import views

urlpatterns = [
    path('', views.application_list_create, name='application-list-create'),
    path('me/', views.my_applications, name='my-applications'),
    path('me/courses/', views.my_courses, name='my-courses'),
    path('<int:application_id>/', views.application_detail, name='application-detail'),
]
