# apps/courses/urls.py
from django.urls import path
from . import views

urlpatterns = [
    path('', views.course_list_create, name='course-list-create'),
    path('<int:course_id>/', views.course_detail, name='course-detail'),
]
