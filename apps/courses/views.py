# apps/courses/views.py
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework import status

from apps.accounts.context import Actor
from apps.applications.exceptions import ApplicationError, error_response
from . import catalog
from .serializers import CourseSerializer


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def course_list_create(request):
    """
    GET: List all courses
    POST: Create new course (admin only)
    """
    try:
        if request.method == 'GET':
            courses = catalog.list_courses()
            return Response({
                'success': True,
                'count': len(courses),
                'data': CourseSerializer(courses, many=True).data
            })

        actor = Actor.from_user(request.user)
        actor.require_admin()

        serializer = CourseSerializer(data=request.data)
        if not serializer.is_valid():
            return Response({
                'success': False,
                'error': 'Validation failed',
                'code': 'validation_error',
                'errors': serializer.errors
            }, status=status.HTTP_400_BAD_REQUEST)

        course = catalog.create_course(serializer.validated_data, actor)
    except ApplicationError as e:
        return error_response(e)

    return Response({
        'success': True,
        'message': 'Course created successfully',
        'data': CourseSerializer(course).data
    }, status=status.HTTP_201_CREATED)


@api_view(['GET', 'DELETE'])
@permission_classes([IsAuthenticated])
def course_detail(request, course_id):
    """
    GET: Course details
    DELETE: Remove the course and its applications (admin only)
    """
    try:
        if request.method == 'GET':
            course = catalog.get_course(course_id)
            return Response({
                'success': True,
                'data': CourseSerializer(course).data
            })

        actor = Actor.from_user(request.user)
        removed = catalog.delete_course(course_id, actor)
    except ApplicationError as e:
        return error_response(e)

    return Response({
        'success': True,
        'message': 'Course deleted',
        'data': {
            'id': course_id,
            'applications_removed': removed
        }
    })
