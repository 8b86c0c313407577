# apps/applications/views.py
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework import status

from apps.accounts.context import Actor
from apps.courses.serializers import CourseSerializer
from . import services
from .exceptions import ApplicationError, error_response
from .serializers import ApplicationSerializer, ApplicationSubmitSerializer, StatusUpdateSerializer


def validation_failed(serializer):
    return Response({
        'success': False,
        'error': 'Validation failed',
        'code': 'validation_error',
        'errors': serializer.errors
    }, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def application_list_create(request):
    """
    GET: All applications for admin review (``?status=`` to filter)
    POST: Submit applications for one or more courses (students)
    """
    try:
        actor = Actor.from_user(request.user)
        if request.method == 'GET':
            return _list_for_admin(request, actor)
        return _submit(request, actor)
    except ApplicationError as e:
        return error_response(e)


def _list_for_admin(request, actor):
    applications = services.list_for_admin(actor, status=request.GET.get('status') or None)

    return Response({
        'success': True,
        'count': len(applications),
        'data': {
            'applications': ApplicationSerializer(applications, many=True).data,
            'statistics': services.status_counts()
        }
    })


def _submit(request, actor):
    # Profile gate comes before payload validation
    services.ensure_can_apply(actor)

    serializer = ApplicationSubmitSerializer(data=request.data)
    if not serializer.is_valid():
        return validation_failed(serializer)

    if 'desired_course' in serializer.validated_data:
        application = services.submit(actor, serializer.snapshot, serializer.validated_data['desired_course'])
        return Response({
            'success': True,
            'message': 'Application submitted successfully',
            'data': ApplicationSerializer(application).data
        }, status=status.HTTP_201_CREATED)

    results = services.submit_many(actor, serializer.snapshot, serializer.validated_data['desired_courses'])

    created = 0
    report = []
    for desired_course, application, error in results:
        if application is not None:
            created += 1
            report.append({
                'desired_course': desired_course,
                'success': True,
                'data': ApplicationSerializer(application).data
            })
        else:
            report.append({
                'desired_course': desired_course,
                'success': False,
                'error': error.message,
                'code': error.code
            })

    if created == len(results):
        response_status = status.HTTP_201_CREATED
    elif created:
        response_status = status.HTTP_207_MULTI_STATUS
    else:
        response_status = status.HTTP_400_BAD_REQUEST

    return Response({
        'success': created > 0,
        'message': f'Submitted {created} of {len(results)} application(s)',
        'data': report
    }, status=response_status)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def my_applications(request):
    """The logged-in student's own applications, any status"""
    try:
        actor = Actor.from_user(request.user)
        actor.require_student()
        applications = services.list_for_student(actor, actor.id)
    except ApplicationError as e:
        return error_response(e)

    return Response({
        'success': True,
        'count': len(applications),
        'data': ApplicationSerializer(applications, many=True).data
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def my_courses(request):
    """Courses the logged-in student has been accepted to"""
    try:
        actor = Actor.from_user(request.user)
        actor.require_student()
        courses = services.get_enrollment(actor, actor.id)
    except ApplicationError as e:
        return error_response(e)

    return Response({
        'success': True,
        'count': len(courses),
        'data': CourseSerializer(courses, many=True).data
    })


@api_view(['GET', 'PUT', 'DELETE'])
@permission_classes([IsAuthenticated])
def application_detail(request, application_id):
    """
    GET: One application (admin, or the owning student)
    PUT: Accept or reject (admin only)
    DELETE: Remove permanently (admin only)
    """
    try:
        actor = Actor.from_user(request.user)

        if request.method == 'GET':
            application = services.get_application(actor, application_id)
            return Response({
                'success': True,
                'data': ApplicationSerializer(application).data
            })

        if request.method == 'DELETE':
            services.delete(actor, application_id)
            return Response({
                'success': True,
                'message': 'Application deleted'
            })

        actor.require_admin()
        serializer = StatusUpdateSerializer(data=request.data)
        if not serializer.is_valid():
            return validation_failed(serializer)

        application = services.update_status(actor, application_id, serializer.validated_data['status'])
    except ApplicationError as e:
        return error_response(e)

    return Response({
        'success': True,
        'message': f'Application status updated to {application.status}',
        'data': ApplicationSerializer(application).data
    })
