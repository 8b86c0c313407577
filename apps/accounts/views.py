# apps/accounts/views.py
import logging

from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated, AllowAny
from rest_framework.response import Response
from rest_framework import status
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.tokens import RefreshToken

from apps.applications.exceptions import ApplicationError, error_response
from .models import User
from .profiles import get_profile, update_profile
from .serializers import RegisterSerializer, UserProfileSerializer, ProfileUpdateSerializer

log = logging.getLogger(__name__)


def issue_tokens(user):
    refresh = RefreshToken.for_user(user)
    refresh['role'] = 'admin' if user.is_admin else user.role
    return {
        'refresh': str(refresh),
        'access': str(refresh.access_token),
    }


@api_view(['POST'])
@permission_classes([AllowAny])
def register_view(request):
    """Create a student account and sign it in"""
    serializer = RegisterSerializer(data=request.data)

    if not serializer.is_valid():
        return Response({
            'success': False,
            'error': 'Validation failed',
            'code': 'validation_error',
            'errors': serializer.errors
        }, status=status.HTTP_400_BAD_REQUEST)

    user = serializer.save()
    log.info("Registered student account %s", user.pk)

    return Response({
        'success': True,
        'data': {
            'user': UserProfileSerializer(user).data,
            'tokens': issue_tokens(user)
        }
    }, status=status.HTTP_201_CREATED)


@api_view(['POST'])
@permission_classes([AllowAny])
def login_view(request):
    email_or_username = request.data.get('email_or_username') or request.data.get('email')
    password = request.data.get('password')

    if not email_or_username or not password:
        return Response({
            'success': False,
            'error': 'Email/username and password are required',
            'code': 'validation_error'
        }, status=status.HTTP_400_BAD_REQUEST)

    try:
        # Find user by email or username
        if '@' in email_or_username:
            user = User.objects.get(email__iexact=email_or_username)
        else:
            user = User.objects.get(username=email_or_username)

        if not user.is_active or not user.check_password(password):
            raise User.DoesNotExist

    except User.DoesNotExist:
        return Response({
            'success': False,
            'error': 'Invalid username or password',
            'code': 'unauthenticated'
        }, status=status.HTTP_401_UNAUTHORIZED)

    return Response({
        'success': True,
        'data': {
            'user': UserProfileSerializer(user).data,
            'tokens': issue_tokens(user)
        }
    }, status=status.HTTP_200_OK)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def logout_view(request):
    refresh_token = request.data.get('refresh_token')
    if refresh_token:
        try:
            RefreshToken(refresh_token).blacklist()
        except TokenError:
            return Response({
                'success': False,
                'error': 'Invalid token',
                'code': 'validation_error'
            }, status=status.HTTP_400_BAD_REQUEST)

    return Response({
        'success': True,
        'message': 'Logged out successfully'
    }, status=status.HTTP_200_OK)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def current_user_view(request):
    """Get current authenticated user"""
    return Response({
        'success': True,
        'data': UserProfileSerializer(request.user).data
    })


@api_view(['GET', 'PUT'])
@permission_classes([IsAuthenticated])
def profile_view(request):
    """
    GET: the caller's profile
    PUT: update profile fields; ``profile_completed`` is recomputed
    """
    try:
        if request.method == 'GET':
            user = get_profile(request.user.pk)
            return Response({
                'success': True,
                'data': UserProfileSerializer(user).data
            })

        serializer = ProfileUpdateSerializer(data=request.data)
        if not serializer.is_valid():
            return Response({
                'success': False,
                'error': 'Validation failed',
                'code': 'validation_error',
                'errors': serializer.errors
            }, status=status.HTTP_400_BAD_REQUEST)

        user = update_profile(request.user.pk, serializer.validated_data)
    except ApplicationError as e:
        return error_response(e)

    return Response({
        'success': True,
        'message': 'Profile updated successfully!',
        'data': UserProfileSerializer(user).data
    })
