# apps/accounts/serializers.py
from rest_framework import serializers
from django.contrib.auth.password_validation import validate_password
from django.core.exceptions import ValidationError
from .models import User
from .profiles import PROFILE_FIELDS


class RegisterSerializer(serializers.Serializer):
    """Serializer for student self-registration"""

    name = serializers.CharField(max_length=300)
    email = serializers.EmailField()
    password = serializers.CharField(style={'input_type': 'password'}, write_only=True)

    def validate_email(self, value):
        value = value.lower()
        if User.objects.filter(email__iexact=value).exists():
            raise serializers.ValidationError('A user with this email already exists.')
        return value

    def validate_name(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError('Name is required.')
        return value

    def validate(self, attrs):
        try:
            validate_password(attrs['password'])
        except ValidationError as e:
            raise serializers.ValidationError({'password': e.messages})
        return attrs

    def create(self, validated_data):
        first_name, _, last_name = validated_data['name'].partition(' ')
        return User.objects.create_user(
            username=validated_data['email'],
            email=validated_data['email'],
            password=validated_data['password'],
            first_name=first_name,
            last_name=last_name.strip(),
            role='student',
        )


class UserProfileSerializer(serializers.ModelSerializer):
    """Serializer for user profile information"""

    full_name = serializers.CharField(read_only=True)

    class Meta:
        model = User
        fields = [
            'id', 'username', 'email', 'first_name', 'last_name', 'full_name', 'role',
            'phone', 'date_of_birth', 'previous_education',
            'street', 'city', 'state', 'zip_code', 'country',
            'emergency_contact_name', 'emergency_contact_relationship', 'emergency_contact_phone',
            'profile_completed', 'date_joined',
        ]
        read_only_fields = ['id', 'username', 'email', 'role', 'profile_completed', 'date_joined']


class ProfileUpdateSerializer(serializers.Serializer):
    """Validated input for ``PUT /users/profile/``; unknown keys are rejected"""

    first_name = serializers.CharField(max_length=150, required=False, allow_blank=True)
    last_name = serializers.CharField(max_length=150, required=False, allow_blank=True)
    phone = serializers.CharField(max_length=20, required=False, allow_blank=True)
    date_of_birth = serializers.DateField(required=False, allow_null=True)
    previous_education = serializers.CharField(max_length=255, required=False, allow_blank=True)
    street = serializers.CharField(max_length=255, required=False, allow_blank=True)
    city = serializers.CharField(max_length=100, required=False, allow_blank=True)
    state = serializers.CharField(max_length=100, required=False, allow_blank=True)
    zip_code = serializers.CharField(max_length=20, required=False, allow_blank=True)
    country = serializers.CharField(max_length=100, required=False, allow_blank=True)
    emergency_contact_name = serializers.CharField(max_length=200, required=False, allow_blank=True)
    emergency_contact_relationship = serializers.CharField(max_length=50, required=False, allow_blank=True)
    emergency_contact_phone = serializers.CharField(max_length=20, required=False, allow_blank=True)

    def validate(self, attrs):
        unknown = set(self.initial_data) - set(PROFILE_FIELDS)
        if unknown:
            raise serializers.ValidationError({
                field: 'Unknown field.' for field in sorted(unknown)
            })
        return attrs
