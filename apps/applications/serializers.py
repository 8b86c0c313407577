# apps/applications/serializers.py
from rest_framework import serializers
from .models import Application


class StrictFieldsMixin:
    """Reject payload keys the serializer does not declare."""

    def validate(self, data):
        unknown = set(self.initial_data) - set(self.fields)
        if unknown:
            raise serializers.ValidationError({
                field: 'Unknown field.' for field in sorted(unknown)
            })
        return super().validate(data)


class ApplicationSubmitSerializer(StrictFieldsMixin, serializers.Serializer):
    """Applicant details plus one course or a list of courses"""

    first_name = serializers.CharField(max_length=100)
    last_name = serializers.CharField(max_length=100)
    email = serializers.EmailField()
    phone = serializers.CharField(max_length=20)
    date_of_birth = serializers.DateField()
    previous_education = serializers.CharField(max_length=255)
    desired_course = serializers.CharField(required=False)
    desired_courses = serializers.ListField(
        child=serializers.CharField(),
        required=False,
        allow_empty=False
    )

    def validate(self, data):
        data = super().validate(data)
        has_single = 'desired_course' in data
        has_many = 'desired_courses' in data

        if has_single == has_many:
            raise serializers.ValidationError({
                'desired_course': 'Provide either desired_course or desired_courses'
            })
        return data

    @property
    def snapshot(self):
        return {
            field: value for field, value in self.validated_data.items()
            if field not in ('desired_course', 'desired_courses')
        }


class StatusUpdateSerializer(StrictFieldsMixin, serializers.Serializer):
    status = serializers.ChoiceField(choices=list(Application.DECISION_STATUSES))


class ApplicationSerializer(serializers.ModelSerializer):
    """Read shape of an application, with the owning student populated"""

    student = serializers.SerializerMethodField()
    desired_course_title = serializers.CharField(source='desired_course.title', read_only=True)
    status_display = serializers.CharField(source='get_status_display', read_only=True)

    class Meta:
        model = Application
        fields = [
            'id', 'student', 'first_name', 'last_name', 'email', 'phone',
            'date_of_birth', 'previous_education', 'desired_course',
            'desired_course_title', 'status', 'status_display', 'created_at',
            'reviewed_at'
        ]
        read_only_fields = fields

    def get_student(self, obj):
        return {
            'id': obj.student_id,
            'name': obj.student.full_name,
            'email': obj.student.email,
        }
