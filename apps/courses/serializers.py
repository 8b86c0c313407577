# apps/courses/serializers.py
from rest_framework import serializers
from .models import Course


class CourseSerializer(serializers.ModelSerializer):
    """Serializer for Course model"""

    tuition = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0, coerce_to_string=False)

    class Meta:
        model = Course
        fields = [
            'id', 'title', 'description', 'duration', 'tuition',
            'instructor', 'start_date', 'end_date', 'created_at'
        ]
        read_only_fields = ['id', 'created_at']

    def validate_title(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError('Please add a course title')
        return value

    def validate(self, data):
        unknown = set(self.initial_data) - set(self.fields)
        if unknown:
            raise serializers.ValidationError({
                field: 'Unknown field.' for field in sorted(unknown)
            })

        start_date = data.get('start_date')
        end_date = data.get('end_date')
        if start_date and end_date and start_date > end_date:
            raise serializers.ValidationError({
                'end_date': 'End date cannot be before the start date.'
            })
        return data
