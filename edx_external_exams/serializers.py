"""Defines serializers used by the External Exams API."""

from rest_framework import serializers
from rest_framework.fields import DateTimeField

from django.contrib.auth import get_user_model

from edx_external_exams.models import ExternalExam, ExternalExamAttempt

User = get_user_model()


class ExternalExamSerializer(serializers.ModelSerializer):
    """
    Serializer for the ExternalExam Model.
    """
    id = serializers.IntegerField(required=False)  # pylint: disable=invalid-name
    course_id = serializers.CharField(required=True)
    content_id = serializers.CharField(required=True)
    exam_name = serializers.CharField(required=True)
    credentials_id = serializers.CharField(required=False, allow_null=True, allow_blank=True)
    exam_module = serializers.CharField(required=False, allow_null=True, allow_blank=True)
    remote_proctor = serializers.CharField(required=False, allow_null=True, allow_blank=True)
    remote_proctor_options = serializers.JSONField(required=False)
    use_remote_certificate = serializers.BooleanField(required=False)
    import_external_attempts = serializers.BooleanField(required=False)
    import_only = serializers.BooleanField(required=False)
    is_active = serializers.BooleanField(required=True)

    class Meta:
        """
        Meta Class
        """
        model = ExternalExam

        fields = (
            "id", "course_id", "content_id", "exam_name", "credentials_id", "exam_module",
            "remote_proctor", "remote_proctor_options", "use_remote_certificate",
            "import_external_attempts", "import_only", "is_active"
        )


class UserSerializer(serializers.ModelSerializer):
    """
    Serializer for the User Model.
    """
    id = serializers.IntegerField(required=False)  # pylint: disable=invalid-name
    username = serializers.CharField(required=True)
    email = serializers.CharField(required=True)

    class Meta:
        """
        Meta Class
        """
        model = User

        fields = (
            "id", "username", "email"
        )


class ExternalExamAttemptSerializer(serializers.ModelSerializer):
    """
    Serializer for the ExternalExamAttempt Model.
    The secret key is never serialized.
    """
    exam = ExternalExamSerializer()
    user = UserSerializer()

    # return raw `datetime` objects, receivers of the lifecycle signals compare them
    valid_until = DateTimeField(format=None)
    started_at = DateTimeField(format=None)
    completed_at = DateTimeField(format=None)

    results = serializers.SerializerMethodField()

    class Meta:
        """
        Meta Class
        """
        model = ExternalExamAttempt
        fields = (
            "id", "created", "modified", "user", "exam", "attempt_id", "status",
            "participant_id", "booking_id", "attendance_id", "content_revision_id",
            "valid_until", "started_at", "completed_at", "time_spent_seconds",
            "passed", "points", "total_points", "percentage", "question_count",
            "correct_count", "certificate_url", "has_results", "results"
        )

    def get_results(self, obj):
        """
        The results of the attempt, None while there are none
        """
        return obj.results


class ExternalExamAttemptJSONSafeSerializer(ExternalExamAttemptSerializer):
    """
    Attempt serializer which will return dates as strings.
    """
    valid_until = DateTimeField()
    started_at = DateTimeField()
    completed_at = DateTimeField()

    def get_results(self, obj):
        results = obj.results
        if results and results['completed_at']:
            results['completed_at'] = DateTimeField().to_representation(results['completed_at'])
        return results
