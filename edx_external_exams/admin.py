"""
Django Admin pages
"""

from django.contrib import admin, messages
from django.utils.translation import gettext_lazy as _

from edx_external_exams.api import cancel_exam_attempt
from edx_external_exams.exceptions import IllegalStatusTransition, NoSuchAttempt
from edx_external_exams.models import ExternalExam, ExternalExamAttempt


class ExamAttemptFilterByCourseId(admin.SimpleListFilter):
    """
    Quick filter to allow admins to see attempts by "course_id"
    """

    title = _('Course Id')
    parameter_name = 'exam__course_id'

    def lookups(self, request, model_admin):
        """
        List of values to allow admin to select
        """
        lookups = (())
        unique_course_ids = ExternalExamAttempt.objects.values_list(
            'exam__course_id',
            flat=True
        ).distinct()

        if unique_course_ids:
            lookups = [(course_id, prettify_course_id(course_id)) for course_id in unique_course_ids]

        return lookups

    def queryset(self, request, queryset):
        """
        Return the filtered queryset
        """
        if self.value():
            return queryset.filter(exam__course_id=self.value())
        return queryset


class ExternalExamAdmin(admin.ModelAdmin):
    """
    Admin panel for External Exams
    """
    list_display = [
        'exam_name',
        'course_id',
        'credentials_id',
        'exam_module',
        'import_only',
        'is_active',
    ]
    list_filter = ['is_active', 'import_only', 'import_external_attempts']
    search_fields = ['course_id', 'content_id', 'exam_name']


class ExternalExamAttemptAdmin(admin.ModelAdmin):
    """
    Admin panel for External Exam Attempts. Attempts are only changed
    through the lifecycle, so everything is read only.
    """

    readonly_fields = [
        'user',
        'exam',
        'attempt_id',
        'status',
        'participant_id',
        'booking_id',
        'attendance_id',
        'content_revision_id',
        'valid_until',
        'started_at',
        'completed_at',
        'time_spent_seconds',
        'passed',
        'points',
        'total_points',
        'percentage',
        'question_count',
        'correct_count',
        'certificate_url',
        'has_results',
    ]
    exclude = ['secret_key']

    list_display = [
        'username',
        'exam_name',
        'course_id',
        'attempt_id',
        'booking_id',
        'status',
        'modified'
    ]

    search_fields = [
        'user__username',
        'attempt_id',
        'booking_id',
        'attendance_id',
    ]

    list_filter = [
        'status',
        ExamAttemptFilterByCourseId
    ]

    actions = ['cancel_attempts']

    def username(self, obj):
        """ Return user's username of attempt"""
        return obj.user.username

    def exam_name(self, obj):
        """ Return exam_name of attempt"""
        return obj.exam.exam_name

    def course_id(self, obj):
        """ Return course_id of attempt"""
        return obj.exam.course_id

    @admin.action(description=_('Cancel selected attempts'))
    def cancel_attempts(self, request, queryset):
        """
        Cancels the selected attempts which are not completed
        """
        for attempt in queryset:
            try:
                cancel_exam_attempt(attempt.exam_id, attempt.user_id, attempt.attempt_id)
            except (IllegalStatusTransition, NoSuchAttempt) as ex:
                messages.error(request, str(ex))

    def has_add_permission(self, request):
        """Don't allow adds"""
        return False


def prettify_course_id(course_id):
    """
    Prettify the COURSE ID string
    """
    return course_id.replace('+', ' ').replace('/', ' ').replace('course-v1:', '')


admin.site.register(ExternalExam, ExternalExamAdmin)
admin.site.register(ExternalExamAttempt, ExternalExamAttemptAdmin)
