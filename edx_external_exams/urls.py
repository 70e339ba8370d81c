"""
URL mappings for edX External Exams.
"""

from django.urls import path

from edx_external_exams import callbacks, views

app_name = 'edx_external_exams'

urlpatterns = [
    path('edx_external_exams/v1/external_exam/<int:exam_id>/attempts',
         views.ExternalExamAttemptCollection.as_view(),
         name='external_exams.attempts'
         ),
    path('edx_external_exams/v1/external_exam/<int:exam_id>/attempt/<str:attempt_id>/access_url',
         views.ExternalExamAttemptAccessUrl.as_view(),
         name='external_exams.attempt.access_url'
         ),
    # Learner-facing links
    path('edx_external_exams/external_exam/start', callbacks.start_exam_callback,
         name='external_exams.start'
         ),
    path('edx_external_exams/external_exam/import', callbacks.import_attempts_callback,
         name='external_exams.import'
         ),
    path('edx_external_exams/external_exam/return', callbacks.exam_return_callback,
         name='external_exams.return'
         ),
    # Unauthenticated callbacks from the remote exam service, authorized
    # by the attempt's secret key
    path('edx_external_exams/external_exam/callback', views.ExamEventCallback.as_view(),
         name='anonymous.external_exams.callback'
         ),
]
