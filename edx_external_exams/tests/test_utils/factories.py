from datetime import datetime, timedelta

import pytz
from factory import LazyFunction, Sequence, SubFactory
from factory.django import DjangoModelFactory

from django.contrib.auth.models import User

from edx_external_exams.models import ExternalExam, ExternalExamAttempt, ExternalExamResultsCheck
from edx_external_exams.statuses import ExternalExamAttemptStatus


class UserFactory(DjangoModelFactory):
    class Meta:
        model = User

    username = Sequence(lambda n: 'learner_%d' % n)
    email = Sequence(lambda n: 'learner_%d@example.com' % n)


class ExternalExamFactory(DjangoModelFactory):
    class Meta:
        model = ExternalExam

    course_id = 'a/b/c'
    content_id = Sequence(lambda n: 'block-v1:a+b+c+type@sequential+block@exam_%d' % n)
    exam_name = 'Final Exam'
    credentials_id = 'test'
    exam_module = '11_22_33'
    is_active = True


class ExternalExamAttemptFactory(DjangoModelFactory):
    class Meta:
        model = ExternalExamAttempt

    user = SubFactory(UserFactory)
    exam = SubFactory(ExternalExamFactory)
    attempt_id = Sequence(lambda n: '1700000000%06d_1_33' % n)
    secret_key = LazyFunction(ExternalExamAttempt.generate_secret_key)
    status = ExternalExamAttemptStatus.started
    participant_id = 'p1'
    booking_id = Sequence(lambda n: str(1000 + n))
    content_revision_id = '33'
    started_at = LazyFunction(lambda: datetime.now(pytz.UTC))
    valid_until = LazyFunction(lambda: datetime.now(pytz.UTC) + timedelta(hours=24))


class ExternalExamResultsCheckFactory(DjangoModelFactory):
    class Meta:
        model = ExternalExamResultsCheck

    hook = 'external_exams.check_results'
    exam_id = 1
    user_id = 1
    attempt_id = Sequence(lambda n: '1700000000%06d_1_33' % n)
    interval_seconds = 12 * 60 * 60
    next_run_at = LazyFunction(lambda: datetime.now(pytz.UTC) - timedelta(minutes=1))
