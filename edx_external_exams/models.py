"""
Data models for the external exams subsystem
"""

# pylint: disable=model-missing-unicode

from datetime import datetime

import pytz
from model_utils import FieldTracker
from model_utils.models import TimeStampedModel
from simple_history.models import HistoricalRecords

from django.contrib.auth import get_user_model
from django.db import models
from django.db.models import Q
from django.db.models.base import ObjectDoesNotExist
from django.utils.crypto import constant_time_compare, get_random_string
from django.utils.translation import gettext_noop

from edx_external_exams.constants import ATTEMPT_KEY_LENGTH, ATTEMPT_KEY_PREFIX
from edx_external_exams.exceptions import IllegalStatusTransition
from edx_external_exams.statuses import ExternalExamAttemptStatus

USER_MODEL = get_user_model()


class ExternalExam(TimeStampedModel):
    """
    An exam whose content, proctoring and grading live on the external
    exam service.

    .. no_pii:
    """

    course_id = models.CharField(max_length=255, db_index=True)

    # This will be the pointer to the id of the piece
    # of course_ware which is the exam.
    content_id = models.CharField(max_length=255, db_index=True)

    exam_name = models.TextField()

    # key into settings.EXTERNAL_EXAMS_CREDENTIALS
    credentials_id = models.CharField(max_length=255, null=True, blank=True)

    # {product}_{productPart}_{contentRevision}
    exam_module = models.CharField(max_length=255, null=True, blank=True)

    remote_proctor = models.CharField(max_length=255, null=True, blank=True)

    remote_proctor_options = models.JSONField(default=dict, blank=True)

    # store the certificate url the remote service hands out with the results
    use_remote_certificate = models.BooleanField(default=False)

    # allow learners to import attempts they took directly on the remote service
    import_external_attempts = models.BooleanField(default=False)

    # only importing is possible, starting new attempts is disabled
    import_only = models.BooleanField(default=False, verbose_name=gettext_noop("Import Only"))

    is_active = models.BooleanField(default=True)

    history = HistoricalRecords(table_name='external_exams_externalexam_history')

    class Meta:
        """ Meta class for this Django model """
        unique_together = (('course_id', 'content_id'),)
        db_table = 'external_exams_externalexam'

    def __str__(self):
        """ String representation """
        # pragma: no cover
        active = 'active' if self.is_active else 'inactive'
        return f'{self.course_id}: {self.exam_name} ({active})'

    @property
    def is_configured(self):
        """
        Whether credentials and an exam module have been assigned
        """
        return bool(self.is_active and self.credentials_id and self.exam_module)

    def get_exam_module_ids(self):
        """
        Splits the exam module into its product, product part and content revision ids.
        Returns None if the exam module is not well formed.
        """
        if not self.exam_module or self.exam_module.count('_') != 2:
            return None
        product, product_part, content_revision = self.exam_module.split('_')
        if not (product and product_part and content_revision):
            return None
        return {
            'product': product,
            'product_part': product_part,
            'content_revision': content_revision,
        }

    @classmethod
    def get_exam_by_id(cls, exam_id):
        """
        Returns the exam if found else returns None,
        Given exam_id (PK)
        """
        try:
            exam = cls.objects.get(id=exam_id)
        except cls.DoesNotExist:  # pylint: disable=no-member
            exam = None
        return exam

    @classmethod
    def get_exam_by_content_id(cls, course_id, content_id):
        """
        Returns the exam if found else returns None,
        Given course_id and content_id
        """
        try:
            exam = cls.objects.get(course_id=course_id, content_id=content_id)
        except cls.DoesNotExist:  # pylint: disable=no-member
            exam = None
        return exam

    @classmethod
    def get_all_exams_for_course(cls, course_id, active_only=False):
        """
        Returns all exams for a give course
        """
        filtered_query = Q(course_id=course_id)
        if active_only:
            filtered_query = filtered_query & Q(is_active=True)
        return cls.objects.filter(filtered_query)


class ExternalExamAttemptManager(models.Manager):
    """
    Lookups of attempts. Attempts are always owned by a learner, so every
    lookup is scoped to a user.
    """
    def get_exam_attempt(self, user_id, exam_id, attempt_id):
        """
        Returns the attempt with the given (generated) attempt_id if it
        belongs to the exam, else returns None.
        """
        try:
            exam_attempt_obj = self.get(user_id=user_id, attempt_id=attempt_id)
        except (ObjectDoesNotExist, ValueError):  # pylint: disable=no-member
            # ValueError: user_id is not numeric
            return None
        if str(exam_attempt_obj.exam_id) != str(exam_id):
            return None
        return exam_attempt_obj

    def get_exam_attempt_with_status(self, exam_id, user_id, status, first=True):
        """
        Returns the oldest (first=True) or the most recent attempt in the given
        status, None if there is none.
        """
        if not ExternalExamAttemptStatus.is_valid_status(status):
            return None
        queryset = self.get_user_attempts_by_exam_id(user_id, exam_id).filter(status=status)
        return queryset.first() if first else queryset.last()

    def get_user_attempts_by_exam_id(self, user_id, exam_id):
        """
        Returns attempts for a given exam and user, oldest first
        """
        return self.filter(user_id=user_id, exam_id=exam_id).order_by('created', 'id')

    def find_user_attempts(self, user_id, **match):
        """
        Returns the attempts of a user whose fields match all given values,
        e.g. find_user_attempts(user_id, exam_id=1, booking_id='12')
        """
        return self.filter(user_id=user_id, **match).order_by('created', 'id')

    def get_pending_attempts(self, exam_id=None):
        """
        Returns all attempts still waiting for results
        """
        queryset = self.filter(status=ExternalExamAttemptStatus.pending_results)
        if exam_id is not None:
            queryset = queryset.filter(exam_id=exam_id)
        return queryset.order_by('created')

    def build_attempt(self, exam, user_id, content_revision_id, start=True):
        """
        Returns a new, unsaved attempt in status started.

        The attempt_id is derived from the creation time, the exam and the
        content revision. Should another attempt of the same learner already
        use that id, the time component is moved forward until it is free.
        """
        now = datetime.now(pytz.UTC)
        stamp = int(now.timestamp() * 1000000)
        attempt_id = ExternalExamAttempt.make_attempt_id(stamp, exam.id, content_revision_id)
        while self.filter(user_id=user_id, attempt_id=attempt_id).exists():
            stamp += 1
            attempt_id = ExternalExamAttempt.make_attempt_id(stamp, exam.id, content_revision_id)

        return self.model(
            exam=exam,
            user_id=user_id,
            attempt_id=attempt_id,
            secret_key=ExternalExamAttempt.generate_secret_key(),
            content_revision_id=str(content_revision_id),
            status=ExternalExamAttemptStatus.started,
            started_at=now if start else None,
        )


class ExternalExamAttempt(TimeStampedModel):
    """
    One sitting of a learner on an external exam, correlated with the
    remote booking and attendance.

    .. no_pii:
    """
    objects = ExternalExamAttemptManager()

    user = models.ForeignKey(USER_MODEL, db_index=True, on_delete=models.CASCADE)

    exam = models.ForeignKey(ExternalExam, db_index=True, on_delete=models.CASCADE)

    # "{creation time}_{exam id}_{content revision}", used in urls and callbacks
    attempt_id = models.CharField(max_length=255, db_index=True)

    # authorizes callbacks, never regenerated
    secret_key = models.CharField(max_length=64)

    status = models.CharField(max_length=64)

    # remote ids
    participant_id = models.CharField(max_length=255, null=True, blank=True)
    booking_id = models.CharField(max_length=255, null=True, blank=True, db_index=True)
    attendance_id = models.CharField(max_length=255, null=True, blank=True, db_index=True)
    content_revision_id = models.CharField(max_length=255)

    # until when the booking can be used, only meaningful while started
    valid_until = models.DateTimeField(null=True)

    started_at = models.DateTimeField(null=True)

    # completed_at means when the attempt was finished on the remote service
    completed_at = models.DateTimeField(null=True)

    time_spent_seconds = models.IntegerField(null=True)

    # results
    passed = models.BooleanField(null=True)
    points = models.FloatField(null=True)
    total_points = models.FloatField(null=True)
    percentage = models.FloatField(null=True)
    question_count = models.IntegerField(null=True)
    correct_count = models.IntegerField(null=True)
    certificate_url = models.CharField(max_length=2048, null=True, blank=True)
    has_results = models.BooleanField(default=False)

    history = HistoricalRecords(table_name='external_exams_externalexamattempt_history')

    tracker = FieldTracker(fields=['secret_key', 'attempt_id', 'content_revision_id', 'status'])

    class Meta:
        """ Meta class for this Django model """
        db_table = 'external_exams_externalexamattempt'
        verbose_name = 'external exam attempt'
        unique_together = (('user', 'attempt_id'),)

    def __str__(self):
        return f'{self.attempt_id} ({self.status})'

    @staticmethod
    def make_attempt_id(stamp, exam_id, content_revision_id):
        """
        Builds the attempt id from its parts
        """
        return f'{stamp}_{exam_id}_{content_revision_id}'

    @staticmethod
    def generate_secret_key():
        """
        Returns a new random key
        """
        return ATTEMPT_KEY_PREFIX + get_random_string(ATTEMPT_KEY_LENGTH)

    def is_key_valid(self, key):
        """
        Compares the passed key with the attempt's key in constant time
        """
        if not key or not self.secret_key:
            return False
        return constant_time_compare(str(key), self.secret_key)

    def is_running(self, now=None):
        """
        Started and the booking has not expired yet
        """
        now = now or datetime.now(pytz.UTC)
        return (
            self.status == ExternalExamAttemptStatus.started and
            self.valid_until is not None and
            self.valid_until > now
        )

    @property
    def results(self):
        """
        The results of the attempt as a dict, None when there are none yet.
        Older attempts may lack has_results but still carry points.
        """
        if not (self.has_results or (self.points is not None and (self.total_points or 0) > 0)):
            return None
        return {
            'passed': self.passed,
            'points': self.points,
            'total_points': self.total_points,
            'percentage': self.percentage,
            'time_spent_seconds': self.time_spent_seconds,
            'question_count': self.question_count,
            'correct_count': self.correct_count,
            'certificate_url': self.certificate_url,
            'completed_at': self.completed_at,
        }

    def apply_results(self, results):
        """
        Copies a mapped results dict (see api._build_results) onto the attempt
        """
        for field in ('passed', 'points', 'total_points', 'percentage', 'time_spent_seconds',
                      'question_count', 'correct_count', 'certificate_url'):
            setattr(self, field, results.get(field))
        if results.get('completed_at'):
            self.completed_at = results['completed_at']
        self.has_results = True

    def save(self, *args, **kwargs):  # pylint: disable=signature-differs
        """
        Refuses to change the identity of a stored attempt or to move its status backwards
        """
        if self.pk:
            for field in ('secret_key', 'attempt_id', 'content_revision_id'):
                if self.tracker.has_changed(field):
                    raise IllegalStatusTransition(
                        f'{field} of attempt_id={self.tracker.previous("attempt_id")} can not be changed'
                    )
            previous_status = self.tracker.previous('status')
            if not ExternalExamAttemptStatus.is_legal_transition(previous_status, self.status):
                raise IllegalStatusTransition(
                    f'attempt_id={self.attempt_id} can not go from status={previous_status} '
                    f'to status={self.status}'
                )
        super().save(*args, **kwargs)


class ExternalExamParticipant(TimeStampedModel):
    """
    The remote participant id of a learner, per credential set (different
    credentials may belong to different remote organisations).

    .. no_pii:
    """
    user = models.ForeignKey(USER_MODEL, db_index=True, on_delete=models.CASCADE)

    credentials_id = models.CharField(max_length=255)

    participant_id = models.CharField(max_length=255)

    class Meta:
        """ Meta class for this Django model """
        db_table = 'external_exams_externalexamparticipant'
        unique_together = (('user', 'credentials_id'),)

    @classmethod
    def get_participant_id(cls, user_id, credentials_id):
        """
        Returns the stored participant id, None if there is none
        """
        try:
            return cls.objects.get(user_id=user_id, credentials_id=credentials_id).participant_id
        except cls.DoesNotExist:  # pylint: disable=no-member
            return None

    @classmethod
    def set_participant_id(cls, user_id, credentials_id, participant_id):
        """
        Stores the participant id of a learner for a credential set
        """
        cls.objects.update_or_create(
            user_id=user_id,
            credentials_id=credentials_id,
            defaults={'participant_id': participant_id},
        )


class ExternalExamResultsCheck(TimeStampedModel):
    """
    A recurring job of the database scheduler. The job identity is the hook
    plus the (exam_id, user_id, attempt_id) payload.

    .. no_pii:
    """
    hook = models.CharField(max_length=255)

    exam_id = models.IntegerField()

    user_id = models.IntegerField()

    attempt_id = models.CharField(max_length=255)

    interval_seconds = models.IntegerField()

    next_run_at = models.DateTimeField(db_index=True)

    last_run_at = models.DateTimeField(null=True)

    class Meta:
        """ Meta class for this Django model """
        db_table = 'external_exams_externalexamresultscheck'
        unique_together = (('hook', 'exam_id', 'user_id', 'attempt_id'),)

    @property
    def payload(self):
        """
        The arguments the job was scheduled with
        """
        return [self.exam_id, self.user_id, self.attempt_id]
