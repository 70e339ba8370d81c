"""
Decides whether a learner may start (or import) an attempt of an external exam.

The checks run in a fixed order and the first one failing decides.
Prerequisites, retake limits and the final accessibility check are owned
by the host LMS and reached through the ``lms`` runtime service; when no
such service is registered they pass.
"""

import logging
from datetime import datetime

import pytz

from django.contrib.auth import get_user_model

from edx_external_exams.models import ExternalExamAttempt
from edx_external_exams.runtime import get_runtime_service
from edx_external_exams.statuses import ExternalExamAttemptStatus

log = logging.getLogger(__name__)

USER_MODEL = get_user_model()

NO_SUCH_USER = 'no_such_user'
PENDING_RESULTS = 'pending_results'
ATTEMPT_RUNNING = 'attempt_running'
MISSING_PREREQUISITES = 'missing_prerequisites'
RETAKES_EXHAUSTED = 'retakes_exhausted'
NOT_ACCESSIBLE = 'not_accessible'


def get_start_denial_reason(exam, user_id, check_running=True):
    """
    Returns why the learner may not start an attempt of the exam,
    None if starting is allowed.
    """
    if not user_id or not USER_MODEL.objects.filter(id=user_id).exists():
        return NO_SUCH_USER

    attempts = ExternalExamAttempt.objects.get_user_attempts_by_exam_id(user_id, exam.id)

    if attempts.filter(status=ExternalExamAttemptStatus.pending_results).exists():
        return PENDING_RESULTS

    if check_running:
        latest_started = attempts.filter(status=ExternalExamAttemptStatus.started).last()
        if latest_started and latest_started.is_running(datetime.now(pytz.UTC)):
            return ATTEMPT_RUNNING

    lms_service = get_runtime_service('lms')

    if lms_service and lms_service.get_missing_prerequisites(user_id, exam):
        return MISSING_PREREQUISITES

    if not is_retake_allowed(exam, user_id, attempt_count=attempts.count()):
        return RETAKES_EXHAUSTED

    if lms_service and not lms_service.is_exam_accessible(user_id, exam):
        return NOT_ACCESSIBLE

    return None


def can_start_exam(exam, user_id, check_running=True):
    """
    Whether the learner may start a new attempt of the exam
    """
    reason = get_start_denial_reason(exam, user_id, check_running=check_running)
    if reason:
        log.debug(
            'user_id=%(user_id)s may not start exam_id=%(exam_id)s: %(reason)s',
            {'user_id': user_id, 'exam_id': exam.id, 'reason': reason}
        )
    return reason is None


def is_retake_allowed(exam, user_id, attempt_count=None):
    """
    The first attempt is the original take, every further one a retake.
    Returns whether one more attempt stays within the exam's max repeats.
    """
    lms_service = get_runtime_service('lms')
    max_repeats = lms_service.get_max_repeats(exam) if lms_service else None
    if max_repeats is None:
        # unrestricted
        return True

    if attempt_count is None:
        attempt_count = ExternalExamAttempt.objects.get_user_attempts_by_exam_id(user_id, exam.id).count()
    return attempt_count - 1 < max_repeats
