"""
Learner-facing callback paths: starting an exam, importing attempts and
coming back from the remote exam.

None of them ever answers with a raw error status; failures are shown as a
notice on the page. Only forged or used up links end in the expired page.
"""

import logging
from urllib.parse import urlencode

from edx_django_utils.monitoring import set_custom_attribute

from django.contrib.auth.decorators import login_required
from django.http import HttpResponseRedirect
from django.shortcuts import render
from django.utils.translation import gettext as _
from django.views.decorators.http import require_GET

from edx_external_exams import constants
from edx_external_exams.api import end_exam_attempt, import_external_attempts, start_exam_attempt
from edx_external_exams.exceptions import (
    ExternalExamBaseException,
    ImportNoResults,
    InvalidAttemptKey,
    InvalidAttemptParticipant,
    InvalidCallbackRequest,
    NoSuchAttempt,
    StartTokenInvalid
)
from edx_external_exams.models import ExternalExam, ExternalExamAttempt
from edx_external_exams.serializers import ExternalExamAttemptSerializer
from edx_external_exams.signals import exam_return_received
from edx_external_exams.statuses import ExternalExamAttemptStatus
from edx_external_exams.utils import get_exam_url, verify_link_token

log = logging.getLogger(__name__)

PARAM_SHOW_RESULTS = 'be-showResults'


@require_GET
def exam_return_callback(request):
    """
    The remote service sends the learner here after the exam. Ends the
    attempt if it is still started and sends the learner to the exam unit.

    IMPORTANT: This is an unauthenticated endpoint, so be VERY CAREFUL about extending
    this endpoint
    """
    params = request.GET
    exam_id = params.get(constants.PARAM_EXAM_ID)
    user_id = params.get(constants.PARAM_USER_ID)
    attempt_id = params.get(constants.PARAM_ATTEMPT_ID)
    set_custom_attribute('external_exams_attempt_id', attempt_id)

    try:
        attempt = _get_returning_attempt(params, exam_id, user_id, attempt_id)
        exam_return_received.send(
            sender=None,
            attempt=ExternalExamAttemptSerializer(attempt).data,
            exam_id=attempt.exam_id,
            user_id=attempt.user_id,
            params=params.dict(),
        )
        if attempt.status == ExternalExamAttemptStatus.started:
            end_exam_attempt(attempt.exam_id, attempt.user_id, attempt.attempt_id)
    except ExternalExamBaseException as error:
        return _render_notice(request, error)

    exam = attempt.exam
    exam_url = get_exam_url(exam.course_id, exam.content_id)
    return HttpResponseRedirect(
        exam_url + '?' + urlencode({constants.PARAM_ATTEMPT_ID: attempt.attempt_id, PARAM_SHOW_RESULTS: 1})
    )


@login_required
@require_GET
def start_exam_callback(request):
    """
    Starts a new attempt for the logged in learner and sends them to the remote exam
    """
    exam_id = request.GET.get(constants.PARAM_EXAM_ID)
    try:
        verify_link_token(
            request.GET.get(constants.PARAM_TOKEN), exam_id, request.user.id, constants.START_TOKEN_SALT
        )
    except StartTokenInvalid as error:
        return _render_expired(request, error)

    try:
        exam_url = start_exam_attempt(exam_id, request.user.id)
    except ExternalExamBaseException as error:
        return _render_notice(request, error)
    return HttpResponseRedirect(exam_url)


@login_required
@require_GET
def import_attempts_callback(request):
    """
    Imports the attempts the logged in learner took directly on the remote
    service and sends them back to the exam unit
    """
    exam_id = request.GET.get(constants.PARAM_EXAM_ID)
    try:
        verify_link_token(
            request.GET.get(constants.PARAM_TOKEN), exam_id, request.user.id, constants.IMPORT_TOKEN_SALT
        )
    except StartTokenInvalid as error:
        return _render_expired(request, error)

    exam = ExternalExam.get_exam_by_id(exam_id)
    if exam is None or not request.user.has_perm('edx_external_exams.can_import_attempts', exam):
        return _render_expired(request, StartTokenInvalid(f'user_id={request.user.id} may not import'))

    try:
        import_external_attempts(exam.id, request.user.id)
    except ExternalExamBaseException as error:
        return _render_notice(request, error)

    exam_url = get_exam_url(exam.course_id, exam.content_id)
    return HttpResponseRedirect(exam_url + '?' + urlencode({PARAM_SHOW_RESULTS: 1}))


def _get_returning_attempt(params, exam_id, user_id, attempt_id):
    if not (exam_id and user_id and attempt_id and params.get(constants.PARAM_KEY)):
        raise InvalidCallbackRequest('Return is missing exam, user, attempt or key.')

    attempt = ExternalExamAttempt.objects.get_exam_attempt(user_id, exam_id, attempt_id)
    if attempt is None:
        raise NoSuchAttempt(f'Could not locate attempt_id={attempt_id} of exam_id={exam_id}')

    if not attempt.is_key_valid(params.get(constants.PARAM_KEY)):
        raise InvalidAttemptKey(f'Invalid key for attempt_id={attempt_id}')

    if params.get(constants.PARAM_RETURN_PARTICIPANT) != attempt.participant_id:
        raise InvalidAttemptParticipant(f'Participant does not match attempt_id={attempt_id}')
    return attempt


def _render_notice(request, error):
    """
    Shows a generic message, with a detail only for conditions the learner can act on
    """
    log.log(error.log_level, 'Showing notice for %s: %s', error.__class__.__name__, error)
    detail = None
    if isinstance(error, (InvalidCallbackRequest, NoSuchAttempt, InvalidAttemptKey, InvalidAttemptParticipant)):
        detail = _('The exam attempt could not be found.')
    elif isinstance(error, ImportNoResults):
        detail = _('There are no results to import.')
    elif error.http_status == 403:
        detail = _('You can not start this exam right now.')
    return render(request, 'external_exams/notice.html', {
        'message': _('Something went wrong.'),
        'detail': detail,
        'context': error.context,
    })


def _render_expired(request, error):
    log.debug('Rejected learner link: %s', error)
    return render(request, 'external_exams/expired.html', {
        'message': _('The link you followed has expired.'),
    }, status=error.http_status)
