"""
Helpers for the HTTP APIs
"""

import logging
from datetime import datetime
from urllib.parse import urlencode

import pytz
from edx_rest_framework_extensions.auth.jwt.authentication import JwtAuthentication
from eventtracking import tracker
from opaque_keys import InvalidKeyError
from opaque_keys.edx.keys import CourseKey
from rest_framework.authentication import SessionAuthentication
from rest_framework.permissions import IsAuthenticated
from rest_framework.views import APIView

from django.conf import settings
from django.core import signing
from django.core.cache import cache
from django.urls import NoReverseMatch, reverse
from django.utils.crypto import get_random_string

from edx_external_exams import constants
from edx_external_exams.exceptions import StartTokenInvalid

log = logging.getLogger(__name__)


class AuthenticatedAPIView(APIView):
    """
    Authenticate APi View.
    """
    authentication_classes = (SessionAuthentication, JwtAuthentication)
    permission_classes = (IsAuthenticated,)


def get_lms_root_url():
    """
    Returns the root url the remote service can reach the LMS at
    """
    return getattr(settings, 'LMS_ROOT_URL', 'http://localhost:8000').rstrip('/')


def _absolute_url(url_name, params):
    return get_lms_root_url() + reverse(url_name) + '?' + urlencode(params)


def get_callback_url(attempt):
    """
    The url the remote service notifies about the attempt. It carries no
    token since it has to stay valid as long as the booking does.
    """
    return _absolute_url('edx_external_exams:anonymous.external_exams.callback', {
        constants.PARAM_EXAM_ID: attempt.exam_id,
        constants.PARAM_USER_ID: attempt.user_id,
        constants.PARAM_ATTEMPT_ID: attempt.attempt_id,
        constants.PARAM_KEY: attempt.secret_key,
    })


def get_return_url(attempt):
    """
    The url the remote service sends the learner back to after the exam
    """
    return _absolute_url('edx_external_exams:external_exams.return', {
        constants.PARAM_EXAM_ID: attempt.exam_id,
        constants.PARAM_USER_ID: attempt.user_id,
        constants.PARAM_ATTEMPT_ID: attempt.attempt_id,
        constants.PARAM_KEY: attempt.secret_key,
    })


def get_start_url(exam_id, user_id):
    """
    A learner-facing link starting a new attempt, valid once and for
    START_TOKEN_MAX_AGE seconds
    """
    return reverse('edx_external_exams:external_exams.start') + '?' + urlencode({
        constants.PARAM_EXAM_ID: exam_id,
        constants.PARAM_TOKEN: make_link_token(exam_id, user_id, constants.START_TOKEN_SALT),
    })


def get_import_url(exam_id, user_id):
    """
    A learner-facing link importing the attempts the learner took directly
    on the remote service
    """
    return reverse('edx_external_exams:external_exams.import') + '?' + urlencode({
        constants.PARAM_EXAM_ID: exam_id,
        constants.PARAM_TOKEN: make_link_token(exam_id, user_id, constants.IMPORT_TOKEN_SALT),
    })


def make_link_token(exam_id, user_id, salt):
    """
    Signs exam, learner and a random nonce
    """
    return signing.dumps(
        {'exam_id': int(exam_id), 'user_id': int(user_id), 'nonce': get_random_string(16)},
        salt=salt,
    )


def verify_link_token(token, exam_id, user_id, salt, max_age=None):
    """
    Checks a token made by make_link_token and uses it up.
    Raises StartTokenInvalid if it is forged, expired, for someone else or already used.
    """
    max_age = max_age or constants.START_TOKEN_MAX_AGE
    try:
        payload = signing.loads(token or '', salt=salt, max_age=max_age)
    except signing.BadSignature as error:
        raise StartTokenInvalid('The link you followed has expired.') from error

    if str(payload.get('exam_id')) != str(exam_id) or str(payload.get('user_id')) != str(user_id):
        raise StartTokenInvalid('The link you followed has expired.', exam_id=exam_id, user_id=user_id)

    if not cache.add(f'edx_external_exams.token.{payload["nonce"]}', True, max_age):
        raise StartTokenInvalid('The link you followed has expired.', exam_id=exam_id, user_id=user_id)
    return payload


def get_exam_url(course_id, content_id):
    """
    Returns the url of the courseware unit holding the exam
    """
    try:
        return reverse('jump_to', args=[course_id, content_id])
    except NoReverseMatch:
        log.exception("BLOCKING ERROR: Can't find course info url for course_id=%s", course_id)
        return ''


def emit_event(exam, event_short_name, attempt=None, override_data=None):
    """
    Helper method to emit an analytics event
    """

    # establish baseline schema for event 'context'
    context = {
        'course_id': exam['course_id']
    }

    # establish baseline schema for event 'data'
    data = {
        'exam_id': exam['id'],
        'exam_content_id': exam['content_id'],
        'exam_name': exam['exam_name'],
        'exam_credentials_id': exam['credentials_id'],
        'exam_is_active': exam['is_active'],
    }

    if attempt:
        # how far into the attempt the event happened
        attempt_event_elapsed_time_secs = (
            (datetime.now(pytz.UTC) - attempt['started_at']).total_seconds() if attempt['started_at'] else
            None
        )

        data.update({
            'attempt_id': attempt['attempt_id'],
            'attempt_user_id': attempt['user']['id'],
            'attempt_started_at': attempt['started_at'],
            'attempt_completed_at': attempt['completed_at'],
            'attempt_status': attempt['status'],
            'attempt_booking_id': attempt['booking_id'],
            'attempt_attendance_id': attempt['attendance_id'],
            'attempt_event_elapsed_time_secs': attempt_event_elapsed_time_secs,
        })
        name = '.'.join(['edx', 'external_exam', 'attempt', event_short_name])
    else:
        name = '.'.join(['edx', 'external_exam', event_short_name])

    # allow caller to override event data
    if override_data:
        data.update(override_data)

    _emit_event(name, context, data)


def _emit_event(name, context, data):
    """
    Do the actual integration into the event-tracker
    """

    try:
        if context:
            # try to parse out the org_id from the course_id
            if 'course_id' in context:
                try:
                    course_key = CourseKey.from_string(context['course_id'])
                    context['org_id'] = course_key.org
                except InvalidKeyError:
                    # leave org_id blank
                    pass

            with tracker.get_tracker().context(name, context):
                tracker.emit(name, data)
        else:
            # if None is passed in then we don't construct the 'with' context stack
            tracker.emit(name, data)
    except KeyError:
        # This happens when a default tracker has not been registered by the host application
        # aka LMS. This is normal when running unit tests in isolation.
        log.warning(
            'Analytics tracker not properly configured. '
            'If this message appears in a production environment, please investigate'
        )
