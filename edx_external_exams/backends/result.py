"""
Typed answers of the remote exam service.

Payloads are decoded once, here, so the lifecycle never reads raw JSON.
"""

import json
from datetime import datetime

import pytz

JSON_PARSING_ERROR = 'json-parsing-error'


class ApiResult:
    """
    The envelope of every remote call: HTTP status, success flag and either
    the response payload or an error code and message.
    """
    STATUS_OK = 200
    STATUS_BAD_REQUEST = 400
    STATUS_UNAUTHORIZED = 401
    STATUS_NOT_FOUND = 404
    STATUS_ERROR = 500

    def __init__(self, function, status_code, body='', headers=None):
        self.function = function
        self.status_code = status_code
        self.headers = dict(headers or {})

        try:
            decoded = json.loads(body) if body else None
        except ValueError:
            decoded = None
        if not isinstance(decoded, dict):
            decoded = {
                'success': False,
                'errorCode': JSON_PARSING_ERROR,
                'errorMessage': 'Error parsing JSON response.',
            }
        self.body = decoded

        self.success = bool(decoded.get('success', False))
        if self.success:
            self.response = decoded.get('response')
            self.error_code = None
            self.error_message = None
            self.error_details = None
        else:
            self.response = None
            self.error_code = decoded.get('errorCode') or ''
            self.error_message = decoded.get('errorMessage') or ''
            self.error_details = decoded.get('errorDetails') or {}

    def __repr__(self):
        return (
            f'<ApiResult function={self.function} status_code={self.status_code} '
            f'success={self.success} error_code={self.error_code!r}>'
        )

    @property
    def is_ok(self):
        """
        200 and success
        """
        return self.status_code == self.STATUS_OK and self.success


class Booking:
    """
    A booked exam
    """
    def __init__(self, booking_id, url):
        self.booking_id = booking_id
        self.url = url

    @classmethod
    def from_payload(cls, payload):
        """
        Decodes the createBooking response
        """
        payload = payload or {}
        return cls(
            booking_id=_str_or_none(payload.get('exmBookingsId')),
            url=payload.get('directAccessExamUrl'),
        )


class ParticipantResult:
    """
    One attendance of a participant as reported by the participant overview
    """
    # pylint: disable=too-many-instance-attributes

    def __init__(self, **kwargs):
        self.booking_id = kwargs.get('booking_id')
        self.attendance_id = kwargs.get('attendance_id')
        self.participant_id = kwargs.get('participant_id')
        self.content_revision_id = kwargs.get('content_revision_id')
        self.workflow_state = kwargs.get('workflow_state')
        self.when_started = kwargs.get('when_started')
        self.when_finished = kwargs.get('when_finished')
        self.time_taken = kwargs.get('time_taken') or 0
        self.result = kwargs.get('result')
        self.passed = bool(kwargs.get('passed'))
        self.achieved_score = kwargs.get('achieved_score')
        self.max_score = kwargs.get('max_score')
        self.cert_download_url = kwargs.get('cert_download_url')
        self.question_count = kwargs.get('question_count') or 0
        self.correct_count = kwargs.get('correct_count') or 0

    def __repr__(self):
        return (
            f'<ParticipantResult booking_id={self.booking_id} attendance_id={self.attendance_id} '
            f'workflow_state={self.workflow_state} result={self.result}>'
        )

    @property
    def has_result(self):
        """
        Whether the attendance has been evaluated
        """
        return self.result is not None

    @property
    def percentage(self):
        """
        The result as a percentage. Falls back to the scores if the result is not numeric.
        """
        try:
            return float(self.result)
        except (TypeError, ValueError):
            pass
        if self.achieved_score is not None and self.max_score:
            return float(self.achieved_score) * 100 / float(self.max_score)
        return 0.0

    @classmethod
    def from_payload(cls, payload):
        """
        Decodes one entry of getParticipantOverviewWithDetailsAndContent
        """
        questions = 0
        correct = 0
        details = payload.get('questionDetails') or {}
        for block in details.get('blocks') or []:
            for question in block.get('questions') or []:
                questions += 1
                if (_number(question.get('points_reached')) or 0) > 0:
                    correct += 1

        result = payload.get('result')
        if result == '':
            result = None
        passed = payload.get('passed')
        if passed is None:
            passed = result
        return cls(
            booking_id=_str_or_none(payload.get('exmBookingsId')),
            attendance_id=_str_or_none(payload.get('crtParticipantAttendancesId')),
            participant_id=_str_or_none(payload.get('participantID')),
            content_revision_id=_str_or_none(payload.get('contentRevisionsId')),
            workflow_state=_int_or_none(payload.get('wflStatesId')),
            when_started=parse_remote_datetime(payload.get('whenStarted')),
            when_finished=parse_remote_datetime(payload.get('whenFinished')),
            time_taken=_int_or_none(payload.get('timeTaken')),
            result=result,
            passed=passed == 'Pass',
            achieved_score=_number(payload.get('achievedScore')),
            max_score=_number(payload.get('maxScore')),
            cert_download_url=payload.get('certDownloadUrl') or None,
            question_count=questions,
            correct_count=correct,
        )


def parse_remote_datetime(value):
    """
    Parses an ISO-8601 date of the remote service. Dates without an offset are UTC.
    """
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(str(value).replace('Z', '+00:00'))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = pytz.UTC.localize(parsed)
    return parsed


def _str_or_none(value):
    if value is None or value == '' or value == 0:
        return None
    return str(value)


def _int_or_none(value):
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _number(value):
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return int(number) if number.is_integer() else number
