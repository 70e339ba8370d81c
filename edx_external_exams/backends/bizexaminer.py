"""
Gateway to a bizExaminer instance.

All functions are POSTed form encoded to https://{instance}/api/exmservice,
authenticated with the owner and organisation keys.
"""

import logging
import uuid
from datetime import datetime, timedelta

import pytz
import requests
from django.utils.crypto import get_random_string

from edx_external_exams import constants
from edx_external_exams.backends.backend import RemoteGateway
from edx_external_exams.backends.result import JSON_PARSING_ERROR, ApiResult, Booking, ParticipantResult
from edx_external_exams.exceptions import (
    RemoteBadRequest,
    RemoteGatewayError,
    RemoteNotAuthorized,
    RemoteNotFound,
    RemoteServerError,
    RemoteTransportError
)

log = logging.getLogger(__name__)

ACCEPT_HEADER = 'application/vnd.bizexaminer.exmservice-v1+json'
USER_AGENT = 'OpenedX/edx-external-exams'
DATE_FORMAT = '%Y-%m-%dT%H:%M:%S%z'

PARTICIPANT_SEARCH_FIELDS = ('participantID', 'email', 'firstName', 'lastName')


class BizExaminerGateway(RemoteGateway):
    """
    Talks to the exmservice API of one bizExaminer instance
    """
    verbose_name = 'bizExaminer'
    api_path = '/api/exmservice'

    def __init__(self, instance=None, owner_key=None, organisation_key=None, timeout=None, **kwargs):
        """
        instance: host name of the bizExaminer instance
        owner_key, organisation_key: API keys of the instance
        """
        super().__init__(**kwargs)
        self.instance = instance
        self.owner_key = owner_key
        self.organisation_key = organisation_key
        self.timeout = timeout or constants.CLIENT_TIMEOUT
        self.session = requests.Session()
        self.session.headers.update({
            'Accept': ACCEPT_HEADER,
            'User-Agent': USER_AGENT,
        })

    @property
    def api_url(self):
        "Returns the exmservice url"
        return 'https://' + (self.instance or '').strip('/') + self.api_path

    def book_exam(self, product_part_id, content_revision_id, participant_id, return_url, callback_url,
                  remote_proctor=None, remote_proctor_options=None, ui_language=None,
                  valid_from=None, valid_to=None):
        valid_from = valid_from or datetime.now(pytz.UTC)
        valid_to = valid_to or valid_from + timedelta(hours=constants.BOOKING_VALIDITY_HOURS)

        data = {
            'productPartsId': product_part_id,
            'participantID': participant_id,
            'redirectAfterFinishUrl': return_url,
            'callBackUrl': callback_url,
            'contentsRevisionsId': content_revision_id,
            'validFrom': valid_from.strftime(DATE_FORMAT),
            'validTo': valid_to.strftime(DATE_FORMAT),
            'timezone': 'UTC',
            'attendanceCount': 1,
            # the participant never logs in with these, bookings just require them
            'username': f'edxee-{uuid.uuid4().hex[:13]}',
            'password': get_random_string(24),
            'returnWithAccessUrls': 1,
            'uiLanguage': ui_language or constants.DEFAULT_UI_LANGUAGE,
        }
        if remote_proctor:
            data['remoteProctoringEnvironment'] = remote_proctor
            for key, value in (remote_proctor_options or {}).items():
                data[f'remoteProctoringOptions[{key}]'] = value

        result = self._call('createBooking', data)
        return Booking.from_payload(result.response)

    def get_examination_access_url(self, booking_id, ui_language=None):
        result = self._call('getExaminationAccessUrl', {
            'bookingsId': booking_id,
            'directExamAccess': 1,
            'uiLanguage': ui_language or constants.DEFAULT_UI_LANGUAGE,
        })
        return (result.response or {}).get('url')

    def create_participant(self, participant_data):
        if 'firstName' not in participant_data or 'lastName' not in participant_data:
            raise RemoteBadRequest('firstName and lastName are required for participants')
        result = self._call('createParticipant', participant_data)
        participant_id = (result.response or {}).get('participantID')
        return str(participant_id) if participant_id else None

    def check_participant(self, search_data):
        search = {key: value for (key, value) in search_data.items() if key in PARTICIPANT_SEARCH_FIELDS}
        if 'id' in search_data:
            search['participantID'] = search_data['id']
        result = self._call('checkParticipant', search)
        participants = result.response or []
        if participants:
            participant_id = participants[0].get('participantID')
            return str(participant_id) if participant_id else None
        return None

    def get_participant_overview(self, participant_id, booking_id=None):
        data = {'participantID': participant_id}
        if booking_id:
            data['exmBookingsId'] = booking_id
        result = self._call('getParticipantOverviewWithDetailsAndContent', data)
        return [ParticipantResult.from_payload(entry) for entry in (result.response or [])]

    def test_credentials(self):
        try:
            self._call('getProductParts')
        except RemoteGatewayError:
            return False
        return True

    def _call(self, function, data=None):
        """
        Makes the call and returns the ApiResult, raises a RemoteGatewayError
        for anything but a successful answer
        """
        body = dict(data or {})
        body.update({
            'function': function,
            'key_owner': self.owner_key,
            'key_organisation': self.organisation_key,
        })
        log.debug('Calling function=%(function)s at %(url)s', {'function': function, 'url': self.api_url})
        try:
            response = self.session.post(self.api_url, data=body, timeout=self.timeout)
        except requests.RequestException as exc:
            log.exception(
                'Could not reach credentials_id=%(credentials_id)s for function=%(function)s',
                {'credentials_id': self.credentials_id, 'function': function}
            )
            raise RemoteTransportError(str(exc), function=function) from exc

        result = ApiResult(function, response.status_code, response.text, response.headers)
        if not result.is_ok:
            error = self._make_error(result)
            log.error(
                ('Remote function=%(function)s failed with status_code=%(status_code)s '
                 'error_code=%(error_code)s: %(message)s'),
                {
                    'function': function,
                    'status_code': result.status_code,
                    'error_code': result.error_code,
                    'message': str(error),
                }
            )
            raise error
        return result

    @staticmethod
    def _make_error(result):
        """
        Maps an unsuccessful ApiResult onto the matching exception
        """
        message = result.error_message
        if result.error_code == 'keys_error':
            return RemoteNotAuthorized(message or 'The API keys are invalid.', result=result)
        if result.error_code == 'inputdata_error':
            return RemoteBadRequest(message or 'The data sent was invalid.', result=result)
        if result.error_code == JSON_PARSING_ERROR:
            return RemoteServerError(message or 'The service returned an invalid value.', result=result)

        if result.status_code == ApiResult.STATUS_UNAUTHORIZED:
            return RemoteNotAuthorized(message or 'The API keys are invalid.', result=result)
        if result.status_code == ApiResult.STATUS_NOT_FOUND:
            return RemoteNotFound(message or 'The service could not be found at the instance.', result=result)
        if result.status_code == ApiResult.STATUS_BAD_REQUEST:
            return RemoteBadRequest(message or 'The service could not handle the request.', result=result)
        return RemoteServerError(message or 'The service could not handle the request.', result=result)
