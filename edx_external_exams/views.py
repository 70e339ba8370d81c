"""
External Exams HTTP-based API endpoints
"""

import logging

from edx_django_utils.monitoring import set_custom_attribute
from rest_framework import status
from rest_framework.negotiation import BaseContentNegotiation
from rest_framework.parsers import FormParser, JSONParser
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from edx_external_exams import constants
from edx_external_exams.api import (
    end_exam_attempt,
    get_exam_access_url,
    get_exam_by_id,
    get_user_attempts,
    update_exam_results
)
from edx_external_exams.exceptions import (
    ExternalExamBaseException,
    InvalidAttemptKey,
    InvalidCallbackRequest,
    NoSuchAttempt
)
from edx_external_exams.models import ExternalExamAttempt
from edx_external_exams.serializers import ExternalExamAttemptSerializer
from edx_external_exams.signals import exam_callback_received
from edx_external_exams.statuses import CallbackEventType, ExternalExamAttemptStatus
from edx_external_exams.utils import AuthenticatedAPIView

LOG = logging.getLogger("edx_external_exams.views")


def handle_external_exam_exception(exc, name=None):  # pylint: disable=inconsistent-return-statements
    """
    Converts external exam exceptions into standard restframework responses
    """
    if isinstance(exc, ExternalExamBaseException):
        LOG.log(exc.log_level, '%s: %s', name, exc, exc_info=exc.log_level >= logging.ERROR)
        return Response(status=exc.http_status, data={'detail': str(exc)})


class ExternalExamAPIView(AuthenticatedAPIView):
    """
    Overrides AuthenticatedAPIView to handle external exam exceptions
    """
    def handle_exception(self, exc):
        """
        Converts external exam exceptions into standard restframework responses
        """
        resp = handle_external_exam_exception(exc, name=self.__class__.__name__)
        if not resp:
            resp = super().handle_exception(exc)
        return resp


class ExternalExamAttemptCollection(ExternalExamAPIView):
    """
    Endpoint for the attempts of the requesting learner
    /edx_external_exams/v1/external_exam/<exam_id>/attempts

    Supports:
        HTTP GET: Returns all attempts of the learner for the exam, oldest first.

    **Response Values**
        * a list of attempts, without their secret keys

    **Exceptions**
        * HTTP_404_NOT_FOUND if the exam does not exist
    """

    def get(self, request, exam_id):
        """
        HTTP GET Handler
        """
        get_exam_by_id(exam_id)
        return Response(get_user_attempts(exam_id, request.user.id))


class ExternalExamAttemptAccessUrl(ExternalExamAPIView):
    """
    Endpoint to resume a started attempt
    /edx_external_exams/v1/external_exam/<exam_id>/attempt/<attempt_id>/access_url

    Supports:
        HTTP GET: Returns a fresh url to the remote exam, {'url': ...}

    **Exceptions**
        * HTTP_404_NOT_FOUND if the learner has no such attempt
        * HTTP_400_BAD_REQUEST if the attempt is not running anymore
    """

    def get(self, request, exam_id, attempt_id):
        """
        HTTP GET Handler
        """
        url = get_exam_access_url(exam_id, request.user.id, attempt_id)
        return Response({'url': url})


class IgnoreClientContentNegotiation(BaseContentNegotiation):
    """
    This specialized class allows for more tolerance regarding
    what the passed in Content-Type is. This is taken directly
    from the Django REST Framework:

    http://tomchristie.github.io/rest-framework-2-docs/api-guide/content-negotiation
    """
    def select_parser(self, request, parsers):
        """
        Select the first parser in the `.parser_classes` list.
        """
        return parsers[0]

    def select_renderer(self, request, renderers, format_suffix):  # pylint: disable=signature-differs
        """
        Select the first renderer in the `.renderer_classes` list.
        """
        return (renderers[0], renderers[0].media_type)


class ExamEventCallback(APIView):
    """
    This endpoint is called by the remote exam service whenever something
    happens to a booked attempt. It is authorized by the attempt's secret
    key, which is part of the callback url.

    Anything but a 2xx status makes the remote service deliver the event
    again, so events that need no action are acknowledged with 200.

    IMPORTANT: This is an unauthenticated endpoint, so be VERY CAREFUL about extending
    this endpoint
    """
    authentication_classes = ()
    permission_classes = (AllowAny,)
    content_negotiation_class = IgnoreClientContentNegotiation
    # the remote service posts form data
    parser_classes = (FormParser, JSONParser)

    def handle_exception(self, exc):
        """ Helper method for exception handling """
        resp = handle_external_exam_exception(exc, name=self.__class__.__name__)
        if not resp:
            resp = APIView.handle_exception(self, exc)
        return resp

    def get(self, request):
        """
        Get callback handler
        """
        return self._handle_event(request)

    def post(self, request):
        """
        Post callback handler
        """
        return self._handle_event(request)

    def _handle_event(self, request):
        params = request.query_params.dict()
        if hasattr(request.data, 'items'):
            params.update({key: value for (key, value) in request.data.items() if key not in params})

        event_type = params.get(constants.PARAM_EVENT_TYPE)
        exam_id = params.get(constants.PARAM_EXAM_ID)
        user_id = params.get(constants.PARAM_USER_ID)
        attempt_id = params.get(constants.PARAM_ATTEMPT_ID)
        key = params.get(constants.PARAM_KEY)

        set_custom_attribute('external_exams_callback_event', event_type)
        set_custom_attribute('external_exams_attempt_id', attempt_id)
        LOG.debug(
            'Received callback event_type=%(event_type)s for attempt_id=%(attempt_id)s',
            {'event_type': event_type, 'attempt_id': attempt_id}
        )

        if not (event_type and exam_id and user_id and attempt_id and key):
            raise InvalidCallbackRequest('Callback is missing event type, exam, user, attempt or key.')

        attempt = ExternalExamAttempt.objects.get_exam_attempt(user_id, exam_id, attempt_id)
        if attempt is None:
            raise NoSuchAttempt(f'Could not locate attempt_id={attempt_id} of exam_id={exam_id}')

        if not attempt.is_key_valid(key):
            raise InvalidAttemptKey(f'Invalid key for attempt_id={attempt_id}')

        exam_callback_received.send(
            sender=self.__class__,
            attempt=ExternalExamAttemptSerializer(attempt).data,
            exam_id=attempt.exam_id,
            user_id=attempt.user_id,
            params=params,
        )

        if event_type == CallbackEventType.exam_finished:
            if attempt.status == ExternalExamAttemptStatus.started:
                end_exam_attempt(attempt.exam_id, attempt.user_id, attempt.attempt_id)
        elif event_type == CallbackEventType.exam_evaluated:
            # may come on its own, e.g. after a manual evaluation
            update_exam_results(attempt.exam_id, attempt.user_id, attempt.attempt_id)
        else:
            LOG.debug(
                'Nothing to do for event_type=%(event_type)s of attempt_id=%(attempt_id)s',
                {'event_type': event_type, 'attempt_id': attempt_id}
            )

        return Response(status=status.HTTP_200_OK, data={'event_type': event_type})
