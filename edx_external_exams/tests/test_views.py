# pylint: disable=too-many-lines, invalid-name

"""
All tests for the views.py
"""
from urllib.parse import urlencode

import ddt
from mock import MagicMock

from django.test.client import Client
from django.urls import reverse

from edx_external_exams.api import end_exam_attempt, start_exam_attempt
from edx_external_exams.exceptions import RemoteServerError
from edx_external_exams.models import ExternalExamAttempt
from edx_external_exams.signals import exam_callback_received
from edx_external_exams.statuses import ExternalExamAttemptStatus

from .utils import ExternalExamTestCase


class ExternalExamAttemptCollectionTests(ExternalExamTestCase):
    """
    Tests for the ExternalExamAttemptCollection view
    """

    def test_list_attempts(self):
        start_exam_attempt(self.exam_id, self.user_id)
        response = self.client.get(
            reverse('edx_external_exams:external_exams.attempts', kwargs={'exam_id': self.exam_id})
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(response.data), 1)
        self.assertEqual(response.data[0]['status'], ExternalExamAttemptStatus.started)
        self.assertNotIn('secret_key', response.data[0])

    def test_no_attempts(self):
        response = self.client.get(
            reverse('edx_external_exams:external_exams.attempts', kwargs={'exam_id': self.exam_id})
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data, [])

    def test_unknown_exam(self):
        response = self.client.get(
            reverse('edx_external_exams:external_exams.attempts', kwargs={'exam_id': 9999})
        )
        self.assertEqual(response.status_code, 404)

    def test_anonymous(self):
        response = Client().get(
            reverse('edx_external_exams:external_exams.attempts', kwargs={'exam_id': self.exam_id})
        )
        self.assertIn(response.status_code, (401, 403))


class ExternalExamAttemptAccessUrlTests(ExternalExamTestCase):
    """
    Tests for the ExternalExamAttemptAccessUrl view
    """

    def setUp(self):
        super().setUp()
        self.url = start_exam_attempt(self.exam_id, self.user_id)
        self.attempt = ExternalExamAttempt.objects.get(user_id=self.user_id)

    def _get(self, attempt_id):
        return self.client.get(reverse(
            'edx_external_exams:external_exams.attempt.access_url',
            kwargs={'exam_id': self.exam_id, 'attempt_id': attempt_id}
        ))

    def test_access_url(self):
        response = self._get(self.attempt.attempt_id)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data, {'url': self.url})

    def test_ended_attempt(self):
        end_exam_attempt(self.exam_id, self.user_id, self.attempt.attempt_id)
        response = self._get(self.attempt.attempt_id)
        self.assertEqual(response.status_code, 400)

    def test_unknown_attempt(self):
        response = self._get('unknown')
        self.assertEqual(response.status_code, 404)

    def test_remote_error(self):
        self.gateway.errors['get_examination_access_url'] = RemoteServerError('down')
        response = self._get(self.attempt.attempt_id)
        self.assertEqual(response.status_code, 502)


@ddt.ddt
class ExamEventCallbackTests(ExternalExamTestCase):
    """
    Tests for the callbacks of the remote exam service
    """

    def setUp(self):
        super().setUp()
        start_exam_attempt(self.exam_id, self.user_id)
        self.attempt = ExternalExamAttempt.objects.get(user_id=self.user_id)
        self.anonymous = Client()

    def _params(self, **overrides):
        params = {
            'be-examId': self.exam_id,
            'be-userId': self.user_id,
            'be-attempt': self.attempt.attempt_id,
            'be-key': self.attempt.secret_key,
            'eventType': 'exam_finished',
            'participantsID': self.attempt.participant_id,
        }
        params.update(overrides)
        return {key: value for (key, value) in params.items() if value is not None}

    def _callback_url(self, **overrides):
        return reverse('edx_external_exams:anonymous.external_exams.callback') + '?' + urlencode(
            self._params(**overrides)
        )

    def test_exam_finished(self):
        """
        The finished event ends the attempt
        """
        response = self.anonymous.get(self._callback_url())
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data, {'event_type': 'exam_finished'})
        self.attempt.refresh_from_db()
        self.assertEqual(self.attempt.status, ExternalExamAttemptStatus.pending_results)

    def test_exam_finished_twice(self):
        """
        Redelivered events are acknowledged and change nothing
        """
        self.anonymous.get(self._callback_url())
        self.attempt.refresh_from_db()
        completed_at = self.attempt.completed_at

        response = self.anonymous.get(self._callback_url())
        self.assertEqual(response.status_code, 200)
        self.attempt.refresh_from_db()
        self.assertEqual(self.attempt.status, ExternalExamAttemptStatus.pending_results)
        self.assertEqual(self.attempt.completed_at, completed_at)

    def test_posted_event(self):
        """
        The event type may come in the form body
        """
        url = reverse('edx_external_exams:anonymous.external_exams.callback') + '?' + urlencode(
            self._params(eventType=None)
        )
        response = self.anonymous.post(
            url, urlencode({'eventType': 'exam_finished'}), content_type='application/x-www-form-urlencoded'
        )
        self.assertEqual(response.status_code, 200)
        self.attempt.refresh_from_db()
        self.assertEqual(self.attempt.status, ExternalExamAttemptStatus.pending_results)

    def test_exam_evaluated(self):
        """
        The evaluated event stores the results, even for a started attempt
        """
        self.gateway.add_result(self.attempt.participant_id, self.attempt.booking_id, result='55')
        response = self.anonymous.get(self._callback_url(eventType='exam_evaluated'))
        self.assertEqual(response.status_code, 200)
        self.attempt.refresh_from_db()
        self.assertEqual(self.attempt.status, ExternalExamAttemptStatus.completed)
        self.assertEqual(self.attempt.percentage, 55.0)

    def test_exam_evaluated_fetch_fails(self):
        self.gateway.errors['get_participant_overview'] = RemoteServerError('down')
        response = self.anonymous.get(self._callback_url(eventType='exam_evaluated'))
        self.assertEqual(response.status_code, 502)

    @ddt.data(
        'exam_started',
        'exam_sent_to_manual_evaluation',
        'exam_insight_pdf_available',
        'exam_archive_pdf_available',
        'something_new',
    )
    def test_other_events(self, event_type):
        """
        Events without an action are acknowledged
        """
        response = self.anonymous.get(self._callback_url(eventType=event_type))
        self.assertEqual(response.status_code, 200)
        self.attempt.refresh_from_db()
        self.assertEqual(self.attempt.status, ExternalExamAttemptStatus.started)

    @ddt.data('eventType', 'be-examId', 'be-userId', 'be-attempt', 'be-key')
    def test_missing_params(self, param):
        response = self.anonymous.get(self._callback_url(**{param: None}))
        self.assertEqual(response.status_code, 400)

    @ddt.data(
        lambda key: 'be-qa_wrong',
        lambda key: key[:-1],
        lambda key: key + 'x',
        lambda key: key.upper(),
    )
    def test_wrong_key(self, make_key):
        """
        Only the exact key authorizes the callback
        """
        response = self.anonymous.get(self._callback_url(**{'be-key': make_key(self.attempt.secret_key)}))
        self.assertEqual(response.status_code, 401)
        self.attempt.refresh_from_db()
        self.assertEqual(self.attempt.status, ExternalExamAttemptStatus.started)

    def test_unknown_attempt(self):
        response = self.anonymous.get(self._callback_url(**{'be-attempt': 'unknown'}))
        self.assertEqual(response.status_code, 404)

    def test_other_exam(self):
        response = self.anonymous.get(self._callback_url(**{'be-examId': self.import_exam_id}))
        self.assertEqual(response.status_code, 404)

    def test_participant_not_checked(self):
        """
        The key alone authorizes callbacks
        """
        response = self.anonymous.get(self._callback_url(participantsID='someone-else'))
        self.assertEqual(response.status_code, 200)

    def test_signal(self):
        receiver = MagicMock()
        exam_callback_received.connect(receiver)
        self.addCleanup(exam_callback_received.disconnect, receiver)

        self.anonymous.get(self._callback_url(eventType='exam_started'))
        self.assertEqual(receiver.call_count, 1)
        self.assertEqual(receiver.call_args[1]['params']['eventType'], 'exam_started')
        self.assertEqual(receiver.call_args[1]['attempt']['attempt_id'], self.attempt.attempt_id)

    def test_rejected_callbacks_send_no_signal(self):
        receiver = MagicMock()
        exam_callback_received.connect(receiver)
        self.addCleanup(exam_callback_received.disconnect, receiver)

        self.anonymous.get(self._callback_url(**{'be-key': 'be-qa_wrong'}))
        self.assertFalse(receiver.called)
