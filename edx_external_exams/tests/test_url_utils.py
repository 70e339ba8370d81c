"""
File that contains tests for the util methods.
"""
from datetime import datetime, timedelta
from urllib.parse import parse_qs, urlparse

import pytz
from freezegun import freeze_time
from mock import patch

from django.test import TestCase

from edx_external_exams import constants
from edx_external_exams.exceptions import StartTokenInvalid
from edx_external_exams.utils import (
    _emit_event,
    emit_event,
    get_callback_url,
    get_exam_url,
    get_return_url,
    get_start_url,
    make_link_token,
    verify_link_token
)

from .test_utils.factories import ExternalExamAttemptFactory


class TestCallbackUrls(TestCase):
    """
    The urls handed to the remote service
    """

    def setUp(self):
        super().setUp()
        self.attempt = ExternalExamAttemptFactory()

    def _query(self, url):
        return {key: values[0] for (key, values) in parse_qs(urlparse(url).query).items()}

    def test_callback_url(self):
        url = get_callback_url(self.attempt)
        self.assertTrue(url.startswith('http://testserver/edx_external_exams/external_exam/callback?'))
        self.assertEqual(self._query(url), {
            'be-examId': str(self.attempt.exam_id),
            'be-userId': str(self.attempt.user_id),
            'be-attempt': self.attempt.attempt_id,
            'be-key': self.attempt.secret_key,
        })

    def test_return_url(self):
        url = get_return_url(self.attempt)
        self.assertTrue(url.startswith('http://testserver/edx_external_exams/external_exam/return?'))
        self.assertEqual(self._query(url)['be-key'], self.attempt.secret_key)

    def test_start_url(self):
        url = get_start_url(self.attempt.exam_id, self.attempt.user_id)
        self.assertTrue(url.startswith('/edx_external_exams/external_exam/start?'))
        query = self._query(url)
        self.assertEqual(query['be-examId'], str(self.attempt.exam_id))
        self.assertIn('_betoken', query)

    def test_exam_url(self):
        self.assertEqual(get_exam_url('a/b/c', 'unit'), '/courses/a/b/c/jump_to/unit')

    @patch('edx_external_exams.utils.log')
    def test_exam_url_unknown_course(self, logger_mock):
        self.assertEqual(get_exam_url('not a course', 'unit'), '')
        self.assertTrue(logger_mock.exception.called)


class TestLinkTokens(TestCase):
    """
    Tests for the signed, single use learner links
    """

    def test_valid_once(self):
        token = make_link_token(1, 2, constants.START_TOKEN_SALT)
        payload = verify_link_token(token, '1', '2', constants.START_TOKEN_SALT)
        self.assertEqual(payload['exam_id'], 1)
        with self.assertRaises(StartTokenInvalid):
            verify_link_token(token, 1, 2, constants.START_TOKEN_SALT)

    def test_tokens_differ(self):
        self.assertNotEqual(
            make_link_token(1, 2, constants.START_TOKEN_SALT),
            make_link_token(1, 2, constants.START_TOKEN_SALT)
        )

    def test_wrong_exam_or_user(self):
        token = make_link_token(1, 2, constants.START_TOKEN_SALT)
        with self.assertRaises(StartTokenInvalid):
            verify_link_token(token, 3, 2, constants.START_TOKEN_SALT)
        with self.assertRaises(StartTokenInvalid):
            verify_link_token(token, 1, 3, constants.START_TOKEN_SALT)

    def test_wrong_salt(self):
        token = make_link_token(1, 2, constants.START_TOKEN_SALT)
        with self.assertRaises(StartTokenInvalid):
            verify_link_token(token, 1, 2, constants.IMPORT_TOKEN_SALT)

    def test_missing_token(self):
        with self.assertRaises(StartTokenInvalid):
            verify_link_token(None, 1, 2, constants.START_TOKEN_SALT)

    def test_expired(self):
        now = datetime.now(pytz.UTC)
        with freeze_time(now):
            token = make_link_token(1, 2, constants.START_TOKEN_SALT)
        with freeze_time(now + timedelta(seconds=constants.START_TOKEN_MAX_AGE + 1)):
            with self.assertRaises(StartTokenInvalid):
                verify_link_token(token, 1, 2, constants.START_TOKEN_SALT)


class TestEmitEvent(TestCase):
    """
    Tests for the analytics events
    """

    def setUp(self):
        super().setUp()
        self.exam = {
            'id': 1,
            'course_id': 'course-v1:edX+DemoX+Demo_Course',
            'content_id': 'unit',
            'exam_name': 'Final Exam',
            'credentials_id': 'test',
            'is_active': True,
        }

    @patch('edx_external_exams.utils._emit_event')
    def test_attempt_event(self, emit_mock):
        started_at = datetime.now(pytz.UTC) - timedelta(minutes=10)
        attempt = {
            'attempt_id': '1_1_33',
            'user': {'id': 2},
            'started_at': started_at,
            'completed_at': None,
            'status': 'started',
            'booking_id': '4711',
            'attendance_id': None,
        }
        emit_event(self.exam, 'started', attempt=attempt)

        name, context, data = emit_mock.call_args[0]
        self.assertEqual(name, 'edx.external_exam.attempt.started')
        self.assertEqual(context, {'course_id': self.exam['course_id']})
        self.assertEqual(data['attempt_id'], '1_1_33')
        self.assertEqual(data['attempt_user_id'], 2)
        self.assertEqual(data['attempt_booking_id'], '4711')
        self.assertGreaterEqual(data['attempt_event_elapsed_time_secs'], 600)

    @patch('edx_external_exams.utils._emit_event')
    def test_exam_event(self, emit_mock):
        emit_event(self.exam, 'created', override_data={'exam_name': 'Renamed'})
        name, _, data = emit_mock.call_args[0]
        self.assertEqual(name, 'edx.external_exam.created')
        self.assertEqual(data['exam_name'], 'Renamed')

    @patch('edx_external_exams.utils.tracker')
    def test_org_id(self, tracker_mock):
        context = {'course_id': 'course-v1:edX+DemoX+Demo_Course'}
        _emit_event('foo.bar', context, {'one': 'two'})
        self.assertEqual(context['org_id'], 'edX')
        tracker_mock.emit.assert_called_once_with('foo.bar', {'one': 'two'})

    @patch('edx_external_exams.utils.tracker')
    def test_invalid_course_id(self, tracker_mock):
        context = {'course_id': 'not a course'}
        _emit_event('foo.bar', context, {'one': 'two'})
        self.assertNotIn('org_id', context)
        self.assertTrue(tracker_mock.emit.called)

    def test_emit_event_without_context(self):
        """
        Call through to emit event to the analytics pipeline.
        """
        # call without a context
        _emit_event(
            'foo.bar',
            None,
            {
                'one': 'two'
            }
        )
