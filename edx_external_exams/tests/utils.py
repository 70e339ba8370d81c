# coding=utf-8
# pylint: disable=invalid-name

"""
Subclasses Django test client to allow for easy login
"""

from importlib import import_module

from eventtracking import tracker
from eventtracking.tracker import Tracker

from django.conf import settings
from django.contrib.auth import login
from django.contrib.auth.models import User
from django.core.cache import cache
from django.http import HttpRequest
from django.test import TestCase
from django.test.client import Client

from edx_external_exams.api import create_exam
from edx_external_exams.models import ExternalExam, ExternalExamAttempt
from edx_external_exams.runtime import remove_runtime_service, set_runtime_service
from edx_external_exams.statuses import ExternalExamAttemptStatus
from edx_external_exams.tests import setup_test_backends
from edx_external_exams.tests.test_services import MockLmsService


class TestClient(Client):
    """
    Allows for 'fake logins' of a user so we don't need to expose a 'login' HTTP endpoint
    """
    def login_user(self, user):
        """
        Login as specified user, does not depend on auth backend (hopefully)

        This is based on Client.login() with a small hack that does not
        require the call to authenticate()
        """
        user.backend = "django.contrib.auth.backends.ModelBackend"
        engine = import_module(settings.SESSION_ENGINE)

        # Create a fake request to store login details.
        request = HttpRequest()

        request.session = engine.SessionStore()
        login(request, user)

        # Set the cookie to represent the session.
        session_cookie = settings.SESSION_COOKIE_NAME
        self.cookies[session_cookie] = request.session.session_key
        cookie_data = {
            'max-age': None,
            'path': '/',
            'domain': settings.SESSION_COOKIE_DOMAIN,
            'secure': settings.SESSION_COOKIE_SECURE or None,
            'expires': None,
        }
        self.cookies[session_cookie].update(cookie_data)

        # Save the session values.
        request.session.save()


class LoggedInTestCase(TestCase):
    """
    All tests for the views.py
    """

    def setUp(self):
        """
        Setup for tests
        """
        super().setUp()
        self.client = TestClient()
        self.user = User(username='tester', email='tester@test.com', first_name='Tess', last_name='Ter')
        self.user.save()
        self.client.login_user(self.user)


class MockTracker(Tracker):
    """
    A mocked out tracker which implements the emit method
    """
    def emit(self, name=None, data=None):
        """
        Overload this method to do nothing
        """


class ExternalExamTestCase(LoggedInTestCase):
    """
    Harness with a configured exam, a fresh in-memory gateway and an LMS
    service allowing everything
    """

    def setUp(self):
        """
        Build out test harnessing
        """
        super().setUp()
        self.course_id = 'a/b/c'
        self.content_id = 'block-v1:a+b+c+type@sequential+block@final'
        self.content_id_import = 'block-v1:a+b+c+type@sequential+block@imported'
        self.content_id_unconfigured = 'block-v1:a+b+c+type@sequential+block@unconfigured'
        self.exam_name = 'Final Exam'
        self.user_id = self.user.id
        self.exam_module = '11_22_33'

        self.gateway = setup_test_backends()

        self.exam_id = create_exam(
            course_id=self.course_id,
            content_id=self.content_id,
            exam_name=self.exam_name,
            credentials_id='test',
            exam_module=self.exam_module,
        )
        self.import_exam_id = create_exam(
            course_id=self.course_id,
            content_id=self.content_id_import,
            exam_name='Imported Exam',
            credentials_id='test',
            exam_module=self.exam_module,
            import_external_attempts=True,
        )
        self.unconfigured_exam_id = create_exam(
            course_id=self.course_id,
            content_id=self.content_id_unconfigured,
            exam_name='Unconfigured Exam',
        )

        self.lms_service = MockLmsService()
        set_runtime_service('lms', self.lms_service)

        tracker.register_tracker(MockTracker())
        cache.clear()

    def tearDown(self):
        super().tearDown()
        remove_runtime_service('lms')
        remove_runtime_service('scheduler')

    def _create_started_attempt(self, exam_id=None, user_id=None, **kwargs):
        """
        Stores a started attempt the way start_exam_attempt leaves it,
        without going through the gateway
        """
        exam_id = exam_id or self.exam_id
        user_id = user_id or self.user_id
        attempt = ExternalExamAttempt.objects.build_attempt(
            ExternalExam.objects.get(id=exam_id), user_id, '33'
        )
        attempt.participant_id = kwargs.pop('participant_id', 'p1')
        attempt.booking_id = kwargs.pop('booking_id', '1')
        attempt.valid_until = kwargs.pop('valid_until', None)
        for key, value in kwargs.items():
            setattr(attempt, key, value)
        attempt.save()
        return attempt

    def _create_pending_attempt(self, **kwargs):
        """
        A stored attempt whose results are outstanding
        """
        attempt = self._create_started_attempt(**kwargs)
        attempt.status = ExternalExamAttemptStatus.pending_results
        attempt.save()
        return attempt
