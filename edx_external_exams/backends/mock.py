"""
Implements an in-memory remote gateway to be used for development,
which doesn't require access to a bizExaminer instance.
"""

import itertools
from datetime import datetime

import pytz

from edx_external_exams.backends.backend import RemoteGateway
from edx_external_exams.backends.result import Booking, ParticipantResult
from edx_external_exams.exceptions import RemoteNotFound
from edx_external_exams.statuses import RemoteWorkflowState


class MockGateway(RemoteGateway):
    """
    Implementation of the RemoteGateway that keeps participants, bookings
    and results in memory. Results are added with add_result.
    """
    verbose_name = 'Mock Gateway'

    def __init__(self, base_url='https://exams.example.com', **kwargs):
        super().__init__(**kwargs)
        self.base_url = base_url
        self.participants = {}
        self.bookings = {}
        self.results = {}
        self._ids = itertools.count(1)

    def book_exam(self, product_part_id, content_revision_id, participant_id, return_url, callback_url,
                  remote_proctor=None, remote_proctor_options=None, ui_language=None,
                  valid_from=None, valid_to=None):
        booking_id = str(next(self._ids))
        url = f'{self.base_url}/exam/{booking_id}'
        self.bookings[booking_id] = {
            'product_part_id': product_part_id,
            'content_revision_id': content_revision_id,
            'participant_id': participant_id,
            'return_url': return_url,
            'callback_url': callback_url,
            'remote_proctor': remote_proctor,
            'valid_to': valid_to,
            'url': url,
        }
        return Booking(booking_id=booking_id, url=url)

    def get_examination_access_url(self, booking_id, ui_language=None):
        try:
            return self.bookings[str(booking_id)]['url']
        except KeyError as error:
            raise RemoteNotFound(f'No booking {booking_id}') from error

    def create_participant(self, participant_data):
        participant_id = f'p{next(self._ids)}'
        self.participants[participant_id] = dict(participant_data)
        return participant_id

    def check_participant(self, search_data):
        for participant_id, data in self.participants.items():
            if search_data.get('id') == participant_id:
                return participant_id
            if search_data.get('email') and search_data.get('email') == data.get('email'):
                return participant_id
        return None

    def get_participant_overview(self, participant_id, booking_id=None):
        return [
            result for result in self.results.get(participant_id, [])
            if booking_id is None or result.booking_id == str(booking_id)
        ]

    def add_result(self, participant_id, booking_id=None, **kwargs):
        """
        Records an evaluated attendance for a participant and returns it
        """
        now = datetime.now(pytz.UTC)
        values = {
            'booking_id': str(booking_id) if booking_id else None,
            'attendance_id': str(next(self._ids)),
            'participant_id': participant_id,
            'workflow_state': RemoteWorkflowState.evaluated,
            'when_started': now,
            'when_finished': now,
            'result': '100',
            'passed': True,
            'achieved_score': 10,
            'max_score': 10,
        }
        values.update(kwargs)
        result = ParticipantResult(**values)
        self.results.setdefault(participant_id, []).append(result)
        return result
