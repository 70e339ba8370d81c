"""
Implementation of a remote gateway, which does nothing
"""

from edx_external_exams.backends.backend import RemoteGateway
from edx_external_exams.backends.result import Booking


class NullGateway(RemoteGateway):
    """
    Implementation of the RemoteGateway that does nothing
    """
    verbose_name = 'Null Gateway'

    def book_exam(self, product_part_id, content_revision_id, participant_id, return_url, callback_url,
                  remote_proctor=None, remote_proctor_options=None, ui_language=None,
                  valid_from=None, valid_to=None):
        return Booking(booking_id=None, url=None)

    def get_examination_access_url(self, booking_id, ui_language=None):
        return None

    def create_participant(self, participant_data):
        return None

    def check_participant(self, search_data):
        return None

    def get_participant_overview(self, participant_id, booking_id=None):
        return []
