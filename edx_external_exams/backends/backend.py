"""
Defines the abstract base class that all remote gateways should derive from
"""

import abc


class RemoteGateway(metaclass=abc.ABCMeta):
    """
    The base abstract class for all remote exam services.

    One instance exists per configured credential set. Every call either
    returns the decoded payload (see backends.result) or raises a
    RemoteGatewayError subclass.
    """
    verbose_name = 'Unknown'

    def __init__(self, credentials_id=None, name=None, **kwargs):  # pylint: disable=unused-argument
        self.credentials_id = credentials_id
        self.name = name or credentials_id

    @abc.abstractmethod
    def book_exam(self, product_part_id, content_revision_id, participant_id, return_url, callback_url,
                  remote_proctor=None, remote_proctor_options=None, ui_language=None,
                  valid_from=None, valid_to=None):
        """
        Books the exam for a participant. Returns a Booking.
        """
        raise NotImplementedError()

    @abc.abstractmethod
    def get_examination_access_url(self, booking_id, ui_language=None):
        """
        Returns the url a participant can (re)enter a booked exam with
        """
        raise NotImplementedError()

    @abc.abstractmethod
    def create_participant(self, participant_data):
        """
        Creates a participant, returns its id
        """
        raise NotImplementedError()

    @abc.abstractmethod
    def check_participant(self, search_data):
        """
        Returns the id of the first participant matching the search data,
        None if there is none
        """
        raise NotImplementedError()

    @abc.abstractmethod
    def get_participant_overview(self, participant_id, booking_id=None):
        """
        Returns a list of ParticipantResult for the participant, restricted
        to one booking if booking_id is passed
        """
        raise NotImplementedError()

    def test_credentials(self):
        """
        Whether the remote service accepts the credentials
        """
        return True
