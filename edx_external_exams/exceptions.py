"""
Specialized exceptions for the External Exams subsystem
"""
import logging

from rest_framework import status


class ExternalExamBaseException(Exception):
    """
    A common base class for all exceptions

    context names the lifecycle operation the error belongs to
    (see constants.ERROR_CONTEXTS), data carries the ids involved.
    """
    http_status = status.HTTP_400_BAD_REQUEST
    log_level = logging.ERROR

    def __init__(self, message='', context=None, **data):
        super().__init__(message)
        self.context = context
        self.data = data


class ExternalExamNotFoundException(ExternalExamBaseException):
    """
    Raised when a look up fails.
    """
    http_status = status.HTTP_404_NOT_FOUND
    log_level = logging.DEBUG


class ExternalExamAlreadyExists(ExternalExamBaseException):
    """
    Raised when trying to create an Exam that already exists.
    """


class ExternalExamNotConfigured(ExternalExamBaseException):
    """
    Raised when an exam has no credentials or exam module assigned.
    """
    log_level = logging.DEBUG


class ExternalExamStartDisabled(ExternalExamBaseException):
    """
    Raised when starting an exam that only allows importing attempts.
    """
    http_status = status.HTTP_403_FORBIDDEN
    log_level = logging.DEBUG


class ExternalExamStartNotAllowed(ExternalExamBaseException):
    """
    Raised when the learner may not start (or import) an attempt right now.
    """
    http_status = status.HTTP_403_FORBIDDEN
    log_level = logging.DEBUG


class InvalidCredentials(ExternalExamBaseException):
    """
    Raised when the configured credentials id does not resolve to a gateway.
    """
    log_level = logging.DEBUG


class InvalidExamModule(ExternalExamBaseException):
    """
    Raised when the exam module id is not {product}_{productPart}_{contentRevision}.
    """
    log_level = logging.DEBUG


class ParticipantCreationFailed(ExternalExamBaseException):
    """
    Raised when no remote participant could be found or created for a learner.
    """
    http_status = status.HTTP_502_BAD_GATEWAY


class AttemptPersistenceFailed(ExternalExamBaseException):
    """
    Raised when an attempt (or its results) could not be stored.
    """
    http_status = status.HTTP_500_INTERNAL_SERVER_ERROR


class BookingFailed(ExternalExamBaseException):
    """
    Raised when the remote service did not book the exam.
    """
    http_status = status.HTTP_502_BAD_GATEWAY


class NoSuchAttempt(ExternalExamBaseException):
    """
    Raised when an attempt can not be found for the exam and learner.
    """
    http_status = status.HTTP_404_NOT_FOUND
    log_level = logging.DEBUG


class InvalidAttemptKey(ExternalExamBaseException):
    """
    Raised when a callback carries a key that does not match the attempt.
    """
    http_status = status.HTTP_401_UNAUTHORIZED


class InvalidAttemptParticipant(ExternalExamBaseException):
    """
    Raised when a returning learner's participant id does not match the attempt.
    """


class InvalidCallbackRequest(ExternalExamBaseException):
    """
    Raised when a callback is missing required arguments.
    """


class ResultsFetchFailed(ExternalExamBaseException):
    """
    Raised when results could not be fetched from the remote service.
    """
    http_status = status.HTTP_502_BAD_GATEWAY


class ImportNoResults(ExternalExamBaseException):
    """
    Raised when the remote service has no results to import for a learner.
    """
    http_status = status.HTTP_404_NOT_FOUND
    log_level = logging.DEBUG


class AttemptNotStarted(ExternalExamBaseException):
    """
    Raised when an access url is requested for an attempt that is not running.
    """
    log_level = logging.DEBUG


class IllegalStatusTransition(ExternalExamBaseException):
    """
    Raised if a state transition is not allowed, e.g. going from completed to started
    """


class StartTokenInvalid(ExternalExamBaseException):
    """
    Raised when a learner-facing link carries a forged, expired or reused token.
    """
    http_status = status.HTTP_403_FORBIDDEN
    log_level = logging.DEBUG


class RemoteGatewayError(ExternalExamBaseException):
    """
    Base class for errors reported by (or while talking to) the remote service
    """
    http_status = status.HTTP_502_BAD_GATEWAY

    def __init__(self, message='', result=None, **data):
        super().__init__(message, **data)
        self.result = result


class RemoteNotAuthorized(RemoteGatewayError):
    """
    Raised when the remote service rejects the credentials.
    """


class RemoteNotFound(RemoteGatewayError):
    """
    Raised when the remote service can not be found at the configured instance.
    """


class RemoteBadRequest(RemoteGatewayError):
    """
    Raised when the remote service rejects the data sent to it.
    """


class RemoteServerError(RemoteGatewayError):
    """
    Raised when the remote service fails or returns an unreadable answer.
    """


class RemoteTransportError(RemoteGatewayError):
    """
    Raised when the remote service could not be reached at all.
    """
