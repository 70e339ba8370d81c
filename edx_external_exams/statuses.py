"""
Status enums for edx-external-exams
"""


class ExternalExamAttemptStatus:
    """
    A class to enumerate the various status that an attempt can have

    IMPORTANT: Since these values are stored in a database, they are system
    constants and should not be language translated, since translations
    might change over time.
    """

    # the exam has been booked remotely and the learner may take it
    # until the booking's valid_until
    started = 'started'

    # the learner finished the exam, the remote service has not
    # evaluated it yet
    pending_results = 'pending_results'

    # results have been fetched and stored on the attempt
    completed = 'completed'

    # set by the host, never by the engine itself
    canceled = 'canceled'

    @classmethod
    def is_valid_status(cls, status):
        """
        Makes sure that passed in status string is valid
        """
        return status in [cls.started, cls.pending_results, cls.completed, cls.canceled]

    @classmethod
    def is_terminal_status(cls, status):
        """
        Returns a boolean if the passed in status can not go any further
        """
        return status in [cls.completed, cls.canceled]

    @classmethod
    def is_legal_transition(cls, from_status, to_status):
        """
        Transitions only go forward. Canceled may be reached from any
        non-terminal status.
        """
        if from_status == to_status:
            return True
        if cls.is_terminal_status(from_status):
            return False
        if to_status == cls.canceled:
            return True
        order = [cls.started, cls.pending_results, cls.completed]
        return order.index(to_status) > order.index(from_status)


class RemoteWorkflowState:
    """
    Workflow state ids the remote service reports for an attendance
    """
    finished = 69
    evaluated = 70
    manual_evaluation = 71

    @classmethod
    def to_attempt_status(cls, workflow_state):
        """
        Maps a remote workflow state onto the local attempt status
        """
        if workflow_state in (cls.finished, cls.manual_evaluation):
            return ExternalExamAttemptStatus.pending_results
        if workflow_state == cls.evaluated:
            return ExternalExamAttemptStatus.completed
        return ExternalExamAttemptStatus.started


class CallbackEventType:
    """
    Event types the remote service sends to the callback url
    """
    exam_started = 'exam_started'
    exam_finished = 'exam_finished'
    exam_evaluated = 'exam_evaluated'
    exam_sent_to_manual_evaluation = 'exam_sent_to_manual_evaluation'
    exam_insight_pdf_available = 'exam_insight_pdf_available'
    exam_archive_pdf_available = 'exam_archive_pdf_available'
