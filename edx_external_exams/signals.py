"""
edx-external-exams signals

Every attempt signal is sent with ``attempt`` (the serialized attempt dict),
``exam_id`` and ``user_id``. Receivers run synchronously inside the
lifecycle call.
"""
from django.dispatch import Signal

# a new attempt was booked remotely
exam_attempt_started = Signal()

# the learner finished the exam on the remote service
exam_attempt_submitted = Signal()

# results arrived and the attempt is completed
exam_attempt_completed = Signal()

# results were (re)written to the attempt, sent after exam_attempt_completed
exam_attempt_results_updated = Signal()

# end_exam_attempt moved an attempt out of started
exam_attempt_ended = Signal()

# an attempt was created from a result the learner produced directly on the remote service
exam_attempt_imported = Signal()

# the remote service or the returning learner reached one of the callback urls,
# sent with ``params`` after the attempt was authorized
exam_callback_received = Signal()
exam_return_received = Signal()
