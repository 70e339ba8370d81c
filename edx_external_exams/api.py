# pylint: disable=too-many-lines

"""
In-Proc API (aka Library) for the edx_external_exams subsystem. This is not to be confused with a HTTP REST
API which is in the views.py file, per edX coding standards
"""

import logging
from datetime import datetime, timedelta

import pytz

from django.contrib.auth import get_user_model
from django.db import DatabaseError, transaction

from edx_external_exams import constants
from edx_external_exams.access import can_start_exam
from edx_external_exams.backends import get_remote_gateway
from edx_external_exams.exceptions import (
    AttemptNotStarted,
    AttemptPersistenceFailed,
    BookingFailed,
    ExternalExamAlreadyExists,
    ExternalExamBaseException,
    ExternalExamNotConfigured,
    ExternalExamNotFoundException,
    ExternalExamStartDisabled,
    ExternalExamStartNotAllowed,
    ImportNoResults,
    InvalidCredentials,
    InvalidExamModule,
    NoSuchAttempt,
    ParticipantCreationFailed,
    RemoteGatewayError,
    ResultsFetchFailed
)
from edx_external_exams.models import ExternalExam, ExternalExamAttempt, ExternalExamParticipant
from edx_external_exams.scheduler import get_results_scheduler
from edx_external_exams.serializers import ExternalExamAttemptSerializer, ExternalExamSerializer
from edx_external_exams.signals import (
    exam_attempt_completed,
    exam_attempt_ended,
    exam_attempt_imported,
    exam_attempt_results_updated,
    exam_attempt_started,
    exam_attempt_submitted
)
from edx_external_exams.statuses import ExternalExamAttemptStatus, RemoteWorkflowState
from edx_external_exams.utils import emit_event, get_callback_url, get_return_url

log = logging.getLogger(__name__)

USER_MODEL = get_user_model()


def create_exam(course_id, content_id, exam_name, credentials_id=None, exam_module=None,
                remote_proctor=None, remote_proctor_options=None, use_remote_certificate=False,
                import_external_attempts=False, import_only=False, is_active=True):
    """
    Creates a new ExternalExam entity, if the course_id/content_id pair do not already exist.
    If that pair already exists, then raise exception.

    Returns: id (PK)
    """

    if ExternalExam.get_exam_by_content_id(course_id, content_id) is not None:
        err_msg = (
            f'Attempted to create external exam with course_id={course_id} and content_id={content_id}, '
            'but this exam already exists.'
        )
        raise ExternalExamAlreadyExists(err_msg)

    external_exam = ExternalExam.objects.create(
        course_id=course_id,
        content_id=content_id,
        exam_name=exam_name,
        credentials_id=credentials_id,
        exam_module=exam_module,
        remote_proctor=remote_proctor,
        remote_proctor_options=remote_proctor_options or {},
        use_remote_certificate=use_remote_certificate,
        import_external_attempts=import_external_attempts,
        import_only=import_only,
        is_active=is_active,
    )

    log.info(
        ('Created exam (exam_id=%(exam_id)s) with parameters: course_id=%(course_id)s, '
         'content_id=%(content_id)s, exam_name=%(exam_name)s, credentials_id=%(credentials_id)s, '
         'exam_module=%(exam_module)s, import_only=%(import_only)s, is_active=%(is_active)s'),
        {
            'exam_id': external_exam.id,
            'course_id': course_id,
            'content_id': content_id,
            'exam_name': exam_name,
            'credentials_id': credentials_id,
            'exam_module': exam_module,
            'import_only': import_only,
            'is_active': is_active,
        }
    )

    # read back exam so we can emit an event on it
    exam = get_exam_by_id(external_exam.id)
    emit_event(exam, 'created')
    return external_exam.id


def update_exam(exam_id, exam_name=None, credentials_id=None, exam_module=None, remote_proctor=None,
                remote_proctor_options=None, use_remote_certificate=None, import_external_attempts=None,
                import_only=None, is_active=None):
    """
    Given a Django ORM id, update the existing record, otherwise raise exception if not found.
    If an argument is not passed in, then do not change it's current value.

    Returns: id
    """

    log.info(
        ('Updating exam_id=%(exam_id)s with parameters '
         'exam_name=%(exam_name)s, credentials_id=%(credentials_id)s, exam_module=%(exam_module)s, '
         'import_only=%(import_only)s, is_active=%(is_active)s'),
        {
            'exam_id': exam_id,
            'exam_name': exam_name,
            'credentials_id': credentials_id,
            'exam_module': exam_module,
            'import_only': import_only,
            'is_active': is_active,
        }
    )

    external_exam = ExternalExam.get_exam_by_id(exam_id)
    if external_exam is None:
        err_msg = (
            f'Attempted to update exam_id={exam_id}, but this exam does not exist.'
        )
        raise ExternalExamNotFoundException(err_msg)

    if exam_name is not None:
        external_exam.exam_name = exam_name
    if credentials_id is not None:
        external_exam.credentials_id = credentials_id
    if exam_module is not None:
        external_exam.exam_module = exam_module
    if remote_proctor is not None:
        external_exam.remote_proctor = remote_proctor
    if remote_proctor_options is not None:
        external_exam.remote_proctor_options = remote_proctor_options
    if use_remote_certificate is not None:
        external_exam.use_remote_certificate = use_remote_certificate
    if import_external_attempts is not None:
        external_exam.import_external_attempts = import_external_attempts
    if import_only is not None:
        external_exam.import_only = import_only
    if is_active is not None:
        external_exam.is_active = is_active
    external_exam.save()

    # read back exam so we can emit an event on it
    exam = get_exam_by_id(external_exam.id)
    emit_event(exam, 'updated')

    return external_exam.id


def get_exam_by_id(exam_id):
    """
    Looks up exam by the Primary Key. Raises exception if not found.

    Returns dictionary version of the Django ORM object
    e.g.
    {
        "id": 1,
        "course_id": "course-v1:edX+DemoX+Demo_Course",
        "content_id": "123",
        "exam_name": "Midterm",
        "credentials_id": "main",
        "exam_module": "12_34_56",
        "is_active": true
    }
    """
    external_exam = ExternalExam.get_exam_by_id(exam_id)
    if external_exam is None:
        err_msg = (
            f'Attempted to get exam_id={exam_id}, but this exam does not exist.'
        )
        raise ExternalExamNotFoundException(err_msg)

    serialized_exam_object = ExternalExamSerializer(external_exam)
    return serialized_exam_object.data


def get_exam_by_content_id(course_id, content_id):
    """
    Looks up exam by the course_id/content_id pair. Raises exception if not found.

    Returns dictionary version of the Django ORM object
    """
    external_exam = ExternalExam.get_exam_by_content_id(course_id, content_id)
    if external_exam is None:
        err_msg = (
            f'Cannot find external exam in course_id={course_id} with content_id={content_id}'
        )
        raise ExternalExamNotFoundException(err_msg)

    serialized_exam_object = ExternalExamSerializer(external_exam)
    return serialized_exam_object.data


def get_exam_attempt(exam_id, user_id, attempt_id):
    """
    Returns the serialized attempt, None if the learner has no such attempt for the exam
    """
    exam_attempt_obj = ExternalExamAttempt.objects.get_exam_attempt(user_id, exam_id, attempt_id)
    return ExternalExamAttemptSerializer(exam_attempt_obj).data if exam_attempt_obj else None


def get_user_attempts(exam_id, user_id):
    """
    Returns all attempts of the learner for the exam, oldest first
    """
    attempts = ExternalExamAttempt.objects.get_user_attempts_by_exam_id(user_id, exam_id)
    return [ExternalExamAttemptSerializer(attempt).data for attempt in attempts]


def start_exam_attempt(exam_id, user_id, valid_until=None, ui_language=None):
    """
    Books the exam remotely for the learner and stores a new attempt in
    status started.

    valid_until overrides the end of the booking, by default
    BOOKING_VALIDITY_HOURS from now.

    Returns the url of the remote exam the learner should be sent to.
    """
    context = constants.CONTEXT_START_EXAM

    exam = ExternalExam.get_exam_by_id(exam_id)
    if exam is None or not exam.is_configured:
        raise _logged(ExternalExamNotConfigured(
            f'exam_id={exam_id} has no remote exam configured.',
            context=context, exam_id=exam_id,
        ))

    if exam.import_only:
        raise _logged(ExternalExamStartDisabled(
            f'exam_id={exam_id} only allows importing attempts.',
            context=context, exam_id=exam_id,
        ))

    if not can_start_exam(exam, user_id):
        raise _logged(ExternalExamStartNotAllowed(
            f'user_id={user_id} may not start exam_id={exam_id}.',
            context=context, exam_id=exam_id, user_id=user_id,
        ))

    gateway = _get_gateway(exam, context)

    exam_module = exam.get_exam_module_ids()
    if exam_module is None:
        raise _logged(InvalidExamModule(
            f'exam_id={exam_id} has the invalid exam module {exam.exam_module!r}.',
            context=context, exam_id=exam_id, exam_module=exam.exam_module,
        ))

    participant_id = _get_participant(gateway, exam, user_id, context)

    attempt = ExternalExamAttempt.objects.build_attempt(exam, user_id, exam_module['content_revision'])
    attempt.participant_id = participant_id
    _save_attempt(attempt, context)

    now = datetime.now(pytz.UTC)
    valid_until = valid_until or now + timedelta(hours=constants.BOOKING_VALIDITY_HOURS)
    try:
        booking = gateway.book_exam(
            product_part_id=exam_module['product_part'],
            content_revision_id=exam_module['content_revision'],
            participant_id=participant_id,
            return_url=get_return_url(attempt),
            callback_url=get_callback_url(attempt),
            remote_proctor=exam.remote_proctor,
            remote_proctor_options=exam.remote_proctor_options,
            ui_language=ui_language,
            valid_from=now,
            valid_to=valid_until,
        )
    except RemoteGatewayError as error:
        raise _logged(BookingFailed(
            f'Could not book exam_id={exam_id} for attempt_id={attempt.attempt_id}: {error}',
            context=context, exam_id=exam_id, user_id=user_id, attempt_id=attempt.attempt_id,
        )) from error

    if not booking.booking_id or not booking.url:
        raise _logged(BookingFailed(
            f'The remote service returned no booking for attempt_id={attempt.attempt_id}.',
            context=context, exam_id=exam_id, user_id=user_id, attempt_id=attempt.attempt_id,
        ))

    attempt.booking_id = booking.booking_id
    attempt.valid_until = valid_until
    _save_attempt(attempt, context)

    _maybe_schedule_results_check(attempt)

    log.info(
        ('Started attempt_id=%(attempt_id)s of exam_id=%(exam_id)s for user_id=%(user_id)s '
         'with booking_id=%(booking_id)s valid until %(valid_until)s'),
        {
            'attempt_id': attempt.attempt_id,
            'exam_id': exam_id,
            'user_id': user_id,
            'booking_id': attempt.booking_id,
            'valid_until': valid_until,
        }
    )
    _notify(exam_attempt_started, 'started', attempt)
    return booking.url


def end_exam_attempt(exam_id, user_id, attempt_id):
    """
    Marks a started attempt as finished by the learner and tries to fetch
    its results once.

    Returns True if the attempt was ended, False if it was not in status
    started anymore (ended before through another path).
    """
    context = constants.CONTEXT_END_EXAM

    _get_exam(exam_id, context)
    attempt = _get_attempt(exam_id, user_id, attempt_id, context)

    with transaction.atomic():
        attempt = ExternalExamAttempt.objects.select_for_update().get(pk=attempt.pk)
        if attempt.status != ExternalExamAttemptStatus.started:
            log.debug(
                'attempt_id=%(attempt_id)s is already in status=%(status)s, not ending it',
                {'attempt_id': attempt_id, 'status': attempt.status}
            )
            return False

        now = datetime.now(pytz.UTC)
        # both may get overwritten with the remote values once results arrive
        attempt.completed_at = now
        attempt.time_spent_seconds = (
            int((now - attempt.started_at).total_seconds()) if attempt.started_at else None
        )
        attempt.status = ExternalExamAttemptStatus.pending_results
        _save_attempt(attempt, context)

    log.info(
        'Ended attempt_id=%(attempt_id)s of exam_id=%(exam_id)s for user_id=%(user_id)s',
        {'attempt_id': attempt_id, 'exam_id': exam_id, 'user_id': user_id}
    )
    _notify(exam_attempt_ended, None, attempt)

    try:
        update_exam_results(exam_id, user_id, attempt_id)
    except ExternalExamBaseException as error:
        # the scheduled results check picks the attempt up later
        log.warning(
            'Could not fetch results right after ending attempt_id=%(attempt_id)s: %(error)s',
            {'attempt_id': attempt_id, 'error': error}
        )

    attempt.refresh_from_db()
    _notify(exam_attempt_submitted, 'submitted', attempt)
    return True


def update_exam_results(exam_id, user_id, attempt_id):
    """
    Fetches the latest results of the attempt's booking from the remote
    service and stores them, whatever the local status.

    Returns True if results were stored, False if the remote service has
    not evaluated the attempt yet (a results check stays scheduled).
    """
    context = constants.CONTEXT_UPDATE_RESULTS

    exam = _get_exam(exam_id, context)
    attempt = _get_attempt(exam_id, user_id, attempt_id, context)
    gateway = _get_gateway(exam, context)

    try:
        records = gateway.get_participant_overview(attempt.participant_id, booking_id=attempt.booking_id)
    except RemoteGatewayError as error:
        raise _logged(ResultsFetchFailed(
            f'Could not fetch results of attempt_id={attempt_id}: {error}',
            context=context, exam_id=exam_id, user_id=user_id, attempt_id=attempt_id,
        )) from error

    record = None
    if records:
        record = next(
            (item for item in records if attempt.attendance_id and item.attendance_id == attempt.attendance_id),
            records[0]
        )
    return _update_results_in_attempt(exam, attempt, record, context)


def maybe_update_exam_results(exam_id, user_id, attempt_id):
    """
    Like update_exam_results, but only for attempts still waiting for results.

    Returns False for attempts in any other status.
    """
    attempt = _get_attempt(exam_id, user_id, attempt_id, constants.CONTEXT_UPDATE_RESULTS)
    if attempt.status != ExternalExamAttemptStatus.pending_results:
        return False
    return update_exam_results(exam_id, user_id, attempt_id)


def get_exam_access_url(exam_id, user_id, attempt_id, ui_language=None):
    """
    Returns a fresh url to resume a started attempt whose booking is
    still valid. The url is not stored.
    """
    context = constants.CONTEXT_UPDATE_RESULTS

    exam = _get_exam(exam_id, context)
    attempt = _get_attempt(exam_id, user_id, attempt_id, context)
    if not attempt.is_running():
        raise _logged(AttemptNotStarted(
            f'attempt_id={attempt_id} is not running anymore, no access url can be generated.',
            context=context, exam_id=exam_id, user_id=user_id, attempt_id=attempt_id,
        ))

    gateway = _get_gateway(exam, context)
    try:
        url = gateway.get_examination_access_url(attempt.booking_id, ui_language=ui_language)
    except RemoteGatewayError as error:
        raise _logged(BookingFailed(
            f'Could not fetch the exam access url of attempt_id={attempt_id}: {error}',
            context=context, exam_id=exam_id, user_id=user_id, attempt_id=attempt_id,
        )) from error
    if not url:
        raise _logged(BookingFailed(
            f'The remote service returned no access url for attempt_id={attempt_id}.',
            context=context, exam_id=exam_id, user_id=user_id, attempt_id=attempt_id,
        ))
    return url


def cancel_exam_attempt(exam_id, user_id, attempt_id):
    """
    Cancels an attempt which is not completed yet and stops checking for its results.
    Raises IllegalStatusTransition for completed attempts.
    """
    context = constants.CONTEXT_END_EXAM
    attempt = _get_attempt(exam_id, user_id, attempt_id, context)
    if attempt.status == ExternalExamAttemptStatus.canceled:
        return False

    attempt.status = ExternalExamAttemptStatus.canceled
    _save_attempt(attempt, context)
    _unschedule_results_check(attempt)

    log.info(
        'Canceled attempt_id=%(attempt_id)s of exam_id=%(exam_id)s for user_id=%(user_id)s',
        {'attempt_id': attempt_id, 'exam_id': exam_id, 'user_id': user_id}
    )
    _notify(exam_attempt_ended, None, attempt)
    return True


def import_external_attempts(exam_id, user_id):
    """
    Creates local attempts for the evaluated results the learner produced
    directly on the remote service.

    A remote record is matched against the local attempts by its booking
    and attendance; only records without a local counterpart are imported.
    Failing records do not stop the others, but are raised together at the
    end. Imported attempts are kept.

    Returns True, or raises if the import could not run or a record failed.
    """
    context = constants.CONTEXT_IMPORT_ATTEMPT

    exam = ExternalExam.get_exam_by_id(exam_id)
    if exam is None or not exam.is_configured:
        raise _logged(ExternalExamNotConfigured(
            f'exam_id={exam_id} has no remote exam configured.',
            context=context, exam_id=exam_id,
        ))

    if not exam.import_external_attempts:
        raise _logged(ExternalExamStartDisabled(
            f'exam_id={exam_id} does not allow importing attempts.',
            context=context, exam_id=exam_id,
        ))

    if not can_start_exam(exam, user_id, check_running=False):
        raise _logged(ExternalExamStartNotAllowed(
            f'user_id={user_id} may not import attempts of exam_id={exam_id}.',
            context=context, exam_id=exam_id, user_id=user_id,
        ))

    gateway = _get_gateway(exam, context)
    participant_id = _get_participant(gateway, exam, user_id, context)

    try:
        records = gateway.get_participant_overview(participant_id)
    except RemoteGatewayError as error:
        raise _logged(ResultsFetchFailed(
            f'Could not fetch results to import for user_id={user_id}: {error}',
            context=context, exam_id=exam_id, user_id=user_id,
        )) from error

    if not records:
        raise _logged(ImportNoResults(
            f'No results to import for user_id={user_id} on exam_id={exam_id}.',
            context=context, exam_id=exam_id, user_id=user_id,
        ))

    by_booking, by_attendance = _index_attempts(
        ExternalExamAttempt.objects.find_user_attempts(user_id, exam_id=exam_id)
    )

    exam_module = exam.get_exam_module_ids() or {}
    errors = []
    imported = 0
    for record in records:
        # only evaluated attempts are imported
        if not record.has_result:
            continue
        if not _is_new_record(record, by_booking, by_attendance):
            continue

        try:
            attempt = _import_record(exam, user_id, participant_id, record, exam_module, context)
        except (ExternalExamBaseException, DatabaseError) as error:
            log.error(
                ('Could not import booking_id=%(booking_id)s attendance_id=%(attendance_id)s '
                 'for user_id=%(user_id)s on exam_id=%(exam_id)s: %(error)s'),
                {
                    'booking_id': record.booking_id,
                    'attendance_id': record.attendance_id,
                    'user_id': user_id,
                    'exam_id': exam_id,
                    'error': error,
                }
            )
            errors.append(error)
            continue

        imported += 1
        if attempt.booking_id:
            by_booking.setdefault(attempt.booking_id, set()).add(attempt.attendance_id)
        elif attempt.attendance_id:
            by_attendance.add(attempt.attendance_id)

    log.info(
        'Imported %(imported)s attempts of exam_id=%(exam_id)s for user_id=%(user_id)s',
        {'imported': imported, 'exam_id': exam_id, 'user_id': user_id}
    )

    if errors:
        raise _logged(AttemptPersistenceFailed(
            f'{len(errors)} attempts of user_id={user_id} could not be imported.',
            context=context, exam_id=exam_id, user_id=user_id, errors=errors,
        ))
    return True


def _index_attempts(attempts):
    """
    Groups attempts by booking (a set of attendance ids per booking) and
    collects the attendance ids of attempts without a booking.
    """
    by_booking = {}
    by_attendance = set()
    for attempt in attempts:
        if attempt.booking_id:
            by_booking.setdefault(attempt.booking_id, set()).add(attempt.attendance_id)
        elif attempt.attendance_id:
            by_attendance.add(attempt.attendance_id)
    return by_booking, by_attendance


def _is_new_record(record, by_booking, by_attendance):
    """
    A booking may hold several attendances, so bookings are matched
    together with the attendance.
    """
    if record.booking_id:
        return record.attendance_id not in by_booking.get(record.booking_id, set())
    if record.attendance_id:
        return record.attendance_id not in by_attendance
    # nothing to match on
    return True


def _import_record(exam, user_id, participant_id, record, exam_module, context):
    """
    Creates the attempt for one remote record and stores its results
    """
    attempt = ExternalExamAttempt.objects.build_attempt(
        exam, user_id, record.content_revision_id or exam_module.get('content_revision', ''), start=False
    )
    attempt.participant_id = participant_id
    attempt.booking_id = record.booking_id
    attempt.attendance_id = record.attendance_id
    attempt.status = RemoteWorkflowState.to_attempt_status(record.workflow_state)
    attempt.started_at = record.when_started
    _save_attempt(attempt, context)

    _notify(exam_attempt_started, 'started', attempt)
    _notify(exam_attempt_submitted, 'submitted', attempt)

    _update_results_in_attempt(exam, attempt, record, context, imported=True)

    log.info(
        ('Imported attempt_id=%(attempt_id)s from booking_id=%(booking_id)s '
         'attendance_id=%(attendance_id)s for user_id=%(user_id)s'),
        {
            'attempt_id': attempt.attempt_id,
            'booking_id': record.booking_id,
            'attendance_id': record.attendance_id,
            'user_id': user_id,
        }
    )
    _notify(exam_attempt_imported, 'imported', attempt)
    return attempt


def _update_results_in_attempt(exam, attempt, record, context, imported=False):
    """
    Stores the results of a remote record in the attempt.

    Imported attempts are created with their final status, so they always
    report being completed.

    Without an evaluated result the attempt is (or stays) pending and a
    results check is scheduled. Returns whether results were stored.
    """
    has_result = record is not None and record.has_result
    if attempt.status == ExternalExamAttemptStatus.canceled or (
            attempt.status == ExternalExamAttemptStatus.completed and not has_result):
        log.debug(
            'attempt_id=%(attempt_id)s is in status=%(status)s, leaving it unchanged',
            {'attempt_id': attempt.attempt_id, 'status': attempt.status}
        )
        return False

    if not has_result:
        if attempt.status != ExternalExamAttemptStatus.pending_results:
            attempt.status = ExternalExamAttemptStatus.pending_results
            _save_attempt(attempt, context)
        _maybe_schedule_results_check(attempt)
        log.info(
            'No results yet for attempt_id=%(attempt_id)s, booking_id=%(booking_id)s',
            {'attempt_id': attempt.attempt_id, 'booking_id': attempt.booking_id}
        )
        return False

    if record.attendance_id and not attempt.attendance_id:
        if _is_attendance_taken(attempt, record.attendance_id):
            return _cancel_duplicate_attempt(attempt, record, context)
        attempt.attendance_id = record.attendance_id

    was_completed = attempt.status == ExternalExamAttemptStatus.completed
    attempt.apply_results(_build_results(exam, record))
    attempt.status = ExternalExamAttemptStatus.completed
    _save_attempt(attempt, context)

    _unschedule_results_check(attempt)

    log.info(
        ('Stored results of attempt_id=%(attempt_id)s: passed=%(passed)s '
         'points=%(points)s/%(total_points)s percentage=%(percentage)s'),
        {
            'attempt_id': attempt.attempt_id,
            'passed': attempt.passed,
            'points': attempt.points,
            'total_points': attempt.total_points,
            'percentage': attempt.percentage,
        }
    )
    if imported or not was_completed:
        _notify(exam_attempt_completed, 'completed', attempt)
    _notify(exam_attempt_results_updated, None, attempt)
    return True


def _is_attendance_taken(attempt, attendance_id):
    return ExternalExamAttempt.objects.find_user_attempts(
        attempt.user_id,
        exam_id=attempt.exam_id,
        booking_id=attempt.booking_id,
        attendance_id=attendance_id,
    ).exclude(pk=attempt.pk).exists()


def _cancel_duplicate_attempt(attempt, record, context):
    """
    The attendance was already imported as an attempt of its own, so this
    attempt is dropped instead of holding the same results twice
    """
    log.warning(
        ('attendance_id=%(attendance_id)s of booking_id=%(booking_id)s already belongs to another attempt, '
         'canceling attempt_id=%(attempt_id)s'),
        {
            'attendance_id': record.attendance_id,
            'booking_id': attempt.booking_id,
            'attempt_id': attempt.attempt_id,
        }
    )
    attempt.status = ExternalExamAttemptStatus.canceled
    _save_attempt(attempt, context)
    _unschedule_results_check(attempt)
    _notify(exam_attempt_ended, None, attempt)
    return False


def _build_results(exam, record):
    """
    Maps a remote record onto the results stored in an attempt
    """
    return {
        'completed_at': record.when_finished,
        'time_spent_seconds': int(record.time_taken or 0),
        'percentage': record.percentage,
        'passed': record.passed,
        'points': record.achieved_score,
        'total_points': record.max_score,
        # a question with any points is counted as correct
        'question_count': record.question_count,
        'correct_count': record.correct_count,
        'certificate_url': record.cert_download_url if exam.use_remote_certificate else None,
    }


def _get_participant(gateway, exam, user_id, context):
    """
    Returns the learner's participant id at the remote service, looking it
    up or creating it the first time per credential set
    """
    participant_id = ExternalExamParticipant.get_participant_id(user_id, exam.credentials_id)
    if participant_id:
        return participant_id

    user = USER_MODEL.objects.filter(id=user_id).first()
    if user is None:
        raise _logged(ParticipantCreationFailed(
            f'user_id={user_id} does not exist.', context=context, user_id=user_id,
        ))

    participant_data = {
        'firstName': user.first_name or user.username,
        'lastName': user.last_name or user.username,
        'email': user.email,
        'gender': '',
    }
    try:
        participant_id = gateway.check_participant(participant_data)
    except RemoteGatewayError as error:
        log.warning(
            'Could not look up the participant of user_id=%(user_id)s, creating one: %(error)s',
            {'user_id': user_id, 'error': error}
        )
        participant_id = None

    if not participant_id:
        try:
            participant_id = gateway.create_participant(participant_data)
        except RemoteGatewayError as error:
            raise _logged(ParticipantCreationFailed(
                f'Could not create a participant for user_id={user_id}: {error}',
                context=context, exam_id=exam.id, user_id=user_id,
            )) from error

    if not participant_id:
        raise _logged(ParticipantCreationFailed(
            f'The remote service returned no participant for user_id={user_id}.',
            context=context, exam_id=exam.id, user_id=user_id,
        ))

    ExternalExamParticipant.set_participant_id(user_id, exam.credentials_id, participant_id)
    return participant_id


def _get_exam(exam_id, context):
    exam = ExternalExam.get_exam_by_id(exam_id)
    if exam is None:
        raise _logged(ExternalExamNotConfigured(
            f'exam_id={exam_id} does not exist.', context=context, exam_id=exam_id,
        ))
    return exam


def _get_attempt(exam_id, user_id, attempt_id, context):
    attempt = ExternalExamAttempt.objects.get_exam_attempt(user_id, exam_id, attempt_id)
    if attempt is None:
        raise _logged(NoSuchAttempt(
            f'No attempt_id={attempt_id} of exam_id={exam_id} for user_id={user_id}.',
            context=context, exam_id=exam_id, user_id=user_id, attempt_id=attempt_id,
        ))
    return attempt


def _get_gateway(exam, context):
    gateway = get_remote_gateway(exam.credentials_id)
    if gateway is None:
        raise _logged(InvalidCredentials(
            f'credentials_id={exam.credentials_id} of exam_id={exam.id} are not configured.',
            context=context, exam_id=exam.id, credentials_id=exam.credentials_id,
        ))
    return gateway


def _save_attempt(attempt, context):
    try:
        attempt.save()
    except DatabaseError as error:
        raise _logged(AttemptPersistenceFailed(
            f'Could not store attempt_id={attempt.attempt_id}: {error}',
            context=context, exam_id=attempt.exam_id, user_id=attempt.user_id, attempt_id=attempt.attempt_id,
        )) from error


def _maybe_schedule_results_check(attempt):
    """
    Registers the recurring results check of the attempt, once
    """
    get_results_scheduler().schedule(
        constants.RESULTS_CHECK_HOOK,
        constants.RESULTS_CHECK_INTERVAL_SECONDS,
        [attempt.exam_id, attempt.user_id, attempt.attempt_id],
    )


def _unschedule_results_check(attempt):
    get_results_scheduler().cancel(
        constants.RESULTS_CHECK_HOOK,
        [attempt.exam_id, attempt.user_id, attempt.attempt_id],
    )


def _notify(signal, event_short_name, attempt):
    """
    Sends the lifecycle signal and, if named, the analytics event
    """
    serialized = ExternalExamAttemptSerializer(attempt).data
    signal.send(
        sender=ExternalExamAttempt,
        attempt=serialized,
        exam_id=attempt.exam_id,
        user_id=attempt.user_id,
    )
    if event_short_name:
        emit_event(serialized['exam'], event_short_name, attempt=serialized)


def _logged(exc):
    """
    Logs the exception at its level and returns it for raising
    """
    log.log(
        exc.log_level,
        '%(error_type)s in context=%(context)s: %(message)s %(data)s',
        {
            'error_type': exc.__class__.__name__,
            'context': exc.context,
            'message': exc,
            'data': exc.data,
        }
    )
    return exc
