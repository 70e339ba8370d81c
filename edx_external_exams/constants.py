"""
Lists of constants that can be used in edx-external-exams
"""

from django.conf import settings

EXTERNAL_EXAMS_SETTINGS = getattr(settings, 'EXTERNAL_EXAMS_SETTINGS', {})

BOOKING_VALIDITY_HOURS = (
    EXTERNAL_EXAMS_SETTINGS['BOOKING_VALIDITY_HOURS'] if
    'BOOKING_VALIDITY_HOURS' in EXTERNAL_EXAMS_SETTINGS
    else getattr(settings, 'EXTERNAL_EXAMS_BOOKING_VALIDITY_HOURS', 24)
)

# twice a day
RESULTS_CHECK_INTERVAL_SECONDS = (
    EXTERNAL_EXAMS_SETTINGS['RESULTS_CHECK_INTERVAL_SECONDS'] if
    'RESULTS_CHECK_INTERVAL_SECONDS' in EXTERNAL_EXAMS_SETTINGS
    else getattr(settings, 'EXTERNAL_EXAMS_RESULTS_CHECK_INTERVAL_SECONDS', 12 * 60 * 60)
)

CLIENT_TIMEOUT = (
    EXTERNAL_EXAMS_SETTINGS['CLIENT_TIMEOUT'] if
    'CLIENT_TIMEOUT' in EXTERNAL_EXAMS_SETTINGS
    else getattr(settings, 'EXTERNAL_EXAMS_CLIENT_TIMEOUT', 30)
)

START_TOKEN_MAX_AGE = (
    EXTERNAL_EXAMS_SETTINGS['START_TOKEN_MAX_AGE'] if
    'START_TOKEN_MAX_AGE' in EXTERNAL_EXAMS_SETTINGS
    else getattr(settings, 'EXTERNAL_EXAMS_START_TOKEN_MAX_AGE', 60 * 60)
)

DEFAULT_UI_LANGUAGE = (
    EXTERNAL_EXAMS_SETTINGS['DEFAULT_UI_LANGUAGE'] if
    'DEFAULT_UI_LANGUAGE' in EXTERNAL_EXAMS_SETTINGS
    else getattr(settings, 'LANGUAGE_CODE', 'en')
)

RESULTS_CHECK_HOOK = 'external_exams.check_results'

ATTEMPT_KEY_PREFIX = 'be-qa_'
ATTEMPT_KEY_LENGTH = 16

START_TOKEN_SALT = 'edx_external_exams.start'
IMPORT_TOKEN_SALT = 'edx_external_exams.import'

# error contexts, used by the presentation layer to group errors
CONTEXT_START_EXAM = 'start-exam'
CONTEXT_END_EXAM = 'end-exam'
CONTEXT_UPDATE_RESULTS = 'update-results'
CONTEXT_IMPORT_ATTEMPT = 'import-attempt'

ERROR_CONTEXTS = (
    CONTEXT_START_EXAM,
    CONTEXT_END_EXAM,
    CONTEXT_UPDATE_RESULTS,
    CONTEXT_IMPORT_ATTEMPT,
)

# query parameters of the urls handed to the remote service
PARAM_EXAM_ID = 'be-examId'
PARAM_USER_ID = 'be-userId'
PARAM_ATTEMPT_ID = 'be-attempt'
PARAM_KEY = 'be-key'
PARAM_TOKEN = '_betoken'
# added by the remote service
PARAM_EVENT_TYPE = 'eventType'
PARAM_CALLBACK_PARTICIPANT = 'participantsID'
PARAM_RETURN_PARTICIPANT = 'be:participantID'
