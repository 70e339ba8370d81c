"""
Django management command running the due results checks of the database
scheduler. Meant to be run by cron, e.g. every hour.
"""

import logging
import time

from django.core.management.base import BaseCommand, CommandError

from edx_external_exams import constants
from edx_external_exams.api import maybe_update_exam_results
from edx_external_exams.exceptions import ExternalExamBaseException
from edx_external_exams.models import ExternalExamAttempt
from edx_external_exams.scheduler import DatabaseResultsCheckScheduler
from edx_external_exams.statuses import ExternalExamAttemptStatus

log = logging.getLogger(__name__)


class Command(BaseCommand):
    """
    Django Management command to fetch results of attempts waiting for them
    """

    def add_arguments(self, parser):
        parser.add_argument(
            '--batch_size',
            action='store',
            dest='batch_size',
            type=int,
            default=100,
            help='Maximum number of checks to run before sleeping. '
                 'This helps avoid overloading the remote service.'
        )
        parser.add_argument(
            '--sleep_time',
            action='store',
            dest='sleep_time',
            type=int,
            default=10,
            help='Sleep time in seconds between batches'
        )
        parser.add_argument(
            '--exam_id',
            action='store',
            dest='exam_id',
            type=int,
            help='Exam ID to run the checks for.'
        )

    def handle(self, *args, **options):
        """
        Management command entry point
        """
        batch_size = options['batch_size']
        sleep_time = options['sleep_time']
        exam_id = options['exam_id']

        scheduler = DatabaseResultsCheckScheduler()
        jobs = list(scheduler.get_due_jobs(constants.RESULTS_CHECK_HOOK, exam_id=exam_id))

        check_count = 0
        failed = 0
        for job in jobs:
            job_exam_id, user_id, attempt_id = job.payload
            attempt = ExternalExamAttempt.objects.get_exam_attempt(user_id, job_exam_id, attempt_id)

            if attempt is None or ExternalExamAttemptStatus.is_terminal_status(attempt.status):
                log.info(
                    'Dropping results check of attempt_id=%(attempt_id)s, nothing to wait for',
                    {'attempt_id': attempt_id}
                )
                scheduler.cancel(job.hook, job.payload)
                continue

            log.info(
                'Checking results of attempt_id=%(attempt_id)s with status=%(status)s',
                {'attempt_id': attempt_id, 'status': attempt.status}
            )
            try:
                maybe_update_exam_results(job_exam_id, user_id, attempt_id)
            except ExternalExamBaseException as error:
                log.error(
                    'Results check of attempt_id=%(attempt_id)s failed: %(error)s',
                    {'attempt_id': attempt_id, 'error': error}
                )
                failed += 1

            # completed attempts drop their check themselves
            if scheduler.is_scheduled(job.hook, job.payload):
                scheduler.mark_run(job)

            check_count += 1
            if check_count == batch_size:
                check_count = 0
                time.sleep(sleep_time)

        log.info('Ran %(count)s results checks', {'count': len(jobs)})
        if failed:
            raise CommandError(f'{failed} of {len(jobs)} results checks failed.')
