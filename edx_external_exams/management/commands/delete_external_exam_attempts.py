"""
Django management command to delete attempts, e.g. test attempts. It also
drops their results checks, but does not touch anything on the remote
service or in the learner's course progress.
"""
import logging
import time

from django.core.management.base import BaseCommand

from edx_external_exams import constants
from edx_external_exams.models import ExternalExamAttempt
from edx_external_exams.scheduler import get_results_scheduler

log = logging.getLogger(__name__)


class Command(BaseCommand):
    """
    Django Management command to delete attempts.
    """

    def add_arguments(self, parser):
        parser.add_argument(
            '-p',
            '--file_path',
            metavar='file_path',
            dest='file_path',
            required=True,
            help='Path to a file with one attempt id (primary key) per line.'
        )
        parser.add_argument(
            '--batch_size',
            action='store',
            dest='batch_size',
            type=int,
            default=300,
            help='Maximum number of attempt_ids to process. '
                 'This helps avoid overloading the database while updating large amount of data.'
        )
        parser.add_argument(
            '--sleep_time',
            action='store',
            dest='sleep_time',
            type=int,
            default=10,
            help='Sleep time in seconds between update of batches'
        )

    def handle(self, *args, **options):
        """
        Management command entry point
        """
        batch_size = options['batch_size']
        sleep_time = options['sleep_time']
        file_path = options['file_path']

        with open(file_path, 'r', encoding='utf-8') as file:
            ids_to_delete = [line.strip() for line in file if line.strip()]

        scheduler = get_results_scheduler()
        total_deleted = 0

        for i in range(0, len(ids_to_delete), batch_size):
            batch_to_delete = ids_to_delete[i:i + batch_size]

            delete_queryset = ExternalExamAttempt.objects.filter(id__in=batch_to_delete)
            for attempt in delete_queryset:
                scheduler.cancel(constants.RESULTS_CHECK_HOOK, [attempt.exam_id, attempt.user_id, attempt.attempt_id])
            deleted_count, _ = delete_queryset.delete()

            total_deleted += deleted_count

            log.info(f'{deleted_count} attempts deleted.')
            if i + batch_size < len(ids_to_delete):
                time.sleep(sleep_time)

        log.info(f'Job completed. {total_deleted} attempts deleted.')
