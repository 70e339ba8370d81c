"""
Recurring results checks.

The lifecycle only talks to a ResultsCheckScheduler. The host may register
its own implementation as the ``scheduler`` runtime service, otherwise jobs
are kept in the ExternalExamResultsCheck table and run by the
check_external_exam_results management command.
"""

import abc
import logging
from datetime import datetime, timedelta

import pytz

from django.db import IntegrityError, transaction

from edx_external_exams.models import ExternalExamResultsCheck
from edx_external_exams.runtime import get_runtime_service

log = logging.getLogger(__name__)


class ResultsCheckScheduler(metaclass=abc.ABCMeta):
    """
    The interface for schedulers of recurring jobs. A job is identified by
    its key (hook name) plus its payload [exam_id, user_id, attempt_id].
    """

    @abc.abstractmethod
    def schedule(self, job_key, interval, payload):
        """
        Adds a recurring job running every interval seconds.
        Returns False if an identical job already exists.
        """
        raise NotImplementedError()

    @abc.abstractmethod
    def is_scheduled(self, job_key, payload):
        """
        Whether an identical job exists
        """
        raise NotImplementedError()

    @abc.abstractmethod
    def cancel(self, job_key, payload):
        """
        Removes the job. Returns whether there was one.
        """
        raise NotImplementedError()


class DatabaseResultsCheckScheduler(ResultsCheckScheduler):
    """
    Keeps jobs in the ExternalExamResultsCheck table
    """

    def _filter(self, job_key, payload):
        exam_id, user_id, attempt_id = payload
        return ExternalExamResultsCheck.objects.filter(
            hook=job_key, exam_id=exam_id, user_id=user_id, attempt_id=attempt_id
        )

    def schedule(self, job_key, interval, payload):
        if self.is_scheduled(job_key, payload):
            return False
        exam_id, user_id, attempt_id = payload
        try:
            with transaction.atomic():
                ExternalExamResultsCheck.objects.create(
                    hook=job_key,
                    exam_id=exam_id,
                    user_id=user_id,
                    attempt_id=attempt_id,
                    interval_seconds=interval,
                    next_run_at=datetime.now(pytz.UTC) + timedelta(seconds=interval),
                )
        except IntegrityError:
            # another request scheduled the same job in the meantime
            return False
        log.info(
            'Scheduled %(hook)s every %(interval)s seconds for exam_id=%(exam_id)s '
            'user_id=%(user_id)s attempt_id=%(attempt_id)s',
            {'hook': job_key, 'interval': interval, 'exam_id': exam_id,
             'user_id': user_id, 'attempt_id': attempt_id}
        )
        return True

    def is_scheduled(self, job_key, payload):
        return self._filter(job_key, payload).exists()

    def cancel(self, job_key, payload):
        deleted, _ = self._filter(job_key, payload).delete()
        if deleted:
            log.info(
                'Unscheduled %(hook)s for payload=%(payload)s',
                {'hook': job_key, 'payload': payload}
            )
        return bool(deleted)

    def get_due_jobs(self, job_key, now=None, exam_id=None):
        """
        Returns the jobs whose next run is due
        """
        now = now or datetime.now(pytz.UTC)
        queryset = ExternalExamResultsCheck.objects.filter(hook=job_key, next_run_at__lte=now)
        if exam_id is not None:
            queryset = queryset.filter(exam_id=exam_id)
        return queryset.order_by('next_run_at')

    def mark_run(self, job, now=None):
        """
        Moves the next run of a job one interval ahead
        """
        now = now or datetime.now(pytz.UTC)
        ExternalExamResultsCheck.objects.filter(pk=job.pk).update(
            last_run_at=now,
            next_run_at=now + timedelta(seconds=job.interval_seconds),
        )


def get_results_scheduler():
    """
    Returns the registered scheduler runtime service or the database scheduler
    """
    return get_runtime_service('scheduler') or DatabaseResultsCheckScheduler()
