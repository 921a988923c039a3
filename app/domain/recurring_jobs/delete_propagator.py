"""
Scoped deletion of jobs.

The caller always picks the scope explicitly:

- single: only the targeted job
- future: the target and every later instance of its series; the series is
  bounded so nothing is generated from the target date onward
- all: every instance of the series, and the series is deactivated

One-off jobs only accept ``single``. Bulk deletes are not atomic; deleting an
instance that is already gone counts as success, and the targeted job is
removed last, so the same request can be retried after a partial failure.
"""

import logging
from dataclasses import dataclass, field
from datetime import timedelta
from enum import Enum
from typing import Optional, Union

from ...errors import DefinitionNotFound, InstanceNotFound, InvalidDeleteScope
from ...models import RecurringJob
from ...shared.result import BatchFailures
from ..stores import InstanceFilter, JobInstanceStore, RecurringJobStore

logger = logging.getLogger(__name__)


class DeleteScope(str, Enum):
    SINGLE = "single"
    FUTURE = "future"
    ALL = "all"


@dataclass
class DeleteReport:
    scope: DeleteScope
    deleted_count: int = 0
    failures: BatchFailures = field(default_factory=BatchFailures)
    definition: Optional[RecurringJob] = None


def parse_scope(scope: Union[str, DeleteScope]) -> DeleteScope:
    if isinstance(scope, DeleteScope):
        return scope
    try:
        return DeleteScope(scope)
    except ValueError:
        raise InvalidDeleteScope(f"Invalid delete scope: {scope!r}") from None


class DeletePropagator:
    """Deletes jobs under a single/future/all scope"""

    def __init__(self, recurring_store: RecurringJobStore, job_store: JobInstanceStore):
        self.recurring_store = recurring_store
        self.job_store = job_store

    def delete(
        self,
        instance_id: int,
        scope: Union[str, DeleteScope],
        user_id: Optional[int] = None,
    ) -> DeleteReport:
        """
        Delete a job and, depending on scope, its siblings.

        Raises:
            InstanceNotFound: The target job does not exist (for this owner)
            InvalidDeleteScope: Unknown scope, or future/all on a one-off job
            StoreWriteFailure: A single-scope delete failed
        """
        scope = parse_scope(scope)

        target = self.job_store.get_by_id(instance_id, user_id)
        if not target:
            raise InstanceNotFound(instance_id)

        recurring_id = target.recurring_job_id
        target_date = target.scheduled_date

        if recurring_id is None and scope is not DeleteScope.SINGLE:
            raise InvalidDeleteScope("Only single deletes are supported for one-off jobs")

        if scope is DeleteScope.SINGLE:
            self.job_store.delete(instance_id).unwrap()
            logger.info(f"🗑️ Deleted job {instance_id}")
            return DeleteReport(scope=scope, deleted_count=1)

        # Series bookkeeping goes first and the target is deleted last, so a
        # partially failed request can be re-sent with the same target
        report = DeleteReport(scope=scope)
        if scope is DeleteScope.FUTURE:
            self._bound_series(recurring_id, target_date - timedelta(days=1), report)
            instance_filter = InstanceFilter(from_date=target_date)
        else:
            self._deactivate_series(recurring_id, report)
            instance_filter = None

        self._delete_instances(recurring_id, report, instance_filter, last_id=instance_id)

        logger.info(
            f"🗑️ Deleted {report.deleted_count} instances of recurring job {recurring_id} "
            f"(scope={scope.value}, failed={len(report.failures)})"
        )
        return report

    def deactivate_series(self, definition_id: int, user_id: Optional[int] = None) -> DeleteReport:
        """Delete every instance of a recurring job and deactivate it"""
        if not self.recurring_store.get_by_id(definition_id, user_id):
            raise DefinitionNotFound(definition_id)

        report = DeleteReport(scope=DeleteScope.ALL)
        self._deactivate_series(definition_id, report)
        self._delete_instances(definition_id, report)

        logger.info(
            f"🗑️ Recurring job {definition_id} deactivated, {report.deleted_count} instances deleted"
        )
        return report

    def _delete_instances(
        self,
        recurring_id: int,
        report: DeleteReport,
        instance_filter: Optional[InstanceFilter] = None,
        last_id: Optional[int] = None,
    ) -> None:
        """
        Delete the series instances matching ``instance_filter``.

        ``last_id`` is deleted after the others and only when they all
        succeeded; otherwise it is kept and reported so the request can be
        retried against it.
        """
        instances = self.job_store.list_by_recurring_id(recurring_id, instance_filter)
        # Ids up front: a rollback after a failed delete expires loaded rows
        targets = [(job.id, job.scheduled_date) for job in instances if job.id != last_id]
        last = [(job.id, job.scheduled_date) for job in instances if job.id == last_id]

        for job_id, scheduled_date in targets:
            self._delete_one(recurring_id, job_id, scheduled_date, report)

        for job_id, scheduled_date in last:
            if report.failures:
                report.failures.add(
                    "Kept until the rest of the series is deleted; retry the request",
                    job_id=job_id,
                    recurring_job_id=recurring_id,
                    scheduled_date=scheduled_date,
                )
            else:
                self._delete_one(recurring_id, job_id, scheduled_date, report)

    def _delete_one(self, recurring_id: int, job_id: int, scheduled_date, report: DeleteReport) -> None:
        result = self.job_store.delete(job_id)
        if not result.ok:
            logger.warning(f"⚠️ Failed to delete job {job_id}: {result.error}")
            report.failures.add(
                result.error,
                job_id=job_id,
                recurring_job_id=recurring_id,
                scheduled_date=scheduled_date,
            )
        elif result.value:
            report.deleted_count += 1

    def _bound_series(self, recurring_id: int, last_date, report: DeleteReport) -> None:
        """
        Stop generation after ``last_date`` unless the series already ends earlier.

        The high-water mark is pulled back to ``last_date`` too, so the deleted
        dates come back if the series is later extended again.
        """
        definition = self.recurring_store.get_by_id(recurring_id)
        if not definition:
            return

        updates = {}
        if definition.end_date is None or definition.end_date > last_date:
            updates["end_date"] = last_date
        if definition.last_generated_date and definition.last_generated_date > last_date:
            updates["last_generated_date"] = last_date

        if not updates:
            report.definition = definition
            return

        result = self.recurring_store.update(recurring_id, updates)
        if result.ok:
            report.definition = result.value
        else:
            report.failures.add(result.error, recurring_job_id=recurring_id)

    def _deactivate_series(self, recurring_id: int, report: DeleteReport) -> None:
        result = self.recurring_store.deactivate(recurring_id)
        if result.ok:
            report.definition = result.value
        else:
            report.failures.add(result.error, recurring_job_id=recurring_id)
