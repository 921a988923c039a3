"""
Instance materialization for recurring jobs.

Expands a recurring job definition into concrete Job rows up to a horizon
date. Safe to run repeatedly: occurrences at or before the definition's
last_generated_date are never regenerated, and any occurrence that already
has an instance is skipped. Each instance is written independently; a failed
write is collected and retried on the next run.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from ...errors import JobsError
from ...models import Job, RecurringJob
from ...shared.result import BatchFailures
from ..stores import JobInstanceStore, RecurringJobStore
from .frequency import iter_occurrences, parse_frequency

logger = logging.getLogger(__name__)


@dataclass
class MaterializationReport:
    recurring_job_id: int
    created: list[Job] = field(default_factory=list)
    skipped: int = 0
    failures: BatchFailures = field(default_factory=BatchFailures)


class InstanceMaterializer:
    """Generates job instances for recurring job definitions"""

    def __init__(self, recurring_store: RecurringJobStore, job_store: JobInstanceStore):
        self.recurring_store = recurring_store
        self.job_store = job_store

    def materialize(self, definition: RecurringJob, horizon_end: date) -> MaterializationReport:
        """
        Create the missing instances of ``definition`` up to ``horizon_end``.

        Raises InvalidFrequency if the definition's frequency is unknown.
        Store failures do not raise; they are returned in the report.
        """
        # Snapshot the template: a rollback after a failed write expires the ORM object
        definition_id = definition.id
        report = MaterializationReport(recurring_job_id=definition_id)

        if not definition.is_active:
            logger.debug(f"Recurring job {definition_id} inactive, nothing to materialize")
            return report

        frequency = parse_frequency(definition.frequency)
        start_date = definition.start_date
        end_date = definition.end_date
        high_water = definition.last_generated_date
        template = {
            "user_id": definition.user_id,
            "client_id": definition.client_id,
            "recurring_job_id": definition_id,
            "title": definition.title,
            "description": definition.description,
            "agreed_hours": definition.agreed_hours,
            "scheduled_time": definition.scheduled_time,
            "status": "scheduled",
        }

        generated_through = high_water
        contiguous = True

        for occurrence in iter_occurrences(start_date, frequency):
            if occurrence > horizon_end:
                break
            if end_date and occurrence > end_date:
                break
            if high_water and occurrence <= high_water:
                continue

            if self.job_store.get_by_recurring_id_and_date(definition_id, occurrence):
                report.skipped += 1
            else:
                result = self.job_store.create(
                    scheduled_date=occurrence,
                    recurring_instance_date=occurrence,
                    **template,
                )
                if not result.ok:
                    logger.warning(
                        f"⚠️ Failed to create instance of recurring job {definition_id} "
                        f"for {occurrence}: {result.error}"
                    )
                    report.failures.add(
                        result.error, recurring_job_id=definition_id, scheduled_date=occurrence
                    )
                    contiguous = False
                    continue
                report.created.append(result.value)

            # Only advance past dates that are known to exist
            if contiguous:
                generated_through = occurrence

        if generated_through and generated_through != high_water:
            result = self.recurring_store.record_generated_through(definition_id, generated_through)
            if not result.ok:
                report.failures.add(result.error, recurring_job_id=definition_id)

        logger.info(
            f"📅 Recurring job {definition_id}: created {len(report.created)}, "
            f"skipped {report.skipped}, failed {len(report.failures)} (horizon {horizon_end})"
        )
        return report

    def materialize_all(self, horizon_end: date, user_id: Optional[int] = None) -> dict:
        """
        Materialize every active definition, optionally for a single user.

        One bad definition never blocks the others: its error, including a
        failed database read, is recorded in the summary and the loop continues.
        """
        definitions = self.recurring_store.list_active(user_id)
        summary = {
            "definitions": len(definitions),
            "created": 0,
            "skipped": 0,
            "failed": 0,
            "errors": [],
        }

        for definition in definitions:
            definition_id = definition.id
            try:
                report = self.materialize(definition, horizon_end)
            except SQLAlchemyError as e:
                self.job_store.rollback()
                self.recurring_store.rollback()
                logger.error(f"❌ Database error materializing recurring job {definition_id}: {str(e)}")
                summary["failed"] += 1
                summary["errors"].append({"recurringJobId": definition_id, "error": str(e)})
                continue
            except JobsError as e:
                logger.error(f"❌ Recurring job {definition_id} could not be materialized: {e}")
                summary["failed"] += 1
                summary["errors"].append({"recurringJobId": definition_id, "error": str(e)})
                continue

            summary["created"] += len(report.created)
            summary["skipped"] += report.skipped
            summary["failed"] += len(report.failures)
            summary["errors"].extend(report.failures.to_list())

        logger.info(
            f"✅ Materialized {summary['definitions']} recurring jobs: "
            f"{summary['created']} created, {summary['failed']} failed"
        )
        return summary
