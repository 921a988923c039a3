"""
Edit propagation for recurring jobs.

An edit updates the definition first, then copies the template fields onto
every instance that is not completed and is scheduled today or later.
Completed instances are history and are never touched; status, dates and
time tracking on instances are never overwritten.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Optional

from ...errors import DefinitionNotFound, InvalidSchedule
from ...models import RecurringJob
from ...shared.result import BatchFailures
from ..stores import InstanceFilter, JobInstanceStore, RecurringJobStore
from .frequency import parse_frequency

logger = logging.getLogger(__name__)

# Fields copied from a definition onto its instances
TEMPLATE_FIELDS = ("title", "description", "scheduled_time", "agreed_hours")
# Everything an edit may change on the definition itself
DEFINITION_FIELDS = TEMPLATE_FIELDS + ("frequency", "start_date", "end_date", "is_active")


@dataclass
class EditResult:
    definition: RecurringJob
    affected_instance_count: int = 0
    failures: BatchFailures = field(default_factory=BatchFailures)


class EditPropagator:
    """Applies definition edits and cascades them to upcoming instances"""

    def __init__(self, recurring_store: RecurringJobStore, job_store: JobInstanceStore):
        self.recurring_store = recurring_store
        self.job_store = job_store

    def apply_edit(
        self,
        definition_id: int,
        fields: dict,
        user_id: Optional[int] = None,
        today: Optional[date] = None,
        expected_version: Optional[int] = None,
    ) -> EditResult:
        """
        Update a recurring job and its upcoming instances.

        Args:
            definition_id: Recurring job to edit
            fields: Partial set of DEFINITION_FIELDS; other keys are ignored
            user_id: Restrict the lookup to this owner
            today: Cut-off for "upcoming" instances (defaults to date.today())
            expected_version: Version the caller last saw, if any

        Raises:
            DefinitionNotFound: No such recurring job (for this owner)
            VersionConflict: expected_version is stale
            InvalidFrequency / InvalidSchedule: Bad schedule values
            StoreWriteFailure: The definition itself could not be saved

        Instance failures do not raise; they are collected on the result and
        the definition update stands.
        """
        today = today or date.today()

        definition = self.recurring_store.get_by_id(definition_id, user_id)
        if not definition:
            raise DefinitionNotFound(definition_id)

        updates = {key: value for key, value in fields.items() if key in DEFINITION_FIELDS}
        if "frequency" in updates:
            updates["frequency"] = parse_frequency(updates["frequency"]).value

        if "start_date" in updates or "end_date" in updates:
            start = updates.get("start_date", definition.start_date)
            end = updates.get("end_date", definition.end_date)
            if start is None:
                raise InvalidSchedule("Start date is required")
            if end and end < start:
                raise InvalidSchedule("End date cannot be before start date")

        definition = self.recurring_store.update(definition_id, updates, expected_version).unwrap()
        result = EditResult(definition=definition)

        template_updates = {key: updates[key] for key in TEMPLATE_FIELDS if key in updates}
        if not template_updates:
            return result

        candidates = self.job_store.list_by_recurring_id(
            definition_id,
            InstanceFilter(from_date=today, exclude_statuses=("completed",)),
        )
        # Ids up front: a rollback after a failed write expires loaded rows
        candidate_ids = [(job.id, job.scheduled_date) for job in candidates]

        for job_id, scheduled_date in candidate_ids:
            update = self.job_store.update(job_id, template_updates)
            if update.ok:
                result.affected_instance_count += 1
            else:
                logger.warning(f"⚠️ Failed to propagate edit to job {job_id}: {update.error}")
                result.failures.add(
                    update.error,
                    job_id=job_id,
                    recurring_job_id=definition_id,
                    scheduled_date=scheduled_date,
                )

        logger.info(
            f"✏️ Recurring job {definition_id} updated, {result.affected_instance_count} "
            f"upcoming instances changed, {len(result.failures)} failed"
        )
        return result
