from datetime import date

import pytest

from app.domain.jobs.repository import JobRepository
from app.domain.recurring_jobs.edit_propagator import EditPropagator
from app.domain.recurring_jobs.materializer import InstanceMaterializer
from app.errors import (
    DefinitionNotFound,
    InvalidFrequency,
    InvalidSchedule,
    StoreWriteFailure,
    VersionConflict,
)
from app.shared.result import StoreResult


class RejectingJobRepository(JobRepository):
    """Refuses updates to the given job ids"""

    def __init__(self, db, rejected_ids):
        super().__init__(db)
        self.rejected_ids = set(rejected_ids)

    def update(self, job_id, fields, expected_version=None):
        if job_id in self.rejected_ids:
            return StoreResult.failure(StoreWriteFailure("update", "timeout", job_id))
        return super().update(job_id, fields, expected_version)


@pytest.fixture
def series(recurring_repo, job_repo, make_definition):
    """Weekly series materialized 2024-05-21 through 2024-06-11"""
    definition = make_definition()
    InstanceMaterializer(recurring_repo, job_repo).materialize(definition, date(2024, 6, 11))
    return definition


def instance_on(job_repo, definition, day):
    return job_repo.get_by_recurring_id_and_date(definition.id, day)


def test_title_edit_reaches_upcoming_instances_only(recurring_repo, job_repo, series):
    propagator = EditPropagator(recurring_repo, job_repo)

    result = propagator.apply_edit(series.id, {"title": "Office clean + windows"}, today=date(2024, 6, 1))

    assert result.definition.title == "Office clean + windows"
    assert result.affected_instance_count == 2
    assert instance_on(job_repo, series, date(2024, 5, 28)).title == "Weekly office clean"
    assert instance_on(job_repo, series, date(2024, 6, 4)).title == "Office clean + windows"
    assert instance_on(job_repo, series, date(2024, 6, 11)).title == "Office clean + windows"


def test_completed_instances_are_never_touched(recurring_repo, job_repo, series):
    done = instance_on(job_repo, series, date(2024, 6, 4))
    job_repo.update(done.id, {"status": "completed"}).unwrap()

    result = EditPropagator(recurring_repo, job_repo).apply_edit(
        series.id, {"scheduled_time": "07:30"}, today=date(2024, 5, 21)
    )

    assert result.affected_instance_count == 3
    assert instance_on(job_repo, series, date(2024, 6, 4)).scheduled_time == "09:00"
    assert instance_on(job_repo, series, date(2024, 6, 11)).scheduled_time == "07:30"


def test_instance_status_and_dates_are_preserved(recurring_repo, job_repo, series):
    target = instance_on(job_repo, series, date(2024, 6, 4))
    job_repo.update(
        target.id, {"status": "in_progress", "scheduled_date": date(2024, 6, 5), "total_time_seconds": 600}
    ).unwrap()

    EditPropagator(recurring_repo, job_repo).apply_edit(
        series.id, {"description": "Bring ladder", "agreed_hours": 4.0}, today=date(2024, 5, 21)
    )

    job = job_repo.get_by_id(target.id)
    assert job.description == "Bring ladder"
    assert job.agreed_hours == 4.0
    assert job.status == "in_progress"
    assert job.scheduled_date == date(2024, 6, 5)
    assert job.total_time_seconds == 600


def test_schedule_only_edit_touches_no_instances(recurring_repo, job_repo, series):
    result = EditPropagator(recurring_repo, job_repo).apply_edit(
        series.id, {"end_date": date(2024, 12, 31), "frequency": "bi_weekly"}, today=date(2024, 5, 21)
    )

    assert result.affected_instance_count == 0
    assert result.definition.end_date == date(2024, 12, 31)
    assert result.definition.frequency == "bi_weekly"


def test_unknown_fields_are_ignored(recurring_repo, job_repo, series):
    result = EditPropagator(recurring_repo, job_repo).apply_edit(
        series.id, {"user_id": 999, "title": "Renamed"}, today=date(2024, 5, 21)
    )

    assert result.definition.user_id == series.user_id
    assert result.definition.title == "Renamed"


def test_edit_bumps_the_version(recurring_repo, job_repo, series):
    before = series.version

    result = EditPropagator(recurring_repo, job_repo).apply_edit(
        series.id, {"title": "Renamed"}, expected_version=before
    )

    assert result.definition.version == before + 1


def test_stale_version_is_rejected(recurring_repo, job_repo, series):
    stale = series.version
    recurring_repo.update(series.id, {"title": "Edited elsewhere"}).unwrap()

    with pytest.raises(VersionConflict):
        EditPropagator(recurring_repo, job_repo).apply_edit(
            series.id, {"title": "My edit"}, today=date(2024, 5, 21), expected_version=stale
        )

    assert recurring_repo.get_by_id(series.id).title == "Edited elsewhere"
    assert instance_on(job_repo, series, date(2024, 6, 4)).title == "Weekly office clean"


def test_instance_failures_are_collected(db, recurring_repo, job_repo, series):
    rejected = instance_on(job_repo, series, date(2024, 6, 4))
    propagator = EditPropagator(recurring_repo, RejectingJobRepository(db, [rejected.id]))

    result = propagator.apply_edit(series.id, {"title": "Renamed"}, today=date(2024, 5, 21))

    assert result.affected_instance_count == 3
    assert len(result.failures) == 1
    assert result.failures.items[0].job_id == rejected.id
    assert result.failures.items[0].scheduled_date == date(2024, 6, 4)
    # The definition change stands
    assert recurring_repo.get_by_id(series.id).title == "Renamed"


def test_invalid_frequency_is_rejected(recurring_repo, job_repo, series):
    with pytest.raises(InvalidFrequency):
        EditPropagator(recurring_repo, job_repo).apply_edit(series.id, {"frequency": "yearly"})


def test_end_before_start_is_rejected(recurring_repo, job_repo, series):
    with pytest.raises(InvalidSchedule):
        EditPropagator(recurring_repo, job_repo).apply_edit(
            series.id, {"end_date": date(2024, 5, 1)}
        )


def test_missing_definition(recurring_repo, job_repo):
    with pytest.raises(DefinitionNotFound):
        EditPropagator(recurring_repo, job_repo).apply_edit(12345, {"title": "x"})


def test_other_users_definition_is_not_found(recurring_repo, job_repo, series, other_user):
    with pytest.raises(DefinitionNotFound):
        EditPropagator(recurring_repo, job_repo).apply_edit(
            series.id, {"title": "x"}, user_id=other_user.id
        )
