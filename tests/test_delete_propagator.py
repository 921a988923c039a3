from datetime import date, timedelta

import pytest

from app.domain.jobs.repository import JobRepository
from app.domain.recurring_jobs.delete_propagator import DeletePropagator, DeleteScope
from app.domain.recurring_jobs.edit_propagator import EditPropagator
from app.domain.recurring_jobs.materializer import InstanceMaterializer
from app.errors import DefinitionNotFound, InstanceNotFound, InvalidDeleteScope, StoreWriteFailure
from app.shared.result import StoreResult


class StickyJobRepository(JobRepository):
    """Refuses to delete the given job ids"""

    def __init__(self, db, sticky_ids):
        super().__init__(db)
        self.sticky_ids = set(sticky_ids)

    def delete(self, job_id):
        if job_id in self.sticky_ids:
            return StoreResult.failure(StoreWriteFailure("delete", "lock timeout", job_id))
        return super().delete(job_id)


@pytest.fixture
def series(recurring_repo, job_repo, make_definition):
    """Weekly series materialized 2024-05-21 through 2024-06-11"""
    definition = make_definition()
    InstanceMaterializer(recurring_repo, job_repo).materialize(definition, date(2024, 6, 11))
    return definition


def remaining_dates(job_repo, definition):
    return [job.scheduled_date for job in job_repo.list_by_recurring_id(definition.id)]


def instance_on(job_repo, definition, day):
    return job_repo.get_by_recurring_id_and_date(definition.id, day)


def test_single_removes_only_the_target(recurring_repo, job_repo, series):
    target = instance_on(job_repo, series, date(2024, 6, 4))

    report = DeletePropagator(recurring_repo, job_repo).delete(target.id, DeleteScope.SINGLE)

    assert report.deleted_count == 1
    assert remaining_dates(job_repo, series) == [date(2024, 5, 21), date(2024, 5, 28), date(2024, 6, 11)]
    definition = recurring_repo.get_by_id(series.id)
    assert definition.is_active is True
    assert definition.end_date is None


def test_future_removes_target_and_later_instances(recurring_repo, job_repo, series):
    target = instance_on(job_repo, series, date(2024, 6, 4))

    report = DeletePropagator(recurring_repo, job_repo).delete(target.id, "future")

    assert report.deleted_count == 2
    assert remaining_dates(job_repo, series) == [date(2024, 5, 21), date(2024, 5, 28)]
    assert report.definition.end_date == date(2024, 6, 3)
    assert report.definition.is_active is True


def test_future_delete_stops_regeneration(recurring_repo, job_repo, series):
    target = instance_on(job_repo, series, date(2024, 6, 4))
    DeletePropagator(recurring_repo, job_repo).delete(target.id, DeleteScope.FUTURE)

    report = InstanceMaterializer(recurring_repo, job_repo).materialize(
        recurring_repo.get_by_id(series.id), date(2024, 7, 31)
    )

    assert report.created == []
    assert remaining_dates(job_repo, series) == [date(2024, 5, 21), date(2024, 5, 28)]


def test_future_delete_keeps_an_earlier_end_date(recurring_repo, job_repo, make_definition):
    definition = make_definition(end_date=date(2024, 6, 11))
    InstanceMaterializer(recurring_repo, job_repo).materialize(definition, date(2024, 6, 11))
    last = instance_on(job_repo, definition, date(2024, 6, 11))

    # Move the final instance past the series end, then delete from there
    job_repo.update(last.id, {"scheduled_date": date(2024, 6, 20)}).unwrap()
    report = DeletePropagator(recurring_repo, job_repo).delete(last.id, DeleteScope.FUTURE)

    assert report.deleted_count == 1
    assert report.definition.end_date == date(2024, 6, 11)


def test_future_from_first_instance(recurring_repo, job_repo, series):
    first = instance_on(job_repo, series, date(2024, 5, 21))

    report = DeletePropagator(recurring_repo, job_repo).delete(first.id, DeleteScope.FUTURE)

    assert report.deleted_count == 4
    assert remaining_dates(job_repo, series) == []
    assert report.definition.end_date == date(2024, 5, 21) - timedelta(days=1)


def test_all_removes_series_and_deactivates(recurring_repo, job_repo, series):
    target = instance_on(job_repo, series, date(2024, 5, 28))

    report = DeletePropagator(recurring_repo, job_repo).delete(target.id, DeleteScope.ALL)

    assert report.deleted_count == 4
    assert remaining_dates(job_repo, series) == []
    assert report.definition.is_active is False

    rerun = InstanceMaterializer(recurring_repo, job_repo).materialize(
        recurring_repo.get_by_id(series.id), date(2024, 7, 31)
    )
    assert rerun.created == []


def test_one_off_job_only_supports_single(recurring_repo, job_repo, make_job):
    job = make_job()
    propagator = DeletePropagator(recurring_repo, job_repo)

    with pytest.raises(InvalidDeleteScope):
        propagator.delete(job.id, DeleteScope.FUTURE)
    with pytest.raises(InvalidDeleteScope):
        propagator.delete(job.id, DeleteScope.ALL)

    report = propagator.delete(job.id, DeleteScope.SINGLE)
    assert report.deleted_count == 1
    assert job_repo.get_by_id(job.id) is None


def test_unknown_scope_is_rejected(recurring_repo, job_repo, series):
    target = instance_on(job_repo, series, date(2024, 6, 4))

    with pytest.raises(InvalidDeleteScope):
        DeletePropagator(recurring_repo, job_repo).delete(target.id, "everything")


def test_missing_instance(recurring_repo, job_repo):
    with pytest.raises(InstanceNotFound):
        DeletePropagator(recurring_repo, job_repo).delete(4242, DeleteScope.SINGLE)


def test_other_users_instance_is_not_found(recurring_repo, job_repo, series, other_user):
    target = instance_on(job_repo, series, date(2024, 6, 4))

    with pytest.raises(InstanceNotFound):
        DeletePropagator(recurring_repo, job_repo).delete(
            target.id, DeleteScope.SINGLE, user_id=other_user.id
        )


def test_partial_failure_is_reported_and_same_request_can_be_retried(db, recurring_repo, job_repo, series):
    sticky = instance_on(job_repo, series, date(2024, 6, 11))
    target = instance_on(job_repo, series, date(2024, 5, 28))

    report = DeletePropagator(recurring_repo, StickyJobRepository(db, [sticky.id])).delete(
        target.id, DeleteScope.FUTURE
    )

    assert report.deleted_count == 1
    assert [item.job_id for item in report.failures.items] == [sticky.id, target.id]
    assert report.definition.end_date == date(2024, 5, 27)
    # Already-deleted instances stay deleted; the target is kept for the retry
    assert remaining_dates(job_repo, series) == [date(2024, 5, 21), date(2024, 5, 28), date(2024, 6, 11)]

    retry = DeletePropagator(recurring_repo, job_repo).delete(target.id, DeleteScope.FUTURE)

    assert retry.deleted_count == 2
    assert not retry.failures
    assert retry.definition.end_date == date(2024, 5, 27)
    assert remaining_dates(job_repo, series) == [date(2024, 5, 21)]


def test_all_scope_retry_after_partial_failure(db, recurring_repo, job_repo, series):
    sticky = instance_on(job_repo, series, date(2024, 6, 4))
    target = instance_on(job_repo, series, date(2024, 5, 21))

    report = DeletePropagator(recurring_repo, StickyJobRepository(db, [sticky.id])).delete(
        target.id, DeleteScope.ALL
    )

    assert report.definition.is_active is False
    assert len(report.failures) == 2
    assert remaining_dates(job_repo, series) == [date(2024, 5, 21), date(2024, 6, 4)]

    retry = DeletePropagator(recurring_repo, job_repo).delete(target.id, DeleteScope.ALL)

    assert retry.deleted_count == 2
    assert not retry.failures
    assert remaining_dates(job_repo, series) == []


def test_future_delete_then_reopening_the_series_regenerates_deleted_dates(
    recurring_repo, job_repo, series
):
    target = instance_on(job_repo, series, date(2024, 6, 4))
    DeletePropagator(recurring_repo, job_repo).delete(target.id, DeleteScope.FUTURE)

    definition = recurring_repo.get_by_id(series.id)
    assert definition.last_generated_date == date(2024, 6, 3)

    EditPropagator(recurring_repo, job_repo).apply_edit(series.id, {"end_date": None})
    InstanceMaterializer(recurring_repo, job_repo).materialize(
        recurring_repo.get_by_id(series.id), date(2024, 6, 25)
    )

    assert remaining_dates(job_repo, series) == [
        date(2024, 5, 21),
        date(2024, 5, 28),
        date(2024, 6, 4),
        date(2024, 6, 11),
        date(2024, 6, 18),
        date(2024, 6, 25),
    ]


def test_deleting_a_missing_row_is_not_an_error(job_repo, make_job):
    job = make_job()
    job_repo.delete(job.id).unwrap()

    result = job_repo.delete(job.id)

    assert result.ok
    assert result.value is False


def test_deactivate_series(recurring_repo, job_repo, series):
    report = DeletePropagator(recurring_repo, job_repo).deactivate_series(series.id)

    assert report.deleted_count == 4
    assert report.definition.is_active is False


def test_deactivate_missing_series(recurring_repo, job_repo):
    with pytest.raises(DefinitionNotFound):
        DeletePropagator(recurring_repo, job_repo).deactivate_series(999)
