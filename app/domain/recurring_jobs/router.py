"""Recurring job router - FastAPI endpoints for recurring job definitions"""

from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import get_access_policy, get_current_user
from ...database import get_db
from ...models import User
from ...plan_limits import AccessPolicy
from ..jobs.schemas import JobResponse
from .schemas import (
    MaterializeAllResponse,
    MaterializeRequest,
    MaterializeResponse,
    RecurringJobCreate,
    RecurringJobEditResponse,
    RecurringJobResponse,
    RecurringJobUpdate,
    SeriesDeleteResponse,
)
from .service import RecurringJobService, default_horizon

router = APIRouter(prefix="/recurring-jobs", tags=["Recurring Jobs"])


def get_recurring_job_service(
    db: Session = Depends(get_db),
    policy: AccessPolicy = Depends(get_access_policy),
) -> RecurringJobService:
    """Dependency injection for RecurringJobService"""
    return RecurringJobService(db, policy)


@router.get("", response_model=list[RecurringJobResponse])
async def get_recurring_jobs(
    current_user: User = Depends(get_current_user),
    service: RecurringJobService = Depends(get_recurring_job_service),
):
    """Get all recurring jobs for the current user"""
    return [
        RecurringJobResponse.from_definition(definition)
        for definition in service.get_recurring_jobs(current_user)
    ]


@router.post("", response_model=RecurringJobResponse, status_code=201)
async def create_recurring_job(
    data: RecurringJobCreate,
    current_user: User = Depends(get_current_user),
    service: RecurringJobService = Depends(get_recurring_job_service),
):
    """Create a recurring job; instances are generated by materialize"""
    return RecurringJobResponse.from_definition(service.create_recurring_job(data, current_user))


@router.post("/materialize", response_model=MaterializeAllResponse)
async def materialize_all(
    data: Optional[MaterializeRequest] = None,
    current_user: User = Depends(get_current_user),
    service: RecurringJobService = Depends(get_recurring_job_service),
):
    """Generate missing instances for every active recurring job of the current user"""
    horizon_end = (data.horizonEnd if data else None) or default_horizon()
    summary = service.materialize_for_user(current_user, horizon_end)
    return MaterializeAllResponse(horizonEnd=horizon_end, **summary)


@router.get("/{recurring_job_id}", response_model=RecurringJobResponse)
async def get_recurring_job(
    recurring_job_id: int,
    current_user: User = Depends(get_current_user),
    service: RecurringJobService = Depends(get_recurring_job_service),
):
    """Get a specific recurring job"""
    return RecurringJobResponse.from_definition(
        service.get_recurring_job(recurring_job_id, current_user)
    )


@router.patch("/{recurring_job_id}", response_model=RecurringJobEditResponse)
async def update_recurring_job(
    recurring_job_id: int,
    data: RecurringJobUpdate,
    current_user: User = Depends(get_current_user),
    service: RecurringJobService = Depends(get_recurring_job_service),
):
    """
    Edit a recurring job.

    Title, description, time and hours are copied onto every instance from
    today onward that is not completed. Instances that fail to update are
    listed in ``failures``; the definition change is kept either way.
    """
    result = service.update_recurring_job(recurring_job_id, data, current_user)
    return RecurringJobEditResponse(
        recurringJob=RecurringJobResponse.from_definition(result.definition),
        affectedInstanceCount=result.affected_instance_count,
        failures=result.failures.to_list(),
    )


@router.delete("/{recurring_job_id}", response_model=SeriesDeleteResponse)
async def delete_recurring_job(
    recurring_job_id: int,
    current_user: User = Depends(get_current_user),
    service: RecurringJobService = Depends(get_recurring_job_service),
):
    """Delete all instances of a recurring job and deactivate it"""
    report = service.delete_recurring_job(recurring_job_id, current_user)
    return SeriesDeleteResponse(
        message=f"Recurring job deactivated, {report.deleted_count} job(s) deleted",
        deletedCount=report.deleted_count,
        recurringJob=(
            RecurringJobResponse.from_definition(report.definition) if report.definition else None
        ),
        failures=report.failures.to_list(),
    )


@router.get("/{recurring_job_id}/instances", response_model=list[JobResponse])
async def get_recurring_job_instances(
    recurring_job_id: int,
    current_user: User = Depends(get_current_user),
    service: RecurringJobService = Depends(get_recurring_job_service),
):
    """Get the generated jobs of a recurring job"""
    return [
        JobResponse.from_job(job) for job in service.get_instances(recurring_job_id, current_user)
    ]


@router.post("/{recurring_job_id}/materialize", response_model=MaterializeResponse)
async def materialize_recurring_job(
    recurring_job_id: int,
    data: Optional[MaterializeRequest] = None,
    current_user: User = Depends(get_current_user),
    service: RecurringJobService = Depends(get_recurring_job_service),
):
    """Generate missing instances of a recurring job up to horizonEnd"""
    horizon_end = (data.horizonEnd if data else None) or default_horizon()
    report = service.materialize(recurring_job_id, current_user, horizon_end)
    return MaterializeResponse(
        recurringJobId=report.recurring_job_id,
        horizonEnd=horizon_end,
        createdCount=len(report.created),
        skipped=report.skipped,
        created=[JobResponse.from_job(job) for job in report.created],
        failures=report.failures.to_list(),
    )
