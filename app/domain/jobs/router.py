"""Job router - FastAPI endpoints for jobs, status workflow and time tracking"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_access_policy, get_current_user
from ...database import get_db
from ...models import User
from ...plan_limits import AccessPolicy
from ..recurring_jobs.delete_propagator import DeleteScope
from .schemas import (
    JobCreate,
    JobDeleteResponse,
    JobResponse,
    JobStatusUpdate,
    JobUpdate,
)
from .service import JobService

router = APIRouter(prefix="/jobs", tags=["Jobs"])


def get_job_service(db: Session = Depends(get_db)) -> JobService:
    """Dependency injection for JobService"""
    return JobService(db)


# ========================================
# CRUD
# ========================================


@router.get("", response_model=list[JobResponse])
async def get_jobs(
    status: Optional[str] = Query(None),
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    recurring_job_id: Optional[int] = Query(None, alias="recurringJobId"),
    current_user: User = Depends(get_current_user),
    service: JobService = Depends(get_job_service),
):
    """Get jobs for the current user, earliest first"""
    jobs = service.get_jobs(current_user, status, start_date, end_date, recurring_job_id)
    return [JobResponse.from_job(job) for job in jobs]


@router.post("", response_model=JobResponse, status_code=201)
async def create_job(
    data: JobCreate,
    current_user: User = Depends(get_current_user),
    policy: AccessPolicy = Depends(get_access_policy),
    service: JobService = Depends(get_job_service),
):
    """Create a one-off job"""
    return JobResponse.from_job(service.create_job(data, current_user, policy))


@router.get("/{job_id}", response_model=JobResponse)
async def get_job(
    job_id: int,
    current_user: User = Depends(get_current_user),
    service: JobService = Depends(get_job_service),
):
    """Get a specific job"""
    return JobResponse.from_job(service.get_job(job_id, current_user))


@router.patch("/{job_id}", response_model=JobResponse)
async def update_job(
    job_id: int,
    data: JobUpdate,
    current_user: User = Depends(get_current_user),
    service: JobService = Depends(get_job_service),
):
    """Update a single job; recurring siblings are left alone"""
    return JobResponse.from_job(service.update_job(job_id, data, current_user))


@router.delete("/{job_id}", response_model=JobDeleteResponse)
async def delete_job(
    job_id: int,
    scope: DeleteScope = Query(..., description="single, future or all"),
    current_user: User = Depends(get_current_user),
    service: JobService = Depends(get_job_service),
):
    """
    Delete a job.

    ``scope`` is required: ``single`` removes only this job, ``future`` also
    removes later instances of its series and ends the series before this
    date, ``all`` removes the whole series and deactivates it.
    """
    report = service.delete_job(job_id, scope, current_user)
    definition = report.definition

    return JobDeleteResponse(
        message=f"Deleted {report.deleted_count} job(s)",
        scope=report.scope.value,
        deletedCount=report.deleted_count,
        recurringJobId=definition.id if definition else None,
        recurringJobActive=definition.is_active if definition else None,
        recurringJobEndDate=definition.end_date if definition else None,
        failures=report.failures.to_list(),
    )


# ========================================
# Status workflow
# ========================================


@router.post("/{job_id}/status", response_model=JobResponse)
async def change_job_status(
    job_id: int,
    data: JobStatusUpdate,
    current_user: User = Depends(get_current_user),
    service: JobService = Depends(get_job_service),
):
    """Move a job to a new status"""
    return JobResponse.from_job(service.change_status(job_id, data.status.value, current_user))


# ========================================
# Time tracking
# ========================================


@router.post("/{job_id}/timer/start", response_model=JobResponse)
async def start_timer(
    job_id: int,
    current_user: User = Depends(get_current_user),
    service: JobService = Depends(get_job_service),
):
    return JobResponse.from_job(service.start_timer(job_id, current_user))


@router.post("/{job_id}/timer/pause", response_model=JobResponse)
async def pause_timer(
    job_id: int,
    current_user: User = Depends(get_current_user),
    policy: AccessPolicy = Depends(get_access_policy),
    service: JobService = Depends(get_job_service),
):
    """Pause the timer (Pro plan)"""
    return JobResponse.from_job(service.pause_timer(job_id, current_user, policy))


@router.post("/{job_id}/timer/resume", response_model=JobResponse)
async def resume_timer(
    job_id: int,
    current_user: User = Depends(get_current_user),
    policy: AccessPolicy = Depends(get_access_policy),
    service: JobService = Depends(get_job_service),
):
    """Resume a paused timer (Pro plan)"""
    return JobResponse.from_job(service.resume_timer(job_id, current_user, policy))


@router.post("/{job_id}/timer/stop", response_model=JobResponse)
async def stop_timer(
    job_id: int,
    current_user: User = Depends(get_current_user),
    service: JobService = Depends(get_job_service),
):
    return JobResponse.from_job(service.stop_timer(job_id, current_user))
