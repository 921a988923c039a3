"""
Job service - Business logic for one-off jobs and recurring instances.

Status workflow: enquiry → scheduled → in_progress → completed, with
cancellation from any open state. Time tracking runs a single timer per job;
paused time is folded into total_time_seconds.
"""

import logging
from datetime import date, datetime
from typing import Optional

from sqlalchemy.orm import Session

from ...errors import ClientNotFound, FeatureNotAvailable, InstanceNotFound, InvalidStatusTransition
from ...models import Client, Job, User
from ...plan_limits import AccessPolicy, can_add_job
from ..recurring_jobs.delete_propagator import DeletePropagator, DeleteReport, DeleteScope
from ..recurring_jobs.repository import RecurringJobRepository
from .repository import JobRepository
from .schemas import JobCreate, JobUpdate

logger = logging.getLogger(__name__)

STATUS_TRANSITIONS = {
    "enquiry": {"scheduled", "cancelled"},
    "scheduled": {"in_progress", "cancelled", "enquiry"},
    "in_progress": {"completed", "scheduled", "cancelled"},
    "cancelled": {"scheduled"},
    "completed": set(),
}

# camelCase request fields → model columns
JOB_FIELD_MAP = {
    "title": "title",
    "description": "description",
    "scheduledDate": "scheduled_date",
    "scheduledTime": "scheduled_time",
    "endTime": "end_time",
    "agreedHours": "agreed_hours",
}

# Columns that may not be cleared with an explicit null
REQUIRED_FIELDS = ("title", "scheduled_date")


def elapsed_seconds(started_at: Optional[datetime], now: datetime) -> int:
    if not started_at:
        return 0
    return max(0, int((now - started_at).total_seconds()))


class JobService:
    """Service layer for job business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = JobRepository(db)
        self.recurring_repo = RecurringJobRepository(db)

    # ========================================
    # Queries
    # ========================================

    def get_jobs(
        self,
        user: User,
        status: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        recurring_job_id: Optional[int] = None,
    ) -> list[Job]:
        """Get jobs for a user with optional filters"""
        return self.repo.list_for_user(user.id, status, start_date, end_date, recurring_job_id)

    def get_job(self, job_id: int, user: User) -> Job:
        """Get a specific job owned by the user"""
        job = self.repo.get_by_id(job_id, user.id)
        if not job:
            raise InstanceNotFound(job_id)
        return job

    # ========================================
    # Create / update
    # ========================================

    def create_job(self, data: JobCreate, user: User, policy: AccessPolicy) -> Job:
        """Create a one-off job, enforcing the plan's monthly job limit"""
        logger.info(f"📥 Creating job for user_id: {user.id}, client_id: {data.clientId}")

        client = (
            self.db.query(Client)
            .filter(Client.id == data.clientId, Client.user_id == user.id)
            .first()
        )
        if not client:
            raise ClientNotFound(data.clientId)

        can_add, error_message = can_add_job(policy, self.db, user.id, data.scheduledDate)
        if not can_add:
            logger.warning(f"⚠️ User {user.id} reached job limit: {error_message}")
            raise FeatureNotAvailable(error_message)

        job = self.repo.create(
            user_id=user.id,
            client_id=client.id,
            title=data.title,
            description=data.description,
            scheduled_date=data.scheduledDate,
            scheduled_time=data.scheduledTime,
            end_time=data.endTime,
            agreed_hours=data.agreedHours,
            status=data.status.value,
        ).unwrap()

        logger.info(f"✅ Job created: {job.id}")
        return job

    def update_job(self, job_id: int, data: JobUpdate, user: User) -> Job:
        """
        Update fields on a single job.

        Only this job changes, even when it belongs to a recurring series.
        Passing ``version`` turns on the optimistic concurrency check.
        """
        job = self.get_job(job_id, user)

        sent = data.model_dump(exclude_unset=True)
        expected_version = sent.pop("version", None)
        fields = {
            JOB_FIELD_MAP[key]: value for key, value in sent.items() if key in JOB_FIELD_MAP
        }
        for column in REQUIRED_FIELDS:
            if column in fields and fields[column] is None:
                del fields[column]

        job = self.repo.update(job.id, fields, expected_version).unwrap()
        logger.info(f"✏️ Job {job.id} updated: {sorted(fields)}")
        return job

    # ========================================
    # Status workflow
    # ========================================

    def change_status(self, job_id: int, new_status: str, user: User, now: Optional[datetime] = None) -> Job:
        """Move a job along the status workflow"""
        job = self.get_job(job_id, user)
        current = job.status

        if new_status == current:
            return job

        if new_status not in STATUS_TRANSITIONS.get(current, set()):
            raise InvalidStatusTransition(
                f"Cannot change job status from {current} to {new_status}"
            )

        now = now or datetime.utcnow()
        fields = {"status": new_status}
        if job.timer_started_at:
            # Leaving in_progress stops the clock
            fields["total_time_seconds"] = (job.total_time_seconds or 0) + elapsed_seconds(
                job.timer_started_at, now
            )
            fields["timer_started_at"] = None
        if new_status == "completed":
            fields["timer_ended_at"] = now

        job = self.repo.update(job.id, fields).unwrap()
        logger.info(f"🔄 Job {job.id} status: {current} → {new_status}")
        return job

    # ========================================
    # Time tracking
    # ========================================

    def start_timer(self, job_id: int, user: User, now: Optional[datetime] = None) -> Job:
        """Start working on a scheduled job"""
        job = self.get_job(job_id, user)

        if job.timer_started_at:
            raise InvalidStatusTransition("Timer is already running")
        if job.status != "scheduled":
            raise InvalidStatusTransition(f"Cannot start a timer on a job that is {job.status}")

        job = self.repo.update(
            job.id,
            {
                "status": "in_progress",
                "timer_started_at": now or datetime.utcnow(),
                "timer_ended_at": None,
            },
        ).unwrap()
        logger.info(f"⏱️ Timer started for job {job.id}")
        return job

    def pause_timer(
        self, job_id: int, user: User, policy: AccessPolicy, now: Optional[datetime] = None
    ) -> Job:
        """Pause a running timer, banking the elapsed time"""
        policy.require("advanced_time_tracking")
        job = self.get_job(job_id, user)

        if not job.timer_started_at:
            raise InvalidStatusTransition("Timer is not running")

        total = (job.total_time_seconds or 0) + elapsed_seconds(
            job.timer_started_at, now or datetime.utcnow()
        )
        job = self.repo.update(
            job.id, {"timer_started_at": None, "total_time_seconds": total}
        ).unwrap()
        logger.info(f"⏸️ Timer paused for job {job.id} ({total}s tracked)")
        return job

    def resume_timer(
        self, job_id: int, user: User, policy: AccessPolicy, now: Optional[datetime] = None
    ) -> Job:
        """Resume a paused timer"""
        policy.require("advanced_time_tracking")
        job = self.get_job(job_id, user)

        if job.timer_started_at:
            raise InvalidStatusTransition("Timer is already running")
        if job.status != "in_progress":
            raise InvalidStatusTransition(f"Cannot resume a timer on a job that is {job.status}")

        job = self.repo.update(job.id, {"timer_started_at": now or datetime.utcnow()}).unwrap()
        logger.info(f"▶️ Timer resumed for job {job.id}")
        return job

    def stop_timer(self, job_id: int, user: User, now: Optional[datetime] = None) -> Job:
        """Stop the timer and complete the job"""
        job = self.get_job(job_id, user)

        if job.status != "in_progress":
            raise InvalidStatusTransition("Timer is not running")

        now = now or datetime.utcnow()
        total = (job.total_time_seconds or 0) + elapsed_seconds(job.timer_started_at, now)
        job = self.repo.update(
            job.id,
            {
                "status": "completed",
                "timer_started_at": None,
                "timer_ended_at": now,
                "total_time_seconds": total,
            },
        ).unwrap()
        logger.info(f"⏹️ Timer stopped for job {job.id}, {total}s tracked")
        return job

    # ========================================
    # Delete
    # ========================================

    def delete_job(self, job_id: int, scope: DeleteScope, user: User) -> DeleteReport:
        """Delete a job with an explicit single/future/all scope"""
        propagator = DeletePropagator(self.recurring_repo, self.repo)
        return propagator.delete(job_id, scope, user.id)
