"""Job repository - Database operations for one-off jobs and recurring instances"""

from datetime import date
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...errors import InstanceNotFound, StoreWriteFailure
from ...models import Job
from ...shared.result import StoreResult
from ..stores import InstanceFilter, JobInstanceStore, check_version, commit_write


class JobRepository(JobInstanceStore):
    """Repository for job database operations"""

    def __init__(self, db: Session):
        self.db = db

    def rollback(self) -> None:
        self.db.rollback()

    def create(self, **fields) -> StoreResult[Job]:
        """Create a new job"""
        job = Job(**fields)
        self.db.add(job)
        return commit_write(self.db, "create", job, "Job")

    def get_by_id(self, job_id: int, user_id: Optional[int] = None) -> Optional[Job]:
        """Get a job by ID, scoped to its owner when user_id is given"""
        query = self.db.query(Job).filter(Job.id == job_id)
        if user_id is not None:
            query = query.filter(Job.user_id == user_id)
        return query.first()

    def get_by_recurring_id_and_date(self, recurring_id: int, occurrence: date) -> Optional[Job]:
        """Get the instance generated for one occurrence of a recurring job"""
        return (
            self.db.query(Job)
            .filter(
                Job.recurring_job_id == recurring_id,
                Job.recurring_instance_date == occurrence,
            )
            .first()
        )

    def list_by_recurring_id(
        self, recurring_id: int, instance_filter: Optional[InstanceFilter] = None
    ) -> list[Job]:
        """Get instances of a recurring job, earliest first"""
        query = self.db.query(Job).filter(Job.recurring_job_id == recurring_id)

        if instance_filter:
            if instance_filter.from_date is not None:
                query = query.filter(Job.scheduled_date >= instance_filter.from_date)
            if instance_filter.exclude_statuses:
                query = query.filter(Job.status.notin_(instance_filter.exclude_statuses))

        return query.order_by(Job.scheduled_date.asc(), Job.id.asc()).all()

    def list_for_user(
        self,
        user_id: int,
        status: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        recurring_job_id: Optional[int] = None,
    ) -> list[Job]:
        """Search and filter jobs for a user"""
        query = self.db.query(Job).filter(Job.user_id == user_id)

        if status and status != "all":
            query = query.filter(Job.status == status)

        if start_date:
            query = query.filter(Job.scheduled_date >= start_date)

        if end_date:
            query = query.filter(Job.scheduled_date <= end_date)

        if recurring_job_id is not None:
            query = query.filter(Job.recurring_job_id == recurring_job_id)

        return query.order_by(Job.scheduled_date.asc(), Job.scheduled_time.asc()).all()

    def update(
        self, job_id: int, fields: dict, expected_version: Optional[int] = None
    ) -> StoreResult[Job]:
        """Update a job with the provided fields"""
        job = self.get_by_id(job_id)
        if not job:
            return StoreResult.failure(InstanceNotFound(job_id))

        conflict = check_version(job, "Job", expected_version)
        if conflict:
            return StoreResult.failure(conflict)

        for key, value in fields.items():
            if hasattr(job, key):
                setattr(job, key, value)

        return commit_write(self.db, "update", job, "Job", job_id)

    def delete(self, job_id: int) -> StoreResult[bool]:
        """Delete a job; an already-deleted job is not an error"""
        try:
            deleted = self.db.query(Job).filter(Job.id == job_id).delete()
        except SQLAlchemyError as e:
            self.db.rollback()
            return StoreResult.failure(StoreWriteFailure("delete", str(e), job_id))

        result = commit_write(self.db, "delete", None, "Job", job_id)
        if not result.ok:
            return result
        return StoreResult.success(deleted > 0)
