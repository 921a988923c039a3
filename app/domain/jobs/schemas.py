"""Job domain schemas - Pydantic models for validation"""

from datetime import date, datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, field_validator

from ...models import Job
from ...shared.validators import validate_time_of_day


class JobStatus(str, Enum):
    ENQUIRY = "enquiry"
    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class JobCreate(BaseModel):
    """Schema for creating a one-off job"""

    clientId: int
    title: str
    description: Optional[str] = None
    scheduledDate: date
    scheduledTime: Optional[str] = None
    endTime: Optional[str] = None
    agreedHours: Optional[float] = None
    status: JobStatus = JobStatus.SCHEDULED

    @field_validator("scheduledTime", "endTime")
    @classmethod
    def validate_time(cls, v):
        return validate_time_of_day(v)

    @field_validator("agreedHours")
    @classmethod
    def validate_hours(cls, v):
        if v is not None and v <= 0:
            raise ValueError("Agreed hours must be greater than 0")
        return v

    @field_validator("status")
    @classmethod
    def validate_initial_status(cls, v):
        if v not in (JobStatus.ENQUIRY, JobStatus.SCHEDULED):
            raise ValueError("New jobs start as an enquiry or scheduled")
        return v


class JobUpdate(BaseModel):
    """Schema for updating a single job; only fields sent are changed"""

    title: Optional[str] = None
    description: Optional[str] = None
    scheduledDate: Optional[date] = None
    scheduledTime: Optional[str] = None
    endTime: Optional[str] = None
    agreedHours: Optional[float] = None
    version: Optional[int] = None

    @field_validator("scheduledTime", "endTime")
    @classmethod
    def validate_time(cls, v):
        return validate_time_of_day(v)

    @field_validator("agreedHours")
    @classmethod
    def validate_hours(cls, v):
        if v is not None and v <= 0:
            raise ValueError("Agreed hours must be greater than 0")
        return v


class JobStatusUpdate(BaseModel):
    status: JobStatus


class JobResponse(BaseModel):
    """Schema for job response"""

    id: int
    clientId: int
    recurringJobId: Optional[int] = None
    recurringInstanceDate: Optional[date] = None
    title: str
    description: Optional[str] = None
    agreedHours: Optional[float] = None
    scheduledDate: date
    scheduledTime: Optional[str] = None
    endTime: Optional[str] = None
    status: str
    timerStartedAt: Optional[datetime] = None
    timerEndedAt: Optional[datetime] = None
    totalTimeSeconds: int = 0
    version: int
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None

    @classmethod
    def from_job(cls, job: Job) -> "JobResponse":
        return cls(
            id=job.id,
            clientId=job.client_id,
            recurringJobId=job.recurring_job_id,
            recurringInstanceDate=job.recurring_instance_date,
            title=job.title,
            description=job.description,
            agreedHours=job.agreed_hours,
            scheduledDate=job.scheduled_date,
            scheduledTime=job.scheduled_time,
            endTime=job.end_time,
            status=job.status,
            timerStartedAt=job.timer_started_at,
            timerEndedAt=job.timer_ended_at,
            totalTimeSeconds=job.total_time_seconds or 0,
            version=job.version,
            createdAt=job.created_at,
            updatedAt=job.updated_at,
        )


class BatchFailureResponse(BaseModel):
    jobId: Optional[int] = None
    recurringJobId: Optional[int] = None
    scheduledDate: Optional[date] = None
    error: str


class JobDeleteResponse(BaseModel):
    message: str
    scope: str
    deletedCount: int
    recurringJobId: Optional[int] = None
    recurringJobActive: Optional[bool] = None
    recurringJobEndDate: Optional[date] = None
    failures: list[BatchFailureResponse] = []
