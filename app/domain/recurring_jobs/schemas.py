"""Recurring job domain schemas - Pydantic models for validation"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, field_validator, model_validator

from ...models import RecurringJob
from ...shared.validators import validate_date_range, validate_horizon, validate_time_of_day
from ..jobs.schemas import BatchFailureResponse, JobResponse
from .frequency import Frequency


class RecurringJobCreate(BaseModel):
    """Schema for creating a recurring job"""

    clientId: int
    title: str
    description: Optional[str] = None
    frequency: Frequency
    startDate: date
    endDate: Optional[date] = None
    scheduledTime: str
    agreedHours: Optional[float] = None
    isActive: bool = True

    @field_validator("scheduledTime")
    @classmethod
    def validate_time(cls, v):
        return validate_time_of_day(v)

    @field_validator("agreedHours")
    @classmethod
    def validate_hours(cls, v):
        if v is not None and v <= 0:
            raise ValueError("Agreed hours must be greater than 0")
        return v

    @model_validator(mode="after")
    def validate_dates(self):
        validate_date_range(self.startDate, self.endDate)
        return self


class RecurringJobUpdate(BaseModel):
    """
    Schema for editing a recurring job.

    Only fields present in the request are applied, so sending
    ``"endDate": null`` clears the end date while omitting it leaves it alone.
    """

    title: Optional[str] = None
    description: Optional[str] = None
    frequency: Optional[Frequency] = None
    startDate: Optional[date] = None
    endDate: Optional[date] = None
    scheduledTime: Optional[str] = None
    agreedHours: Optional[float] = None
    isActive: Optional[bool] = None
    version: Optional[int] = None

    @field_validator("scheduledTime")
    @classmethod
    def validate_time(cls, v):
        return validate_time_of_day(v)

    @field_validator("agreedHours")
    @classmethod
    def validate_hours(cls, v):
        if v is not None and v <= 0:
            raise ValueError("Agreed hours must be greater than 0")
        return v


class RecurringJobResponse(BaseModel):
    """Schema for recurring job response"""

    id: int
    clientId: int
    title: str
    description: Optional[str] = None
    frequency: str
    startDate: date
    endDate: Optional[date] = None
    scheduledTime: str
    agreedHours: Optional[float] = None
    isActive: bool
    lastGeneratedDate: Optional[date] = None
    version: int
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None

    @classmethod
    def from_definition(cls, definition: RecurringJob) -> "RecurringJobResponse":
        return cls(
            id=definition.id,
            clientId=definition.client_id,
            title=definition.title,
            description=definition.description,
            frequency=definition.frequency,
            startDate=definition.start_date,
            endDate=definition.end_date,
            scheduledTime=definition.scheduled_time,
            agreedHours=definition.agreed_hours,
            isActive=definition.is_active,
            lastGeneratedDate=definition.last_generated_date,
            version=definition.version,
            createdAt=definition.created_at,
            updatedAt=definition.updated_at,
        )


class RecurringJobEditResponse(BaseModel):
    recurringJob: RecurringJobResponse
    affectedInstanceCount: int
    failures: list[BatchFailureResponse] = []


class MaterializeRequest(BaseModel):
    """Generate instances up to horizonEnd (defaults to the configured horizon)"""

    horizonEnd: Optional[date] = None

    @field_validator("horizonEnd")
    @classmethod
    def validate_horizon_end(cls, v):
        return validate_horizon(v)


class MaterializeResponse(BaseModel):
    recurringJobId: int
    horizonEnd: date
    createdCount: int
    skipped: int
    created: list[JobResponse]
    failures: list[BatchFailureResponse] = []


class MaterializeAllResponse(BaseModel):
    horizonEnd: date
    definitions: int
    created: int
    skipped: int
    failed: int
    errors: list[BatchFailureResponse] = []


class SeriesDeleteResponse(BaseModel):
    message: str
    deletedCount: int
    recurringJob: Optional[RecurringJobResponse] = None
    failures: list[BatchFailureResponse] = []
