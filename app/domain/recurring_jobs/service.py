"""Recurring job service - Business logic for recurring job definitions"""

import logging
from datetime import date, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from ...config import RECURRING_HORIZON_DAYS
from ...errors import ClientNotFound, DefinitionNotFound
from ...models import Client, Job, RecurringJob, User
from ...plan_limits import AccessPolicy
from ..jobs.repository import JobRepository
from .delete_propagator import DeletePropagator, DeleteReport
from .edit_propagator import EditPropagator, EditResult
from .materializer import InstanceMaterializer, MaterializationReport
from .repository import RecurringJobRepository
from .schemas import RecurringJobCreate, RecurringJobUpdate

logger = logging.getLogger(__name__)

# camelCase request fields → model columns
RECURRING_FIELD_MAP = {
    "title": "title",
    "description": "description",
    "frequency": "frequency",
    "startDate": "start_date",
    "endDate": "end_date",
    "scheduledTime": "scheduled_time",
    "agreedHours": "agreed_hours",
    "isActive": "is_active",
}

# Columns that may not be cleared with an explicit null
REQUIRED_FIELDS = ("title", "frequency", "start_date", "scheduled_time", "is_active")


def default_horizon(today: Optional[date] = None) -> date:
    return (today or date.today()) + timedelta(days=RECURRING_HORIZON_DAYS)


class RecurringJobService:
    """Service layer for recurring job business logic"""

    def __init__(self, db: Session, policy: AccessPolicy):
        self.db = db
        self.policy = policy
        self.repo = RecurringJobRepository(db)
        self.job_repo = JobRepository(db)

    def get_recurring_jobs(self, user: User) -> list[RecurringJob]:
        """Get all recurring jobs for a user"""
        return self.repo.list_for_user(user.id)

    def get_recurring_job(self, definition_id: int, user: User) -> RecurringJob:
        """Get a specific recurring job owned by the user"""
        definition = self.repo.get_by_id(definition_id, user.id)
        if not definition:
            raise DefinitionNotFound(definition_id)
        return definition

    def get_instances(self, definition_id: int, user: User) -> list[Job]:
        """Get the materialized instances of a recurring job, earliest first"""
        definition = self.get_recurring_job(definition_id, user)
        return self.job_repo.list_by_recurring_id(definition.id)

    def create_recurring_job(self, data: RecurringJobCreate, user: User) -> RecurringJob:
        """
        Create a recurring job definition.

        Instances are not generated here; call materialize or let the daily
        worker pick the definition up.
        """
        self.policy.require("recurring_jobs")
        logger.info(f"📥 Creating recurring job for user_id: {user.id}, client_id: {data.clientId}")

        client = (
            self.db.query(Client)
            .filter(Client.id == data.clientId, Client.user_id == user.id)
            .first()
        )
        if not client:
            raise ClientNotFound(data.clientId)

        definition = self.repo.create(
            user_id=user.id,
            client_id=client.id,
            title=data.title,
            description=data.description,
            frequency=data.frequency.value,
            start_date=data.startDate,
            end_date=data.endDate,
            scheduled_time=data.scheduledTime,
            agreed_hours=data.agreedHours,
            is_active=data.isActive,
        ).unwrap()

        logger.info(f"✅ Recurring job created: {definition.id} ({definition.frequency})")
        return definition

    def update_recurring_job(
        self,
        definition_id: int,
        data: RecurringJobUpdate,
        user: User,
        today: Optional[date] = None,
    ) -> EditResult:
        """Edit a recurring job and propagate template changes to upcoming instances"""
        sent = data.model_dump(exclude_unset=True)
        expected_version = sent.pop("version", None)

        fields = {}
        for key, value in sent.items():
            column = RECURRING_FIELD_MAP.get(key)
            if column is None:
                continue
            if value is None and column in REQUIRED_FIELDS:
                continue
            fields[column] = value.value if column == "frequency" else value

        propagator = EditPropagator(self.repo, self.job_repo)
        return propagator.apply_edit(
            definition_id,
            fields,
            user_id=user.id,
            today=today,
            expected_version=expected_version,
        )

    def materialize(
        self,
        definition_id: int,
        user: User,
        horizon_end: Optional[date] = None,
    ) -> MaterializationReport:
        """Generate missing instances of one recurring job up to the horizon"""
        self.policy.require("recurring_jobs")
        definition = self.get_recurring_job(definition_id, user)
        materializer = InstanceMaterializer(self.repo, self.job_repo)
        return materializer.materialize(definition, horizon_end or default_horizon())

    def materialize_for_user(self, user: User, horizon_end: Optional[date] = None) -> dict:
        """Generate missing instances for all of the user's active recurring jobs"""
        self.policy.require("recurring_jobs")
        materializer = InstanceMaterializer(self.repo, self.job_repo)
        return materializer.materialize_all(horizon_end or default_horizon(), user_id=user.id)

    def delete_recurring_job(self, definition_id: int, user: User) -> DeleteReport:
        """Delete every instance of a recurring job and deactivate it"""
        propagator = DeletePropagator(self.repo, self.job_repo)
        return propagator.deactivate_series(definition_id, user.id)
