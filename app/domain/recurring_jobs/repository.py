"""Recurring job repository - Database operations for recurring job definitions"""

from datetime import date
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...errors import DefinitionNotFound, StoreWriteFailure
from ...models import RecurringJob
from ...shared.result import StoreResult
from ..stores import RecurringJobStore, check_version, commit_write


class RecurringJobRepository(RecurringJobStore):
    """Repository for recurring job definition database operations"""

    def __init__(self, db: Session):
        self.db = db

    def rollback(self) -> None:
        self.db.rollback()

    def create(self, **fields) -> StoreResult[RecurringJob]:
        """Create a new recurring job definition"""
        definition = RecurringJob(**fields)
        self.db.add(definition)
        return commit_write(self.db, "create", definition, "Recurring job")

    def get_by_id(self, definition_id: int, user_id: Optional[int] = None) -> Optional[RecurringJob]:
        """Get a recurring job by ID, scoped to its owner when user_id is given"""
        query = self.db.query(RecurringJob).filter(RecurringJob.id == definition_id)
        if user_id is not None:
            query = query.filter(RecurringJob.user_id == user_id)
        return query.first()

    def update(
        self, definition_id: int, fields: dict, expected_version: Optional[int] = None
    ) -> StoreResult[RecurringJob]:
        """Update a recurring job with the provided fields"""
        definition = self.get_by_id(definition_id)
        if not definition:
            return StoreResult.failure(DefinitionNotFound(definition_id))

        conflict = check_version(definition, "Recurring job", expected_version)
        if conflict:
            return StoreResult.failure(conflict)

        for key, value in fields.items():
            if hasattr(definition, key):
                setattr(definition, key, value)

        return commit_write(self.db, "update", definition, "Recurring job", definition_id)

    def deactivate(self, definition_id: int) -> StoreResult[RecurringJob]:
        """Stop a recurring job from generating new instances"""
        return self.update(definition_id, {"is_active": False})

    def list_active(self, user_id: Optional[int] = None) -> list[RecurringJob]:
        """Get active recurring jobs for a user, or for every user"""
        query = self.db.query(RecurringJob).filter(RecurringJob.is_active.is_(True))
        if user_id is not None:
            query = query.filter(RecurringJob.user_id == user_id)
        return query.order_by(RecurringJob.id).all()

    def list_for_user(self, user_id: int) -> list[RecurringJob]:
        """Get all recurring jobs for a user"""
        return (
            self.db.query(RecurringJob)
            .filter(RecurringJob.user_id == user_id)
            .order_by(RecurringJob.created_at.desc(), RecurringJob.id.desc())
            .all()
        )

    def record_generated_through(self, definition_id: int, through: date) -> StoreResult[bool]:
        """Advance last_generated_date; bookkeeping only, so the row version is left alone"""
        try:
            updated = (
                self.db.query(RecurringJob)
                .filter(RecurringJob.id == definition_id)
                .update({"last_generated_date": through}, synchronize_session="fetch")
            )
        except SQLAlchemyError as e:
            self.db.rollback()
            return StoreResult.failure(StoreWriteFailure("record progress", str(e), definition_id))

        result = commit_write(self.db, "record progress", None, "Recurring job", definition_id)
        if not result.ok:
            return result
        return StoreResult.success(updated > 0)
