"""
Store interfaces for recurring job definitions and job instances.

The services only talk to these interfaces. Write operations return a
StoreResult instead of raising so batch operations can collect failures and
keep going; reads return the record or None.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from ..errors import StoreWriteFailure, VersionConflict
from ..models import Job, RecurringJob
from ..shared.result import StoreResult

logger = logging.getLogger(__name__)


@dataclass
class InstanceFilter:
    """Optional narrowing for list_by_recurring_id"""

    from_date: Optional[date] = None
    exclude_statuses: tuple[str, ...] = ()


class RecurringJobStore(ABC):
    """Persistence for recurring job definitions"""

    @abstractmethod
    def create(self, **fields) -> StoreResult[RecurringJob]:
        """Insert a definition"""

    @abstractmethod
    def get_by_id(self, definition_id: int, user_id: Optional[int] = None) -> Optional[RecurringJob]:
        """Fetch a definition, optionally scoped to its owner"""

    @abstractmethod
    def update(
        self, definition_id: int, fields: dict, expected_version: Optional[int] = None
    ) -> StoreResult[RecurringJob]:
        """Apply field updates; a stale expected_version fails with VersionConflict"""

    @abstractmethod
    def record_generated_through(self, definition_id: int, through: date) -> StoreResult[bool]:
        """Advance the materialization high-water mark without bumping the row version"""

    @abstractmethod
    def deactivate(self, definition_id: int) -> StoreResult[RecurringJob]:
        """Stop a definition from generating new instances"""

    @abstractmethod
    def list_active(self, user_id: Optional[int] = None) -> list[RecurringJob]:
        """Active definitions for one user, or for everyone when user_id is None"""

    @abstractmethod
    def list_for_user(self, user_id: int) -> list[RecurringJob]:
        """All definitions owned by a user, newest first"""

    @abstractmethod
    def rollback(self) -> None:
        """Discard a failed unit of work so the store can be used again"""


class JobInstanceStore(ABC):
    """Persistence for concrete jobs"""

    @abstractmethod
    def create(self, **fields) -> StoreResult[Job]:
        """Insert a job"""

    @abstractmethod
    def get_by_id(self, job_id: int, user_id: Optional[int] = None) -> Optional[Job]:
        """Fetch a job, optionally scoped to its owner"""

    @abstractmethod
    def get_by_recurring_id_and_date(self, recurring_id: int, occurrence: date) -> Optional[Job]:
        """Fetch the instance materialized for one occurrence of a series"""

    @abstractmethod
    def list_by_recurring_id(
        self, recurring_id: int, instance_filter: Optional[InstanceFilter] = None
    ) -> list[Job]:
        """Instances of a series in ascending scheduled_date order"""

    @abstractmethod
    def update(
        self, job_id: int, fields: dict, expected_version: Optional[int] = None
    ) -> StoreResult[Job]:
        """Apply field updates; a stale expected_version fails with VersionConflict"""

    @abstractmethod
    def delete(self, job_id: int) -> StoreResult[bool]:
        """Hard delete; deleting a missing job succeeds with value False"""

    @abstractmethod
    def rollback(self) -> None:
        """Discard a failed unit of work so the store can be used again"""


def commit_write(
    db: Session,
    operation: str,
    record,
    record_name: str,
    record_id: Optional[int] = None,
) -> StoreResult:
    """
    Commit a pending write and wrap the outcome in a StoreResult.

    Stale row versions become VersionConflict; any other database error
    becomes StoreWriteFailure. The session is rolled back on failure so the
    caller can keep using it for the next item in a batch.
    """
    try:
        db.commit()
        if record is not None:
            db.refresh(record)
    except StaleDataError:
        db.rollback()
        logger.warning(f"⚠️ Concurrent modification on {record_name} {record_id} during {operation}")
        return StoreResult.failure(VersionConflict(record_name, record_id, None, None))
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"❌ Failed to {operation} {record_name} {record_id}: {str(e)}")
        return StoreResult.failure(StoreWriteFailure(operation, str(e), record_id))
    return StoreResult.success(record)


def check_version(record, record_name: str, expected_version: Optional[int]) -> Optional[VersionConflict]:
    """Compare a caller-supplied version with the loaded row"""
    if expected_version is not None and record.version != expected_version:
        return VersionConflict(record_name, record.id, expected_version, record.version)
    return None
