"""Result values returned by store write operations"""

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Generic, Optional, TypeVar

from ..errors import JobsError

T = TypeVar("T")


@dataclass
class StoreResult(Generic[T]):
    """Success carries ``value``; failure carries ``error``"""

    value: Optional[T] = None
    error: Optional[JobsError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: Optional[T] = None) -> "StoreResult[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: JobsError) -> "StoreResult[T]":
        return cls(error=error)

    def unwrap(self) -> T:
        """Return the value or raise the stored failure (single-target callers)"""
        if self.error is not None:
            raise self.error
        return self.value


@dataclass
class ItemFailure:
    """One failed item inside a batch operation"""

    error: str
    job_id: Optional[int] = None
    recurring_job_id: Optional[int] = None
    scheduled_date: Optional[date] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "jobId": self.job_id,
            "recurringJobId": self.recurring_job_id,
            "scheduledDate": self.scheduled_date.isoformat() if self.scheduled_date else None,
            "error": self.error,
        }


@dataclass
class BatchFailures:
    """Collects per-item failures so one bad record never blocks the rest"""

    items: list[ItemFailure] = field(default_factory=list)

    def add(self, error: Exception, **context) -> None:
        self.items.append(ItemFailure(error=str(error), **context))

    def __len__(self) -> int:
        return len(self.items)

    def __bool__(self) -> bool:
        return bool(self.items)

    def to_list(self) -> list[dict[str, Any]]:
        return [item.to_dict() for item in self.items]
