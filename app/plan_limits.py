"""
Plan limits and feature access for subscription tiers.

Access is resolved once per request into an AccessPolicy value and handed to
the services that need it, so the business logic never reads the auth context.
"""

from dataclasses import dataclass
from datetime import date
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from .errors import FeatureNotAvailable
from .models import Client, Job, User

# None means unlimited
TIER_FEATURES = {
    "free": {
        "features": {
            "recurring_jobs": True,  # Available to every tier
            "advanced_time_tracking": False,
        },
        "limits": {"max_clients": 5, "max_jobs_per_month": 50},
    },
    "pro": {
        "features": {
            "recurring_jobs": True,
            "advanced_time_tracking": True,
        },
        "limits": {"max_clients": None, "max_jobs_per_month": None},
    },
}


@dataclass(frozen=True)
class AccessPolicy:
    """Feature flags and limits for one user's plan tier"""

    tier: str
    recurring_jobs: bool
    advanced_time_tracking: bool
    max_clients: Optional[int]
    max_jobs_per_month: Optional[int]

    @classmethod
    def for_tier(cls, tier: Optional[str]) -> "AccessPolicy":
        """Build the policy for a tier; unknown or missing tiers fall back to free"""
        key = (tier or "free").lower()
        if key not in TIER_FEATURES:
            key = "free"
        config = TIER_FEATURES[key]
        return cls(
            tier=key,
            recurring_jobs=config["features"]["recurring_jobs"],
            advanced_time_tracking=config["features"]["advanced_time_tracking"],
            max_clients=config["limits"]["max_clients"],
            max_jobs_per_month=config["limits"]["max_jobs_per_month"],
        )

    @classmethod
    def for_user(cls, user: User) -> "AccessPolicy":
        return cls.for_tier(user.plan)

    def require(self, feature: str) -> None:
        """Raise FeatureNotAvailable unless the feature flag is on"""
        if not getattr(self, feature, False):
            raise FeatureNotAvailable(
                f"Your {self.tier} plan does not include {feature.replace('_', ' ')}"
            )


def count_jobs_in_month(db: Session, user_id: int, day: date) -> int:
    """Count the user's jobs scheduled in the calendar month containing ``day``"""
    month_start = day.replace(day=1)
    if month_start.month == 12:
        next_month = month_start.replace(year=month_start.year + 1, month=1)
    else:
        next_month = month_start.replace(month=month_start.month + 1)

    return (
        db.query(func.count(Job.id))
        .filter(
            Job.user_id == user_id,
            Job.scheduled_date >= month_start,
            Job.scheduled_date < next_month,
        )
        .scalar()
    )


def can_add_job(policy: AccessPolicy, db: Session, user_id: int, day: date) -> tuple:
    """
    Check if the user can add another job in the month of ``day``.
    Returns (can_add, error_message).
    """
    if policy.max_jobs_per_month is None:
        return (True, None)

    current = count_jobs_in_month(db, user_id, day)
    if current >= policy.max_jobs_per_month:
        return (
            False,
            f"You've reached your monthly limit of {policy.max_jobs_per_month} jobs. "
            "Upgrade to Pro for unlimited jobs.",
        )
    return (True, None)


def can_add_client(policy: AccessPolicy, db: Session, user_id: int) -> tuple:
    """
    Check if the user can add another client.
    Returns (can_add, error_message).
    """
    if policy.max_clients is None:
        return (True, None)

    current = db.query(func.count(Client.id)).filter(Client.user_id == user_id).scalar()
    if current >= policy.max_clients:
        return (
            False,
            f"You've reached your limit of {policy.max_clients} clients. "
            "Upgrade to Pro for unlimited clients.",
        )
    return (True, None)
