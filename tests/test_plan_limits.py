from datetime import date

import pytest

from app.auth import sync_user
from app.errors import FeatureNotAvailable
from app.models import Client
from app.plan_limits import AccessPolicy, can_add_client, can_add_job, count_jobs_in_month


def test_free_policy():
    policy = AccessPolicy.for_tier("free")

    assert policy.recurring_jobs is True
    assert policy.advanced_time_tracking is False
    assert policy.max_jobs_per_month == 50


def test_pro_policy_is_unlimited():
    policy = AccessPolicy.for_tier("pro")

    assert policy.advanced_time_tracking is True
    assert policy.max_jobs_per_month is None
    assert policy.max_clients is None


@pytest.mark.parametrize("tier", [None, "", "enterprise-trial"])
def test_unknown_tiers_fall_back_to_free(tier):
    assert AccessPolicy.for_tier(tier).tier == "free"


def test_tier_lookup_is_case_insensitive():
    assert AccessPolicy.for_tier("PRO").tier == "pro"


def test_require_raises_for_missing_feature():
    with pytest.raises(FeatureNotAvailable) as exc:
        AccessPolicy.for_tier("free").require("advanced_time_tracking")

    assert "advanced time tracking" in str(exc.value)
    AccessPolicy.for_tier("free").require("recurring_jobs")


def test_count_jobs_in_month_spans_calendar_month(db, user, make_job):
    make_job(scheduled_date=date(2024, 11, 30))
    make_job(scheduled_date=date(2024, 12, 1))
    make_job(scheduled_date=date(2024, 12, 31))
    make_job(scheduled_date=date(2025, 1, 1))

    assert count_jobs_in_month(db, user.id, date(2024, 12, 15)) == 2


def test_can_add_job_respects_limit(db, user, make_job):
    policy = AccessPolicy(
        tier="free", recurring_jobs=True, advanced_time_tracking=False, max_clients=5, max_jobs_per_month=2
    )
    make_job(scheduled_date=date(2024, 6, 1))

    assert can_add_job(policy, db, user.id, date(2024, 6, 2)) == (True, None)

    make_job(scheduled_date=date(2024, 6, 2))
    allowed, message = can_add_job(policy, db, user.id, date(2024, 6, 3))
    assert allowed is False
    assert "monthly limit of 2 jobs" in message


def test_can_add_client_respects_limit(db, user):
    policy = AccessPolicy.for_tier("free")
    for i in range(policy.max_clients):
        db.add(Client(user_id=user.id, name=f"Client {i}"))
    db.commit()

    allowed, message = can_add_client(policy, db, user.id)

    assert allowed is False
    assert "limit of 5 clients" in message
    assert can_add_client(AccessPolicy.for_tier("pro"), db, user.id) == (True, None)


def test_sync_user_creates_and_updates_plan(db):
    auth_user = {
        "id": "uid-new",
        "email": "new@example.com",
        "user_metadata": {"full_name": "New Owner", "subscription_tier": "free"},
    }

    created = sync_user(db, auth_user)
    assert created.plan == "free"
    assert created.full_name == "New Owner"

    auth_user["user_metadata"]["subscription_tier"] = "pro"
    upgraded = sync_user(db, auth_user)

    assert upgraded.id == created.id
    assert upgraded.plan == "pro"
    assert AccessPolicy.for_user(upgraded).advanced_time_tracking is True
