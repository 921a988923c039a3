import logging

import httpx
from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from .config import AUTH_SERVICE_API_KEY, AUTH_SERVICE_TIMEOUT, AUTH_SERVICE_URL
from .database import get_db
from .models import User
from .plan_limits import AccessPolicy

logger = logging.getLogger(__name__)

security = HTTPBearer()


async def fetch_auth_user(token: str) -> dict:
    """
    Resolve a bearer token to the platform's user record.

    Token verification is owned by the hosting platform's auth service; this
    only asks it who the token belongs to.
    """
    headers = {"Authorization": f"Bearer {token}"}
    if AUTH_SERVICE_API_KEY:
        headers["apikey"] = AUTH_SERVICE_API_KEY

    try:
        async with httpx.AsyncClient(timeout=AUTH_SERVICE_TIMEOUT) as client:
            response = await client.get(f"{AUTH_SERVICE_URL}/auth/v1/user", headers=headers)
    except httpx.HTTPError as e:
        logger.error(f"❌ Auth service unreachable: {str(e)}")
        raise HTTPException(status_code=503, detail="Authentication service unavailable") from e

    if response.status_code in (401, 403):
        logger.warning("⚠️ Auth service rejected token")
        raise HTTPException(status_code=401, detail="Invalid or expired token")
    if response.status_code != 200:
        logger.error(f"❌ Auth service returned HTTP {response.status_code}")
        raise HTTPException(status_code=401, detail="Authentication failed")

    return response.json()


def sync_user(db: Session, auth_user: dict) -> User:
    """Find or create the local user for a platform identity and refresh its tier"""
    auth_uid = auth_user.get("id")
    if not auth_uid:
        logger.error(f"❌ Auth user missing id. Available keys: {list(auth_user.keys())}")
        raise HTTPException(status_code=401, detail="Invalid token claims")

    metadata = auth_user.get("user_metadata") or {}
    email = auth_user.get("email") or ""
    plan = metadata.get("subscription_tier") or "free"

    user = db.query(User).filter(User.auth_uid == auth_uid).first()
    if not user:
        logger.info(f"🆕 Creating new user: {email}")
        user = User(
            auth_uid=auth_uid,
            email=email,
            full_name=metadata.get("full_name"),
            plan=plan,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    if user.plan != plan:
        logger.info(f"🔄 User {user.id} plan changed: {user.plan} → {plan}")
        user.plan = plan
        db.commit()
        db.refresh(user)

    return user


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    """Get current user from the platform auth token"""
    if not credentials:
        raise HTTPException(
            status_code=401,
            detail="Not authenticated. Please provide a valid Bearer token in the Authorization header.",
        )

    auth_user = await fetch_auth_user(credentials.credentials)

    try:
        user = sync_user(db, auth_user)
    except HTTPException:
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"❌ Authentication failed: {str(e)}")
        raise HTTPException(status_code=401, detail="Authentication failed") from e

    logger.debug(f"✅ User authenticated: {user.email}")
    return user


async def get_access_policy(user: User = Depends(get_current_user)) -> AccessPolicy:
    """Resolve the caller's plan tier into an explicit AccessPolicy"""
    return AccessPolicy.for_user(user)
