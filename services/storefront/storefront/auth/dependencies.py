from fastapi import HTTPException, status, Depends, Security
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from datetime import datetime, timezone
from uuid import UUID
import logging

from storefront.auth.jwt_validator import jwt_validator
from storefront.db.database import get_db
from storefront.models.user import UserSession, UserProfile

logger = logging.getLogger(__name__)


def as_utc(value: datetime) -> datetime:
    """SQLite hands back naive datetimes; treat them as UTC"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Security(HTTPBearer(auto_error=False)),
    db: Session = Depends(get_db)
) -> dict:
    """Dependency to extract and validate the bearer token

    The token must verify and its session must be neither revoked nor expired.
    """
    if not credentials:
        logger.warning("Authentication credentials missing")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authorization header missing"
        )

    payload = jwt_validator.verify_token(credentials.credentials)

    try:
        user_id = UUID(payload["sub"])
        session_id = UUID(payload["sid"])
    except (KeyError, ValueError):
        logger.warning("Token carries malformed sub or sid claim")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials"
        )

    session = db.query(UserSession).filter(
        UserSession.id == session_id,
        UserSession.user_id == user_id
    ).first()

    if not session or session.revoked_at is not None:
        logger.warning(f"Rejected token for revoked or unknown session {session_id}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Session is no longer valid"
        )

    if as_utc(session.expires_at) <= datetime.now(timezone.utc):
        logger.warning(f"Rejected token for expired session {session_id}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Session expired"
        )

    logger.debug(f"Authenticated user: {payload.get('email')} (user_id: {user_id})")

    return {
        "user_id": user_id,
        "email": payload.get("email"),
        "session_id": session_id,
        "role": payload.get("role"),
        "payload": payload
    }


async def require_admin(
    current_user: dict = Depends(get_current_user),
    db: Session = Depends(get_db)
) -> dict:
    """Dependency to require the admin role on the caller's stored profile"""
    profile = db.query(UserProfile).filter(UserProfile.id == current_user["user_id"]).first()
    if not profile or profile.role != "admin":
        logger.warning(f"Admin access denied for {current_user.get('email')}")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Requires admin role"
        )
    return current_user
