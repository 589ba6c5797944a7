from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from uuid import UUID
from datetime import datetime, timedelta, timezone
import logging

from storefront.config import settings
from storefront.auth.jwt_validator import jwt_validator
from storefront.auth.passwords import hash_password, verify_password
from storefront.models.user import User, UserSession, UserProfile

logger = logging.getLogger(__name__)

DEFAULT_FULL_NAME = "User"


class AuthService:
    """Accounts, sessions and customer profiles"""

    def __init__(self, db: Session):
        self.db = db

    def sign_up(self, email: str, password: str, full_name: str = None) -> User:
        """Register an account; the email is confirmed immediately"""
        email = email.strip().lower()
        if self.db.query(User.id).filter(User.email == email).first():
            raise ValueError("User already registered")

        user = User(
            email=email,
            password_hash=hash_password(password),
            full_name=full_name,
            email_confirmed_at=datetime.now(timezone.utc)
        )
        self.db.add(user)
        try:
            self.db.flush()
            self.db.add(UserProfile(
                id=user.id,
                email=email,
                full_name=full_name or DEFAULT_FULL_NAME,
                role="customer"
            ))
            self.db.commit()
        except IntegrityError as e:
            # A concurrent sign-up took the email after the check above
            self.db.rollback()
            logger.warning(f"Duplicate sign-up for {email}: {e}")
            raise ValueError("User already registered")
        self.db.refresh(user)

        logger.info(f"Registered user {email} ({user.id})")
        return user

    def sign_in(self, email: str, password: str) -> dict:
        """Verify credentials and open a session

        Raises:
            PermissionError: "Invalid login credentials" for an unknown email
                or a wrong password
        """
        email = email.strip().lower()
        user = self.db.query(User).filter(User.email == email).first()
        if not user or not verify_password(password, user.password_hash):
            logger.warning(f"Failed sign-in for {email}")
            raise PermissionError("Invalid login credentials")

        profile = self.get_profile(user)
        session = UserSession(
            user_id=user.id,
            expires_at=datetime.now(timezone.utc) + timedelta(seconds=settings.session_ttl_seconds)
        )
        self.db.add(session)
        self.db.commit()

        token = jwt_validator.issue_token(
            user_id=str(user.id),
            email=user.email,
            session_id=str(session.id),
            role=profile.role
        )
        logger.info(f"User {email} signed in (session {session.id})")
        return {
            "access_token": token,
            "token_type": "bearer",
            "expires_in": settings.access_token_ttl_seconds,
            "user": user,
        }

    def sign_out(self, session_id: UUID) -> None:
        session = self.db.query(UserSession).filter(UserSession.id == session_id).first()
        if not session:
            raise LookupError("Session not found")
        if session.revoked_at is None:
            session.revoked_at = datetime.now(timezone.utc)
            self.db.commit()
        logger.info(f"Session {session_id} revoked")

    def get_user(self, user_id: UUID) -> User:
        user = self.db.query(User).filter(User.id == user_id).first()
        if not user:
            raise LookupError("User not found")
        return user

    def get_profile(self, user: User) -> UserProfile:
        """Return the stored profile, creating a customer profile when missing

        If the profile cannot be stored, an unsaved profile flagged
        ``is_fallback`` is returned instead.
        """
        profile = self.db.query(UserProfile).filter(UserProfile.id == user.id).first()
        if profile:
            return profile

        profile = UserProfile(
            id=user.id,
            email=user.email,
            full_name=user.full_name or DEFAULT_FULL_NAME,
            role="customer"
        )
        try:
            self.db.add(profile)
            self.db.commit()
            self.db.refresh(profile)
            logger.info(f"Created missing profile for user {user.id}")
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to create profile for user {user.id}: {e}", exc_info=True)
            profile = UserProfile(
                id=user.id,
                email=user.email,
                full_name=user.full_name or DEFAULT_FULL_NAME,
                role="customer",
                created_at=datetime.now(timezone.utc)
            )
            profile.is_fallback = True
        return profile
