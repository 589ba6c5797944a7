"""
JWT issuing and validation for storefront sessions.

Tokens are HS256-signed with the service secret. Each token carries the
session id (``sid``) so that signing out can revoke it server-side.
"""
import jwt
import logging
from datetime import datetime, timedelta, timezone
from typing import Dict
from fastapi import HTTPException, status
from storefront.config import settings

logger = logging.getLogger(__name__)


class JWTValidator:
    def __init__(self):
        self.secret = settings.jwt_secret
        self.algorithm = settings.jwt_algorithm
        self.issuer = settings.jwt_issuer
        self.ttl_seconds = settings.access_token_ttl_seconds

    def issue_token(self, user_id: str, email: str, session_id: str, role: str) -> str:
        """Create a signed access token for an open session"""
        now = datetime.now(timezone.utc)
        payload = {
            "sub": user_id,
            "email": email,
            "sid": session_id,
            "role": role,
            "iss": self.issuer,
            "iat": now,
            "exp": now + timedelta(seconds=self.ttl_seconds),
        }
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def verify_token(self, token: str) -> Dict:
        """
        Verify signature, expiry and issuer.

        Raises:
            HTTPException: 401 when the token is invalid or expired
        """
        try:
            return jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                issuer=self.issuer,
                options={"require": ["sub", "sid", "exp", "iss"]}
            )
        except jwt.ExpiredSignatureError:
            logger.warning("JWT verification failed: token expired")
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Session expired"
            )
        except jwt.InvalidTokenError as e:
            logger.warning(f"JWT verification failed: {e}")
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid authentication credentials"
            )


jwt_validator = JWTValidator()
