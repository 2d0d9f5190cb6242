"""Bearer token handling for identity-provider issued JWTs"""

import logging
from datetime import datetime, timedelta
from typing import Optional, Dict, Any
from uuid import UUID
from jose import JWTError, jwt
from photo_restore.config import settings

logger = logging.getLogger(__name__)


class AuthService:
    """
    Verifies access tokens issued by the identity provider.

    Users live with the provider; the only claim this service relies on is
    `sub`, the user's UUID.
    """

    @staticmethod
    def generate_token(
        user_id: UUID,
        expires_delta: Optional[timedelta] = None,
        extra_claims: Optional[Dict[str, Any]] = None,
    ) -> str:
        """
        Generate a JWT the way the identity provider does (local runs and tests)

        Args:
            user_id: Subject of the token
            expires_delta: Optional expiration time delta (defaults to 1 hour)
            extra_claims: Additional claims to include

        Returns:
            Encoded JWT token string
        """
        expire = datetime.utcnow() + (expires_delta or timedelta(hours=1))
        to_encode = {
            "sub": str(user_id),
            "exp": expire,
            "iat": datetime.utcnow(),
        }
        if settings.jwt_audience:
            to_encode["aud"] = settings.jwt_audience
        if extra_claims:
            to_encode.update(extra_claims)

        return jwt.encode(to_encode, settings.jwt_secret, algorithm=settings.jwt_algorithm)

    @staticmethod
    def decode_token(token: str) -> Optional[Dict[str, Any]]:
        """
        Decode and validate a JWT token (signature, expiry, audience if configured)

        Args:
            token: JWT token string to decode

        Returns:
            Dictionary of token claims if valid, None otherwise
        """
        try:
            if settings.jwt_audience:
                return jwt.decode(
                    token,
                    settings.jwt_secret,
                    algorithms=[settings.jwt_algorithm],
                    audience=settings.jwt_audience,
                )
            return jwt.decode(
                token,
                settings.jwt_secret,
                algorithms=[settings.jwt_algorithm],
                options={"verify_aud": False},
            )
        except JWTError as e:
            logger.debug(f"Rejected token: {e}")
            return None

    @staticmethod
    def user_id_from_token(token: str) -> Optional[UUID]:
        """
        Extract the user id from a valid token

        Returns:
            User UUID, or None if the token is invalid or `sub` is not a UUID
        """
        payload = AuthService.decode_token(token)
        if not payload:
            return None

        subject = payload.get("sub")
        if not subject:
            return None

        try:
            return UUID(str(subject))
        except ValueError:
            return None
