# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""JWT token management utilities.

This module provides access token creation and validation using python-jose.
Tokens carry the user's id, role and school so the API can build the
caller's principal without a database round trip.

Example:
    >>> from src.core.config import get_settings
    >>> jwt_manager = JWTManager(get_settings().jwt)
    >>> token = jwt_manager.create_access_token(user_id="65f0...", role="school_admin")
    >>> claims = jwt_manager.decode_token(token.access_token)
"""

import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Literal

from jose import ExpiredSignatureError, JWTError, jwt
from pydantic import BaseModel, ValidationError

from src.core.config.settings import JWTSettings
from src.core.errors import InvalidTokenError

logger = logging.getLogger(__name__)


class TokenPayload(BaseModel):
    """JWT token payload structure.

    Attributes:
        sub: Subject (user ID).
        type: Token type.
        role: User role (superadmin or school_admin).
        school_id: School a school admin is bound to.
        email: User email at issue time.
        exp: Expiration timestamp.
        iat: Issued at timestamp.
        jti: JWT ID for token tracking.
    """

    sub: str
    type: Literal["access"] = "access"
    role: str
    school_id: str | None = None
    email: str | None = None
    exp: int
    iat: int
    jti: str


class AccessToken(BaseModel):
    """Issued access token.

    Attributes:
        access_token: JWT access token string.
        token_type: Token type (always "Bearer").
        expires_in: Access token expiration in seconds.
    """

    access_token: str
    token_type: str = "Bearer"
    expires_in: int


class JWTManager:
    """JWT token creation and validation manager.

    Attributes:
        _settings: JWT configuration settings.

    Example:
        >>> jwt_manager = JWTManager(settings)
        >>> token = jwt_manager.create_access_token(
        ...     user_id="65f0...",
        ...     role="school_admin",
        ...     school_id="65f1...",
        ... )
        >>> claims = jwt_manager.decode_token(token.access_token)
    """

    def __init__(self, settings: JWTSettings) -> None:
        """Initialize the JWT manager.

        Args:
            settings: JWT configuration settings.
        """
        self._settings = settings

    @property
    def expires_in(self) -> int:
        """Access token lifetime in seconds."""
        return self._settings.access_token_expire_minutes * 60

    def create_access_token(
        self,
        user_id: str,
        role: str,
        school_id: str | None = None,
        email: str | None = None,
    ) -> AccessToken:
        """Create an access token.

        Args:
            user_id: User identifier.
            role: User role.
            school_id: School the user administers.
            email: User email.

        Returns:
            AccessToken with the encoded JWT.
        """
        now = datetime.now(timezone.utc)
        exp = now + timedelta(minutes=self._settings.access_token_expire_minutes)

        payload = {
            "sub": str(user_id),
            "type": "access",
            "role": role,
            "school_id": school_id,
            "email": email,
            "exp": int(exp.timestamp()),
            "iat": int(now.timestamp()),
            "jti": secrets.token_urlsafe(16),
        }

        token = jwt.encode(
            payload,
            self._settings.secret_key.get_secret_value(),
            algorithm=self._settings.algorithm,
        )
        return AccessToken(access_token=token, expires_in=self.expires_in)

    def decode_token(self, token: str) -> TokenPayload:
        """Decode and validate a JWT token.

        Args:
            token: JWT token string.

        Returns:
            TokenPayload with decoded claims.

        Raises:
            InvalidTokenError: If the token is expired, malformed or signed
                with another key.
        """
        try:
            payload = jwt.decode(
                token,
                self._settings.secret_key.get_secret_value(),
                algorithms=[self._settings.algorithm],
            )
            return TokenPayload.model_validate(payload)
        except ExpiredSignatureError as e:
            raise InvalidTokenError("Token has expired") from e
        except (JWTError, ValidationError) as e:
            logger.warning("Token decode failed: %s", str(e))
            raise InvalidTokenError(details={"reason": str(e)}) from e

    def verify_token(self, token: str) -> bool:
        """Check whether a token is valid."""
        try:
            self.decode_token(token)
            return True
        except InvalidTokenError:
            return False
