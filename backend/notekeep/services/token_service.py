"""
Notekeep Backend: Session Token Service
=======================================

What:  Issues and verifies the signed, time-limited session tokens (JWT).
How:   PyJWT with the configured HMAC algorithm. Claims: userId, email,
       iat, exp, jti. Verification checks signature and expiry and requires
       the identity claims.
Who:   AuthService issues tokens at login; the auth dependency verifies them.

Tokens are stateless: nothing is stored server-side, so logout only clears
the client's cookie and a token stays valid until `exp`.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional
from uuid import UUID, uuid4

import jwt

from notekeep.config import settings
from notekeep.exceptions import InvalidTokenError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TokenClaims:
    """Identity carried by a verified session token."""
    user_id: UUID
    email: str
    expires_at: datetime


class TokenService:
    """Signs and verifies session tokens."""

    def __init__(
        self,
        secret: Optional[str] = None,
        algorithm: Optional[str] = None,
        expire_days: Optional[int] = None,
    ):
        self._secret = secret
        self._algorithm = algorithm
        self._expire_days = expire_days

    # Read settings lazily so tests can patch them after import.
    @property
    def secret(self) -> str:
        return self._secret or settings.jwt_secret

    @property
    def algorithm(self) -> str:
        return self._algorithm or settings.jwt_algorithm

    @property
    def expire_days(self) -> int:
        return self._expire_days or settings.token_expire_days

    def create_token(self, user_id: UUID, email: str, now: Optional[datetime] = None) -> str:
        """Returns a token for `user_id` valid for `expire_days` from `now`."""
        issued = now or datetime.now(timezone.utc)
        payload: Dict[str, Any] = {
            "userId": str(user_id),
            "email": email,
            "iat": int(issued.timestamp()),
            "exp": int((issued + timedelta(days=self.expire_days)).timestamp()),
            "jti": str(uuid4()),
        }
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def verify_token(self, token: str) -> TokenClaims:
        """
        Decodes `token` and returns its claims.

        Raises:
            InvalidTokenError: bad signature, expired, malformed, or missing
                the userId/email claims.
        """
        try:
            payload = jwt.decode(
                token,
                key=self.secret,
                algorithms=[self.algorithm],
                options={"require": ["exp", "iat"]},
            )
        except jwt.ExpiredSignatureError:
            raise InvalidTokenError(message="Token has expired")
        except jwt.PyJWTError as e:
            logger.debug("Token rejected: %s", type(e).__name__)
            raise InvalidTokenError()

        raw_user_id = payload.get("userId")
        email = payload.get("email")
        if not raw_user_id or not email:
            raise InvalidTokenError()
        try:
            user_id = UUID(str(raw_user_id))
        except ValueError:
            raise InvalidTokenError()

        return TokenClaims(
            user_id=user_id,
            email=email,
            expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
        )


# ── Singleton Instance ────────────────────────────────────────────────────
token_service = TokenService()
