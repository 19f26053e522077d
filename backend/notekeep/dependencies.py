"""
Notekeep Backend: Request Dependencies (Authorization Gate)
===========================================================

What:  Resolves the caller's identity from the session token.
How:   Reads `Authorization: Bearer <token>`, falling back to the session
       cookie; verifies signature/expiry with TokenService; confirms the
       account still exists. The resolved CurrentUser is returned to the
       route and also stored on `request.state.user`.
Who:   Every route except /signup, /login, and /health depends on
       `get_current_user`.

Failure modes:
    no token                          → UnauthenticatedError (401)
    bad signature / expired / claims  → InvalidTokenError (401)
    account deleted since issuance    → InvalidTokenError (401)
"""

import logging
from dataclasses import dataclass
from typing import Optional
from uuid import UUID

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from notekeep.config import settings
from notekeep.database import get_db_session
from notekeep.exceptions import InvalidTokenError, UnauthenticatedError
from notekeep.services.auth_service import auth_service
from notekeep.services.token_service import token_service

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CurrentUser:
    """The authenticated identity a request acts as."""
    user_id: UUID
    email: str
    token: str


def extract_token(request: Request) -> Optional[str]:
    header = request.headers.get("Authorization")
    if header:
        scheme, _, credentials = header.partition(" ")
        if scheme.lower() == "bearer" and credentials.strip():
            return credentials.strip()
    cookie = request.cookies.get(settings.session_cookie_name)
    return cookie or None


async def get_current_user(
    request: Request,
    db: AsyncSession = Depends(get_db_session),
) -> CurrentUser:
    token = extract_token(request)
    if not token:
        raise UnauthenticatedError()

    claims = token_service.verify_token(token)

    user = await auth_service.get_user(db, claims.user_id)
    if user is None:
        logger.info("Token for deleted account %s rejected", claims.user_id)
        raise InvalidTokenError()

    current = CurrentUser(user_id=user.id, email=user.email, token=token)
    request.state.user = current
    return current
