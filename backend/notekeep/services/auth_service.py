"""
Notekeep Backend: Auth Service (Credential Verifier)
====================================================

What:  Signup, login, and password change.
How:   Passwords are hashed with argon2id (argon2-cffi). Hashing and
       verification are CPU-bound, so they run in Starlette's threadpool
       and never stall the event loop. Login issues a session token through
       TokenService.
Who:   Called by the auth routes.

Failure modes:
    register         → ValidationError (missing field, bad email, short
                       password), ConflictError (email taken)
    authenticate     → UnauthorizedError, identical for unknown email and
                       wrong password
    change_password  → UnauthorizedError (current password wrong),
                       ValidationError (new password too short)
"""

import logging
import re
from typing import Optional, Tuple
from uuid import UUID

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError
from argon2.low_level import Type
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from notekeep.config import settings
from notekeep.exceptions import (
    ConflictError,
    InvalidTokenError,
    UnauthorizedError,
    ValidationError,
)
from notekeep.models.user import User
from notekeep.schemas.auth import SignupRequest, UserProfile
from notekeep.services.token_service import token_service

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

_hasher = PasswordHasher(time_cost=2, memory_cost=51200, parallelism=2, hash_len=32, salt_len=16, type=Type.ID)


def hash_password(password: str) -> str:
    return _hasher.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return _hasher.verify(password_hash, password)
    except (VerificationError, InvalidHashError):
        return False


# Verified against when the email is unknown, so both failure paths cost
# one argon2 verification.
_DUMMY_HASH = hash_password("notekeep-dummy-password")


def normalize_email(email: str) -> str:
    return email.strip().lower()


class AuthService:
    """Credential checks and account mutations."""

    async def register(self, db: AsyncSession, payload: SignupRequest) -> UserProfile:
        """
        Creates an account and returns its public profile.

        The stored credential is an argon2 hash; the profile model has no
        password field at all.
        """
        fields = {
            "first_name": payload.first_name,
            "last_name": payload.last_name,
            "email": payload.email,
            "password": payload.password,
            "contact_number": payload.contact_number,
        }
        missing = [name for name, value in fields.items() if not value or not str(value).strip()]
        if missing:
            raise ValidationError(
                message="Please provide all required fields",
                context={"missing": missing},
            )

        email = normalize_email(payload.email)
        if not EMAIL_PATTERN.match(email):
            raise ValidationError(message="Please provide a valid email address", field="email")

        if len(payload.password) < settings.password_min_length:
            raise ValidationError(
                message=f"Password must be at least {settings.password_min_length} characters long",
                field="password",
            )

        existing = await db.execute(select(User.id).where(User.email == email))
        if existing.scalar_one_or_none() is not None:
            raise ConflictError(message="User with this email already exists")

        password_hash = await run_in_threadpool(hash_password, payload.password)
        user = User(
            email=email,
            password_hash=password_hash,
            first_name=payload.first_name.strip(),
            last_name=payload.last_name.strip(),
            contact_number=payload.contact_number.strip(),
        )
        db.add(user)
        try:
            await db.flush()
        except IntegrityError:
            # Lost a race with a concurrent signup for the same email
            await db.rollback()
            raise ConflictError(message="User with this email already exists")

        logger.info("User registered: %s", user.id)
        return UserProfile.model_validate(user)

    async def authenticate(
        self, db: AsyncSession, email: Optional[str], password: Optional[str]
    ) -> Tuple[str, UserProfile]:
        """Returns (session_token, profile) for valid credentials."""
        if not email or not password:
            raise ValidationError(message="Email and password are required")

        result = await db.execute(select(User).where(User.email == normalize_email(email)))
        user = result.scalar_one_or_none()

        stored_hash = user.password_hash if user is not None else _DUMMY_HASH
        valid = await run_in_threadpool(verify_password, password, stored_hash)
        if user is None or not valid:
            logger.info("Failed login attempt")
            raise UnauthorizedError()

        token = token_service.create_token(user.id, user.email)
        logger.info("User logged in: %s", user.id)
        return token, UserProfile.model_validate(user)

    async def change_password(
        self,
        db: AsyncSession,
        user_id: UUID,
        current_password: Optional[str],
        new_password: Optional[str],
    ) -> None:
        if not new_password:
            raise ValidationError(message="New password is required", field="new_password")

        user = await db.get(User, user_id)
        if user is None:
            # The auth gate already resolved this id; it vanished mid-request.
            raise InvalidTokenError()

        if not await run_in_threadpool(verify_password, current_password or "", user.password_hash):
            raise UnauthorizedError(message="Current password is incorrect")

        if len(new_password) < settings.password_min_length:
            raise ValidationError(
                message=f"Password must be at least {settings.password_min_length} characters long",
                field="new_password",
            )

        user.password_hash = await run_in_threadpool(hash_password, new_password)
        await db.flush()
        logger.info("Password changed for user %s", user.id)

    async def get_user(self, db: AsyncSession, user_id: UUID) -> Optional[User]:
        return await db.get(User, user_id)


# ── Singleton Instance ────────────────────────────────────────────────────
auth_service = AuthService()
