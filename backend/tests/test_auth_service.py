"""
Notekeep Backend: Auth Service Unit Tests
=========================================

What:  Signup validation, credential checks, password change.
How:   Real argon2 hashing against the in-memory database.
"""

import pytest
from sqlalchemy import select

from notekeep.exceptions import ConflictError, UnauthorizedError, ValidationError
from notekeep.models.user import User
from notekeep.schemas.auth import SignupRequest
from notekeep.services.auth_service import AuthService, hash_password, verify_password
from notekeep.services.token_service import token_service

from conftest import TEST_PASSWORD


def signup_payload(**overrides) -> SignupRequest:
    data = {
        "firstname": "Ada",
        "lastname": "Lovelace",
        "email": "Ada@Example.com",
        "password": "analytical",
        "contactNumber": "555-0199",
    }
    data.update(overrides)
    return SignupRequest.model_validate(data)


class TestPasswordHashing:

    def test_hash_is_not_the_password(self):
        hashed = hash_password("secret123")
        assert hashed != "secret123"
        assert hashed.startswith("$argon2id$")

    def test_verify(self):
        hashed = hash_password("secret123")
        assert verify_password("secret123", hashed) is True
        assert verify_password("wrong", hashed) is False

    def test_verify_garbage_hash(self):
        assert verify_password("secret123", "not-a-hash") is False


class TestRegister:

    def setup_method(self):
        self.service = AuthService()

    @pytest.mark.asyncio
    async def test_register_stores_hash_and_returns_profile(self, db_session):
        profile = await self.service.register(db_session, signup_payload())

        assert profile.email == "ada@example.com"
        assert profile.first_name == "Ada"
        assert "password" not in profile.model_dump()
        assert "password_hash" not in profile.model_dump()

        stored = (await db_session.execute(select(User).where(User.id == profile.id))).scalar_one()
        assert stored.password_hash != "analytical"
        assert verify_password("analytical", stored.password_hash)

    @pytest.mark.asyncio
    async def test_missing_field(self, db_session):
        with pytest.raises(ValidationError, match="Please provide all required fields") as exc_info:
            await self.service.register(db_session, signup_payload(contactNumber=""))
        assert exc_info.value.context["missing"] == ["contact_number"]

    @pytest.mark.asyncio
    async def test_invalid_email(self, db_session):
        with pytest.raises(ValidationError, match="valid email"):
            await self.service.register(db_session, signup_payload(email="not-an-email"))

    @pytest.mark.asyncio
    async def test_short_password(self, db_session):
        with pytest.raises(ValidationError, match="at least 6 characters"):
            await self.service.register(db_session, signup_payload(password="12345"))

    @pytest.mark.asyncio
    async def test_duplicate_email_is_case_insensitive(self, db_session):
        await self.service.register(db_session, signup_payload())
        with pytest.raises(ConflictError):
            await self.service.register(db_session, signup_payload(email="ADA@example.COM"))


class TestAuthenticate:

    def setup_method(self):
        self.service = AuthService()

    @pytest.mark.asyncio
    async def test_login_returns_verifiable_token(self, db_session, user):
        token, profile = await self.service.authenticate(db_session, "ALICE@example.com", TEST_PASSWORD)

        claims = token_service.verify_token(token)
        assert claims.user_id == user.id
        assert profile.email == "alice@example.com"

    @pytest.mark.asyncio
    async def test_wrong_password_and_unknown_email_look_the_same(self, db_session, user):
        with pytest.raises(UnauthorizedError) as wrong_password:
            await self.service.authenticate(db_session, "alice@example.com", "nope-nope")
        with pytest.raises(UnauthorizedError) as unknown_email:
            await self.service.authenticate(db_session, "nobody@example.com", TEST_PASSWORD)

        assert wrong_password.value.message == unknown_email.value.message == "Invalid email or password"

    @pytest.mark.asyncio
    async def test_missing_credentials(self, db_session):
        with pytest.raises(ValidationError):
            await self.service.authenticate(db_session, "", "")


class TestChangePassword:

    def setup_method(self):
        self.service = AuthService()

    @pytest.mark.asyncio
    async def test_change_password(self, db_session, user):
        await self.service.change_password(db_session, user.id, TEST_PASSWORD, "brand-new-pass")

        token, _ = await self.service.authenticate(db_session, user.email, "brand-new-pass")
        assert token
        with pytest.raises(UnauthorizedError):
            await self.service.authenticate(db_session, user.email, TEST_PASSWORD)

    @pytest.mark.asyncio
    async def test_wrong_current_password(self, db_session, user):
        with pytest.raises(UnauthorizedError, match="Current password is incorrect"):
            await self.service.change_password(db_session, user.id, "wrong-one", "brand-new-pass")

    @pytest.mark.asyncio
    async def test_new_password_too_short(self, db_session, user):
        with pytest.raises(ValidationError):
            await self.service.change_password(db_session, user.id, TEST_PASSWORD, "123")

    @pytest.mark.asyncio
    async def test_empty_current_password_fails_verification(self, db_session, user):
        with pytest.raises(UnauthorizedError, match="Current password is incorrect"):
            await self.service.change_password(db_session, user.id, "", "brand-new-pass")

    @pytest.mark.asyncio
    async def test_new_password_required(self, db_session, user):
        with pytest.raises(ValidationError):
            await self.service.change_password(db_session, user.id, TEST_PASSWORD, None)
