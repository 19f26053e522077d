"""
Notekeep Backend: Auth API Tests
================================

What:  Signup, login (header and cookie sessions), logout, password reset.
"""

import pytest

from conftest import TEST_PASSWORD

SIGNUP = {
    "firstname": "Ada",
    "lastname": "Lovelace",
    "email": "ada@example.com",
    "password": "analytical",
    "contactNumber": "555-0199",
}


class TestSignup:

    @pytest.mark.asyncio
    async def test_signup_returns_profile_without_password(self, client):
        response = await client.post("/signup", json=SIGNUP)

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "User created successfully"
        user = body["data"]["user"]
        assert user["email"] == "ada@example.com"
        assert user["contact_number"] == "555-0199"
        assert "password" not in user
        assert "password_hash" not in user

    @pytest.mark.asyncio
    async def test_duplicate_email_is_409(self, client):
        await client.post("/signup", json=SIGNUP)
        response = await client.post("/signup", json={**SIGNUP, "email": "ADA@example.com"})

        assert response.status_code == 409
        assert response.json()["error"] == "conflict"

    @pytest.mark.asyncio
    async def test_missing_field_is_400(self, client):
        payload = {k: v for k, v in SIGNUP.items() if k != "lastname"}

        response = await client.post("/signup", json=payload)

        assert response.status_code == 400
        assert response.json()["message"] == "Please provide all required fields"


class TestLogin:

    @pytest.mark.asyncio
    async def test_login_token_passes_the_gate(self, client, user):
        login = await client.post("/login", json={"email": user.email, "password": TEST_PASSWORD})

        assert login.status_code == 200
        token = login.json()["data"]["token"]
        assert "token=" in login.headers["set-cookie"]
        assert "httponly" in login.headers["set-cookie"].lower()

        response = await client.get("/notes", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_session_cookie_passes_the_gate(self, client, user):
        login = await client.post("/login", json={"email": user.email, "password": TEST_PASSWORD})
        client.cookies.set("token", login.json()["data"]["token"])

        response = await client.get("/notes")

        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_bad_credentials_are_401(self, client, user):
        wrong_password = await client.post("/login", json={"email": user.email, "password": "nope-nope"})
        unknown_email = await client.post("/login", json={"email": "who@example.com", "password": TEST_PASSWORD})

        assert wrong_password.status_code == unknown_email.status_code == 401
        assert wrong_password.json()["message"] == unknown_email.json()["message"]


class TestLogoutAndReset:

    @pytest.mark.asyncio
    async def test_logout_clears_cookie(self, client, auth_headers):
        response = await client.post("/logout", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["message"] == "Logged out successfully"
        assert 'token=""' in response.headers["set-cookie"]

    @pytest.mark.asyncio
    async def test_logout_requires_auth(self, client):
        response = await client.post("/logout")
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_reset_password(self, client, user, auth_headers):
        response = await client.post(
            "/resetpassword",
            json={"currentPassword": TEST_PASSWORD, "newPassword": "brand-new-pass"},
            headers=auth_headers,
        )
        old_login = await client.post("/login", json={"email": user.email, "password": TEST_PASSWORD})
        new_login = await client.post("/login", json={"email": user.email, "password": "brand-new-pass"})

        assert response.status_code == 200
        assert old_login.status_code == 401
        assert new_login.status_code == 200

    @pytest.mark.asyncio
    async def test_reset_with_wrong_current_password(self, client, auth_headers):
        response = await client.post(
            "/resetpassword",
            json={"currentPassword": "not-it", "newPassword": "brand-new-pass"},
            headers=auth_headers,
        )

        assert response.status_code == 401
        assert response.json()["message"] == "Current password is incorrect"

    @pytest.mark.asyncio
    async def test_reset_without_current_password_is_401(self, client, auth_headers):
        response = await client.post(
            "/resetpassword",
            json={"newPassword": "brand-new-pass"},
            headers=auth_headers,
        )

        assert response.status_code == 401
        assert response.json()["error"] == "unauthorized"
