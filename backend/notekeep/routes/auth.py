"""
Notekeep Backend: Auth Route Handlers
=====================================

What:  POST /signup, /login, /logout, /resetpassword.
How:   Thin handlers over AuthService. Login returns the token in the body
       and also sets it as an httponly cookie, so browser clients can rely on
       the cookie and API clients on the Authorization header.
"""

import logging

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from notekeep.config import settings
from notekeep.database import get_db_session
from notekeep.dependencies import CurrentUser, get_current_user
from notekeep.schemas.auth import (
    LoginData,
    LoginRequest,
    LoginResponse,
    ResetPasswordRequest,
    SignupData,
    SignupRequest,
    SignupResponse,
)
from notekeep.schemas.common import ErrorResponse, MessageResponse
from notekeep.services.auth_service import auth_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Auth"])


@router.post(
    "/signup",
    status_code=status.HTTP_201_CREATED,
    response_model=SignupResponse,
    responses={
        400: {"description": "Missing field, bad email, or short password", "model": ErrorResponse},
        409: {"description": "Email already registered", "model": ErrorResponse},
    },
    summary="Create an account",
)
async def signup(
    payload: SignupRequest,
    db: AsyncSession = Depends(get_db_session),
) -> SignupResponse:
    profile = await auth_service.register(db, payload)
    return SignupResponse(data=SignupData(user=profile))


@router.post(
    "/login",
    response_model=LoginResponse,
    responses={401: {"description": "Invalid email or password", "model": ErrorResponse}},
    summary="Log in and receive a session token",
)
async def login(
    payload: LoginRequest,
    response: Response,
    db: AsyncSession = Depends(get_db_session),
) -> LoginResponse:
    token, profile = await auth_service.authenticate(db, payload.email, payload.password)
    response.set_cookie(
        key=settings.session_cookie_name,
        value=token,
        max_age=settings.token_expire_days * 24 * 60 * 60,
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite="lax",
    )
    return LoginResponse(data=LoginData(user=profile, token=token))


@router.post(
    "/logout",
    response_model=MessageResponse,
    responses={401: {"description": "Not authenticated", "model": ErrorResponse}},
    summary="Clear the session cookie",
)
async def logout(
    response: Response,
    current_user: CurrentUser = Depends(get_current_user),
) -> MessageResponse:
    """
    Tokens are stateless, so logout only removes the cookie; a copied token
    stays valid until it expires.
    """
    response.delete_cookie(key=settings.session_cookie_name)
    logger.info("User %s logged out", current_user.user_id)
    return MessageResponse(message="Logged out successfully")


@router.post(
    "/resetpassword",
    response_model=MessageResponse,
    responses={
        400: {"description": "New password too short", "model": ErrorResponse},
        401: {"description": "Not authenticated or current password wrong", "model": ErrorResponse},
    },
    summary="Change the password of the logged-in user",
)
async def reset_password(
    payload: ResetPasswordRequest,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await auth_service.change_password(
        db, current_user.user_id, payload.current_password, payload.new_password
    )
    return MessageResponse(message="Password updated successfully")
