"""
Notekeep Backend: Auth Request/Response Schemas
===============================================

What:  API contract for signup, login, logout, and password reset.
How:   Request fields are optional at the schema level so that a missing
       field reaches AuthService and is reported with the same 400 message
       the clients already handle. Field names accept the camelCase
       spellings used by existing clients (firstname, contactNumber, ...).
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import AliasChoices, BaseModel, Field


class SignupRequest(BaseModel):
    first_name: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("first_name", "firstname", "firstName")
    )
    last_name: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("last_name", "lastname", "lastName")
    )
    email: Optional[str] = None
    password: Optional[str] = None
    contact_number: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("contact_number", "contactNumber")
    )


class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class ResetPasswordRequest(BaseModel):
    current_password: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("current_password", "currentPassword", "oldPassword"),
    )
    new_password: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("new_password", "newPassword")
    )


class UserProfile(BaseModel):
    """Public view of a user. There is no password field to leak."""
    id: uuid.UUID
    email: str
    first_name: str
    last_name: str
    contact_number: str
    created_at: datetime

    model_config = {"from_attributes": True}


class SignupData(BaseModel):
    user: UserProfile


class SignupResponse(BaseModel):
    success: bool = True
    message: str = "User created successfully"
    data: SignupData


class LoginData(BaseModel):
    user: UserProfile
    token: str


class LoginResponse(BaseModel):
    success: bool = True
    message: str = "Login successful"
    data: LoginData
