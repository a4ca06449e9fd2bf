"""
app/auth/schemas.py

Defines Pydantic models for authentication flows:
- Login, signup and password request payloads
- JWT access and verification token payloads
- Authenticated user response structures
"""

from datetime import datetime
from typing import Annotated
from uuid import UUID

from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    field_validator,
    model_validator,
)

from app.core.validators import password_validator, phone_validator
from app.database.enums import UserRole

# --------------------------------------------------
# Custom Types
# --------------------------------------------------
PasswordStr = Annotated[str, AfterValidator(password_validator)]
PhoneStr = Annotated[str, AfterValidator(phone_validator)]

SELF_SIGNUP_ROLES = frozenset({UserRole.USER, UserRole.VENDOR, UserRole.RIDER})


# --------------------------------------------------
# AUTH REQUEST SCHEMAS
# --------------------------------------------------
class LoginRequest(BaseModel):
    """
    Request schema for user login using JSON payload.
    """

    email: EmailStr = Field(..., description="User email address")
    password: str = Field(..., min_length=1, max_length=128, description="Account password")


class SignupRequest(BaseModel):
    """
    Request schema for new account registration. Admin accounts cannot self-register.
    """

    email: EmailStr = Field(..., description="Email address for new account")
    phone_number: PhoneStr = Field(..., description="Phone number for the new account")
    password: PasswordStr = Field(
        ..., description="At least 8 ASCII characters with one letter and one digit"
    )
    first_name: str = Field(..., min_length=1, max_length=50, description="User's first name")
    last_name: str = Field(..., min_length=1, max_length=50, description="User's last name")
    role: UserRole = Field(UserRole.USER, description="USER, VENDOR or RIDER")
    business_name: str | None = Field(
        None, max_length=150, description="Vendor business name (VENDOR only)"
    )

    @field_validator("role")
    @classmethod
    def role_must_be_self_service(cls, role: UserRole) -> UserRole:
        if role not in SELF_SIGNUP_ROLES:
            raise ValueError("Role must be one of USER, VENDOR or RIDER.")
        return role


class ForgotPasswordRequest(BaseModel):
    email: EmailStr = Field(..., description="Email address of the account to recover")


class ResetPasswordRequest(BaseModel):
    token: str = Field(..., description="Password reset token received by email")
    new_password: PasswordStr = Field(..., description="New account password")


class ChangePasswordRequest(BaseModel):
    """Authenticated password change. The new password must differ from the current one."""

    current_password: str = Field(..., min_length=1, description="Current account password")
    new_password: PasswordStr = Field(..., description="New account password")

    @model_validator(mode="after")
    def passwords_must_differ(self) -> "ChangePasswordRequest":
        if self.current_password == self.new_password:
            raise ValueError("New password must be different from the current password.")
        return self


# --------------------------------------------------
# AUTH TOKEN SCHEMAS
# --------------------------------------------------
class TokenPayload(BaseModel):
    """
    Decoded JWT payload structure.
    """

    sub: UUID = Field(..., description="Subject (user ID)")
    role: UserRole = Field(..., description="User role encoded in the token")
    exp: int = Field(..., description="Expiration timestamp of the token")
    jti: str = Field(..., description="JWT ID (used for token blacklist)")


class VerificationTokenPayload(BaseModel):
    """Payload of single-purpose email tokens."""

    sub: UUID
    type: str
    exp: int


# --------------------------------------------------
# AUTH RESPONSE SCHEMAS
# --------------------------------------------------
class AuthUserResponse(BaseModel):
    """
    Response schema representing authenticated user data.
    """

    id: UUID = Field(..., description="Unique identifier for the user")
    email: EmailStr = Field(..., description="User's email address")
    phone_number: str = Field(..., description="User's phone number")
    first_name: str = Field(..., description="User's first name")
    last_name: str = Field(..., description="User's last name")
    role: UserRole = Field(..., description="User's role in the system")
    is_verified: bool = Field(False, description="Whether the email address is verified")
    profile_picture: str | None = Field(None, description="Profile picture URL")
    created_at: datetime = Field(..., description="Timestamp when the user was created")
    updated_at: datetime = Field(..., description="Timestamp when the user was last updated")

    model_config = ConfigDict(from_attributes=True)


class AuthSuccessResponse(BaseModel):
    """
    Internal result of a successful login; the token is moved into a cookie by the route.
    """

    access_token: str = Field(..., description="JWT access token")
    user: AuthUserResponse = Field(..., description="Details of the authenticated user")


class LoginResponse(BaseModel):
    """Body returned by the login routes. The token travels in the HttpOnly cookie."""

    user: AuthUserResponse
