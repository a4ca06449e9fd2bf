"""
app/auth/routes.py

Handles authentication routes including:
- Account registration and login via JSON or OAuth2 form
- JWT token issuance (HttpOnly cookie) and logout handling
- Email verification, password reset and password change
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from fastapi.security import OAuth2PasswordRequestForm
from pydantic import EmailStr

from app.auth import services
from app.auth.schemas import (
    AuthSuccessResponse,
    AuthUserResponse,
    ChangePasswordRequest,
    ForgotPasswordRequest,
    LoginRequest,
    LoginResponse,
    ResetPasswordRequest,
    SignupRequest,
)
from app.core.config import settings
from app.core.dependencies import CurrentUserDep, DBDep
from app.core.limiter import limiter
from app.core.schemas import MessageResponse

# ---------------------------------------------------
# Router Configuration
# ---------------------------------------------------
router = APIRouter(prefix="/auth", tags=["Authentication"])
logger = logging.getLogger(__name__)


def _set_session_cookie(response: Response, login_result: AuthSuccessResponse) -> LoginResponse:
    response.set_cookie(
        key="access_token",
        value=login_result.access_token,
        httponly=True,
        samesite="lax",
        secure=not settings.DEBUG,
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        path="/",
    )
    return LoginResponse(user=login_result.user)


# ---------------------------------------------------
# Registration
# ---------------------------------------------------
@router.post(
    "/signup",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register New Account",
    description="Registers a customer, vendor or rider and sends a verification email.",
)
@limiter.limit("5/minute")
async def signup(request: Request, payload: SignupRequest, db: DBDep) -> MessageResponse:
    return await services.signup_user(payload, db)


# ---------------------------------------------------
# Login (JSON)
# ---------------------------------------------------
@router.post(
    "/login/json",
    response_model=LoginResponse,
    status_code=status.HTTP_200_OK,
    summary="Login with JSON (Cookie Auth)",
    description="Authenticates via JSON. Returns user info in body; sets session token in HttpOnly cookie.",
)
@limiter.limit("10/minute")
async def login_json(
    request: Request, payload: LoginRequest, response: Response, db: DBDep
) -> LoginResponse:
    client_ip = request.client.host if request.client else "unknown"
    login_result = await services.login_user_json(payload, db, client_ip)
    return _set_session_cookie(response, login_result)


# ---------------------------------------------------
# Login (OAuth2 Form)
# ---------------------------------------------------
@router.post(
    "/login/oauth",
    response_model=LoginResponse,
    status_code=status.HTTP_200_OK,
    summary="Login with OAuth2 Form (Cookie Auth)",
    description="Authenticates via form data (username=email). Sets session token in HttpOnly cookie.",
)
@limiter.limit("10/minute")
async def login_oauth(
    request: Request,
    response: Response,
    db: DBDep,
    form_data: OAuth2PasswordRequestForm = Depends(),
) -> LoginResponse:
    client_ip = request.client.host if request.client else "unknown"
    login_result = await services.login_user_oauth(form_data, db, client_ip)
    return _set_session_cookie(response, login_result)


# ---------------------------------------------------
# Logout
# ---------------------------------------------------
@router.post(
    "/logout",
    response_model=MessageResponse,
    status_code=status.HTTP_200_OK,
    summary="Logout",
    description="Blacklists the current JWT access token and clears the session cookie.",
)
@limiter.limit("20/minute")
async def logout(request: Request, response: Response) -> MessageResponse:
    auth_header = request.headers.get("Authorization")
    token_to_blacklist = None
    if auth_header and auth_header.startswith("Bearer "):
        token_to_blacklist = auth_header.removeprefix("Bearer ")
    else:
        token_to_blacklist = request.cookies.get("access_token")

    if not token_to_blacklist:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")

    result = await services.logout_user_token(token_to_blacklist)
    response.delete_cookie("access_token", path="/")
    return result


# ---------------------------------------------------
# Current Session
# ---------------------------------------------------
@router.get(
    "/me",
    response_model=AuthUserResponse,
    status_code=status.HTTP_200_OK,
    summary="Current Session User",
)
async def read_session_user(current_user: CurrentUserDep) -> AuthUserResponse:
    return AuthUserResponse.model_validate(current_user)


# ---------------------------------------------------
# Email Verification
# ---------------------------------------------------
@router.get(
    "/verify-email",
    response_model=MessageResponse,
    status_code=status.HTTP_200_OK,
    summary="Verify Email",
    description="Verifies an email address using the token sent during registration.",
)
async def verify_email(token: str, db: DBDep) -> MessageResponse:
    return await services.verify_email_token(token, db)


@router.post(
    "/request-verification-email/{email}",
    response_model=MessageResponse,
    status_code=status.HTTP_200_OK,
    summary="Request New Verification Email",
)
@limiter.limit("3/hour")
async def post_request_verification_email(
    request: Request, email: EmailStr, db: DBDep
) -> MessageResponse:
    return await services.request_new_verification_email(email, db)


# ---------------------------------------------------
# Password Flows
# ---------------------------------------------------
@router.post(
    "/forgot-password",
    response_model=MessageResponse,
    status_code=status.HTTP_200_OK,
    summary="Request Password Reset",
    description="Sends a password reset link if the account exists and is verified.",
)
@limiter.limit("5/minute")
async def post_forgot_password(
    request: Request, payload: ForgotPasswordRequest, db: DBDep
) -> MessageResponse:
    return await services.request_password_reset(payload, db)


@router.post(
    "/reset-password",
    response_model=MessageResponse,
    status_code=status.HTTP_200_OK,
    summary="Reset Password",
)
@limiter.limit("5/minute")
async def post_reset_password(
    request: Request, payload: ResetPasswordRequest, db: DBDep
) -> MessageResponse:
    return await services.reset_password(payload, db)


@router.post(
    "/change-password",
    response_model=MessageResponse,
    status_code=status.HTTP_200_OK,
    summary="Change Password (Authenticated)",
)
@limiter.limit("5/minute")
async def post_change_password(
    request: Request,
    payload: ChangePasswordRequest,
    current_user: CurrentUserDep,
    db: DBDep,
) -> MessageResponse:
    return await services.change_password(payload, current_user, db)
