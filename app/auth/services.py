"""
app/auth/services.py

Handles authentication-related business logic:
- Password hashing and verification
- Signup (with vendor/rider profile bootstrap) and email verification
- Login (JSON / OAuth2 form) with Redis brute-force protection
- Logout via token blacklist
- Forgot/reset password and authenticated password change
"""

import asyncio
import logging
import random
from typing import Any, cast

from fastapi import HTTPException, status
from passlib.context import CryptContext
from pydantic import EmailStr
from redis.exceptions import RedisError
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.schemas import (
    AuthSuccessResponse,
    AuthUserResponse,
    ChangePasswordRequest,
    ForgotPasswordRequest,
    LoginRequest,
    ResetPasswordRequest,
    SignupRequest,
)
from app.core.blacklist import redis_client, revoke_access_token
from app.core.config import settings
from app.core.email import (
    send_email_verification,
    send_password_changed_notice,
    send_password_reset_confirmation,
    send_password_reset_email,
    send_welcome_email,
)
from app.core.schemas import MessageResponse
from app.core.tokens import (
    EMAIL_VERIFICATION,
    PASSWORD_RESET,
    create_access_token,
    create_email_verification_token,
    create_password_reset_token,
    decode_verification_token,
)
from app.database.enums import UserRole
from app.database.models import User
from app.rider.models import RiderProfile
from app.vendor.models import VendorProfile

logger = logging.getLogger(__name__)
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# ------------------------------------------------
# Brute-Force Protection Settings (Redis Keys and Thresholds)
# ------------------------------------------------
FAILED_LOGIN_PREFIX = "failed_logins:ip:"
IP_PENALTY_PREFIX = "ip_penalty:"


# ------------------------------------------------
# Password Utilities
# ------------------------------------------------
def get_password_hash(password: str) -> str:
    """Hashes a plain text password."""
    return cast(str, pwd_context.hash(password))


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verifies a plain text password against a hash."""
    return cast(bool, pwd_context.verify(plain_password, hashed_password))


async def _get_user_by_email(email: str, db: AsyncSession) -> User | None:
    result = await db.execute(select(User).filter(User.email == email))
    return result.unique().scalar_one_or_none()


# ------------------------------------------------
# Signup with Email Verification
# ------------------------------------------------
async def signup_user(payload: SignupRequest, db: AsyncSession) -> MessageResponse:
    """Registers a new account, creates its role profile and sends a verification email."""
    existing = (
        (
            await db.execute(
                select(User).filter(
                    or_(User.email == payload.email, User.phone_number == payload.phone_number)
                )
            )
        )
        .unique()
        .scalars()
        .all()
    )
    if any(u.email == payload.email for u in existing):
        logger.warning(f"Signup attempt with existing email: {payload.email}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Email already registered"
        )
    if existing:
        logger.warning(f"Signup attempt with existing phone number: {payload.phone_number}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Phone number already in use"
        )

    new_user = User(
        email=payload.email,
        phone_number=payload.phone_number,
        hashed_password=get_password_hash(payload.password),
        role=payload.role,
        first_name=payload.first_name,
        last_name=payload.last_name,
        is_verified=False,
    )
    db.add(new_user)
    await db.flush()

    if payload.role == UserRole.VENDOR:
        business_name = payload.business_name or f"{payload.first_name} {payload.last_name}"
        db.add(VendorProfile(user_id=new_user.id, business_name=business_name))
    elif payload.role == UserRole.RIDER:
        db.add(RiderProfile(user_id=new_user.id))

    try:
        await db.commit()
    except Exception as e:
        logger.error(f"Error committing signup for {payload.email}: {e}", exc_info=True)
        await db.rollback()
        raise HTTPException(status_code=500, detail="Failed to create account.")
    await db.refresh(new_user)
    logger.info(f"New {new_user.role.value} registered: {new_user.email} (ID: {new_user.id})")

    try:
        token = create_email_verification_token(str(new_user.id))
        await send_email_verification(new_user.email, token, first_name=new_user.first_name)
    except Exception as e:
        logger.error(f"Failed to send verification email to {new_user.email}: {e}")

    return MessageResponse(
        detail="Registration successful. Please check your email to verify your account."
    )


# ------------------------------------------------
# Email Verification
# ------------------------------------------------
async def verify_email_token(token: str, db: AsyncSession) -> MessageResponse:
    """Marks the account in the token as verified."""
    payload = decode_verification_token(token, expected_type=EMAIL_VERIFICATION)

    user = await db.get(User, payload.sub)
    if not user:
        logger.warning(f"Email verification attempt for non-existent user ID: {payload.sub}")
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    if user.is_verified:
        return MessageResponse(detail="Your email has already been verified.")

    user.is_verified = True
    await db.commit()
    logger.info(f"Email successfully verified for user: {user.email}")

    try:
        await send_welcome_email(user.email, user.first_name)
    except Exception as e:
        logger.error(f"Failed to send welcome email to {user.email}: {e}")

    return MessageResponse(detail="Your email has been successfully verified. You may now log in.")


async def request_new_verification_email(email: EmailStr, db: AsyncSession) -> MessageResponse:
    """Sends a fresh verification email if the account exists and is unverified."""
    user = await _get_user_by_email(email, db)
    if user and not user.is_verified:
        try:
            token = create_email_verification_token(str(user.id))
            await send_email_verification(user.email, token, first_name=user.first_name)
            logger.info(f"New verification email sent to: {user.email}")
        except Exception as e:
            logger.error(f"Failed to send new verification email to {user.email}: {e}")

    return MessageResponse(
        detail="If an account with that email exists and requires verification, a new verification link has been sent."
    )


# ------------------------------------------------
# Login (JSON and OAuth2)
# ------------------------------------------------
async def _is_ip_penalized(client_ip: str) -> bool:
    if not redis_client:
        return False
    try:
        return bool(await redis_client.exists(f"{IP_PENALTY_PREFIX}{client_ip}"))
    except RedisError as e:
        logger.error(f"[AUTH] Could not read login penalty for {client_ip}: {e}")
        return False


async def _record_failed_attempt(client_ip: str) -> bool:
    """Count a failed login. Returns True when the IP has just been penalized."""
    if not redis_client:
        return False
    failed_attempts_key = f"{FAILED_LOGIN_PREFIX}{client_ip}"
    try:
        failed_attempts = await redis_client.incr(failed_attempts_key)
        if failed_attempts == 1:
            await redis_client.expire(failed_attempts_key, settings.FAILED_ATTEMPTS_WINDOW)
        if failed_attempts >= settings.MAX_FAILED_ATTEMPTS:
            await redis_client.setex(
                f"{IP_PENALTY_PREFIX}{client_ip}", settings.IP_PENALTY_DURATION, "penalized"
            )
            await redis_client.delete(failed_attempts_key)
            logger.warning(f"[AUTH] IP address penalized after {failed_attempts} failures: {client_ip}")
            return True
    except RedisError as e:
        logger.error(f"[AUTH] Could not record failed login for {client_ip}: {e}")
    return False


async def _reset_failed_attempts(client_ip: str) -> None:
    if not redis_client:
        return
    try:
        await redis_client.delete(f"{FAILED_LOGIN_PREFIX}{client_ip}")
    except RedisError as e:
        logger.error(f"[AUTH] Could not reset failed logins for {client_ip}: {e}")


async def _authenticate_user(email: str, password: str, db: AsyncSession, client_ip: str) -> User:
    """Fetch and validate credentials, applying the per-IP penalty."""
    too_many = HTTPException(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        detail="Too many failed login attempts. Please try again later.",
    )
    if await _is_ip_penalized(client_ip):
        logger.warning(f"[AUTH] Login attempt from penalized IP: {client_ip}")
        raise too_many

    user = await _get_user_by_email(email, db)
    if not user or not verify_password(password, user.hashed_password):
        logger.warning(f"[AUTH] Failed login attempt for email: {email} from IP: {client_ip}")
        if await _record_failed_attempt(client_ip):
            raise too_many
        await asyncio.sleep(random.uniform(0.2, 0.6))
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not user.is_active:
        logger.warning(f"[AUTH] Login attempt by suspended user: {user.email}")
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account is suspended.")

    if settings.REQUIRE_EMAIL_VERIFICATION and not user.is_verified:
        logger.warning(f"[AUTH] Login attempt by unverified user: {user.email}")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Please verify your email before logging in.",
        )

    await _reset_failed_attempts(client_ip)
    return user


def _issue_session(user: User) -> AuthSuccessResponse:
    access_token = create_access_token({"sub": str(user.id), "role": user.role.value})
    return AuthSuccessResponse(access_token=access_token, user=AuthUserResponse.model_validate(user))


async def login_user_json(payload: LoginRequest, db: AsyncSession, client_ip: str) -> AuthSuccessResponse:
    """Authenticates a user via JSON email/password."""
    user = await _authenticate_user(payload.email, payload.password, db, client_ip)
    logger.info(f"User logged in successfully: {user.email} from IP: {client_ip}")
    return _issue_session(user)


async def login_user_oauth(form_data: Any, db: AsyncSession, client_ip: str) -> AuthSuccessResponse:
    """Authenticates a user via OAuth2 form data (username=email)."""
    user = await _authenticate_user(form_data.username, form_data.password, db, client_ip)
    logger.info(f"User logged in successfully (OAuth form): {user.email} from IP: {client_ip}")
    return _issue_session(user)


# ------------------------------------------------
# Logout
# ------------------------------------------------
async def logout_user_token(token: str) -> MessageResponse:
    """Blacklists the provided JWT access token. Invalid tokens still log out."""
    if await revoke_access_token(token):
        logger.info("Access token blacklisted on logout.")
    return MessageResponse(detail="Logout successful")


# ------------------------------------------------
# Forgot Password Flow
# ------------------------------------------------
async def request_password_reset(payload: ForgotPasswordRequest, db: AsyncSession) -> MessageResponse:
    """Sends a reset link to verified accounts. The reply never reveals whether the email exists."""
    user = await _get_user_by_email(payload.email, db)
    if user and user.is_verified:
        try:
            token = create_password_reset_token(str(user.id))
            await send_password_reset_email(user.email, token, first_name=user.first_name)
            logger.info(f"Password reset email sent to: {user.email}")
        except Exception as e:
            logger.error(f"Failed to send password reset email to {user.email}: {e}")

    return MessageResponse(
        detail="If an account with that email exists and is verified, a password reset link has been sent."
    )


async def reset_password(payload: ResetPasswordRequest, db: AsyncSession) -> MessageResponse:
    """Resets the user's password using a valid token."""
    token_payload = decode_verification_token(payload.token, expected_type=PASSWORD_RESET)

    user = await db.get(User, token_payload.sub)
    if not user:
        logger.warning(f"Password reset attempt for non-existent user ID: {token_payload.sub}")
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    user.hashed_password = get_password_hash(payload.new_password)
    await db.commit()
    logger.info(f"Password successfully reset for user: {user.email}")

    try:
        await send_password_reset_confirmation(user.email, first_name=user.first_name)
    except Exception as e:
        logger.error(f"Failed to send password confirmation email to {user.email}: {e}")

    return MessageResponse(detail="Your password has been successfully reset.")


# ------------------------------------------------
# Authenticated Password Change
# ------------------------------------------------
async def change_password(
    payload: ChangePasswordRequest, current_user: User, db: AsyncSession
) -> MessageResponse:
    if not verify_password(payload.current_password, current_user.hashed_password):
        logger.warning(f"[AUTH] Wrong current password on change for user {current_user.id}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Current password is incorrect."
        )

    current_user.hashed_password = get_password_hash(payload.new_password)
    db.add(current_user)
    await db.commit()
    logger.info(f"Password changed for user {current_user.id}")

    try:
        await send_password_changed_notice(current_user.email, first_name=current_user.first_name)
    except Exception as e:
        logger.error(f"Failed to send password change notice to {current_user.email}: {e}")

    return MessageResponse(detail="Password updated successfully.")
