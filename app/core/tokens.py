"""
app/core/tokens.py

Token generation and decoding utilities:
- JWT access token with expiration and JTI
- Typed single-purpose tokens (email verification, password reset)
- Verification token decoder with type check
"""

import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any

from fastapi import HTTPException, status
from jose import ExpiredSignatureError, JWTError, jwt
from pydantic import ValidationError

from app.auth.schemas import VerificationTokenPayload
from app.core.config import settings

logger = logging.getLogger(__name__)

EMAIL_VERIFICATION = "email_verification"
PASSWORD_RESET = "password_reset"


# ------------------------------------------------------
# --- Access Token ---
# ------------------------------------------------------
def create_access_token(data: dict[str, Any], expires_delta: timedelta | None = None) -> str:
    """
    Create a JWT access token with expiration and unique JTI.

    Args:
        data (dict[str, Any]): Payload data to include in the token (must contain 'sub' and 'role').
        expires_delta (timedelta | None): Optional custom expiration time. Defaults to settings.

    Returns:
        str: Encoded JWT access token.
    """
    if "sub" not in data or "role" not in data:
        logger.error("Access token creation attempt missing 'sub' or 'role' in data.")
        raise ValueError("Access token payload must include 'sub' and 'role'.")

    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    jti = str(uuid.uuid4())
    payload: dict[str, Any] = {**data, "exp": expire, "jti": jti}

    logger.info(f"Issuing access token for sub={data.get('sub')} exp={expire} jti={jti}")
    return str(jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM))


# ------------------------------------------------------
# --- Verification/Reset Tokens ---
# ------------------------------------------------------
def _create_typed_token(user_id: str, token_type: str, expires_in_minutes: int) -> str:
    expire = datetime.now(timezone.utc) + timedelta(minutes=expires_in_minutes)
    payload: dict[str, Any] = {"sub": user_id, "type": token_type, "exp": expire}
    logger.info(f"Issuing '{token_type}' token for sub={user_id} exp={expire}")
    return str(jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM))


def create_email_verification_token(user_id: str) -> str:
    return _create_typed_token(
        user_id, EMAIL_VERIFICATION, settings.EMAIL_VERIFICATION_TOKEN_EXPIRE_MINUTES
    )


def create_password_reset_token(user_id: str) -> str:
    return _create_typed_token(
        user_id, PASSWORD_RESET, settings.PASSWORD_RESET_TOKEN_EXPIRE_MINUTES
    )


def decode_verification_token(token: str, expected_type: str) -> VerificationTokenPayload:
    """
    Decodes and validates a verification/reset token.

    Raises:
        HTTPException 400: If the token is invalid, expired, or has the wrong type.
    """
    try:
        payload_dict = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        payload = VerificationTokenPayload(**payload_dict)
    except ExpiredSignatureError:
        logger.warning(f"Expired '{expected_type}' token received.")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Token has expired.")
    except (JWTError, ValidationError) as e:
        logger.warning(f"Invalid token received for '{expected_type}': {e}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid token.")

    if payload.type != expected_type:
        logger.warning(f"Token type mismatch. Expected '{expected_type}', got '{payload.type}'.")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid token type. Expected '{expected_type}'.",
        )

    logger.info(f"Successfully decoded '{payload.type}' token for sub={payload.sub}")
    return payload
