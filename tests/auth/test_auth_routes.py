"""
tests/auth/test_auth_routes.py

Unit tests for auth/routes.py with both success and failure scenarios
- Mocks service logic
- Uses Pytest fixtures for DRY code
- Uses httpx AsyncClient for integration tests
"""

from unittest.mock import AsyncMock, patch

import pytest
from fastapi import HTTPException, status
from httpx import AsyncClient

from app.auth import services as auth_services
from app.auth.schemas import AuthSuccessResponse
from app.core.schemas import MessageResponse
from app.database.models import User


def _signup_payload(**overrides: object) -> dict[str, object]:
    payload: dict[str, object] = {
        "email": "new.customer@example.com",
        "phone_number": "08012345678",
        "password": "StrongPass123",
        "first_name": "Ada",
        "last_name": "Obi",
        "role": "USER",
    }
    payload.update(overrides)
    return payload


# =====================
# --- Signup Tests ---
# =====================
@pytest.mark.asyncio
@patch.object(auth_services, "signup_user", new_callable=AsyncMock)
async def test_signup_success(
    mock_signup: AsyncMock, async_client: AsyncClient, override_get_db: AsyncMock
) -> None:
    mock_signup.return_value = MessageResponse(
        detail="Registration successful. Please check your email to verify your account."
    )
    response = await async_client.post("/auth/signup", json=_signup_payload())
    assert response.status_code == status.HTTP_201_CREATED
    assert response.json()["detail"].startswith("Registration successful")
    mock_signup.assert_awaited_once()


@pytest.mark.asyncio
@patch.object(auth_services, "signup_user", new_callable=AsyncMock)
async def test_signup_duplicate_email(
    mock_signup: AsyncMock, async_client: AsyncClient, override_get_db: AsyncMock
) -> None:
    mock_signup.side_effect = HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST, detail="Email or phone number already registered"
    )
    response = await async_client.post("/auth/signup", json=_signup_payload())
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["detail"] == "Email or phone number already registered"


@pytest.mark.asyncio
@patch.object(auth_services, "signup_user", new_callable=AsyncMock)
async def test_signup_rejects_admin_role(
    mock_signup: AsyncMock, async_client: AsyncClient, override_get_db: AsyncMock
) -> None:
    response = await async_client.post("/auth/signup", json=_signup_payload(role="ADMIN"))
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
    mock_signup.assert_not_awaited()


@pytest.mark.asyncio
@patch.object(auth_services, "signup_user", new_callable=AsyncMock)
async def test_signup_weak_password(
    mock_signup: AsyncMock, async_client: AsyncClient, override_get_db: AsyncMock
) -> None:
    response = await async_client.post("/auth/signup", json=_signup_payload(password="short"))
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
    mock_signup.assert_not_awaited()


# ====================
# --- Login Tests ---
# ====================
@pytest.mark.asyncio
@patch.object(auth_services, "login_user_json", new_callable=AsyncMock)
async def test_login_json_sets_cookie(
    mock_login: AsyncMock,
    async_client: AsyncClient,
    override_get_db: AsyncMock,
    fake_auth_success_response: AuthSuccessResponse,
) -> None:
    mock_login.return_value = fake_auth_success_response
    response = await async_client.post(
        "/auth/login/json", json={"email": "customer.test@example.com", "password": "StrongPass123"}
    )
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["user"]["email"] == "customer.test@example.com"
    assert "access_token" not in response.json()
    assert "access_token=fake-jwt-token" in response.headers["set-cookie"]
    assert "httponly" in response.headers["set-cookie"].lower()


@pytest.mark.asyncio
@patch.object(auth_services, "login_user_json", new_callable=AsyncMock)
async def test_login_json_invalid_credentials(
    mock_login: AsyncMock, async_client: AsyncClient, override_get_db: AsyncMock
) -> None:
    mock_login.side_effect = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials"
    )
    response = await async_client.post(
        "/auth/login/json", json={"email": "nobody@example.com", "password": "wrong"}
    )
    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert "set-cookie" not in response.headers


@pytest.mark.asyncio
@patch.object(auth_services, "login_user_oauth", new_callable=AsyncMock)
async def test_login_oauth_form(
    mock_login: AsyncMock,
    async_client: AsyncClient,
    override_get_db: AsyncMock,
    fake_auth_success_response: AuthSuccessResponse,
) -> None:
    mock_login.return_value = fake_auth_success_response
    response = await async_client.post(
        "/auth/login/oauth",
        data={"username": "customer.test@example.com", "password": "StrongPass123"},
    )
    assert response.status_code == status.HTTP_200_OK
    form_data = mock_login.await_args.args[0]
    assert form_data.username == "customer.test@example.com"


# =====================
# --- Logout Tests ---
# =====================
@pytest.mark.asyncio
@patch.object(auth_services, "logout_user_token", new_callable=AsyncMock)
async def test_logout_with_bearer_token(mock_logout: AsyncMock, async_client: AsyncClient) -> None:
    mock_logout.return_value = MessageResponse(detail="Successfully logged out")
    response = await async_client.post(
        "/auth/logout", headers={"Authorization": "Bearer some-token"}
    )
    assert response.status_code == status.HTTP_200_OK
    mock_logout.assert_awaited_once_with("some-token")
    assert 'access_token=""' in response.headers["set-cookie"]


@pytest.mark.asyncio
@patch.object(auth_services, "logout_user_token", new_callable=AsyncMock)
async def test_logout_without_token(mock_logout: AsyncMock, async_client: AsyncClient) -> None:
    response = await async_client.post("/auth/logout")
    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    mock_logout.assert_not_awaited()


# ===========================
# --- Session User Tests ---
# ===========================
@pytest.mark.asyncio
async def test_read_session_user(
    async_client: AsyncClient, mock_current_vendor_user: User
) -> None:
    response = await async_client.get("/auth/me")
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["id"] == str(mock_current_vendor_user.id)
    assert data["role"] == "VENDOR"


@pytest.mark.asyncio
async def test_read_session_user_unauthenticated(async_client: AsyncClient) -> None:
    response = await async_client.get("/auth/me")
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


# ======================================
# --- Verification and Password Flows ---
# ======================================
@pytest.mark.asyncio
@patch.object(auth_services, "verify_email_token", new_callable=AsyncMock)
async def test_verify_email(
    mock_verify: AsyncMock, async_client: AsyncClient, override_get_db: AsyncMock
) -> None:
    mock_verify.return_value = MessageResponse(detail="Email verified successfully.")
    response = await async_client.get("/auth/verify-email", params={"token": "abc"})
    assert response.status_code == status.HTTP_200_OK
    mock_verify.assert_awaited_once_with("abc", override_get_db)


@pytest.mark.asyncio
@patch.object(auth_services, "request_password_reset", new_callable=AsyncMock)
async def test_forgot_password(
    mock_reset: AsyncMock, async_client: AsyncClient, override_get_db: AsyncMock
) -> None:
    mock_reset.return_value = MessageResponse(
        detail="If an account with that email exists, a password reset link has been sent."
    )
    response = await async_client.post(
        "/auth/forgot-password", json={"email": "customer.test@example.com"}
    )
    assert response.status_code == status.HTTP_200_OK
    mock_reset.assert_awaited_once()


@pytest.mark.asyncio
@patch.object(auth_services, "reset_password", new_callable=AsyncMock)
async def test_reset_password_invalid_token(
    mock_reset: AsyncMock, async_client: AsyncClient, override_get_db: AsyncMock
) -> None:
    mock_reset.side_effect = HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid token."
    )
    response = await async_client.post(
        "/auth/reset-password", json={"token": "bad", "new_password": "NewPass1234"}
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["detail"] == "Invalid token."


@pytest.mark.asyncio
@patch.object(auth_services, "change_password", new_callable=AsyncMock)
async def test_change_password(
    mock_change: AsyncMock,
    async_client: AsyncClient,
    override_get_db: AsyncMock,
    mock_current_customer_user: User,
) -> None:
    mock_change.return_value = MessageResponse(detail="Password updated successfully.")
    response = await async_client.post(
        "/auth/change-password",
        json={"current_password": "OldPass123", "new_password": "NewPass1234"},
    )
    assert response.status_code == status.HTTP_200_OK
    args = mock_change.await_args.args
    assert args[1] is mock_current_customer_user
