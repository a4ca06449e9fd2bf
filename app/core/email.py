"""
app/core/email.py

Transactional email through SendGrid, rendered from Jinja2 templates:
- Email verification and welcome
- Password reset, reset confirmation and password-changed notice
- Order receipt after a paid checkout
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Any

from fastapi import HTTPException
from jinja2 import Environment, FileSystemLoader, select_autoescape
from pydantic import EmailStr
from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import From, Mail, To

from app.core.config import settings

logger = logging.getLogger(__name__)

jinja_env = Environment(
    loader=FileSystemLoader(settings.mail_templates_path),
    autoescape=select_autoescape(["html", "xml"]),
)


def _sender_name() -> str:
    return settings.MAIL_FROM_NAME or settings.APP_NAME


def _render_template(template_name: str, context: dict[str, Any]) -> str:
    """Render an email template with the shared branding context."""
    template = jinja_env.get_template(template_name)
    full_context = {
        "year": datetime.now().year,
        "company_name": _sender_name(),
        "app_name": settings.APP_NAME,
        "base_url": str(settings.BASE_URL).rstrip("/"),
        "support_email": str(settings.SUPPORT_EMAIL),
        **context,
    }
    return template.render(full_context)


async def _send_email(to_email: EmailStr, subject: str, html_content: str) -> None:
    """
    Sends an email using SendGrid API.

    Raises:
        HTTPException 500: If the provider is misconfigured or rejects the message.
    """
    if not settings.EMAILS_ENABLED:
        logger.warning(f"Email sending disabled. Skipping send to {to_email} for subject '{subject}'")
        return

    if not settings.SENDGRID_API_KEY:
        logger.error("SendGrid API Key setting is missing")
        raise HTTPException(status_code=500, detail="Email service configuration missing")

    message = Mail(
        from_email=From(email=str(settings.MAIL_FROM), name=_sender_name()),
        to_emails=To(str(to_email)),
        subject=subject,
        html_content=html_content,
    )

    try:
        response = SendGridAPIClient(settings.SENDGRID_API_KEY).send(message)
    except Exception as e:
        logger.error(f"Failed to send email to {to_email}: {e}")
        raise HTTPException(status_code=500, detail="An unexpected error occurred while sending the email")

    if response.status_code >= 300:
        logger.error(f"SendGrid API error: Status={response.status_code}, Body={response.body}")
        raise HTTPException(status_code=500, detail="Failed to send email via provider")
    logger.info(f"Email sent to {to_email} for subject '{subject}' ({response.status_code})")


async def send_email_verification(to_email: EmailStr, token: str, first_name: str | None = None) -> None:
    base_url = str(settings.BASE_URL).rstrip("/")
    html_content = _render_template(
        "verification.html",
        {
            "verification_link": f"{base_url}/auth/verify-email?token={token}",
            "account_verification_ttl_min": settings.EMAIL_VERIFICATION_TOKEN_EXPIRE_MINUTES,
            "first_name": first_name,
        },
    )
    await _send_email(to_email, f"Verify Your Email - {_sender_name()}", html_content)


async def send_welcome_email(to_email: EmailStr, first_name: str) -> None:
    base_url = str(settings.BASE_URL).rstrip("/")
    html_content = _render_template(
        "welcome.html", {"first_name": first_name, "login_url": f"{base_url}/auth/login"}
    )
    await _send_email(to_email, f"Welcome to {_sender_name()}", html_content)


async def send_password_reset_email(to_email: EmailStr, token: str, first_name: str | None = None) -> None:
    base_url = str(settings.BASE_URL).rstrip("/")
    html_content = _render_template(
        "password_reset.html",
        {
            "reset_link": f"{base_url}/auth/reset-password?token={token}",
            "password_reset_ttl_min": settings.PASSWORD_RESET_TOKEN_EXPIRE_MINUTES,
            "first_name": first_name,
        },
    )
    await _send_email(to_email, f"Reset Your Password - {_sender_name()}", html_content)


async def send_password_reset_confirmation(to_email: EmailStr, first_name: str) -> None:
    base_url = str(settings.BASE_URL).rstrip("/")
    html_content = _render_template(
        "password_reset_confirmation.html",
        {"login_url": f"{base_url}/auth/login", "first_name": first_name},
    )
    await _send_email(to_email, f"Your Password Has Been Reset - {_sender_name()}", html_content)


async def send_password_changed_notice(to_email: EmailStr, first_name: str) -> None:
    html_content = _render_template("password_changed.html", {"first_name": first_name})
    await _send_email(to_email, f"Your Password Was Changed - {_sender_name()}", html_content)


async def send_order_receipt(
    to_email: EmailStr,
    first_name: str,
    order_id: Any,
    items: list[dict[str, Any]],
    subtotal: Decimal,
    delivery_fee: Decimal,
    total_amount: Decimal,
    delivery_address: str,
) -> None:
    """Receipt for a paid order. `items` holds name, quantity and line_total."""
    html_content = _render_template(
        "order_receipt.html",
        {
            "first_name": first_name,
            "order_id": order_id,
            "items": items,
            "subtotal": subtotal,
            "delivery_fee": delivery_fee,
            "total_amount": total_amount,
            "delivery_address": delivery_address,
        },
    )
    await _send_email(to_email, f"Your {_sender_name()} order {order_id}", html_content)
    logger.info(f"Order receipt sent to {to_email} for order {order_id}")
