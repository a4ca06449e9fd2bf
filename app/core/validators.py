"""
app/core/validators.py

Field validators shared by request schemas:
- password_validator: ASCII, 8-128 chars, at least one letter and one digit
- phone_validator: normalises phone numbers to digits with optional leading '+'
"""

from typing import Final

# -------------------------------
# Constants
# -------------------------------
MIN_PASSWORD_LENGTH: Final[int] = 8
MAX_PASSWORD_LENGTH: Final[int] = 128
MIN_PHONE_DIGITS: Final[int] = 10
MAX_PHONE_DIGITS: Final[int] = 15


def password_validator(password: str) -> str:
    """
    Validates password strength.

    Raises:
        ValueError: If any rule is violated
    """
    if not password.isascii():
        raise ValueError("Password must contain only ASCII characters.")

    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValueError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long.")

    if len(password) > MAX_PASSWORD_LENGTH:
        raise ValueError(f"Password must be at most {MAX_PASSWORD_LENGTH} characters long.")

    if not any(c.isalpha() for c in password):
        raise ValueError("Password must contain at least one letter.")

    if not any(c.isdigit() for c in password):
        raise ValueError("Password must contain at least one digit.")

    return password


def phone_validator(phone: str) -> str:
    """Strip separators and check the digit count. Returns the normalised number."""
    cleaned = phone.strip().replace(" ", "").replace("-", "")
    prefix = ""
    if cleaned.startswith("+"):
        prefix, cleaned = "+", cleaned[1:]

    if not cleaned.isdigit():
        raise ValueError("Phone number may only contain digits, spaces, dashes and a leading '+'.")

    if not MIN_PHONE_DIGITS <= len(cleaned) <= MAX_PHONE_DIGITS:
        raise ValueError(
            f"Phone number must have between {MIN_PHONE_DIGITS} and {MAX_PHONE_DIGITS} digits."
        )

    return f"{prefix}{cleaned}"
