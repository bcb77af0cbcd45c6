"""Reusable Pydantic field validators."""

import re

EMAIL_REGEX = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")
CURRENCY_REGEX = re.compile(r"^[A-Z]{3}$")


def validate_email(value: str) -> str:
    """Validate email address.

    Returns:
        Lowercase email address

    Raises:
        ValueError: If email is invalid
    """
    value = value.strip().lower()

    if len(value) > 254:  # RFC 5321
        raise ValueError("Email address too long")

    if not EMAIL_REGEX.match(value):
        raise ValueError("Invalid email address format")

    return value


def validate_currency_code(value: str) -> str:
    """Normalise an ISO 4217 code; existence is checked against reference data."""
    value = value.strip().upper()
    if not CURRENCY_REGEX.match(value):
        raise ValueError("Currency must be a 3-letter ISO code")
    return value


def validate_unique_ids(value: list[str]) -> list[str]:
    """Reject duplicated ids in a selection list."""
    if len(set(value)) != len(value):
        raise ValueError("Duplicate ids in selection")
    return value
