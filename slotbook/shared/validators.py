"""Shared validation utilities"""

import re
from datetime import date
from typing import Optional

from ..domain.scheduling.intervals import is_valid_time


def parse_date(value: Optional[str]) -> date:
    """
    Parse a calendar day in YYYY-MM-DD format.

    Raises:
        ValueError: If the value is missing or malformed
    """
    if not value:
        raise ValueError("Date is required")
    try:
        return date.fromisoformat(value.strip())
    except (TypeError, ValueError):
        raise ValueError("Invalid date format. Expected YYYY-MM-DD") from None


def validate_time(value: Optional[str]) -> str:
    """
    Validate a 24h HH:MM time-of-day.

    Raises:
        ValueError: If the value is missing or malformed
    """
    if not value:
        raise ValueError("Time is required")
    value = value.strip()
    if not is_valid_time(value):
        raise ValueError("Invalid time format. Expected HH:MM")
    return value


def normalize_phone(phone: Optional[str]) -> str:
    """Keep digits and a single leading '+'."""
    if not phone:
        return ""
    cleaned = re.sub(r"[^\d+]", "", phone)
    if cleaned.startswith("+"):
        return "+" + cleaned[1:].replace("+", "")
    return cleaned.replace("+", "")


def validate_phone(phone: Optional[str]) -> Optional[str]:
    """
    Validate a client contact phone number.

    Args:
        phone: Phone number string in any common format

    Returns:
        Normalized phone number (digits with optional leading '+')

    Raises:
        ValueError: If phone number is too short to be reachable
    """
    if not phone:
        return phone

    normalized = normalize_phone(phone)
    if len(normalized.lstrip("+")) < 6:
        raise ValueError("Phone number must contain at least 6 digits")
    return normalized


def same_phone(a: Optional[str], b: Optional[str]) -> bool:
    """Compare two phone numbers after normalization."""
    left, right = normalize_phone(a), normalize_phone(b)
    return bool(left) and left == right
