"""Form validation rules shared by request schemas."""

import re
from datetime import date
from typing import Optional

PHONE_PATTERN = re.compile(r"^[0-9]{10}$")
MIN_PASSWORD_LENGTH = 6


def validate_phone(value: str) -> str:
    value = (value or "").strip()
    if not PHONE_PATTERN.match(value):
        raise ValueError("Phone number must be exactly 10 digits")
    return value


def validate_password_pair(password: str, confirm_password: str, min_length: int = MIN_PASSWORD_LENGTH) -> None:
    if len(password) < min_length:
        raise ValueError(f"Password must be at least {min_length} characters long")
    if password != confirm_password:
        raise ValueError("Passwords do not match")


def validate_date_order(start: Optional[date], end: Optional[date]) -> None:
    if start and end and end < start:
        raise ValueError("End date must be after start date")


def require_text(value: str, label: str) -> str:
    value = (value or "").strip()
    if not value:
        raise ValueError(f"{label} is required")
    return value
