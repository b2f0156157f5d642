"""
utils/validation_utils.py

Purpose: Input validation

- Mobile number normalization and format check
- Email normalization and format check
"""

import re
from typing import Optional


MOBILE_PATTERN = re.compile(r"^\+?\d{10,15}$")
EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9_.+-]+@[a-zA-Z0-9-]+\.[a-zA-Z0-9-.]+$")


def normalize_mobile(phone: Optional[str]) -> Optional[str]:
    """
    Strips spaces and common separators, keeping a leading '+'.

    Args:
        phone: Phone number as typed by the user

    Returns:
        Compact phone string, or None for empty input
    """
    if phone is None:
        return None
    phone = re.sub(r"[\s\-\(\)]", "", phone)
    return phone or None


def validate_phone_number(phone: str) -> bool:
    """
    Validates a compact phone number: 10-15 digits, optional leading '+'.
    """
    if not phone:
        return False
    return bool(MOBILE_PATTERN.match(phone))


def normalize_email(email: Optional[str]) -> Optional[str]:
    if email is None:
        return None
    email = email.strip().lower()
    return email or None


def validate_email(email: str) -> bool:
    if not email:
        return False
    return bool(EMAIL_PATTERN.match(email))
