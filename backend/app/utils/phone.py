"""
Mobile number validation utilities
"""
import re

# Optional leading +, first digit 1-9, 2-15 digits in total
MOBILE_NUMBER_PATTERN = re.compile(r"^\+?[1-9]\d{1,14}$")


def validate_mobile_number(mobile_number: str) -> bool:
    """
    Check a mobile number against the accepted E.164-style syntax.

    No normalization is applied: "+15551234567" and "15551234567" are
    different identifiers.
    """
    if not isinstance(mobile_number, str):
        return False
    return MOBILE_NUMBER_PATTERN.fullmatch(mobile_number) is not None


def get_phone_last4(phone: str) -> str:
    """
    Get last 4 digits of phone number for safe logging.

    Args:
        phone: Phone number (can be in any format)

    Returns:
        Last 4 digits as string, or all digits if fewer than 4
    """
    digits = ''.join(filter(str.isdigit, phone or ""))
    if len(digits) >= 4:
        return digits[-4:]
    return digits


def default_display_name(mobile_number: str) -> str:
    """Display name given to users created on first OTP login."""
    return f"User {mobile_number[-4:]}"
