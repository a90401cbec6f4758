"""
Input Validation - Sanitization of values entered by marketplace users.

Provides validation for external inputs before they reach the engine:
- Email shape
- Password strength
- Bid amounts and prices
"""

import math
import re
from typing import Any, Optional, Tuple, Union

# =============================================================================
# Constants
# =============================================================================

MIN_PASSWORD_LENGTH = 6
MAX_STRING_LENGTH = 1024

# local@domain, no whitespace, at least one character on each side
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+$")


# =============================================================================
# Validation Functions
# =============================================================================


def validate_email(email: Any) -> Tuple[bool, str]:
    """
    Validate the minimal shape of an email address.

    Returns:
        (is_valid, error_message)
    """
    if not isinstance(email, str) or "@" not in email:
        return False, "Invalid email address"

    if len(email) > MAX_STRING_LENGTH:
        return False, f"Email exceeds max length {MAX_STRING_LENGTH}"

    if not EMAIL_PATTERN.match(email.strip()):
        return False, "Invalid email address"

    return True, ""


def validate_password(password: Any, min_length: int = MIN_PASSWORD_LENGTH) -> Tuple[bool, str]:
    """Validate password length."""
    if not isinstance(password, str) or len(password) < min_length:
        return False, f"Password must be at least {min_length} characters"
    return True, ""


def parse_amount(value: Any) -> Optional[Union[int, float]]:
    """
    Coerce a user-entered amount into a finite number.

    Integral floats collapse to int so stored prices stay exact.

    Returns:
        The number, or None if the value is not a finite number
    """
    if isinstance(value, bool):
        return None

    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            return None

    if not isinstance(value, (int, float)):
        return None

    if isinstance(value, float):
        if not math.isfinite(value):
            return None
        if value.is_integer():
            return int(value)

    return value
