"""Shared validation utilities"""

import re
from datetime import date
from typing import Any, Optional

# 24-hour clock, hour may omit its leading zero (9:30 and 09:30 are both valid)
TIME_PATTERN = re.compile(r"^([0-1]?[0-9]|2[0-3]):[0-5][0-9]$")


def validate_positive_id(value: Optional[int], label: str) -> Optional[int]:
    """
    Validate that an identifier is a positive integer.

    Raises:
        ValueError: If the id is zero or negative
    """
    if value is None:
        return value
    if isinstance(value, bool) or value < 1:
        raise ValueError(f"{label} must be a positive integer")
    return value


def validate_not_past_date(value: date) -> date:
    """
    Validate that a date is today or later.

    Raises:
        ValueError: If the date is earlier than today
    """
    if value < date.today():
        raise ValueError("Date cannot be earlier than today")
    return value


def validate_time_hhmm(value: str) -> str:
    """
    Validate a 24-hour HH:MM time.

    Returns:
        Time normalized to zero-padded HH:MM

    Raises:
        ValueError: If the time does not match the 24-hour format
    """
    if not isinstance(value, str) or not TIME_PATTERN.match(value.strip()):
        raise ValueError("Time must use a valid 24-hour HH:MM format")
    hours, minutes = value.strip().split(":")
    return f"{int(hours):02d}:{minutes}"


def validate_max_length(value: Optional[str], max_length: int, label: str) -> Optional[str]:
    """Validate an optional text field does not exceed max_length characters"""
    if value is not None and len(value) > max_length:
        raise ValueError(f"{label} cannot exceed {max_length} characters")
    return value


def validate_list(value: Any, label: str) -> Any:
    """Validate an optional value is a list"""
    if value is not None and not isinstance(value, list):
        raise ValueError(f"{label} must be a list")
    return value
