"""
Phone number helpers.

Player phones are stored in E.164 form so they compare equal to the
``From`` value Twilio posts to the RSVP webhook.
"""

from typing import Optional

import phonenumbers
from phonenumbers import NumberParseException, PhoneNumberFormat, ValidationResult


def normalize_phone_number(value: Optional[str], default_region: str = "US") -> Optional[str]:
    """
    Normalize a phone number to E.164.

    Numbers without a leading ``+`` are parsed in ``default_region``.
    Only the length is checked against the numbering plan, so reserved
    ranges such as 555 numbers are accepted.

    Returns:
        The normalized number, or None for empty input

    Raises:
        ValueError: If the value does not contain a plausible phone number
    """
    if value is None:
        return None
    raw = value.strip()
    if not raw:
        return None

    try:
        parsed = phonenumbers.parse(raw, default_region)
    except NumberParseException as e:
        raise ValueError(f"Invalid phone number: {value}") from e

    if phonenumbers.is_possible_number_with_reason(parsed) != ValidationResult.IS_POSSIBLE:
        raise ValueError(f"Invalid phone number: {value}")
    return phonenumbers.format_number(parsed, PhoneNumberFormat.E164)


def normalize_phone_lenient(value: Optional[str]) -> Optional[str]:
    """Normalize if possible; otherwise return the stripped input unchanged."""
    if value is None:
        return None
    try:
        return normalize_phone_number(value)
    except ValueError:
        return value.strip() or None
