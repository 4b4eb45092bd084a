"""Dashboard id validation."""

import re

from dashstate.core.exceptions import ValidationError

DASHBOARD_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]{3,80}$")


def validate_dashboard_id(value: object) -> str:
    """
    Normalize and validate a dashboard id.

    Ids are 3-80 characters of letters, digits, hyphen and underscore.
    Surrounding whitespace is ignored.

    Args:
        value: Raw id as received from a caller

    Returns:
        The stripped, valid id

    Raises:
        ValidationError: If the id is missing or malformed
    """
    candidate = str(value).strip() if value is not None else ""
    if not candidate:
        raise ValidationError("Missing dash id", value=value)
    if not DASHBOARD_ID_PATTERN.fullmatch(candidate):
        raise ValidationError(
            f"Invalid dash id: {candidate!r} "
            "(expected 3-80 characters: letters, digits, '-' or '_')",
            value=value,
        )
    return candidate


def is_valid_dashboard_id(value: object) -> bool:
    try:
        validate_dashboard_id(value)
    except ValidationError:
        return False
    return True
