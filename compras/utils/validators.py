"""Input validators shared by forms, services and the spreadsheet importer."""
import re
from typing import Optional

RIF_PATTERN = re.compile(r'^[JVGEP]\d{8,9}$')
EMAIL_PATTERN = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')


def validate_rif(rif) -> Optional[str]:
    """
    Normalize and validate a Venezuelan RIF.

    Dashes and spaces are removed and letters uppercased, so
    'j-12345678-9' becomes 'J123456789'.

    Returns:
        The normalized RIF, or None if it is missing or malformed.
    """
    if rif is None:
        return None
    normalized = re.sub(r'[- ]', '', str(rif)).upper()
    if not normalized:
        return None
    return normalized if RIF_PATTERN.match(normalized) else None


def is_valid_email(email) -> bool:
    if not email:
        return False
    return bool(EMAIL_PATTERN.match(str(email).strip()))


def clean_str(value) -> Optional[str]:
    """Strip strings and turn empty values into None."""
    if value is None:
        return None
    text = str(value).strip()
    return text or None
