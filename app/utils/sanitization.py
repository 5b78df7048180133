"""Escaping for free text stored on bookings and services (names, descriptions, notes)"""

import html
import re
from typing import Optional

CONTROL_CHARACTERS = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]")


def escape_text(value: Optional[str]) -> Optional[str]:
    """HTML-escape a display value and drop control characters. None stays None."""
    if value is None:
        return None
    return CONTROL_CHARACTERS.sub("", html.escape(str(value).strip(), quote=True))


def clean_notes(value: Optional[str], max_length: int) -> str:
    """
    Escape progress or follow-up notes, enforcing a length cap on the raw text.

    Raises:
        ValueError: If the notes are longer than max_length
    """
    if not value:
        return ""

    value = str(value).strip()
    if len(value) > max_length:
        raise ValueError(f"Notes exceed maximum length of {max_length} characters")

    return escape_text(value)
