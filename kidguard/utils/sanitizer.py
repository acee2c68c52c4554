"""Input sanitization for text entering the filtering engine."""

import re
import unicodedata
from typing import Any

from ..core.exceptions import ValidationInputError

# Control characters except tab, newline and carriage return, plus C1 controls
_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f-\x9f]")


def _clean(text: str) -> str:
    cleaned = _CONTROL_CHARS.sub(" ", text)
    return unicodedata.normalize("NFC", cleaned)


def check_text(value: Any) -> str:
    """
    Validate raw input text.

    Args:
        value: Raw text as received from the caller

    Returns:
        The text unchanged when it is already clean

    Raises:
        ValidationInputError: If the value is not text or needed sanitizing.
            The error carries the sanitized replacement.
    """
    if value is None:
        return ""

    if isinstance(value, bytes):
        decoded = value.decode("utf-8", errors="replace")
        raise ValidationInputError(
            "Text input was bytes, decoded as UTF-8", sanitized=_clean(decoded)
        )

    if not isinstance(value, str):
        raise ValidationInputError(
            f"Text input must be a string, got {type(value).__name__}",
            sanitized=_clean(str(value)),
        )

    cleaned = _clean(value)
    if cleaned != value:
        raise ValidationInputError(
            "Text contained control characters", sanitized=cleaned
        )

    return value


def sanitize_text(value: Any) -> str:
    """Return a clean version of ``value``; never raises."""
    try:
        return check_text(value)
    except ValidationInputError as exc:
        return exc.sanitized
