"""
Log-input sanitizing.

User-supplied strings (barcodes, file names, ingredient lists) end up in log
lines. A CR or LF inside one would let a client forge extra log entries, so
such values are rejected before they are logged.
"""

from typing import Any

_FORBIDDEN = ("\r", "\n")


def sanitize_log_value(value: Any) -> str:
    """Return `value` as a string, refusing anything that contains CR or LF."""
    text = str(value)
    if any(ch in text for ch in _FORBIDDEN):
        raise ValueError("CRLF injection attempt detected")
    return text
