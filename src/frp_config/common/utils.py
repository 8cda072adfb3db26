"""Utility functions for the FRP configuration codec."""

import base64
import binascii
import re
import secrets
import string
from typing import Any

# Port range constants; 0 means "unset" for optional ports
MIN_PORT = 0
MAX_PORT = 65535

DEFAULT_BANDWIDTH_UNIT = "MB"

_RANDOM_NAME_ALPHABET = string.ascii_letters + string.digits
_BANDWIDTH_RE = re.compile(r"^\s*([0-9]*)(.*)$", re.DOTALL)

# Substrings of config keys whose values must never reach a log line
_SENSITIVE_FIELDS = (
    "token",
    "password",
    "passwd",
    "pwd",
    "secret",
)


def validate_non_empty_string(value: str, field_name: str) -> str:
    """Validate that a string is not empty or only whitespace.

    Args:
        value: String value to validate
        field_name: Name of the field for error messages

    Returns:
        Stripped string value

    Raises:
        ValueError: If string is empty or only whitespace
    """
    if not value or not value.strip():
        raise ValueError(f"{field_name} cannot be empty")
    return value.strip()


def parse_bandwidth(value: str) -> tuple[int, str]:
    """Split a bandwidth token such as ``"10MB"`` into limit and unit.

    The unit starts at the first non-digit character. A token without unit
    characters gets the ``MB`` unit, and a token without digits a zero limit.

    Args:
        value: Bandwidth token as found on disk

    Returns:
        Tuple of (limit, unit)
    """
    match = _BANDWIDTH_RE.match(value)
    digits, unit = (match.group(1), match.group(2).strip()) if match else ("", "")
    return (int(digits) if digits else 0, unit or DEFAULT_BANDWIDTH_UNIT)


def format_bandwidth(limit: int, unit: str) -> str:
    """Join a bandwidth limit and unit into the on-disk token."""
    return f"{limit}{unit}"


def split_list(value: str, separator: str = ",") -> list[str]:
    """Split a separated string into trimmed, non-empty items."""
    return [item.strip() for item in value.split(separator) if item.strip()]


def base64_encode(text: str) -> str:
    """Encode UTF-8 text as standard base64."""
    return base64.b64encode(text.encode("utf-8")).decode("ascii")


def base64_decode(payload: str) -> str | None:
    """Decode a standard base64 payload into UTF-8 text.

    Whitespace anywhere in the payload is ignored, so line-wrapped links decode.

    Returns:
        Decoded text, or None if the payload is not valid base64 UTF-8
    """
    try:
        compact = "".join(payload.split())
        return base64.b64decode(compact, validate=True).decode("utf-8")
    except (binascii.Error, ValueError):
        return None


def generate_random_name(length: int = 8) -> str:
    """Generate a random alphanumeric name for imported configs."""
    return "".join(secrets.choice(_RANDOM_NAME_ALPHABET) for _ in range(length))


def mask_sensitive_data(
    value: str | None, mask_char: str = "*", show_chars: int = 4
) -> str:
    """Mask sensitive data for logging while preserving some characters for debugging.

    Args:
        value: Sensitive string to mask (e.g., auth token, password)
        mask_char: Character to use for masking
        show_chars: Number of characters to show at the end

    Returns:
        Masked string safe for logging
    """
    if not value:
        return "<None>"

    if len(value) <= show_chars:
        return mask_char * len(value)

    masked_length = len(value) - show_chars
    return mask_char * masked_length + value[-show_chars:]


def is_sensitive_key(key: str) -> bool:
    """Check whether a config or log key names a credential."""
    lowered = key.lower()
    return lowered == "sk" or any(field in lowered for field in _SENSITIVE_FIELDS)


def sanitize_log_data(data: dict[str, Any]) -> dict[str, Any]:
    """Sanitize dictionary data for safe logging by masking sensitive fields.

    Args:
        data: Dictionary potentially containing sensitive data

    Returns:
        Sanitized dictionary safe for logging
    """
    sanitized = {}
    for key, value in data.items():
        if is_sensitive_key(key):
            sanitized[key] = mask_sensitive_data(str(value) if value else None)
        else:
            sanitized[key] = value

    return sanitized
