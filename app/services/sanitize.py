"""Strip markup and control characters that should never reach a handler."""

import re
from typing import Any

_SCRIPT_TAG = re.compile(r"<script\b[^<]*(?:(?!</script>)<[^<]*)*</script>", re.IGNORECASE)
_JS_PROTOCOL = re.compile(r"javascript:", re.IGNORECASE)
_EVENT_HANDLER = re.compile(r"on\w+\s*=", re.IGNORECASE)
_CONTROL_CHARS = re.compile(r"[\x00-\x1F\x7F]")


def sanitize_string(value: str) -> str:
    value = _SCRIPT_TAG.sub("", value)
    value = _JS_PROTOCOL.sub("", value)
    value = _EVENT_HANDLER.sub("", value)
    value = _CONTROL_CHARS.sub("", value)
    return value.strip()


def sanitize_value(value: Any) -> Any:
    """
    Recursively sanitize a decoded JSON value.

    Strings are cleaned, lists and dicts are walked (dict keys are kept as-is),
    anything else (numbers, booleans, None) is returned unchanged.
    """
    if isinstance(value, str):
        return sanitize_string(value)
    if isinstance(value, list):
        return [sanitize_value(item) for item in value]
    if isinstance(value, dict):
        return {key: sanitize_value(item) for key, item in value.items()}
    return value


def sanitize_pairs(pairs: list[tuple[str, str]]) -> list[tuple[str, str]]:
    """Sanitize the values of decoded query-string or form pairs."""
    return [(key, sanitize_string(item)) for key, item in pairs]
