"""Redaction module to mask session secrets in outputs and logs."""
import re
from typing import Any, Dict

SECRET_COOKIES = ("session-token", "at-main", "sess-at-main", "x-main", "ubid-main", "session-id")

SECRET_KEYS = {"session-token", "at-main", "sess-at-main", "x-main", "access_token", "refresh_token", "password"}

PATTERNS = [
    (
        re.compile(r"(" + "|".join(re.escape(name) for name in SECRET_COOKIES) + r")=([^;,\s\"']+)", re.IGNORECASE),
        r"\1=[REDACTED]",
    ),
    (
        re.compile(r"(access_token|refresh_token)([\"']?\s*[:=]\s*[\"'])([^\"']+)([\"'])", re.IGNORECASE),
        r"\1\2[REDACTED]\4",
    ),
    (
        re.compile(r"(Authorization[\"']?\s*[:=]\s*[\"']?Bearer\s+)([^\"'\s]+)", re.IGNORECASE),
        r"\1[REDACTED]",
    ),
]


def redact_string(text: str) -> str:
    """Redact secrets from a string."""
    if not text:
        return text

    result = text
    for pattern, replacement in PATTERNS:
        result = pattern.sub(replacement, result)
    return result


def redact_dict(data: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively redact secrets from a dictionary."""
    redacted = {}
    for key, value in data.items():
        if isinstance(key, str) and key.lower() in SECRET_KEYS:
            redacted[key] = "[REDACTED]"
        else:
            redacted[key] = redact_json(value)
    return redacted


def redact_cookie(cookie: Dict[str, Any]) -> Dict[str, Any]:
    """Playwright cookie dict with its value masked when it is a session secret."""
    if str(cookie.get("name", "")).lower() in SECRET_COOKIES:
        return {**cookie, "value": "[REDACTED]"}
    return cookie


def redact_json(data: Any) -> Any:
    """Redact secrets from JSON-serializable data."""
    if isinstance(data, dict):
        return redact_dict(data)
    elif isinstance(data, list):
        return [redact_json(item) for item in data]
    elif isinstance(data, str):
        return redact_string(data)
    else:
        return data
