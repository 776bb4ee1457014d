"""PII / secret / stack-trace sanitizer for structured logs.

Three-tier string processing:
 1. > MAX_STR_LOG   → truncate + sha256, never run regex
 2. > MAX_STR_FOR_REGEX → prefix check only (Bearer)
 3. ≤ MAX_STR_FOR_REGEX → full regex replacement

Talent contact details (email, phone) are personal data and are redacted
whenever they show up as a log extra key.
"""

import hashlib
import re
import traceback
from typing import Any

# ── Size thresholds ───────────────────────────────────────────────────────────
MAX_STR_LOG: int = 2048
MAX_STR_FOR_REGEX: int = 512
MAX_DEPTH: int = 6

# ── Sensitive dict keys (lower-cased for comparison) ─────────────────────────
_SENSITIVE_KEYS: frozenset[str] = frozenset({
    "authorization", "token", "admin_token", "secret", "password",
    "email", "phone", "phone_number", "database_url",
})

# ── Pre-compiled regex patterns ───────────────────────────────────────────────
_PATTERNS: list[tuple[re.Pattern[str], str]] = [
    (re.compile(r"Bearer \S+"), "[REDACTED]"),
    (re.compile(r"(://[^:/@\s]+):([^@\s]+)@"), r"\1:***@"),
    (re.compile(r"password=\S+"), "password=[REDACTED]"),
]

_BEARER_PREFIX = "Bearer "


def sanitize_str(s: str) -> str:
    """Sanitize a string value according to the three-tier size gate."""
    if not isinstance(s, str):
        return s  # type: ignore[return-value]

    n = len(s)

    if n > MAX_STR_LOG:
        digest = hashlib.sha256(s.encode("utf-8", errors="replace")).hexdigest()[:16]
        return f"[TRUNCATED len={n} sha256={digest}]"

    if n > MAX_STR_FOR_REGEX:
        if s.startswith(_BEARER_PREFIX):
            return "[REDACTED]"
        return s

    result = s
    for pattern, replacement in _PATTERNS:
        result = pattern.sub(replacement, result)
    return result


def sanitize_obj(obj: Any, depth: int = 0) -> Any:
    """Recursively sanitize a log extra value.

    - dict: redact sensitive keys, recurse others
    - list: recurse each element
    - str: run sanitize_str()
    - other: return as-is
    """
    if depth >= MAX_DEPTH:
        return "[DEPTH_LIMIT]"

    if isinstance(obj, dict):
        result: dict[str, Any] = {}
        for key, value in obj.items():
            if isinstance(key, str) and key.lower() in _SENSITIVE_KEYS:
                result[key] = "[REDACTED]"
            else:
                result[key] = sanitize_obj(value, depth + 1)
        return result

    if isinstance(obj, (list, tuple)):
        return [sanitize_obj(item, depth + 1) for item in obj]

    if isinstance(obj, str):
        return sanitize_str(obj)

    return obj


def is_sensitive_key(key: str) -> bool:
    """True if a top-level log extra with this name must be redacted."""
    return key.lower() in _SENSITIVE_KEYS


def sanitize_exc(exc_info: tuple) -> str:
    """Format an exc_info tuple into a sanitized traceback string.

    capture_locals=False keeps local variable values out of the output.
    """
    _type, value, _tb = exc_info
    if value is None:
        return ""
    try:
        te = traceback.TracebackException.from_exception(value, capture_locals=False)
        formatted = "".join(te.format())
        return sanitize_str(formatted)
    except Exception:
        return "[TRACEBACK_FORMAT_ERROR]"
