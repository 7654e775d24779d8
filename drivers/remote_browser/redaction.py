"""Redaction utilities for frame logging and dumps.

Prefers safety over fidelity: credentials, cookie values and auth headers never
reach a log record in clear text.
"""

from __future__ import annotations

from typing import Any
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

_SENSITIVE_SUBSTRINGS = (
    "token",
    "secret",
    "password",
    "passwd",
    "pwd",
    "authorization",
    "cookie",
    "session",
    "jwt",
    "bearer",
    "api-key",
    "api_key",
    "apikey",
)

_SENSITIVE_EXACT = {
    # Avoid false-positives like "author"/"authorship".
    "auth",
}

# Positional arguments that carry secrets, per command.
_SENSITIVE_POSITIONS: dict[str, set[int]] = {
    "set_http_auth": {1},
    "set_proxy": {3, 4},
}

_HEADER_COMMANDS = {"set_headers", "add_headers", "add_header"}


def is_sensitive_key(key: str) -> bool:
    k = (key or "").strip().lower()
    if not k:
        return False
    if k in _SENSITIVE_EXACT:
        return True
    return any(s in k for s in _SENSITIVE_SUBSTRINGS)


def redacted_summary(value: Any) -> str:
    if value is None:
        return "<redacted>"
    if isinstance(value, (bytes, bytearray)):
        return f"<redacted bytes len={len(value)}>"
    if isinstance(value, str):
        return f"<redacted str len={len(value)}>"
    if isinstance(value, (list, tuple, set)):
        return f"<redacted list len={len(value)}>"
    if isinstance(value, dict):
        return f"<redacted dict keys={len(value)}>"
    return "<redacted>"


def redact_url(url: str) -> str:
    """Drop userinfo and redact token-like query values; other URLs are returned unchanged."""
    if not isinstance(url, str) or not url:
        return url
    try:
        parts = urlsplit(url)
    except ValueError:
        return url

    changed = False
    netloc = parts.netloc
    query = parts.query
    if "@" in netloc:
        netloc = netloc.split("@", 1)[1]
        changed = True

    if query:
        pairs = parse_qsl(query, keep_blank_values=True)
        out_pairs = [(k, "<redacted>" if v and is_sensitive_key(k) else v) for k, v in pairs]
        if out_pairs != pairs:
            query = urlencode(out_pairs)
            changed = True

    if not changed:
        return url
    return urlunsplit((parts.scheme, netloc, parts.path, query, parts.fragment))


def redact_headers(headers: dict[str, Any]) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for k, v in (headers or {}).items():
        out[k] = redacted_summary(v) if is_sensitive_key(str(k)) else v
    return out


def _redact_value(value: Any, key: str | None) -> Any:
    if isinstance(value, dict):
        return {k: _redact_value(v, str(k)) for k, v in value.items()}
    if isinstance(value, list):
        return [_redact_value(v, key) for v in value]
    lk = (key or "").lower()
    if lk == "url" and isinstance(value, str):
        return redact_url(value)
    if lk and is_sensitive_key(lk):
        return redacted_summary(value)
    return value


def redact_command_args(name: str, args: list[Any]) -> list[Any]:
    """Redact positional command arguments for safe logging."""
    positions = _SENSITIVE_POSITIONS.get(name, set())
    out: list[Any] = []
    for i, arg in enumerate(args):
        if i in positions:
            out.append(redacted_summary(arg))
        elif name == "set_cookie" and isinstance(arg, dict):
            out.append({k: redacted_summary(v) if k == "value" else v for k, v in arg.items()})
        elif name in _HEADER_COMMANDS and isinstance(arg, dict):
            out.append(redact_headers(arg))
        elif name == "visit" and isinstance(arg, str):
            out.append(redact_url(arg))
        else:
            out.append(_redact_value(arg, None))
    return out


def redact_message(message: dict[str, Any]) -> dict[str, Any]:
    """Redact a request envelope (`{"id", "name", "args"}`)."""
    if not isinstance(message, dict):
        return message
    out = dict(message)
    name = out.get("name")
    args = out.get("args")
    if isinstance(name, str) and isinstance(args, list):
        out["args"] = redact_command_args(name, args)
    return out


__all__ = [
    "is_sensitive_key",
    "redact_command_args",
    "redact_headers",
    "redact_message",
    "redact_url",
    "redacted_summary",
]
