"""Request validation and header redaction helpers."""

from __future__ import annotations

import base64
import re
from typing import Mapping

import httpx

from .exceptions import InvalidRequestError

SENSITIVE_HEADERS = {
    "authorization",
    "proxy-authorization",
    "cookie",
    "set-cookie",
}

# RFC 7230 token characters.
_METHOD_RE = re.compile(r"[!#$%&'*+\-.^_`|~0-9A-Za-z]+")


def sanitize_headers(headers: Mapping[str, str]) -> dict[str, str]:
    """Return headers with sensitive values redacted for logging."""
    redacted: dict[str, str] = {}
    for key, value in headers.items():
        if key.lower() in SENSITIVE_HEADERS:
            redacted[key] = "[REDACTED]"
        else:
            redacted[key] = value
    return redacted


def validate_method(method: str) -> str:
    if not method or not _METHOD_RE.fullmatch(method):
        raise InvalidRequestError(f"invalid method {method!r}")
    return method.upper()


def validate_url(url: str, *, base_url: str | None = None) -> httpx.URL:
    """Parse ``url`` and reject anything the transport cannot send.

    Relative URLs are accepted only when a ``base_url`` is configured; the
    transport joins them later.
    """
    if "\x00" in url:
        raise InvalidRequestError("invalid URL characters")
    try:
        parsed = httpx.URL(url)
    except (httpx.InvalidURL, TypeError) as exc:
        raise InvalidRequestError(f"invalid URL {url!r}", cause=exc) from exc
    if not parsed.scheme and not parsed.host:
        if base_url:
            return parsed
        raise InvalidRequestError(f"URL {url!r} must include scheme and host")
    if parsed.scheme not in {"http", "https"}:
        raise InvalidRequestError(f"unsupported URL scheme: {parsed.scheme}")
    if not parsed.host:
        raise InvalidRequestError(f"URL {url!r} has no host")
    return parsed


def basic_auth(username: str, password: str) -> str:
    token = f"{username}:{password}".encode()
    return "Basic " + base64.b64encode(token).decode("ascii")
