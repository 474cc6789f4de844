"""Module-level shortcuts backed by a lazily created process-wide client."""

from __future__ import annotations

import threading

import httpx

from .client import Client
from .config import TransportConfig
from .models import Value
from .request_options import RequestOption
from .response import Response

_default: Client | None = None
_default_lock = threading.Lock()


def default_client() -> Client:
    """Return the shared client, creating it from ``CHAINREQ_*`` settings on first use."""
    global _default
    with _default_lock:
        if _default is None:
            _default = Client(config=TransportConfig.from_env())
        return _default


def set_default_client(client: Client | None) -> Client | None:
    """Replace the shared client and return the previous one (not closed)."""
    global _default
    with _default_lock:
        previous, _default = _default, client
        return previous


def set_default_options(*options: RequestOption) -> None:
    default_client().set_default_options(*options)


def add_default_options(*options: RequestOption) -> None:
    default_client().add_default_options(*options)


def clear_default_options() -> None:
    default_client().clear_default_options()


def filter_cookies(url: str) -> Value:
    return default_client().filter_cookies(url)


def filter_cookie(url: str, name: str) -> str:
    return default_client().filter_cookie(url, name)


def send(request: httpx.Request) -> Response:
    return default_client().send(request)


def request(method: str, url: str, *options: RequestOption) -> Response:
    return default_client().request(method, url, *options)


def get(url: str, *options: RequestOption) -> Response:
    return default_client().get(url, *options)


def head(url: str, *options: RequestOption) -> Response:
    return default_client().head(url, *options)


def post(url: str, *options: RequestOption) -> Response:
    return default_client().post(url, *options)


def put(url: str, *options: RequestOption) -> Response:
    return default_client().put(url, *options)


def patch(url: str, *options: RequestOption) -> Response:
    return default_client().patch(url, *options)


def delete(url: str, *options: RequestOption) -> Response:
    return default_client().delete(url, *options)


def connect(url: str, *options: RequestOption) -> Response:
    return default_client().connect(url, *options)


def options(url: str, *options: RequestOption) -> Response:
    return default_client().options(url, *options)


def trace(url: str, *options: RequestOption) -> Response:
    return default_client().trace(url, *options)
