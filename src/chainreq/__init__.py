"""Fluent HTTP requests on top of httpx."""

import logging

from .api import (
    add_default_options,
    clear_default_options,
    connect,
    default_client,
    delete,
    filter_cookie,
    filter_cookies,
    get,
    head,
    options,
    patch,
    post,
    put,
    request,
    send,
    set_default_client,
    set_default_options,
    trace,
)
from .client import Client
from .config import TransportConfig
from .context import Context
from .exceptions import (
    BodyReadError,
    ChainreqError,
    CookieNotFoundError,
    InvalidRequestError,
    MultipartStreamError,
    OptionError,
    RequestCancelledError,
    StatusMismatchError,
    TransportError,
    TransportTimeoutError,
)
from .models import Data, File, Value
from .request_options import (
    METHOD_CONNECT,
    METHOD_DELETE,
    METHOD_GET,
    METHOD_HEAD,
    METHOD_OPTIONS,
    METHOD_PATCH,
    METHOD_POST,
    METHOD_PUT,
    METHOD_TRACE,
    PreparedRequest,
    RequestOption,
    with_basic_auth,
    with_bearer_token,
    with_context,
    with_cookies,
    with_files,
    with_form,
    with_headers,
    with_host,
    with_json,
    with_query,
    with_raw,
    with_text,
)
from .response import Response

__version__ = "0.1.0"

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "BodyReadError",
    "ChainreqError",
    "Client",
    "Context",
    "CookieNotFoundError",
    "Data",
    "File",
    "InvalidRequestError",
    "METHOD_CONNECT",
    "METHOD_DELETE",
    "METHOD_GET",
    "METHOD_HEAD",
    "METHOD_OPTIONS",
    "METHOD_PATCH",
    "METHOD_POST",
    "METHOD_PUT",
    "METHOD_TRACE",
    "MultipartStreamError",
    "OptionError",
    "PreparedRequest",
    "RequestCancelledError",
    "RequestOption",
    "Response",
    "StatusMismatchError",
    "TransportConfig",
    "TransportError",
    "TransportTimeoutError",
    "Value",
    "add_default_options",
    "clear_default_options",
    "connect",
    "default_client",
    "delete",
    "filter_cookie",
    "filter_cookies",
    "get",
    "head",
    "options",
    "patch",
    "post",
    "put",
    "request",
    "send",
    "set_default_client",
    "set_default_options",
    "trace",
    "with_basic_auth",
    "with_bearer_token",
    "with_context",
    "with_cookies",
    "with_files",
    "with_form",
    "with_headers",
    "with_host",
    "with_json",
    "with_query",
    "with_raw",
    "with_text",
]
