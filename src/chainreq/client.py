"""The chainreq client: default options, request pipeline and dispatch."""

from __future__ import annotations

import logging
import os
import socket
import threading
from typing import Any

import httpx

from .config import TransportConfig
from .context import Context
from .exceptions import (
    ChainreqError,
    CookieNotFoundError,
    InvalidRequestError,
    MultipartStreamError,
    RequestCancelledError,
    TransportError,
    TransportTimeoutError,
)
from .models import Value
from .multipart import MultipartStream
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
    prepare_request,
)
from .response import Response
from .security import sanitize_headers

logger = logging.getLogger(__name__)

# httpcore trace events: new sockets, and phase boundaries where a done context stops the request.
_SOCKET_EVENTS = frozenset({"connection.connect_tcp.complete", "connection.start_tls.complete"})
_CANCEL_CHECKPOINTS = frozenset(
    {
        "connection.connect_tcp.started",
        "connection.start_tls.started",
        "http11.send_request_headers.started",
        "http11.receive_response_headers.started",
        "http2.send_request_headers.started",
        "http2.receive_response_headers.started",
    }
)


def _shutdown(sock: socket.socket) -> None:
    try:
        sock.shutdown(socket.SHUT_RDWR)
    except OSError as exc:
        logger.debug("socket already closed: %s", exc)


class _InFlight:
    """Tracks the sockets opened for one request so a cancel can abort them.

    Shutting a socket down wakes a thread blocked in connect, send or recv on
    it; httpx then fails the request and the dispatcher reports the
    cancellation. A reused pool connection opens no socket, so only the phase
    checkpoints apply to it.
    """

    def __init__(self, context: Context) -> None:
        self.context = context
        self._lock = threading.Lock()
        self._sockets: list[socket.socket] = []
        self._aborted = False

    def trace(self, event: str, info: dict[str, Any]) -> None:
        if event in _SOCKET_EVENTS:
            stream = info.get("return_value")
            sock = stream.get_extra_info("socket") if stream is not None else None
            if sock is None:
                return
            with self._lock:
                self._sockets.append(sock)
                aborted = self._aborted
            if aborted:
                _shutdown(sock)
        elif event in _CANCEL_CHECKPOINTS:
            self.context.raise_if_done()

    def abort(self) -> None:
        with self._lock:
            self._aborted = True
            sockets = list(self._sockets)
        logger.debug("aborting in-flight request with %d socket(s)", len(sockets))
        for sock in sockets:
            _shutdown(sock)

    def release(self) -> None:
        self.context.remove_done_callback(self.abort)


def _request_timeout(timeout: httpx.Timeout, context: Context | None) -> httpx.Timeout:
    remaining = context.remaining() if context is not None else None
    if remaining is None:
        return timeout

    def clamp(value: float | None) -> float:
        return remaining if value is None else min(value, remaining)

    return httpx.Timeout(
        connect=clamp(timeout.connect),
        read=clamp(timeout.read),
        write=clamp(timeout.write),
        pool=clamp(timeout.pool),
    )


def _transport_error(exc: BaseException, context: Context | None) -> TransportError:
    if isinstance(exc, MultipartStreamError) and isinstance(exc.cause, RequestCancelledError):
        return exc.cause
    if isinstance(exc, RequestCancelledError):
        return exc
    if context is not None and context.done():
        return RequestCancelledError(context.err() or "context canceled", cause=exc)
    if isinstance(exc, httpx.TimeoutException):
        return TransportTimeoutError("request timed out", cause=exc)
    if isinstance(exc, MultipartStreamError):
        return TransportError("multipart body failed", cause=exc.cause or exc)
    return TransportError("transport error", cause=exc)


class Client:
    """Sends requests built from default options followed by per-call options.

    The default option list is an immutable tuple swapped under a lock, so a
    request in flight always applies a complete old or complete new list.
    """

    def __init__(
        self,
        *options: RequestOption,
        base_url: str | None = None,
        config: TransportConfig | None = None,
        httpx_client: httpx.Client | None = None,
        base_url_env_var: str = "CHAINREQ_BASE_URL",
    ) -> None:
        self.base_url = base_url or os.getenv(base_url_env_var) or None
        self.config = config or TransportConfig()
        self._httpx = httpx_client or self.config.build_client(base_url=self.base_url)
        if httpx_client is not None and self.base_url is None and str(httpx_client.base_url):
            self.base_url = str(httpx_client.base_url)
        self._lock = threading.Lock()
        self._default_options: tuple[RequestOption, ...] = tuple(options)

    def __enter__(self) -> "Client":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        self._httpx.close()

    @property
    def httpx_client(self) -> httpx.Client:
        return self._httpx

    @property
    def default_options(self) -> tuple[RequestOption, ...]:
        with self._lock:
            return self._default_options

    def set_default_options(self, *options: RequestOption) -> None:
        with self._lock:
            self._default_options = tuple(options)

    def add_default_options(self, *options: RequestOption) -> None:
        with self._lock:
            self._default_options = self._default_options + tuple(options)

    def clear_default_options(self) -> None:
        with self._lock:
            self._default_options = ()

    def filter_cookies(self, url: str) -> Value:
        """Return the jar cookies that would be sent to ``url``."""
        try:
            probe = httpx.Request(METHOD_GET, url)
        except (httpx.InvalidURL, TypeError) as exc:
            raise InvalidRequestError(f"invalid URL {url!r}", cause=exc) from exc
        self._httpx.cookies.set_cookie_header(probe)
        header = probe.headers.get("Cookie")
        if not header:
            raise CookieNotFoundError(f"cookies for {url} not present")
        cookies = Value()
        for pair in header.split("; "):
            name, _, value = pair.partition("=")
            cookies.set(name, value)
        return cookies

    def filter_cookie(self, url: str, name: str) -> str:
        cookies = self.filter_cookies(url)
        if name not in cookies:
            raise CookieNotFoundError(f"named cookie {name!r} for {url} not present")
        return cookies[name]

    def request(self, method: str, url: str, *options: RequestOption) -> Response:
        try:
            prepared = prepare_request(
                method,
                url,
                defaults=self.default_options,
                options=options,
                base_url=self.base_url,
            )
        except ChainreqError as exc:
            logger.debug("request %s %s not sent: %s", method, url, exc)
            return Response(error=exc)
        return self.dispatch(prepared)

    def dispatch(self, prepared: PreparedRequest) -> Response:
        """Send ``prepared`` exactly once. The response body is left open."""
        context = prepared.context
        in_flight = _InFlight(context) if context is not None else None
        try:
            if context is not None:
                context.raise_if_done()
            request = self._build(prepared)
            if in_flight is not None:
                request.extensions["trace"] = in_flight.trace
                in_flight.context.add_done_callback(in_flight.abort)
            logger.debug(
                "sending %s %s headers=%s",
                request.method,
                request.url,
                sanitize_headers(request.headers),
            )
            raw_response = self._httpx.send(request, stream=True)
        except (ChainreqError, httpx.HTTPError, httpx.StreamError, OSError) as exc:
            if in_flight is not None:
                in_flight.release()
            error = _transport_error(exc, context)
            logger.debug("%s %s failed: %s", prepared.method, prepared.url, error)
            return Response(error=error, context=context)
        finally:
            prepared.close()
        if in_flight is None:
            on_close = None
        else:
            on_close = in_flight.release
            if in_flight.context.done():
                raw_response.close()
                on_close()
                error = RequestCancelledError(in_flight.context.err() or "context canceled")
                return Response(error=error, context=context)
        logger.debug("%s %s -> %s", prepared.method, prepared.url, raw_response.status_code)
        return Response(raw_response, context=context, on_close=on_close)

    def send(self, request: httpx.Request) -> Response:
        """Send an already built transport request."""
        try:
            raw_response = self._httpx.send(request, stream=True)
        except (httpx.HTTPError, OSError) as exc:
            return Response(error=_transport_error(exc, None))
        return Response(raw_response)

    def _build(self, prepared: PreparedRequest) -> httpx.Request:
        if isinstance(prepared.content, MultipartStream):
            prepared.content.context = prepared.context
        request = self._httpx.build_request(
            prepared.method,
            prepared.url,
            headers=prepared.headers,
            cookies=dict(prepared.cookies) or None,
            content=prepared.content if prepared.get_body is None else None,
            timeout=_request_timeout(self._httpx.timeout, prepared.context),
        )
        if prepared.get_body is None:
            return request
        # Rebuild around a replayable stream; httpx reuses it on 307/308 redirects.
        headers = httpx.Headers(request.headers)
        headers["Content-Length"] = str(prepared.content_length)
        return httpx.Request(
            request.method,
            request.url,
            headers=headers,
            stream=prepared.get_body(),
            extensions=request.extensions,
        )

    def get(self, url: str, *options: RequestOption) -> Response:
        return self.request(METHOD_GET, url, *options)

    def head(self, url: str, *options: RequestOption) -> Response:
        return self.request(METHOD_HEAD, url, *options)

    def post(self, url: str, *options: RequestOption) -> Response:
        return self.request(METHOD_POST, url, *options)

    def put(self, url: str, *options: RequestOption) -> Response:
        return self.request(METHOD_PUT, url, *options)

    def patch(self, url: str, *options: RequestOption) -> Response:
        return self.request(METHOD_PATCH, url, *options)

    def delete(self, url: str, *options: RequestOption) -> Response:
        return self.request(METHOD_DELETE, url, *options)

    def connect(self, url: str, *options: RequestOption) -> Response:
        return self.request(METHOD_CONNECT, url, *options)

    def options(self, url: str, *options: RequestOption) -> Response:
        return self.request(METHOD_OPTIONS, url, *options)

    def trace(self, url: str, *options: RequestOption) -> Response:
        return self.request(METHOD_TRACE, url, *options)
