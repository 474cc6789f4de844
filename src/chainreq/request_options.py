"""Request options and the pipeline that applies them to an outgoing request.

A request option is a plain callable taking a :class:`PreparedRequest` and
returning it (usually the same object, mutated). An option signals a broken
precondition by raising :class:`~chainreq.exceptions.OptionError`; the pipeline
stops at the first failure and nothing is sent.

Options built here only capture copies of their arguments, so one option can
be shared between requests, threads and clients.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Mapping

import httpx
from pydantic import BaseModel

from .context import Context
from .exceptions import ChainreqError, OptionError
from .models import File, Value
from .multipart import MultipartStream
from .security import basic_auth, validate_method, validate_url

USER_AGENT = "chainreq/0.1.0"

METHOD_GET = "GET"
METHOD_HEAD = "HEAD"
METHOD_POST = "POST"
METHOD_PUT = "PUT"
METHOD_PATCH = "PATCH"
METHOD_DELETE = "DELETE"
METHOD_CONNECT = "CONNECT"
METHOD_OPTIONS = "OPTIONS"
METHOD_TRACE = "TRACE"

_HTML_ESCAPES = {
    "&": "\\u0026",
    "<": "\\u003c",
    ">": "\\u003e",
}


@dataclass
class PreparedRequest:
    method: str
    url: httpx.URL
    headers: httpx.Headers = field(default_factory=httpx.Headers)
    content: bytes | MultipartStream | None = None
    get_body: Callable[[], httpx.ByteStream] | None = None
    cookies: Value = field(default_factory=Value)
    context: Context | None = None

    @property
    def content_length(self) -> int | None:
        """Body size in bytes, ``None`` for streamed bodies of unknown size."""
        if self.content is None:
            return 0
        if isinstance(self.content, bytes):
            return len(self.content)
        return None

    def set_body(self, body: bytes, content_type: str) -> None:
        """Replace the body with a replayable byte payload."""
        self.content = body
        # Each call hands the transport a new stream over the same bytes.
        self.get_body = lambda: httpx.ByteStream(body)
        self.headers["Content-Type"] = content_type

    def set_stream(self, stream: MultipartStream) -> None:
        self.content = stream
        self.get_body = None
        self.headers["Content-Type"] = stream.content_type

    def close(self) -> None:
        if isinstance(self.content, MultipartStream):
            self.content.close()


RequestOption = Callable[[PreparedRequest], PreparedRequest]


def with_host(host: str) -> RequestOption:
    def option(request: PreparedRequest) -> PreparedRequest:
        request.headers["Host"] = host
        return request

    return option


def with_headers(headers: Mapping[str, str]) -> RequestOption:
    headers = dict(headers)

    def option(request: PreparedRequest) -> PreparedRequest:
        for key, value in headers.items():
            request.headers[key] = value
        return request

    return option


def with_query(params: Mapping[str, str]) -> RequestOption:
    params = dict(params)

    def option(request: PreparedRequest) -> PreparedRequest:
        query = request.url.params
        for key, value in params.items():
            query = query.set(key, value)
        ordered = sorted(query.multi_items(), key=lambda item: item[0])
        request.url = request.url.copy_with(params=httpx.QueryParams(ordered))
        return request

    return option


def with_raw(raw: bytes, content_type: str) -> RequestOption:
    raw = bytes(raw)

    def option(request: PreparedRequest) -> PreparedRequest:
        request.set_body(raw, content_type)
        return request

    return option


def with_text(text: str) -> RequestOption:
    body = text.encode("utf-8")

    def option(request: PreparedRequest) -> PreparedRequest:
        request.set_body(body, "text/plain; charset=utf-8")
        return request

    return option


def with_form(form: Mapping[str, str]) -> RequestOption:
    body = Value(form).encode().encode("ascii")

    def option(request: PreparedRequest) -> PreparedRequest:
        request.set_body(body, "application/x-www-form-urlencoded")
        return request

    return option


def encode_json(data: Any, *, escape_html: bool = True) -> bytes:
    """Compact JSON encoding; ``&``, ``<`` and ``>`` become unicode escapes when ``escape_html``."""
    if isinstance(data, BaseModel):
        data = data.model_dump(mode="json")
    text = json.dumps(
        data, ensure_ascii=False, separators=(",", ":"), sort_keys=True, allow_nan=False
    )
    # These characters only occur inside JSON strings, so a textual replace is safe.
    text = text.replace("\u2028", "\\u2028").replace("\u2029", "\\u2029")
    if escape_html:
        for char, escaped in _HTML_ESCAPES.items():
            text = text.replace(char, escaped)
    return text.encode("utf-8")


def with_json(data: Any, escape_html: bool = True) -> RequestOption:
    # Encoded once here, so later mutation of ``data`` does not reach the option.
    body: bytes | None = None
    error: Exception | None = None
    try:
        body = encode_json(data, escape_html=escape_html)
    except (TypeError, ValueError) as exc:
        error = exc

    def option(request: PreparedRequest) -> PreparedRequest:
        if body is None:
            raise OptionError("cannot encode JSON payload", cause=error) from error
        request.set_body(body, "application/json")
        return request

    return option


def with_files(*files: File) -> RequestOption:
    files = tuple(files)

    def option(request: PreparedRequest) -> PreparedRequest:
        seen: set[str] = set()
        for file in files:
            if file.fieldname in seen:
                raise OptionError(f"duplicate file field name {file.fieldname!r}")
            try:
                file.validate_path()
            except OSError as exc:
                raise OptionError(f"unexpected file path of {file.fieldname!r}", cause=exc) from exc
            seen.add(file.fieldname)
        request.set_stream(MultipartStream(files))
        return request

    return option


def with_cookies(cookies: Mapping[str, str]) -> RequestOption:
    cookies = dict(cookies)

    def option(request: PreparedRequest) -> PreparedRequest:
        request.cookies.update(cookies)
        return request

    return option


def with_basic_auth(username: str, password: str) -> RequestOption:
    return with_headers({"Authorization": basic_auth(username, password)})


def with_bearer_token(token: str) -> RequestOption:
    return with_headers({"Authorization": f"Bearer {token}"})


def with_context(context: Context | None) -> RequestOption:
    def option(request: PreparedRequest) -> PreparedRequest:
        if context is None:
            raise OptionError("context must not be None")
        request.context = context
        return request

    return option


def _apply(option: RequestOption, request: PreparedRequest) -> PreparedRequest:
    try:
        return option(request)
    except ChainreqError:
        raise
    except (TypeError, ValueError, OSError) as exc:
        raise OptionError(f"request option failed: {exc}", cause=exc) from exc


def prepare_request(
    method: str,
    url: str,
    *,
    defaults: Iterable[RequestOption] = (),
    options: Iterable[RequestOption] = (),
    base_url: str | None = None,
) -> PreparedRequest:
    """Validate ``method`` and ``url`` then apply ``defaults`` followed by ``options``.

    Per-call options always run after defaults, so they win on any header or
    query key both of them set. Raises :class:`InvalidRequestError` or
    :class:`OptionError`; a request that fails here is never sent.
    """
    request = PreparedRequest(
        method=validate_method(method),
        url=validate_url(url, base_url=base_url),
    )
    request.headers["User-Agent"] = USER_AGENT

    for option in (*defaults, *options):
        try:
            request = _apply(option, request)
        except ChainreqError:
            request.close()
            raise
    return request
