"""Fluent decoding of a dispatched request.

:class:`Response` carries either a transport response or the first error that
happened while building, sending or decoding the request. Once an error is
latched every further call short-circuits on it:

    data = client.get(url).ensure_status_ok().json()

``ensure_*`` methods return the response itself and never raise. Terminal
methods (``raw``, ``text``, ``json``, ``save``, ``cookie``) raise the latched
error, or latch and raise their own failure. :meth:`Response.resolve` never
raises.
"""

from __future__ import annotations

import json
import logging
import os
from typing import Any, Callable, Iterator, TypeVar, overload

import httpx
from pydantic import TypeAdapter, ValidationError

from .context import Context
from .exceptions import (
    BodyReadError,
    ChainreqError,
    CookieNotFoundError,
    RequestCancelledError,
    StatusMismatchError,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Response:
    def __init__(
        self,
        raw_response: httpx.Response | None = None,
        error: ChainreqError | None = None,
        *,
        context: Context | None = None,
        on_close: Callable[[], None] | None = None,
    ) -> None:
        self.raw_response = raw_response
        self.error = error
        self.context = context
        self._on_close = on_close
        self._content: bytes | None = None

    def __repr__(self) -> str:
        if self.error is not None:
            return f"<Response error={self.error!r}>"
        return f"<Response [{self.status_code}]>"

    def __enter__(self) -> "Response":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def status_code(self) -> int | None:
        return self.raw_response.status_code if self.raw_response is not None else None

    def close(self) -> None:
        if self.raw_response is not None:
            self.raw_response.close()
        if self._on_close is not None:
            on_close, self._on_close = self._on_close, None
            on_close()

    def resolve(self) -> tuple[httpx.Response | None, ChainreqError | None]:
        return self.raw_response, self.error

    def _latch(self, error: ChainreqError) -> ChainreqError:
        if self.error is None:
            logger.debug("response error latched: %s", error)
            self.error = error
        return self.error

    def _check(self) -> httpx.Response:
        if self.error is not None:
            raise self.error
        if self.raw_response is None:
            raise ChainreqError("response has neither a result nor an error")
        return self.raw_response

    def _read_error(self, message: str, exc: BaseException) -> ChainreqError:
        # A cancel shuts the socket down, so the read fails before the next poll.
        if self.context is not None and self.context.done():
            return RequestCancelledError(self.context.err() or "context canceled", cause=exc)
        return BodyReadError(message, cause=exc)

    def _iter_body(self, response: httpx.Response) -> Iterator[bytes]:
        for chunk in response.iter_bytes():
            if self.context is not None:
                self.context.raise_if_done()
            yield chunk

    def ensure_status(self, code: int) -> "Response":
        if self.error is None and self.raw_response is not None:
            if self.raw_response.status_code != code:
                self._latch(StatusMismatchError(code, self.raw_response.status_code))
        return self

    def ensure_status_ok(self) -> "Response":
        return self.ensure_status(int(httpx.codes.OK))

    def ensure_status_2xx(self) -> "Response":
        if self.error is None and self.raw_response is not None:
            if not self.raw_response.is_success:
                self._latch(StatusMismatchError("2xx", self.raw_response.status_code))
        return self

    def raw(self) -> bytes:
        response = self._check()
        if self._content is not None:
            return self._content
        try:
            self._content = b"".join(self._iter_body(response))
        except ChainreqError as exc:
            raise self._latch(exc)
        except (httpx.HTTPError, httpx.StreamError, OSError) as exc:
            raise self._latch(self._read_error("cannot read response body", exc)) from exc
        finally:
            self.close()
        return self._content

    def text(self) -> str:
        response = self._check()
        content = self.raw()
        return content.decode(response.encoding or "utf-8", errors="replace")

    @overload
    def json(self) -> Any: ...

    @overload
    def json(self, into: type[T]) -> T: ...

    def json(self, into: Any = None) -> Any:
        """Decode the body as JSON, optionally validated into ``into`` (a model or type).

        The whole body is read into memory before decoding; there is no
        incremental decoder. The connection is released once the read ends.
        """
        content = self.raw()
        try:
            if into is None:
                return json.loads(content)
            return TypeAdapter(into).validate_json(content)
        except (ValueError, ValidationError) as exc:
            raise self._latch(BodyReadError("cannot decode JSON body", cause=exc)) from exc

    def save(self, path: str | os.PathLike[str]) -> None:
        response = self._check()
        try:
            with open(path, "wb") as fh:
                if self._content is not None:
                    fh.write(self._content)
                else:
                    for chunk in self._iter_body(response):
                        fh.write(chunk)
        except ChainreqError as exc:
            raise self._latch(exc)
        except (httpx.HTTPError, httpx.StreamError, OSError) as exc:
            raise self._latch(self._read_error(f"cannot save response body to {path}", exc)) from exc
        finally:
            self.close()

    def cookies(self) -> dict[str, str]:
        response = self._check()
        return dict(response.cookies.items())

    def cookie(self, name: str) -> str:
        cookies = self.cookies()
        if name not in cookies:
            raise CookieNotFoundError(f"named cookie {name!r} not present")
        return cookies[name]
