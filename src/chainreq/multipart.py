"""Streaming multipart/form-data bodies produced by a background thread."""

from __future__ import annotations

import logging
import mimetypes
import os
import queue
import threading
from typing import Iterator, Sequence

from .context import Context
from .exceptions import ChainreqError, MultipartStreamError
from .models import File

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024
PIPE_DEPTH = 4
_POLL_INTERVAL = 0.05

_EOF = object()


class _Pipe:
    """Bounded single producer / single consumer handoff.

    The writer blocks while the queue is full. Closing the reader side makes
    every pending and future write return ``False`` so the producer can stop.
    An error handed to :meth:`close_writer` is re-raised to the reader once it
    has drained the chunks written before the failure.
    """

    def __init__(self, depth: int = PIPE_DEPTH) -> None:
        self._queue: queue.Queue[object] = queue.Queue(maxsize=depth)
        self._reader_closed = threading.Event()
        self._error: BaseException | None = None

    def _put(self, item: object) -> bool:
        while not self._reader_closed.is_set():
            try:
                self._queue.put(item, timeout=_POLL_INTERVAL)
                return not self._reader_closed.is_set()
            except queue.Full:
                continue
        return False

    def write(self, chunk: bytes) -> bool:
        return self._put(chunk)

    def close_writer(self, error: BaseException | None = None) -> None:
        self._error = error
        self._put(_EOF)

    def read(self, context: Context | None = None) -> bytes | None:
        while True:
            if context is not None:
                context.raise_if_done()
            try:
                item = self._queue.get(timeout=_POLL_INTERVAL)
            except queue.Empty:
                continue
            if item is _EOF:
                if self._error is not None:
                    raise MultipartStreamError(
                        "multipart producer failed", cause=self._error
                    ) from self._error
                return None
            return item  # type: ignore[return-value]

    def close_reader(self) -> None:
        self._reader_closed.set()
        while True:
            try:
                self._queue.get_nowait()
            except queue.Empty:
                return


def _quote(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', "%22")


class MultipartStream:
    """One-shot iterable request body for a set of file uploads.

    The producer thread starts on first iteration, writes each part into the
    pipe, and closes each file as soon as it has been copied. Memory use is
    bounded by the pipe depth times :data:`CHUNK_SIZE`.
    """

    def __init__(self, files: Sequence[File], boundary: str | None = None) -> None:
        self.files = tuple(files)
        self.boundary = boundary or os.urandom(16).hex()
        self.context: Context | None = None
        self._pipe: _Pipe | None = None
        self._producer: threading.Thread | None = None

    @property
    def content_type(self) -> str:
        return f"multipart/form-data; boundary={self.boundary}"

    def part_header(self, file: File) -> bytes:
        content_type = mimetypes.guess_type(file.upload_name)[0] or "application/octet-stream"
        return (
            f"--{self.boundary}\r\n"
            f'Content-Disposition: form-data; name="{_quote(file.fieldname)}"; '
            f'filename="{_quote(file.upload_name)}"\r\n'
            f"Content-Type: {content_type}\r\n\r\n"
        ).encode()

    def __iter__(self) -> Iterator[bytes]:
        if self._pipe is not None:
            raise MultipartStreamError("multipart body can only be streamed once")
        pipe = self._pipe = _Pipe()
        self._producer = threading.Thread(
            target=self._produce, args=(pipe,), name="chainreq-multipart", daemon=True
        )
        self._producer.start()
        while True:
            chunk = pipe.read(self.context)
            if chunk is None:
                return
            yield chunk

    def close(self) -> None:
        if self._pipe is not None:
            self._pipe.close_reader()

    def _produce(self, pipe: _Pipe) -> None:
        error: BaseException | None = None
        try:
            for file in self.files:
                if not pipe.write(self.part_header(file)):
                    return
                with open(file.filepath, "rb") as fh:
                    while True:
                        if self.context is not None:
                            self.context.raise_if_done()
                        chunk = fh.read(CHUNK_SIZE)
                        if not chunk:
                            break
                        if not pipe.write(chunk):
                            return
                if not pipe.write(b"\r\n"):
                    return
            pipe.write(f"--{self.boundary}--\r\n".encode())
        except (OSError, ChainreqError) as exc:
            logger.debug("multipart producer stopped: %s", exc)
            error = exc
        finally:
            pipe.close_writer(error)
