"""Cancellation handles that can be attached to a request."""

from __future__ import annotations

import threading
import time
from typing import Callable

from .exceptions import RequestCancelledError


class Context:
    """A thread-safe cancellation handle with an optional deadline.

    A context is done once :meth:`cancel` was called or its deadline (a
    :func:`time.monotonic` timestamp) has passed. The library checks it before
    dispatch and clamps the transport timeout to :meth:`remaining`. A client
    registers a done callback while a request is in flight, so :meth:`cancel`
    shuts down its open sockets. Body reads poll the context between chunks.
    """

    def __init__(self, deadline: float | None = None) -> None:
        self._deadline = deadline
        self._cancelled = threading.Event()
        self._lock = threading.Lock()
        self._callbacks: list[Callable[[], None]] = []

    @classmethod
    def background(cls) -> "Context":
        return cls()

    @classmethod
    def with_timeout(cls, seconds: float) -> "Context":
        return cls(time.monotonic() + seconds)

    @classmethod
    def with_deadline(cls, deadline: float) -> "Context":
        return cls(deadline)

    @property
    def deadline(self) -> float | None:
        return self._deadline

    def cancel(self) -> None:
        """Mark the context done and run every registered done callback once."""
        with self._lock:
            if self._cancelled.is_set():
                return
            self._cancelled.set()
            callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            callback()

    def add_done_callback(self, callback: Callable[[], None]) -> None:
        """Run ``callback`` on :meth:`cancel`, or right away if already cancelled."""
        with self._lock:
            if not self._cancelled.is_set():
                self._callbacks.append(callback)
                return
        callback()

    def remove_done_callback(self, callback: Callable[[], None]) -> None:
        with self._lock:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

    def remaining(self) -> float | None:
        """Seconds left before the deadline, ``None`` when there is none."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def done(self) -> bool:
        return self.err() is not None

    def err(self) -> str | None:
        if self._cancelled.is_set():
            return "context canceled"
        if self._deadline is not None and time.monotonic() >= self._deadline:
            return "context deadline exceeded"
        return None

    def raise_if_done(self) -> None:
        reason = self.err()
        if reason is not None:
            raise RequestCancelledError(reason)
