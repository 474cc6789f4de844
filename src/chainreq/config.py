"""Transport configuration for :class:`chainreq.client.Client`."""

from __future__ import annotations

import os
from dataclasses import dataclass, fields

import httpx

ENV_PREFIX = "CHAINREQ_"


def _parse_bool(raw: str) -> bool:
    value = raw.strip().lower()
    if value in {"1", "true", "yes", "on"}:
        return True
    if value in {"0", "false", "no", "off"}:
        return False
    raise ValueError(f"invalid boolean: {raw!r}")


@dataclass(frozen=True)
class TransportConfig:
    dial_timeout: float = 30.0
    keepalive_expiry: float = 30.0
    max_idle_conns: int = 100
    idle_conn_timeout: float = 90.0
    tls_handshake_timeout: float = 10.0
    request_timeout: float = 120.0
    follow_redirects: bool = True
    max_redirects: int = 10
    trust_env: bool = True
    verify: bool = True

    def __post_init__(self) -> None:
        for name in ("dial_timeout", "tls_handshake_timeout", "request_timeout"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be greater than 0")
        if self.max_idle_conns < 0:
            raise ValueError("max_idle_conns must be non-negative")
        if self.max_redirects < 0:
            raise ValueError("max_redirects must be non-negative")

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> "TransportConfig":
        """Build a config from ``CHAINREQ_*`` variables, e.g. ``CHAINREQ_REQUEST_TIMEOUT``."""
        environ = dict(os.environ if environ is None else environ)
        overrides: dict[str, object] = {}
        for item in fields(cls):
            raw = environ.get(ENV_PREFIX + item.name.upper())
            if raw is None or not raw.strip():
                continue
            if item.type in ("bool", bool):
                overrides[item.name] = _parse_bool(raw)
            elif item.type in ("int", int):
                overrides[item.name] = int(raw)
            else:
                overrides[item.name] = float(raw)
        return cls(**overrides)  # type: ignore[arg-type]

    def timeout(self) -> httpx.Timeout:
        # httpx has no separate TLS handshake phase, it is part of connect.
        return httpx.Timeout(
            self.request_timeout,
            connect=self.dial_timeout + self.tls_handshake_timeout,
        )

    def limits(self) -> httpx.Limits:
        return httpx.Limits(
            max_connections=None,
            max_keepalive_connections=self.max_idle_conns,
            keepalive_expiry=min(self.keepalive_expiry, self.idle_conn_timeout),
        )

    def build_client(self, *, base_url: str | None = None) -> httpx.Client:
        # No explicit transport, so httpx still mounts proxies from the environment.
        return httpx.Client(
            base_url=base_url or "",
            timeout=self.timeout(),
            limits=self.limits(),
            verify=self.verify,
            follow_redirects=self.follow_redirects,
            max_redirects=self.max_redirects,
            trust_env=self.trust_env,
        )
