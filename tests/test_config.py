from __future__ import annotations

import time

import pytest

from chainreq import Context, RequestCancelledError, TransportConfig


def test_transport_config_defaults() -> None:
    config = TransportConfig()
    assert config.dial_timeout == 30
    assert config.request_timeout == 120
    assert config.max_idle_conns == 100

    timeout = config.timeout()
    assert timeout.read == 120
    assert timeout.connect == 40

    limits = config.limits()
    assert limits.max_keepalive_connections == 100
    assert limits.keepalive_expiry == 30


def test_transport_config_from_env() -> None:
    config = TransportConfig.from_env(
        {
            "CHAINREQ_REQUEST_TIMEOUT": "15.5",
            "CHAINREQ_MAX_IDLE_CONNS": "4",
            "CHAINREQ_FOLLOW_REDIRECTS": "false",
            "CHAINREQ_DIAL_TIMEOUT": "",
            "UNRELATED": "1",
        }
    )
    assert config.request_timeout == 15.5
    assert config.max_idle_conns == 4
    assert config.follow_redirects is False
    assert config.dial_timeout == 30


@pytest.mark.parametrize(
    "environ",
    [
        {"CHAINREQ_FOLLOW_REDIRECTS": "maybe"},
        {"CHAINREQ_MAX_IDLE_CONNS": "many"},
        {"CHAINREQ_REQUEST_TIMEOUT": "0"},
    ],
)
def test_transport_config_rejects_bad_values(environ: dict[str, str]) -> None:
    with pytest.raises(ValueError):
        TransportConfig.from_env(environ)


def test_context_cancel_and_deadline() -> None:
    context = Context.background()
    assert not context.done()
    assert context.remaining() is None
    context.raise_if_done()

    context.cancel()
    assert context.done()
    assert context.err() == "context canceled"
    with pytest.raises(RequestCancelledError, match="context canceled"):
        context.raise_if_done()

    expired = Context.with_deadline(time.monotonic() - 1)
    assert expired.err() == "context deadline exceeded"
    assert expired.remaining() == 0.0

    live = Context.with_timeout(60)
    assert 0 < live.remaining() <= 60
    assert not live.done()


def test_context_done_callbacks() -> None:
    fired: list[str] = []
    context = Context.background()
    context.add_done_callback(lambda: fired.append("first"))

    def removed() -> None:
        fired.append("removed")

    context.add_done_callback(removed)
    context.remove_done_callback(removed)

    context.cancel()
    context.cancel()
    assert fired == ["first"]

    context.add_done_callback(lambda: fired.append("late"))
    assert fired == ["first", "late"]
