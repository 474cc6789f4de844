from __future__ import annotations

import json
from email.parser import BytesParser
from email.policy import HTTP
from typing import Iterator

import httpx
import pytest

from chainreq import Client

BASE = "http://example.com"


def _parse_multipart(content_type: str, body: bytes) -> dict[str, dict[str, str]]:
    message = BytesParser(policy=HTTP).parsebytes(
        f"Content-Type: {content_type}\r\n\r\n".encode() + body
    )
    files: dict[str, dict[str, str]] = {}
    for part in message.iter_parts():
        name = part.get_param("name", header="content-disposition")
        files[name] = {
            "filename": part.get_filename(),
            "content": part.get_payload(decode=True).decode(),
        }
    return files


def echo(request: httpx.Request) -> httpx.Response:
    """A tiny httpbin: echoes what it received."""
    path = request.url.path
    if path.startswith("/status/"):
        return httpx.Response(int(path.rsplit("/", 1)[1]), text="status")
    if path == "/cookies/set":
        headers = [("Set-Cookie", f"{k}={v}; Path=/") for k, v in request.url.params.items()]
        return httpx.Response(200, headers=headers, json={})

    body = request.read()
    content_type = request.headers.get("content-type", "")
    payload: dict[str, object] = {
        "method": request.method,
        "args": dict(request.url.params),
        "headers": dict(request.headers),
        "data": body.decode(errors="replace"),
        "form": {},
        "json": None,
        "files": {},
    }
    if content_type.startswith("application/x-www-form-urlencoded"):
        payload["form"] = dict(httpx.QueryParams(body.decode()))
    elif content_type.startswith("application/json"):
        payload["json"] = json.loads(body)
    elif content_type.startswith("multipart/form-data"):
        payload["files"] = _parse_multipart(content_type, body)
        payload["data"] = ""
    cookie_header = request.headers.get("cookie", "")
    payload["cookies"] = dict(
        pair.split("=", 1) for pair in cookie_header.split("; ") if "=" in pair
    )
    return httpx.Response(200, json=payload)


@pytest.fixture
def client() -> Iterator[Client]:
    transport = httpx.MockTransport(echo)
    with Client(httpx_client=httpx.Client(transport=transport)) as c:
        yield c
