"""Command line front end: ``chainreq METHOD URL [options]``."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Sequence

from .client import Client
from .config import TransportConfig
from .exceptions import ChainreqError
from .models import File, Value
from .request_options import (
    RequestOption,
    with_basic_auth,
    with_bearer_token,
    with_files,
    with_form,
    with_headers,
    with_json,
    with_query,
    with_text,
)


def _pairs(values: Sequence[str] | None, flag: str) -> Value:
    parsed = Value()
    for item in values or ():
        key, sep, value = item.partition("=")
        if not sep or not key:
            raise ValueError(f"{flag} expects key=value, got {item!r}")
        parsed.set(key, value)
    return parsed


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="chainreq", description="Send one HTTP request.")
    parser.add_argument("method")
    parser.add_argument("url")
    parser.add_argument("-q", "--query", action="append", metavar="KEY=VALUE")
    parser.add_argument("-H", "--header", action="append", metavar="KEY=VALUE")
    body = parser.add_mutually_exclusive_group()
    body.add_argument("-f", "--form", action="append", metavar="KEY=VALUE")
    body.add_argument("-j", "--json", dest="json_body", metavar="JSON")
    body.add_argument("--text")
    body.add_argument("-F", "--file", action="append", metavar="FIELD=PATH")
    auth = parser.add_mutually_exclusive_group()
    auth.add_argument("--bearer", metavar="TOKEN")
    auth.add_argument("--basic", metavar="USER:PASSWORD")
    parser.add_argument("--no-escape-html", action="store_true")
    parser.add_argument("--expect", type=int, metavar="STATUS")
    parser.add_argument("-o", "--output", type=Path)
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser


def _options(args: argparse.Namespace) -> list[RequestOption]:
    opts: list[RequestOption] = []
    if args.query:
        opts.append(with_query(_pairs(args.query, "--query")))
    if args.header:
        opts.append(with_headers(_pairs(args.header, "--header")))
    if args.form:
        opts.append(with_form(_pairs(args.form, "--form")))
    if args.json_body is not None:
        opts.append(with_json(json.loads(args.json_body), escape_html=not args.no_escape_html))
    if args.text is not None:
        opts.append(with_text(args.text))
    if args.file:
        files = [File(fieldname=key, filepath=path) for key, path in _pairs(args.file, "--file").items()]
        opts.append(with_files(*files))
    if args.bearer:
        opts.append(with_bearer_token(args.bearer))
    if args.basic:
        username, _, password = args.basic.partition(":")
        opts.append(with_basic_auth(username, password))
    return opts


def _main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    try:
        opts = _options(args)
    except ValueError as exc:
        parser.error(str(exc))

    with Client(config=TransportConfig.from_env()) as client:
        response = client.request(args.method, args.url, *opts)
        if args.expect is not None:
            response.ensure_status(args.expect)
        try:
            if args.output is not None:
                response.save(args.output)
                print(f"saved to {args.output}")
            else:
                sys.stdout.write(response.text())
        except ChainreqError as exc:
            print(f"error: {exc}", file=sys.stderr)
            return 1
        finally:
            response.close()
    return 0


def main() -> None:
    raise SystemExit(_main())
