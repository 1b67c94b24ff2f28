from __future__ import annotations

import argparse
import base64
import sys
from datetime import timedelta
from pathlib import Path
from typing import Any, Sequence

from memc.client import Client
from memc.domain.codec import BOOL, BYTES, CODECS_BY_NAME, FLOAT32, FLOAT64, TEXT, Codec
from memc.domain.errors import CacheMiss, MemcError
from memc.infrastructure.config import ClientConfig, load_settings
from memc.infrastructure.logging import configure_logging

TYPE_CHOICES = sorted(CODECS_BY_NAME)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="memc")
    parser.add_argument(
        "--servers",
        default=None,
        help="comma separated memcached addresses (host:port), defaults to MEMC_SERVERS",
    )
    parser.add_argument(
        "--dial-timeout",
        type=float,
        default=None,
        help="connect timeout in seconds (0 means transport default)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    get_parser = subparsers.add_parser("get", help="get a value")
    get_parser.add_argument("key")
    get_parser.add_argument("--type", choices=TYPE_CHOICES, default="str", help="value type")
    get_parser.add_argument(
        "--format",
        choices=("base64", "hex", "utf8"),
        default="base64",
        help="output encoding for bytes values",
    )
    get_parser.add_argument(
        "--output",
        default=None,
        help="write the raw payload to a file instead of printing",
    )

    set_parser = subparsers.add_parser("set", help="set a value")
    set_parser.add_argument("key")
    set_parser.add_argument("value", nargs="?", help="value as text, parsed according to --type")
    set_parser.add_argument("--type", choices=TYPE_CHOICES, default="str", help="value type")
    set_parser.add_argument(
        "--ttl",
        type=int,
        default=None,
        help="ttl seconds (0 means no expiration), defaults to MEMC_DEFAULT_TTL",
    )
    set_group = set_parser.add_mutually_exclusive_group(required=False)
    set_group.add_argument("--value-base64", default=None, help="bytes value as base64")
    set_group.add_argument("--value-hex", default=None, help="bytes value as hex")
    set_group.add_argument("--value-file", default=None, help="read a bytes value from a file")

    return parser


def _validate_set_args(parser: argparse.ArgumentParser, args: argparse.Namespace) -> None:
    if args.command != "set":
        return
    raw_inputs = [args.value_file, args.value_base64, args.value_hex]
    if args.value is not None and any(raw_inputs):
        parser.error("set: positional value cannot be combined with --value-*")
    if any(raw_inputs) and args.type != "bytes":
        parser.error("set: --value-* options require --type bytes")
    if args.value is None and not any(raw_inputs):
        parser.error("set requires a value (positional, --value-file, --value-base64, or --value-hex)")


def _encode_output(value: bytes, fmt: str) -> str:
    if fmt == "base64":
        return base64.b64encode(value).decode("ascii")
    if fmt == "hex":
        return value.hex()
    if fmt == "utf8":
        return value.decode("utf-8")
    raise ValueError(f"unknown format: {fmt}")


def _parse_bool(raw: str) -> bool:
    normalized = raw.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    raise ValueError(f"expected a boolean, got {raw!r}")


def _parse_set_value(args: argparse.Namespace, codec: Codec) -> Any:
    if args.value_file:
        return Path(args.value_file).read_bytes()
    if args.value_base64 is not None:
        return base64.b64decode(args.value_base64, validate=True)
    if args.value_hex is not None:
        return bytes.fromhex(args.value_hex)

    raw = args.value
    if codec is BYTES:
        return raw.encode("utf-8")
    if codec is TEXT:
        return raw
    if codec is BOOL:
        return _parse_bool(raw)
    if codec in (FLOAT32, FLOAT64):
        return float(raw)
    return int(raw, 0)


def _format_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _client_config(args: argparse.Namespace) -> ClientConfig:
    config = load_settings().client_config()
    overrides: dict[str, Any] = {}
    if args.servers is not None:
        overrides["servers"] = tuple(
            server.strip() for server in args.servers.split(",") if server.strip()
        )
    if args.dial_timeout is not None:
        overrides["dial_timeout"] = timedelta(seconds=args.dial_timeout)
    return ClientConfig(**{**config.model_dump(), **overrides})


def run(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)
    _validate_set_args(parser, args)

    codec = CODECS_BY_NAME[args.type]

    try:
        client = Client(_client_config(args))
    except ValueError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    try:
        if args.command == "get":
            value = client.get(args.key, codec)
            if args.output:
                payload = value if isinstance(value, bytes) else _format_value(value).encode("utf-8")
                Path(args.output).write_bytes(payload)
                return 0
            if isinstance(value, bytes):
                print(_encode_output(value, args.format))
            else:
                print(_format_value(value))
            return 0

        if args.command == "set":
            value = _parse_set_value(args, codec)
            ttl = None if args.ttl is None else timedelta(seconds=args.ttl)
            client.set(args.key, value, ttl=ttl, as_type=codec)
            print("OK")
            return 0

        parser.error(f"unknown command: {args.command}")
        return 2
    except CacheMiss:
        return 1
    except MemcError as exc:
        print(f"{exc.kind.value}: {exc}", file=sys.stderr)
        return 2
    except (ValueError, OSError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2
    finally:
        client.close()


def main() -> None:
    settings = load_settings()
    configure_logging(settings.log_level, settings.log_format)
    raise SystemExit(run())


if __name__ == "__main__":
    main()
