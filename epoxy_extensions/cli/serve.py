"""Server CLI: load settings, apply flag overrides and run the HTTP listener."""

from __future__ import annotations

import argparse
import sys
from collections.abc import Callable, Sequence
from typing import Any

import uvicorn

from epoxy_extensions.config import AppSettings, apply_overrides
from epoxy_extensions.main import create_app

type ServerRunner = Callable[..., Any]


def main(argv: Sequence[str] | None = None, *, server_runner: ServerRunner = uvicorn.run) -> int:
    parser = _build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    try:
        if args.config is None:
            settings = AppSettings.from_env()
        else:
            settings = AppSettings.from_yaml(args.config)
        settings = apply_overrides(
            settings,
            bin_dir=args.bin_dir,
            listen_address=args.listen_address,
        )
    except ValueError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    app = create_app(settings)
    server_runner(
        app,
        host=settings.listen_host,
        port=settings.listen_port,
        log_config=None,
        access_log=False,
    )
    return 0


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="ePoxy extension server")
    parser.add_argument(
        "--config",
        default=None,
        help="Path to the runtime YAML config (default: $EPOXY_EXTENSIONS_RUNTIME_CONFIG_PATH).",
    )
    parser.add_argument(
        "--bin-dir",
        default=None,
        help="Absolute path to directory where required binaries are found.",
    )
    parser.add_argument(
        "--listen-address",
        default=None,
        help="Address on which to listen for requests, e.g. :8800.",
    )
    return parser


if __name__ == "__main__":
    raise SystemExit(main())
