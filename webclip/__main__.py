"""
Command Line Entry Point
========================

``python -m webclip`` starts the clip service. Flags override the
corresponding ``WEBCLIP_*`` settings.
"""

import argparse
from pathlib import Path
from typing import List, Optional, Tuple

from webclip.config.settings import Settings, get_settings


def parse_address(value: str) -> Tuple[str, int]:
    """Split ``host:port``; an empty host keeps the default bind address."""
    host, sep, port = value.rpartition(":")
    if not sep or not port.isdigit():
        raise argparse.ArgumentTypeError(f"invalid listen address: {value!r}")
    return host, int(port)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="webclip", description="Clip web pages into PDF documents")
    parser.add_argument(
        "-w", "--workers", type=int, default=None, help="maximum concurrent renderer invocations"
    )
    parser.add_argument(
        "-a", "--address", type=parse_address, default=None, help="listen address, host:port"
    )
    parser.add_argument("-p", "--presets", type=Path, default=None, help="presets file")
    return parser


def apply_arguments(settings: Settings, args: argparse.Namespace) -> Settings:
    """Return a copy of ``settings`` with command line overrides applied."""
    overrides = {}
    if args.workers is not None:
        if args.workers < 1:
            raise SystemExit("webclip: workers must be at least 1")
        overrides["max_workers"] = args.workers
    if args.address is not None:
        host, port = args.address
        if host:
            overrides["host"] = host
        overrides["port"] = port
    if args.presets is not None:
        overrides["presets_path"] = args.presets
    return settings.model_copy(update=overrides)


def main(argv: Optional[List[str]] = None) -> None:
    args = build_parser().parse_args(argv)
    settings = apply_arguments(get_settings(), args)

    from webclip.api.main import run_server

    run_server(settings)


if __name__ == "__main__":
    main()
