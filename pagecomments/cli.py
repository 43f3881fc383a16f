"""Server entry point.

Usage:
    pagecomments [HOST:PORT]

Without an argument the address comes from the settings
(API_HOST/API_PORT, 127.0.0.1:2668 by default).
"""

import argparse

import uvicorn

from pagecomments.config import get_settings


def parse_address(value: str) -> tuple[str, int]:
    """Split ``HOST:PORT``; an empty host means all interfaces."""
    host, sep, port = value.rpartition(":")
    if not sep:
        msg = f"expected HOST:PORT, got {value!r}"
        raise argparse.ArgumentTypeError(msg)
    try:
        port_number = int(port)
    except ValueError:
        msg = f"invalid port in {value!r}"
        raise argparse.ArgumentTypeError(msg) from None
    if not 0 < port_number < 65536:
        msg = f"port out of range in {value!r}"
        raise argparse.ArgumentTypeError(msg)
    return host.strip("[]") or "0.0.0.0", port_number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pagecomments", description="Run the comment server."
    )
    parser.add_argument(
        "address",
        nargs="?",
        type=parse_address,
        help="listen address as HOST:PORT",
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    settings = get_settings()
    host, port = args.address or (settings.api_host, settings.api_port)

    uvicorn.run(
        "pagecomments.main:create_app",
        factory=True,
        host=host,
        port=port,
        log_config=None,
        proxy_headers=True,
    )


if __name__ == "__main__":
    main()
