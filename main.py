"""Development entrypoint for the civhex HTTP API."""

from __future__ import annotations

import argparse
import logging

import uvicorn

from civhex.api.app import app
from civhex.config import get_settings


def main() -> None:
    parser = argparse.ArgumentParser(description="Run the civhex API server")
    parser.add_argument("--host", default="127.0.0.1", help="Host interface to bind")
    parser.add_argument("--port", type=int, default=8000, help="TCP port to listen on")
    parser.add_argument(
        "--reload",
        action="store_true",
        help="Enable autoreload (dev mode)",
    )
    args = parser.parse_args()

    log_level = get_settings().log_level.lower()
    logging.basicConfig(level=log_level.upper())

    if args.reload:
        uvicorn.run(
            "civhex.api.app:app",
            host=args.host,
            port=args.port,
            reload=True,
            factory=False,
            log_level=log_level,
        )
    else:
        uvicorn.run(
            app, host=args.host, port=args.port, reload=False, factory=False, log_level=log_level
        )


if __name__ == "__main__":
    main()
