"""
Launch the raid campaign API:

    python -m raid_sim.web.run_server

Picks a free port when the requested one is taken, then starts uvicorn.
"""
from __future__ import annotations

import argparse
import logging
import socket
import sys

import uvicorn


def find_available_port(host: str, start_port: int, *, max_tries: int = 50) -> tuple[int, bool]:
    """
    Probe sequential ports starting from start_port.
    Returns (port, did_fallback).
    """
    if max_tries < 1:
        raise ValueError("max_tries must be >= 1")

    last_error: OSError | None = None
    for offset in range(max_tries):
        port = start_port + offset
        try:
            with socket.create_server((host, port), reuse_port=False):
                return port, offset != 0
        except OSError as exc:
            last_error = exc
            continue

    msg = f"No available port found starting at {start_port} after {max_tries} attempts"
    if last_error is not None:
        msg = f"{msg} (last error: {last_error})"
    raise RuntimeError(msg)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="python -m raid_sim.web.run_server",
        description="Serve the raid campaign API.",
    )
    parser.add_argument("--host", default="127.0.0.1", help="Host to listen on (default: %(default)s).")
    parser.add_argument("--port", type=int, default=8000, help="Starting port (default: %(default)s).")
    parser.add_argument("--reload", action="store_true", help="Enable uvicorn --reload.")
    parser.add_argument("--log-level", default="info", help="Log level (default: %(default)s).")
    args = parser.parse_args(argv)

    logging.basicConfig(level=args.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    try:
        chosen_port, did_fallback = find_available_port(args.host, args.port, max_tries=50)
    except (RuntimeError, ValueError) as exc:
        print(f"[raid] Failed to select a free port: {exc}", file=sys.stderr)
        return 2

    url = f"http://{args.host}:{chosen_port}"
    if did_fallback:
        print(f"[raid] Serving on {url} (selected because {args.port} was in use).")
    else:
        print(f"[raid] Serving on {url}.")

    try:
        uvicorn.run(
            "raid_sim.web.main:app",
            host=args.host,
            port=chosen_port,
            reload=args.reload,
            log_level=args.log_level.lower(),
        )
    except KeyboardInterrupt:
        return 0
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
