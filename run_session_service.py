#!/usr/bin/env python3
"""
Launch the interview session service with command-line overrides.
"""

from __future__ import annotations

import argparse
import os
from pathlib import Path

import uvicorn
from dotenv import load_dotenv


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Run the interview session service.",
    )
    parser.add_argument("--host", default=None, help="Bind host (default: SERVICE_HOST or 0.0.0.0).")
    parser.add_argument("--port", type=int, default=None, help="Bind port (default: SERVICE_PORT or 8780).")
    parser.add_argument(
        "--backend",
        choices=("memory", "rest"),
        default=None,
        help="Data backend. 'rest' needs DATA_API_URL and DATA_API_KEY.",
    )
    parser.add_argument(
        "--state-file",
        default=None,
        help="Override key-value state file. Default: ./output/session_state.json.",
    )
    parser.add_argument(
        "--transcript-file",
        default=None,
        help="Override answer log path. Default: ./output/answers.txt.",
    )
    parser.add_argument(
        "--tick",
        type=float,
        default=None,
        help="Seconds per revealed character of a simulated answer.",
    )
    parser.add_argument(
        "--env-file",
        default=None,
        help="Load environment variables from this file before starting.",
    )
    parser.add_argument("--log-level", default="info", help="Uvicorn log level.")
    return parser.parse_args()


def main() -> None:
    args = parse_args()

    load_dotenv(args.env_file)

    if args.host:
        os.environ["SERVICE_HOST"] = args.host
    if args.port is not None:
        os.environ["SERVICE_PORT"] = str(args.port)
    if args.backend:
        os.environ["DATA_BACKEND"] = args.backend
    if args.state_file:
        os.environ["STATE_FILE"] = str(Path(args.state_file).expanduser())
    if args.transcript_file:
        os.environ["TRANSCRIPT_FILE"] = str(Path(args.transcript_file).expanduser())
    if args.tick is not None:
        os.environ["REVEAL_TICK_SECONDS"] = str(args.tick)

    from session_service import RUNTIME_CONFIG, app  # Import after env config

    print(
        f"Starting interview session service backend={RUNTIME_CONFIG.data_backend} "
        f"bind=http://{RUNTIME_CONFIG.host}:{RUNTIME_CONFIG.port} "
        f"state_file={RUNTIME_CONFIG.state_file}"
    )
    uvicorn.run(app, host=RUNTIME_CONFIG.host, port=RUNTIME_CONFIG.port, log_level=args.log_level)


if __name__ == "__main__":
    main()
