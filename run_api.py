#!/usr/bin/env python3
"""
Run the Skin Market Watch API server.

Credentials are read from the environment or a local .env file:
BITSKINS_API_KEY and BITSKINS_SECRET (required), CSFLOAT_API_KEY and
STEAM_LOGIN_SECURE (optional).

Usage:
    python run_api.py
    python run_api.py --port 8080
    python run_api.py --host 0.0.0.0 --port 8000
"""

import argparse
import sys

from core.config import Config
from core.errors import ConfigurationError
from core.logging_setup import setup_logging


def main():
    parser = argparse.ArgumentParser(description="Run Skin Market Watch API server")
    parser.add_argument(
        "--host",
        default="127.0.0.1",
        help="Host to bind to (default: 127.0.0.1)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="Port to listen on (default: 8000)",
    )
    parser.add_argument(
        "--reload",
        action="store_true",
        help="Enable auto-reload for development",
    )
    parser.add_argument(
        "--log-level",
        default="info",
        choices=["debug", "info", "warning", "error"],
        help="Log level (default: info)",
    )

    args = parser.parse_args()

    setup_logging(debug=args.log_level == "debug")

    # Fail before binding the port when mandatory credentials are missing
    try:
        Config().validate()
    except ConfigurationError as e:
        print(f"Error: {e}")
        sys.exit(1)

    import uvicorn

    print(f"Starting Skin Market Watch API on http://{args.host}:{args.port}")
    print(f"API docs: http://{args.host}:{args.port}/docs")
    print(f"Health check: http://{args.host}:{args.port}/health")
    print()

    # Single worker: the exchange-rate cache and catalog live in-process
    uvicorn.run(
        "api.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=args.log_level,
    )


if __name__ == "__main__":
    main()
