#!/usr/bin/env python3
"""TrendStudio API server.

Usage:
    python -m trend_studio.server [--host HOST] [--port PORT] [--reload]

    or:

    uvicorn trend_studio.api:create_app --factory --host 0.0.0.0 --port 8000
"""

import argparse
import logging
import os

import uvicorn


def main():
    """Main entry point for the API server."""
    parser = argparse.ArgumentParser(
        description="TrendStudio API Server",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Run with default settings
    python -m trend_studio.server

    # Serve a built client from ./dist on port 8080
    python -m trend_studio.server --port 8080 --static-dir ./dist

    # Run with auto-reload for development
    python -m trend_studio.server --reload
""",
    )
    parser.add_argument(
        "--host",
        type=str,
        default="127.0.0.1",
        help="Host to bind to (default: 127.0.0.1)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=int(os.environ.get("PORT", "8000")),
        help="Port to bind to (default: $PORT or 8000)",
    )
    parser.add_argument(
        "--static-dir",
        type=str,
        default=None,
        help="Directory of the built client to serve (default: $STUDIO_STATIC_DIR or ./dist)",
    )
    parser.add_argument(
        "--reload",
        action="store_true",
        help="Enable auto-reload for development",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="info",
        choices=["debug", "info", "warning", "error", "critical"],
        help="Log level (default: info)",
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    # The factory is imported by uvicorn, so the directory travels via the environment
    if args.static_dir:
        os.environ["STUDIO_STATIC_DIR"] = args.static_dir

    print("=" * 60)
    print("TRENDSTUDIO API SERVER")
    print("=" * 60)
    print(f"Host: {args.host}")
    print(f"Port: {args.port}")
    print(f"Reload: {args.reload}")
    print(f"Log Level: {args.log_level}")
    print()
    print(f"OpenAPI docs: http://{args.host}:{args.port}/docs")
    print("=" * 60)

    uvicorn.run(
        "trend_studio.api.app:create_app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=args.log_level,
        factory=True,
    )


if __name__ == "__main__":
    main()
