#!/usr/bin/env python3
"""
Run the API with uvicorn.

Usage:
  python scripts/serve.py [--host 0.0.0.0] [--port 5000] [--reload]
"""
from __future__ import annotations

import argparse

import uvicorn

from school_api.core.config import get_settings


def main() -> None:
    settings = get_settings()
    ap = argparse.ArgumentParser(description="Serve the school content API")
    ap.add_argument("--host", default=settings.host, help=f"Bind address (default: {settings.host})")
    ap.add_argument("--port", type=int, default=settings.port, help=f"TCP port (default: {settings.port})")
    ap.add_argument("--reload", action="store_true", help="Reload on code changes (dev only)")
    args = ap.parse_args()

    uvicorn.run(
        "school_api.app:create_app",
        factory=True,
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
