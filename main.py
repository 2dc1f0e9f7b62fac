#!/usr/bin/env python3
"""
ClubHub API server.

Runs the FastAPI application with uvicorn.

Usage:
    python main.py                    # development server on :8000
    python main.py --port 9000 --reload
"""

import argparse

import uvicorn

from clubhub.config import load_config


def main():
    parser = argparse.ArgumentParser(description="ClubHub API server")
    parser.add_argument("--host", default="0.0.0.0", help="Bind address")
    parser.add_argument("--port", "-p", type=int, default=8000, help="Port")
    parser.add_argument("--reload", action="store_true", help="Reload on code changes")
    args = parser.parse_args()

    config = load_config()
    if config.app.is_production and args.reload:
        parser.error("--reload is not allowed in production")

    uvicorn.run(
        "api.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level="info"
    )


if __name__ == "__main__":
    main()
