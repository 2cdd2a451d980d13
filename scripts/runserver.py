#!/usr/bin/env python
"""Start the room server under Uvicorn.

Migrations run here, before the first worker imports the app, so workers skip
the startup migration step.
"""

from __future__ import annotations

import argparse
import logging
import os

import uvicorn

from app_path import ensure_project_on_path

ensure_project_on_path()

logger = logging.getLogger("roomcast.runserver")


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the roomcast server")
    parser.add_argument("--host", default=os.getenv("HOST", "0.0.0.0"))
    parser.add_argument("--port", type=int, default=int(os.getenv("PORT", "5001")))
    parser.add_argument("--reload", action="store_true", help="restart on code changes")
    parser.add_argument("--skip-migrations", action="store_true")
    return parser.parse_args()


def main() -> int:
    args = parse_args()
    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    if not args.skip_migrations:
        from roomcast.migration_runner import run_migrations_once

        run_migrations_once()
    os.environ["AUTO_MIGRATE"] = "false"

    logger.info("Starting server on %s:%s", args.host, args.port)
    uvicorn.run("roomcast.main:app", host=args.host, port=args.port, reload=args.reload, ws="websockets")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
