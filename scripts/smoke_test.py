#!/usr/bin/env python
"""CI smoke test: migrations applied, database reachable, routes wired."""

from __future__ import annotations

import sys

from alembic import command
from alembic.config import Config
from sqlalchemy import text

from app_path import ROOT_DIR, ensure_project_on_path

ensure_project_on_path()

from roomcast.db import SessionLocal  # noqa: E402  (import after sys.path tweak)

REQUIRED_ROUTES = {"/ws", "/api/rooms/create", "/api/messages/delete/{message_id}"}


def _verify_migration_state() -> None:
    cfg = Config(str(ROOT_DIR / "alembic.ini"))
    command.current(cfg)


def _verify_database() -> None:
    with SessionLocal() as session:
        for table in ("rooms", "users", "messages"):
            session.execute(text(f"SELECT 1 FROM {table} LIMIT 1"))


def _verify_routes() -> None:
    from roomcast.main import app

    paths = {getattr(route, "path", None) for route in app.routes}
    missing = REQUIRED_ROUTES - paths
    if missing:
        raise RuntimeError(f"missing routes: {sorted(missing)}")


def main() -> int:
    try:
        _verify_migration_state()
        _verify_database()
        _verify_routes()
    except Exception as exc:
        print(f"[smoke_test] failure: {exc}", file=sys.stderr)
        return 1
    print("[smoke_test] passed", flush=True)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
