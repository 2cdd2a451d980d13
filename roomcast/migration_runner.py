from __future__ import annotations

import logging
from pathlib import Path
from threading import Lock

from alembic import command
from alembic.config import Config

from .config import get_settings

logger = logging.getLogger(__name__)
_run_lock = Lock()
_has_run = False


def run_migrations_once() -> None:
    """Bring the schema up to date once per process.

    ``create_tables`` short-circuits Alembic with ``metadata.create_all`` (tests and
    throwaway SQLite files); ``auto_migrate=False`` leaves the schema alone.
    """
    global _has_run
    if _has_run:
        return

    with _run_lock:
        if _has_run:
            return

        settings = get_settings()
        if settings.create_tables:
            from .db import engine
            from .models import Base

            logger.info("Creating tables from model metadata...")
            Base.metadata.create_all(bind=engine)
        elif settings.auto_migrate:
            project_root = Path(__file__).resolve().parents[1]
            alembic_ini = project_root / "alembic.ini"
            script_location = project_root / "alembic"

            cfg = Config(str(alembic_ini))
            cfg.set_main_option("script_location", str(script_location))
            cfg.set_main_option("sqlalchemy.url", settings.database_url)

            logger.info("Applying database migrations...")
            command.upgrade(cfg, "head")
        _has_run = True
        logger.info("Database schema is up to date.")
