"""Lets the scripts import ``roomcast`` when run from a checkout."""

from __future__ import annotations

import sys
from pathlib import Path

ROOT_DIR = Path(__file__).resolve().parents[1]


def ensure_project_on_path() -> None:
    if str(ROOT_DIR) not in sys.path:
        sys.path.append(str(ROOT_DIR))
