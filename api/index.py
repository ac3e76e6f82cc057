"""Serverless entrypoint: builds the app from environment settings."""

from __future__ import annotations

import sys
from pathlib import Path

SRC = Path(__file__).resolve().parents[1] / "src"
if SRC.is_dir() and str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from series_tracker.api.app import create_app  # noqa: E402
from series_tracker.containers import build_container  # noqa: E402

app = create_app(build_container())
