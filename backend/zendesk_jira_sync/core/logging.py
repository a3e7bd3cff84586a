"""Simple logging setup for the application."""

from __future__ import annotations

import datetime as dt
import logging
import os
from pathlib import Path

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def setup_logging(level: str | None = None, log_dir: str | None = None) -> None:
    if logging.getLogger().handlers:
        return

    level_name = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_dir:
        directory = Path(log_dir)
        directory.mkdir(parents=True, exist_ok=True)
        stamp = dt.datetime.now(dt.timezone.utc).strftime("%Y%m%dT%H%M%SZ")
        handlers.append(logging.FileHandler(directory / f"sync-{stamp}.log", mode="a", encoding="utf-8"))

    logging.basicConfig(
        level=level_name,
        format=LOG_FORMAT,
        handlers=handlers,
    )
