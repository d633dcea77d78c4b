"""Logging setup for the payroll office service."""

from __future__ import annotations

import logging

from payroll_office.config import Settings, get_settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(settings: Settings | None = None) -> None:
    """Configure root logging once, at process start."""
    settings = settings or get_settings()
    logging.basicConfig(level=settings.log_level, format=LOG_FORMAT)
    # SQL echo is controlled separately from application verbosity
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
