"""Logging setup for the reviewer service."""

from __future__ import annotations

import logging

from app.core.config import settings

_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str | None = None) -> None:
    """Apply the configured log level to the ``app`` logger hierarchy."""

    resolved = (level or settings.log_level).upper()
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(format=_FORMAT)
    logging.getLogger("app").setLevel(getattr(logging, resolved, logging.INFO))
