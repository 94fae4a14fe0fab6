"""Process-wide logging setup shared by the API and the import CLI."""

from __future__ import annotations

import logging

_LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(*, level: str) -> None:
    """Apply the shared log format at the requested level, falling back to INFO."""

    requested = level.strip().upper() or "INFO"
    resolved_level = logging.getLevelName(requested)
    if not isinstance(resolved_level, int):
        resolved_level = logging.INFO

    logging.basicConfig(level=resolved_level, format=_LOG_FORMAT)
