"""Logging setup shared by the API server and the CLI."""

from __future__ import annotations

import logging
from typing import Iterable, Optional


DEFAULT_LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_logging(
    level: int = logging.INFO, *, handlers: Optional[Iterable[logging.Handler]] = None
) -> logging.Logger:
    """Configure the root logger with a single formatted stream handler."""

    logger = logging.getLogger()
    logger.setLevel(level)

    if handlers is None:
        if not any(getattr(handler, "_legalitea", False) for handler in logger.handlers):
            stream_handler = logging.StreamHandler()
            stream_handler.setFormatter(logging.Formatter(DEFAULT_LOG_FORMAT))
            stream_handler._legalitea = True  # type: ignore[attr-defined]
            logger.addHandler(stream_handler)
    else:
        for handler in handlers:
            logger.addHandler(handler)

    return logger


__all__ = ["configure_logging", "DEFAULT_LOG_FORMAT"]
