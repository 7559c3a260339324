"""Stdlib logging setup shared by the API server and the CLI."""

from __future__ import annotations

import logging
import sys

from ownnest.core.config import Settings

_CONFIGURED_FLAG = "_ownnest_configured"


def configure_logging(settings: Settings) -> None:
    """Install a single stream handler on the root logger.

    Safe to call more than once; later calls only adjust the level.
    """
    level = getattr(logging, settings.logging.level.strip().upper(), logging.INFO)
    root = logging.getLogger()
    if getattr(root, _CONFIGURED_FLAG, False):
        root.setLevel(level)
        return

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(settings.logging.format, datefmt="%Y-%m-%d %H:%M:%S"))
    root.handlers = [handler]
    root.setLevel(level)
    setattr(root, _CONFIGURED_FLAG, True)

    # httpx logs every request at INFO.
    logging.getLogger("httpx").setLevel(max(level, logging.WARNING))


__all__ = ["configure_logging"]
