"""Logging setup: one stderr handler on the ``sweatyboot`` logger."""

from __future__ import annotations

import logging
import sys

_ROOT = "sweatyboot"


def get_logger(name: str) -> logging.Logger:
    """Return the ``sweatyboot.<name>`` logger."""
    return logging.getLogger(f"{_ROOT}.{name}")


def setup_logging(verbose: bool = False) -> None:
    """Attach a stderr handler; DEBUG when *verbose*, WARNING otherwise."""
    logger = logging.getLogger(_ROOT)
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    if not any(getattr(h, "_sweatyboot", False) for h in logger.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
        handler._sweatyboot = True  # type: ignore[attr-defined]
        logger.addHandler(handler)
    logger.propagate = False
