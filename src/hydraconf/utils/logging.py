"""Logging utilities.

Purpose:
    Centralize logger naming for the package.

Key responsibilities:
    - Provide a helper to obtain loggers under the ``hydraconf`` namespace.
    - Leave handler and level configuration to the application.

Notes/Edge cases:
    - Configuration is idempotent; only a ``NullHandler`` is ever attached.
    - Environment values may be secrets and are never logged, only their names.
"""

from __future__ import annotations

import logging

__all__ = ["ROOT_LOGGER_NAME", "get_logger"]

ROOT_LOGGER_NAME = "hydraconf"

_configured = False


def _configure_root() -> None:
    global _configured
    if _configured:
        return
    logging.getLogger(ROOT_LOGGER_NAME).addHandler(logging.NullHandler())
    _configured = True


def get_logger(name: str) -> logging.Logger:
    """Return a logger for ``name`` nested under the package namespace.

    ``name`` is typically ``__name__``; names already inside the namespace are
    used as-is.
    """

    _configure_root()
    if name == ROOT_LOGGER_NAME or name.startswith(ROOT_LOGGER_NAME + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")
