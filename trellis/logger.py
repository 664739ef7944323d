"""
Logging setup for the storefront.

All modules log through children of the ``trellis`` logger so a single
handler (stdout) and a single level (``LOG_LEVEL``) apply everywhere.
Messages follow the ``area: method=<op> key=value`` convention so they can
be grepped per operation.
"""
import logging
import os
import sys
from typing import Optional

_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
_DATEFMT = "%Y-%m-%d %H:%M:%S"

_root = logging.getLogger("trellis")


def configure_logging(level: Optional[str] = None) -> logging.Logger:
    """
    Attach the stdout handler to the ``trellis`` logger (once) and set its level.

    Args:
        level: Level name; defaults to the LOG_LEVEL environment variable (INFO)

    Returns:
        The package root logger
    """
    level = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    _root.setLevel(level)

    if not _root.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(fmt=_FORMAT, datefmt=_DATEFMT))
        _root.addHandler(handler)
    for handler in _root.handlers:
        handler.setLevel(level)

    _root.propagate = False
    return _root


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return ``trellis.<name>`` (or the package logger when name is empty)."""
    if name:
        return logging.getLogger(f"trellis.{name}")
    return _root


configure_logging()
