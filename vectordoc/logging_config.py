"""
Logging configuration for vectordoc.

Library loggers stay silent unless the application configures logging;
these helpers cover the common cases.
"""

import logging
import sys
import warnings

_LIBRARY_LOGGERS = ("httpx", "httpcore")


def configure_quiet_mode(quiet: bool = True):
    """
    Silence per-request INFO lines from the HTTP stack.

    Args:
        quiet: If True, suppress verbose output. If False, restore it.
    """
    level = logging.WARNING if quiet else logging.NOTSET
    for name in _LIBRARY_LOGGERS:
        logging.getLogger(name).setLevel(level)


def enable_debug_mode():
    """Enable debug-level logging to stderr, including request bodies."""
    warnings.filterwarnings("default")

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)

    # Add stderr handler if not already present
    if not any(isinstance(h, logging.StreamHandler) and h.stream == sys.stderr
               for h in root_logger.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.setLevel(logging.DEBUG)
        handler.setFormatter(logging.Formatter(
            "%(asctime)s %(levelname)s %(name)s: %(message)s",
            datefmt="%H:%M:%S"
        ))
        root_logger.addHandler(handler)

    for name in ("vectordoc", *_LIBRARY_LOGGERS):
        logging.getLogger(name).setLevel(logging.DEBUG)
