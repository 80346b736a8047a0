"""Minimal logging utilities for Tamiz.

Provides a simple get_logger function that wraps the standard library logging.
The library never installs handlers; applications configure logging.

Example:
    >>> from tamiz.utils.logger import get_logger
    >>> logger = get_logger(__name__)
    >>> logger.debug("Rejected redirect target")
"""

from __future__ import annotations

import logging


def get_logger(name: str) -> logging.Logger:
    """Get a logger for the given name.

    Returns a standard library logger with the "tamiz." prefix.

    Args:
        name: Logger name (typically __name__)

    Returns:
        logging.Logger instance

    Example:
        >>> logger = get_logger("redirects")
        >>> logger.name
        'tamiz.redirects'
    """
    if not (name == "tamiz" or name.startswith("tamiz.")):
        name = f"tamiz.{name}"
    return logging.getLogger(name)
