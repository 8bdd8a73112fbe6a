"""Logging setup for mbestore entry points."""

import logging
from typing import Optional

DEFAULT_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def setup_logging(level: str = "INFO", fmt: Optional[str] = None) -> None:
    """Configure the ``mbestore`` logger hierarchy.

    Library modules only create module loggers; the CLI and the API call this
    once at startup.
    """
    root = logging.getLogger("mbestore")
    root.setLevel(level.upper())

    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(fmt or DEFAULT_FORMAT))
        root.addHandler(handler)
