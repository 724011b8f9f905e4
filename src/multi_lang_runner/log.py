from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

_LEVELS = {
    "CRITICAL": logging.CRITICAL,
    "ERROR": logging.ERROR,
    "WARNING": logging.WARNING,
    "INFO": logging.INFO,
    "DEBUG": logging.DEBUG,
}


def _normalize_level(level: str) -> int:
    """Map a level name to its numeric value, defaulting to WARNING.

    Example:
        ```python
        _normalize_level(" debug ")  # logging.DEBUG
        ```
    """
    return _LEVELS.get(level.strip().upper(), logging.WARNING)


def configure_logging(level: str = "WARNING") -> None:
    """Send log records to stderr through Rich.

    The library never calls this itself; applications and the CLI opt in.

    Example:
        ```python
        configure_logging("DEBUG")
        ```
    """
    handler = RichHandler(
        console=Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
    )
    logging.basicConfig(
        level=_normalize_level(level),
        format="%(name)s: %(message)s",
        datefmt="[%X]",
        handlers=[handler],
        force=True,
    )
