from __future__ import annotations

import logging
import os

_LEVELS = {
    "CRITICAL": logging.CRITICAL,
    "ERROR": logging.ERROR,
    "WARNING": logging.WARNING,
    "INFO": logging.INFO,
    "DEBUG": logging.DEBUG,
}

# Third-party loggers that drown crawl output at DEBUG.
_NOISY = ("asyncio", "urllib3", "websockets")


def setup_logging(level: str | int | None = None) -> None:
    """
    Configure application logging for CLI and API runs.
    Falls back to DISCOVERY_LOG_LEVEL, then INFO.
    """
    if level is None:
        level = os.getenv("DISCOVERY_LOG_LEVEL", "INFO")

    if isinstance(level, str):
        level = _LEVELS.get(level.upper(), logging.INFO)

    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    )
    for name in _NOISY:
        logging.getLogger(name).setLevel(max(level, logging.INFO))
