"""Logging setup shared by the CLI and tests."""

from __future__ import annotations

import logging


def configure_logging(*, level: int = logging.INFO, force: bool = False) -> None:
    """Configure the root logger for CLI output.

    Only the first call has an effect unless ``force`` is set (tests use it to reset
    handlers between runs).
    """

    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%H:%M:%S",
        force=force,
    )
    # request lines from httpx would drown the sync log at INFO
    logging.getLogger("httpx").setLevel(max(level, logging.WARNING))
