"""Logging setup for the API process."""

from __future__ import annotations

import logging

from utils.config import Settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def configure_logging(settings: Settings) -> None:
    """Install console logging and, when LOG_DIR is set, info/error log files.

    Safe to call more than once; existing root handlers are replaced.
    """
    handlers: list[logging.Handler] = [logging.StreamHandler()]

    if settings.log_dir is not None:
        settings.log_dir.mkdir(parents=True, exist_ok=True)
        info_handler = logging.FileHandler(settings.log_dir / "info.log")
        info_handler.setLevel(logging.INFO)
        error_handler = logging.FileHandler(settings.log_dir / "errors.log")
        error_handler.setLevel(logging.ERROR)
        handlers.extend([info_handler, error_handler])

    logging.basicConfig(
        level=settings.log_level,
        format=LOG_FORMAT,
        datefmt=DATE_FORMAT,
        handlers=handlers,
        force=True,
    )
