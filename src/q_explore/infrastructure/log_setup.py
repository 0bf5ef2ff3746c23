"""Logging configuration for the q_explore package logger."""

import logging
from pathlib import Path

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_logging(
    log_dir: Path | None = None, level: int = logging.INFO
) -> logging.Logger:
    """Attach stream (and optionally file) handlers to the package logger.

    Existing handlers are replaced so repeated calls do not duplicate output.
    """
    logger = logging.getLogger("q_explore")
    logger.setLevel(level)
    if logger.handlers:
        logger.handlers.clear()

    if log_dir is not None:
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_dir / "q_explore.log", encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(file_handler)

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(stream_handler)
    return logger
