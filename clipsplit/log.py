"""Logging configuration for clipsplit."""

import logging
from pathlib import Path

from rich.logging import RichHandler


def configure_logging(log_level: str = "INFO", log_file: str | Path | None = None) -> None:
    """Send ``clipsplit.*`` records to a rich console handler and, optionally, a file."""
    logger = logging.getLogger("clipsplit")
    logger.setLevel(log_level.upper())

    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    console_handler = RichHandler(show_path=False, rich_tracebacks=True)
    console_handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(console_handler)

    if log_file:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        )
        logger.addHandler(file_handler)

    logging.captureWarnings(True)
