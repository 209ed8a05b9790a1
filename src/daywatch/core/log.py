"""Logging setup."""

import logging
from pathlib import Path
from typing import Optional

from daywatch.core.config import ConfigManager

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(config: ConfigManager, level: Optional[str] = None) -> None:
    """Configure the root logger from configuration.

    Args:
        config: Configuration manager (advanced.log_level, advanced.log_file)
        level: Override for the configured level
    """
    log_level = getattr(logging, (level or config.get("advanced.log_level", "WARNING")).upper())

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    formatter = logging.Formatter(LOG_FORMAT)

    # Avoid stacking handlers when called more than once
    for handler in list(root_logger.handlers):
        if getattr(handler, "_daywatch", False):
            root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)
    console_handler._daywatch = True  # type: ignore[attr-defined]
    root_logger.addHandler(console_handler)

    log_file = config.get("advanced.log_file")
    if log_file:
        path = Path(log_file).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(path)
        file_handler.setLevel(log_level)
        file_handler.setFormatter(formatter)
        file_handler._daywatch = True  # type: ignore[attr-defined]
        root_logger.addHandler(file_handler)
