"""
Logging setup for the CookBook backend.

Console logging is always enabled; a dated log file is added when
ENABLE_FILE_LOGGING is set.
"""
import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

from cookbook.config import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(enable_file: Optional[bool] = None, level: Optional[str] = None) -> None:
    """
    Configure the root logger.

    Args:
        enable_file: Enable the file handler. Falls back to settings when None.
        level: Log level name. Falls back to settings when None.
    """
    enable_file = settings.ENABLE_FILE_LOGGING if enable_file is None else enable_file
    level_name = (level or settings.LOG_LEVEL).upper()

    root = logging.getLogger()
    root.setLevel(getattr(logging, level_name, logging.INFO))
    formatter = logging.Formatter(LOG_FORMAT)

    # Avoid stacking handlers when called more than once (reloads, tests)
    if not any(getattr(h, "_cookbook", False) for h in root.handlers):
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        console_handler._cookbook = True
        root.addHandler(console_handler)

    if enable_file:
        log_dir = Path(settings.LOG_DIR)
        log_dir.mkdir(parents=True, exist_ok=True)
        log_file = log_dir / f"cookbook_{datetime.now().strftime('%Y%m%d')}.log"
        if not any(
            isinstance(h, logging.FileHandler) and Path(h.baseFilename) == log_file.resolve()
            for h in root.handlers
        ):
            file_handler = logging.FileHandler(log_file, encoding="utf-8")
            file_handler.setFormatter(formatter)
            root.addHandler(file_handler)
