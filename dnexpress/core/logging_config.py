"""
Logging setup - console always, rotating file when LOGS_PATH is configured
"""
import logging
import os
from logging.handlers import RotatingFileHandler

from .config import Settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(settings: Settings) -> None:
    root = logging.getLogger()
    root.setLevel(settings.LOG_LEVEL.upper())

    # Avoid stacking handlers when the app factory runs more than once (tests)
    if getattr(root, "_dnexpress_configured", False):
        return

    formatter = logging.Formatter(LOG_FORMAT)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    root.addHandler(console_handler)

    if settings.LOGS_PATH:
        os.makedirs(settings.LOGS_PATH, exist_ok=True)
        file_handler = RotatingFileHandler(
            os.path.join(settings.LOGS_PATH, "api.log"),
            maxBytes=50 * 1024 * 1024,  # 50MB
            backupCount=7,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    # SQL noise
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)

    root._dnexpress_configured = True
