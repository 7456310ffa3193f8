# core/logging_config.py
import logging
import os

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOGGER_NAME = "barangay"


def setup_logger() -> logging.Logger:
    root = logging.getLogger(LOGGER_NAME)

    # Reload-safe: uvicorn --reload re-imports this module
    if root.handlers:
        return root

    level = os.getenv("LOG_LEVEL", "INFO").upper()
    root.setLevel(getattr(logging, level, logging.INFO))

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)

    return root


def get_logger(component: str) -> logging.Logger:
    """Child logger per service, e.g. ``barangay.requests``."""
    return logger.getChild(component)


logger = setup_logger()
