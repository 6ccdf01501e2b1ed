import logging
import os
import sys

from .settings import Settings

FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

def configure_logging(settings: Settings) -> logging.Logger:
    """
    Install stdout (and optionally file) handlers on the ``appbuilder`` logger.
    Safe to call more than once; handlers are replaced, not stacked.
    """
    logger = logging.getLogger("appbuilder")
    logger.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
    fmt = logging.Formatter(FORMAT)

    handlers = [logging.StreamHandler(sys.stdout)]
    if settings.LOG_FILE_PATH:
        log_dir = os.path.dirname(settings.LOG_FILE_PATH)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        handlers.append(logging.FileHandler(settings.LOG_FILE_PATH, mode="a", encoding="utf-8"))

    for h in handlers:
        h.setFormatter(fmt)
    logger.handlers = handlers
    logger.propagate = False
    return logger
