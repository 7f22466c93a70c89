import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

LOGGER_NAME = "shortlink"


def setup_logging(
    *,
    level: str = "INFO",
    logger_name: str = LOGGER_NAME,
    file_path: str | None = None,
    max_bytes: int = 500_000,
    backups: int = 3,
) -> logging.Logger:
    """
    Configure the service logger.
    - Always attaches a StreamHandler.
    - Adds a RotatingFileHandler when file_path is given.
    Safe to call more than once: previous handlers are dropped.
    """
    logger = logging.getLogger(logger_name)
    logger.handlers.clear()
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    fmt = logging.Formatter("%(asctime)s [%(levelname)s] %(name)s %(message)s")

    sh = logging.StreamHandler()
    sh.setFormatter(fmt)
    logger.addHandler(sh)

    if file_path:
        Path(file_path).parent.mkdir(parents=True, exist_ok=True)
        fh = RotatingFileHandler(file_path, maxBytes=max_bytes, backupCount=backups, encoding="utf-8")
        fh.setFormatter(fmt)
        logger.addHandler(fh)

    return logger
