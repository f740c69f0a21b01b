from __future__ import annotations

import logging
import sys

LOGGER_NAME = "img_crop"


def setup_logging(level: int | str = logging.INFO) -> logging.Logger:
    """
    Настраивает логгер приложения: один обработчик в stdout.
    Повторный вызов меняет только уровень.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)

    # Prevent duplicate handlers if called multiple times
    if logger.handlers:
        return logger

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(
        logging.Formatter(
            "[%(asctime)s] %(levelname)-8s %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    logger.addHandler(handler)
    return logger


def get_logger(name: str | None = None) -> logging.Logger:
    """Возвращает дочерний логгер `img_crop.<name>`."""
    if name:
        return logging.getLogger(f"{LOGGER_NAME}.{name}")
    return logging.getLogger(LOGGER_NAME)
