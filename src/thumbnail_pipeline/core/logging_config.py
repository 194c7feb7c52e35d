"""Logging setup for the thumbnail pipeline.

All pipeline loggers hang off one root logger, ``thumbnail-pipeline``, which owns
the only handler. Component loggers (``thumbnail-pipeline.notifications``,
``thumbnail-pipeline.cli``...) propagate to it, so ``LOG_LEVEL`` and
``LOG_FORMAT`` apply everywhere.
"""

import os
import sys
import logging
from typing import Optional

ROOT_LOGGER_NAME = "thumbnail-pipeline"

STRUCTURED_FORMAT = (
    "%(asctime)s | %(name)s | %(levelname)-8s | %(threadName)s | "
    "%(filename)s:%(lineno)d | %(funcName)s() | %(message)s"
)
SIMPLE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# botocore logs every request at DEBUG; keep it out of pipeline debug output
LIBRARY_LOGGERS = ("boto3", "botocore", "s3transfer", "urllib3", "PIL")


def _resolve_level(level: Optional[str], env_var: str, default: str) -> int:
    name = (level or os.getenv(env_var, default)).upper()
    return getattr(logging, name, getattr(logging, default))


def setup_logger(
    name: str = ROOT_LOGGER_NAME,
    level: Optional[str] = None,
    format_type: str = "structured",
) -> logging.Logger:
    """
    Configure a logger with a single stdout handler.

    Args:
        name: Logger name (defaults to the pipeline root logger)
        level: Log level override (defaults to LOG_LEVEL or INFO)
        format_type: "structured" or "simple"; LOG_FORMAT wins when set

    Returns:
        Configured logger instance

    Environment Variables:
        LOG_LEVEL: DEBUG, INFO, WARNING, ERROR or CRITICAL
        LOG_FORMAT: "structured" or "simple"
        LOG_LIBRARY_LEVEL: level for boto3/botocore/urllib3/PIL (default WARNING)
    """
    logger = logging.getLogger(name)
    logger.setLevel(_resolve_level(level, "LOG_LEVEL", "INFO"))

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        if os.getenv("LOG_FORMAT", format_type).lower() == "structured":
            formatter = logging.Formatter(STRUCTURED_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
        else:
            formatter = logging.Formatter(SIMPLE_FORMAT)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    logger.propagate = False

    if name == ROOT_LOGGER_NAME:
        quiet_library_loggers()
    return logger


def quiet_library_loggers(level: Optional[str] = None) -> None:
    """Raise the threshold of chatty third-party loggers."""
    library_level = _resolve_level(level, "LOG_LIBRARY_LEVEL", "WARNING")
    for name in LIBRARY_LOGGERS:
        logging.getLogger(name).setLevel(library_level)


def get_logger(component: Optional[str] = None) -> logging.Logger:
    """
    Return the root pipeline logger, or a child logger for ``component``.

    Child loggers carry no handler of their own and log through the root.
    """
    if not component:
        return logger
    if component.startswith(ROOT_LOGGER_NAME + "."):
        return logging.getLogger(component)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{component}")


# Root logger, configured at import
logger = setup_logger()
