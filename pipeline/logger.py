"""Logging for the analysis pipeline.

All loggers live under the ``pipeline`` namespace (``pipeline.runner``,
``pipeline.stages.extraction``...) and share one stdout handler, so a job's
output reads as a single timeline. The level comes from ``LOG_LEVEL``.
"""

import logging
import sys
from typing import Optional

from config import LOG_LEVEL

ROOT_NAME = "pipeline"
LOG_FORMAT = '%(asctime)s | %(levelname)-8s | %(name)-30s | %(message)s'


def level_from_env(name: str = LOG_LEVEL) -> int:
    """Map a level name such as ``"DEBUG"`` to its logging constant, INFO if unknown."""
    level = getattr(logging, name.upper(), None)
    return level if isinstance(level, int) else logging.INFO


class PipelineLogger:
    """Owns the single handler of the ``pipeline`` logger tree."""

    _initialized = False

    @classmethod
    def initialize(cls, level: Optional[int] = None) -> None:
        """Attach the stdout handler once; later calls are no-ops."""
        if cls._initialized:
            return

        level = level_from_env() if level is None else level
        root_logger = logging.getLogger(ROOT_NAME)
        root_logger.setLevel(level)

        handler = logging.StreamHandler(sys.stdout)
        handler.setLevel(level)
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt='%H:%M:%S'))

        root_logger.addHandler(handler)
        root_logger.propagate = False
        cls._initialized = True

    @classmethod
    def get_logger(cls, name: str) -> logging.Logger:
        cls.initialize()
        full_name = name if name.startswith(ROOT_NAME) else f"{ROOT_NAME}.{name}"
        return logging.getLogger(full_name)


def setup_logger(name: str = ROOT_NAME, level: Optional[int] = None) -> logging.Logger:
    """Logger for a job entry point.

    Args:
        name: Job name, e.g. ``"job1"``.
        level: Explicit level; ``LOG_LEVEL`` is used when None. Only the first
            initialization sets the level.

    Returns:
        logging.Logger: Logger under the ``pipeline`` namespace.
    """
    PipelineLogger.initialize(level)
    return PipelineLogger.get_logger(name)


def get_logger(name: str) -> logging.Logger:
    """Logger for a module, e.g. ``get_logger("stages.trend")``."""
    return PipelineLogger.get_logger(name)
