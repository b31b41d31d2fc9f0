"""Centralized logging configuration for hotpatch_bench.

Loguru is the diagnostic logging facade. Call ``configure_logging()`` once
from the CLI; modules simply do ``from loguru import logger``.

Operator-facing output (the dev server's echoed lines, ``[bench]`` progress
and result lines) is printed directly and does not go through the logger.
"""

from __future__ import annotations

import sys

from loguru import logger


def configure_logging(verbose: bool = False) -> None:
    """Configure the global loguru logger.

    Args:
        verbose: If True, enable DEBUG level; otherwise INFO.
    """
    logger.remove()

    log_format = (
        "<level>{level: <7}</level>| "
        "<dim><cyan>{name}:{line}</cyan></dim> | "
        "<level>{message}</level>"
    )

    logger.add(
        sys.stderr,
        format=log_format,
        level="DEBUG" if verbose else "INFO",
        colorize=None,
        backtrace=verbose,
        diagnose=verbose,
    )
