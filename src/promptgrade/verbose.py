"""Verbose logging configuration for debug output."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

_NOISY_LOGGERS = ("httpx", "httpcore", "openai", "sentence_transformers", "huggingface_hub", "transformers")


def setup_logger(
    verbose: bool = False,
    debug_file: Path | None = None,
    logger_name: str = "promptgrade",
) -> logging.Logger:
    """
    Configure and return the logger used while grading.

    Writes to debug_file when one is given, and to stderr when verbose=True.
    With neither, records are dropped instead of reaching the root logger.

    Args:
        verbose: If True, log to stderr.
        debug_file: Optional path to a debug log file (appended to).
        logger_name: Name of the logger instance. Module loggers under
            ``promptgrade.`` propagate to the default name.

    Returns:
        Configured logger instance.
    """
    logger = logging.getLogger(logger_name)

    # Clear any existing handlers for this specific logger
    logger.handlers.clear()

    logger.disabled = False
    logger.setLevel(logging.DEBUG)
    logger.propagate = False

    formatter = logging.Formatter(
        fmt="[%(asctime)s] %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S"
    )

    if debug_file is not None:
        debug_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(debug_file, mode='a')
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    if verbose:
        stderr_handler = logging.StreamHandler(sys.stderr)
        stderr_handler.setLevel(logging.DEBUG)
        stderr_handler.setFormatter(formatter)
        logger.addHandler(stderr_handler)

    if not logger.handlers:
        logger.addHandler(logging.NullHandler())

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.ERROR)

    return logger
