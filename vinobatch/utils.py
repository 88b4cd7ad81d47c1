"""
Provides utility functions for the batching pipeline: library logging and
frame conversion helpers.
"""

import argparse
import logging
import os
from datetime import datetime
from typing import Optional

import numpy as np
import torch


def setup_logging(
    log_level: str = "INFO",
    log_to_file: bool = False,
    log_file_path: Optional[str] = None,
    enable_console: bool = True,
    enabled: bool = False,
) -> logging.Logger:
    """
    Setup logging configuration for applications using this library.

    This function configures only the vinobatch logger, not the root logger,
    to avoid interfering with other libraries' logging.
    """

    vinobatch_logger = logging.getLogger("vinobatch")

    if not enabled:
        vinobatch_logger.disabled = True
        return vinobatch_logger

    vinobatch_logger.disabled = False
    vinobatch_logger.setLevel(getattr(logging, log_level.upper()))

    # Clear existing handlers to avoid duplicates
    vinobatch_logger.handlers.clear()

    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    if enable_console:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        vinobatch_logger.addHandler(console_handler)

    if log_to_file:
        if log_file_path is None:
            os.makedirs("logs", exist_ok=True)
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            log_file_path = f"logs/vinobatch_{timestamp}.log"

        file_handler = logging.FileHandler(log_file_path)
        file_handler.setFormatter(formatter)
        vinobatch_logger.addHandler(file_handler)

    vinobatch_logger.propagate = False

    vinobatch_logger.info(f"vinobatch logging initialized - Level: {log_level}")
    if log_to_file:
        vinobatch_logger.info(f"Log file: {log_file_path}")

    return vinobatch_logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    Get a logger for a specific module within the library.

    Args:
        name: Logger name (typically __name__ from the calling module)

    Returns:
        Logger instance for the specified module

    Example:
        >>> from vinobatch.utils import get_logger
        >>> logger = get_logger(__name__)
        >>> logger.debug("Enqueued frame into slot 0")
    """
    if name is None:
        name = __name__

    return logging.getLogger(name)


def disable_logging(logger_name: Optional[str] = None) -> None:
    """
    Disable logging for this library or a specific logger.

    Args:
        logger_name: Specific logger to disable. If None, disables the entire
                    vinobatch package logging.
    """
    if logger_name is None:
        logger_name = "vinobatch"

    logging.getLogger(logger_name).disabled = True


def enable_logging(logger_name: Optional[str] = None, level: str = "INFO") -> None:
    """
    Enable logging for this library or a specific logger.

    Args:
        logger_name: Specific logger to enable. If None, enables the entire
                    vinobatch package logging.
        level: Logging level to set
    """
    if logger_name is None:
        logger_name = "vinobatch"

    logger_obj = logging.getLogger(logger_name)
    logger_obj.disabled = False
    logger_obj.setLevel(getattr(logging, level.upper()))


def merge_config(args: argparse.Namespace, config: dict) -> dict:
    """
    Merge command-line arguments with YAML config.
    Args override config values if they are not None.
    """

    merged = config.copy()
    for key, value in vars(args).items():
        if value is not None and key != "config":
            merged[key] = value
    return merged


def easydict_to_dict(d):
    from easydict import EasyDict

    if isinstance(d, EasyDict):
        d = {k: easydict_to_dict(v) for k, v in d.items()}
    elif isinstance(d, list):
        d = [easydict_to_dict(v) for v in d]
    return d


def to_numpy_image(frame) -> np.ndarray:
    """Return a packed HxWxC numpy view of ``frame``.

    Accepts numpy arrays and torch tensors (moved to CPU first). The pixel
    layout is not changed; only the container type.
    """
    if isinstance(frame, torch.Tensor):
        frame = frame.detach().cpu().numpy()
    elif not isinstance(frame, np.ndarray):
        frame = np.asarray(frame)

    if frame.ndim != 3:
        raise ValueError(
            f"Expected a packed HxWxC image, got array with shape {frame.shape}"
        )
    return frame
