"""
Logging setup.
"""

from __future__ import annotations

import logging
import os

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(log_path: str, log_level: str) -> None:
    handlers = [logging.StreamHandler()]
    if log_path:
        log_dir = os.path.dirname(log_path)
        if log_dir and not os.path.exists(log_dir):
            os.makedirs(log_dir)
        handlers.insert(0, logging.FileHandler(log_path))

    logging.basicConfig(
        level=getattr(logging, log_level),
        format=LOG_FORMAT,
        handlers=handlers,
    )
