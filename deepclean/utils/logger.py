"""
logger.py - Logging setup for deepclean
Console output stays on rich; this captures diagnostics to a file.
"""

import logging
import os
import sys
from datetime import datetime

from ..core.constants import LOG_DIR

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(verbose=False, log_dir=LOG_DIR):
    """Initialize logging. Returns the log file path, or None if it could not be created."""
    handlers = []
    try:
        os.makedirs(log_dir, exist_ok=True)
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_file = os.path.join(log_dir, f"deepclean_{timestamp}.log")
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
    except OSError:
        log_file = None

    if verbose:
        handlers.append(logging.StreamHandler(sys.stderr))
    if not handlers:
        handlers.append(logging.NullHandler())

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format=LOG_FORMAT,
        handlers=handlers,
        force=True,
    )
    logging.getLogger(__name__).info("Logging started")
    return log_file
