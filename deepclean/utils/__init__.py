"""Utility helpers for deepclean."""

from . import disk
from . import logger

__all__ = ["disk", "logger"]
