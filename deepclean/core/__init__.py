"""Core constants, rules, and config for deepclean."""

from .constants import (
    HOME,
    APP_SUPPORT,
    USER_CACHES,
    KEEPALIVE_INTERVAL,
    SUDO_ACTIVE_ENV,
)
from .rules import RULES, DANGEROUS_KEYS, SUDO_KEYS, PROTECTED_APP_PATTERNS
from . import config

__all__ = [
    "HOME",
    "APP_SUPPORT",
    "USER_CACHES",
    "KEEPALIVE_INTERVAL",
    "SUDO_ACTIVE_ENV",
    "RULES",
    "DANGEROUS_KEYS",
    "SUDO_KEYS",
    "PROTECTED_APP_PATTERNS",
    "config",
]
