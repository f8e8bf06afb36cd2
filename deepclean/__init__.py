"""deepclean package."""

__version__ = "0.1.0"

from . import utils
from . import core
from . import services
from .core import config
from .services import sudo_session

__all__ = ["cli", "config", "core", "utils", "services", "sudo_session"]
