"""Services (business logic) for deepclean."""

from . import privilege
from . import keepalive
from . import sudo_session
from . import scanner_service
from . import cleanup_service

__all__ = ["privilege", "keepalive", "sudo_session", "scanner_service", "cleanup_service"]
