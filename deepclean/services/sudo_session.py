#!/usr/bin/env python3
"""
Elevated session lifecycle for cleanup runs.

A session is requested once with a reason, kept alive by a background
keepalive loop, and released when the run ends. Cleanup rules only call
`ensure()` and check its result; they never talk to sudo themselves.
"""
import atexit
import logging
import os
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Callable, Iterator, MutableMapping, Optional

from ..core import config as config_module
from ..core.constants import SUDO_ACTIVE_ENV
from . import privilege
from .keepalive import KeepaliveError, KeepaliveWorker
from .privilege import PrivilegeProbe

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionState:
    established: bool = False
    keepalive_handle: Optional[Any] = None


class SessionManager:
    """Owns the single SessionState of a run.

    States cycle NoSession -> Requesting -> Active -> NoSession. Only
    `ensure` and `release` replace the state, and they always set both
    fields together.
    """

    def __init__(
        self,
        probe: Optional[PrivilegeProbe] = None,
        worker: Optional[KeepaliveWorker] = None,
        request_interactive: Optional[Callable[[str], bool]] = None,
        env: Optional[MutableMapping[str, str]] = None,
        state: Optional[SessionState] = None,
    ):
        self._probe = probe or PrivilegeProbe()
        self._worker = worker or KeepaliveWorker(self._probe)
        self._request_interactive = request_interactive or privilege.request_interactive
        self._env = os.environ if env is None else env
        self._atexit_registered = False
        self._state = SessionState()
        self._set_state(state or SessionState())

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def established(self) -> bool:
        return self._state.established

    def _set_state(self, state: SessionState) -> None:
        self._state = state
        self._env[SUDO_ACTIVE_ENV] = "true" if state.established else "false"

    def has_sudo_session(self) -> bool:
        """Live check of the OS grant, independent of the cached state."""
        return self._probe.has_active_grant()

    def ensure(self, reason: str = "") -> bool:
        """Make sure an elevated session is active. Returns False if it could not be established."""
        if self._state.established:
            return True

        if self._probe.has_active_grant():
            log.debug("sudo grant already active, skipping prompt")
        elif not self._request_interactive(reason or ""):
            log.info("Elevated session not granted (reason: %r)", reason)
            return False

        try:
            handle = self._worker.start()
        except KeepaliveError as e:
            log.error("Elevation granted but keepalive failed to start: %s", e)
            self._set_state(SessionState())
            return False
        if not handle:
            log.error("Elevation granted but keepalive returned no handle")
            self._set_state(SessionState())
            return False

        self._set_state(SessionState(established=True, keepalive_handle=handle))
        if not self._atexit_registered:
            atexit.register(self.release)
            self._atexit_registered = True
        log.info("Elevated session established (keepalive %s)", handle)
        return True

    def release(self) -> None:
        """End the session. Never raises; a keepalive that will not stop is only logged."""
        handle = self._state.keepalive_handle
        try:
            self._worker.stop(handle)
        except Exception:
            log.warning("Could not stop keepalive %s", handle, exc_info=True)
        if handle is not None:
            log.info("Elevated session released (keepalive %s)", handle)
        self._set_state(SessionState())


_default_manager: Optional[SessionManager] = None


def get_session() -> SessionManager:
    """Process-wide SessionManager, built on first use."""
    global _default_manager
    if _default_manager is None:
        cfg = config_module.load()
        probe = PrivilegeProbe()
        worker = KeepaliveWorker(probe, interval=cfg["keepalive_interval_seconds"])
        _default_manager = SessionManager(probe=probe, worker=worker)
    return _default_manager


def is_session_active(env: Optional[MutableMapping[str, str]] = None) -> bool:
    """Read the environment mirror of the session state."""
    env = os.environ if env is None else env
    return env.get(SUDO_ACTIVE_ENV) == "true"


@contextmanager
def sudo_session(reason: str = "", manager: Optional[SessionManager] = None) -> Iterator[bool]:
    """
    Scoped session: yields the result of ensure(reason).
    Releases on exit only if this block is the one that established it.
    """
    manager = manager or get_session()
    was_active = manager.established
    ok = manager.ensure(reason)
    try:
        yield ok
    finally:
        if ok and not was_active:
            manager.release()
