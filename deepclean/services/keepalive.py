#!/usr/bin/env python3
"""Background loop that keeps the sudo credential from expiring during a long cleanup."""
import itertools
import logging
import threading
from typing import Dict, Optional

from ..core.constants import KEEPALIVE_INTERVAL, KEEPALIVE_STOP_TIMEOUT
from .privilege import PrivilegeProbe

log = logging.getLogger(__name__)

_ids = itertools.count(1)


class KeepaliveError(RuntimeError):
    """Raised when the keepalive loop cannot be launched."""


class KeepaliveHandle:
    """Identifies one running keepalive loop."""

    def __init__(self, handle_id: str, thread: threading.Thread, stop_event: threading.Event):
        self.id = handle_id
        self.thread = thread
        self.stop_event = stop_event

    def is_alive(self) -> bool:
        return self.thread.is_alive()

    def signal_stop(self) -> None:
        self.stop_event.set()

    def __str__(self) -> str:
        return self.id

    def __repr__(self) -> str:
        state = "alive" if self.is_alive() else "stopped"
        return f"<KeepaliveHandle {self.id} {state}>"


class KeepaliveWorker:
    """Starts and stops keepalive loops.

    The loop waits ``interval`` seconds, refreshes the grant, and repeats until
    its stop event is set. A failed refresh is only logged; the next cycle
    tries again.
    """

    def __init__(self, probe: Optional[PrivilegeProbe] = None, interval: float = KEEPALIVE_INTERVAL):
        self.probe = probe or PrivilegeProbe()
        self.interval = interval
        self._running: Dict[str, KeepaliveHandle] = {}

    def _loop(self, handle_id: str, stop_event: threading.Event) -> None:
        while not stop_event.wait(self.interval):
            if not self.probe.refresh():
                log.debug("keepalive %s: refresh failed, retrying in %ss", handle_id, self.interval)
        log.debug("keepalive %s: stopped", handle_id)

    def start(self) -> KeepaliveHandle:
        handle_id = str(next(_ids))
        stop_event = threading.Event()
        thread = threading.Thread(
            target=self._loop,
            args=(handle_id, stop_event),
            name=f"sudo-keepalive-{handle_id}",
            daemon=True,
        )
        try:
            thread.start()
        except RuntimeError as e:
            raise KeepaliveError(f"could not start keepalive loop: {e}") from e
        handle = KeepaliveHandle(handle_id, thread, stop_event)
        self._running[handle_id] = handle
        log.debug("keepalive %s: started (interval %ss)", handle_id, self.interval)
        return handle

    def stop(self, handle) -> None:
        """Stop the loop behind handle. Empty, unknown or already stopped handles are ignored."""
        handle_id = getattr(handle, "id", handle)
        if not handle_id:
            return
        running = self._running.pop(str(handle_id), None)
        if running is None and isinstance(handle, KeepaliveHandle):
            running = handle
        if running is None:
            log.debug("keepalive %s: not running, nothing to stop", handle_id)
            return
        running.signal_stop()
        if running.thread is threading.current_thread():
            return
        running.thread.join(timeout=KEEPALIVE_STOP_TIMEOUT)
        if running.is_alive():
            log.warning("keepalive %s did not exit within %ss", running.id, KEEPALIVE_STOP_TIMEOUT)

    def running_handles(self):
        return [h for h in self._running.values() if h.is_alive()]
