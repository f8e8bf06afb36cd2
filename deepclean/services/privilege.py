#!/usr/bin/env python3
"""sudo checks: probe and refresh the cached credential, or ask for it interactively."""
import logging
import os
import shutil
import subprocess
from typing import List, Tuple

from rich.console import Console
from rich.markup import escape

from ..core.constants import SUDO_PROBE_TIMEOUT

console = Console()
log = logging.getLogger(__name__)


def run_cmd(args: List[str], timeout: int = SUDO_PROBE_TIMEOUT) -> Tuple[bool, str]:
    """Run command with list args (no shell, no stdin). Returns (success, error_message)."""
    try:
        subprocess.run(
            args,
            stdin=subprocess.DEVNULL,
            capture_output=True,
            text=True,
            timeout=timeout,
            check=True,
        )
        return True, ""
    except subprocess.CalledProcessError as e:
        err = (e.stderr or e.stdout or "").strip() or f"exit code {e.returncode}"
        return False, err
    except (subprocess.TimeoutExpired, FileNotFoundError, OSError) as e:
        return False, str(e)


def is_root() -> bool:
    return os.geteuid() == 0


class PrivilegeProbe:
    """Non-interactive view of the sudo credential cache.

    Neither method ever prompts. Anything short of a clean exit from sudo
    counts as "no grant".
    """

    def __init__(self, timeout: int = SUDO_PROBE_TIMEOUT):
        self.timeout = timeout

    def has_active_grant(self) -> bool:
        if is_root():
            return True
        ok, err = run_cmd(["sudo", "-n", "true"], timeout=self.timeout)
        if not ok:
            log.debug("No active sudo grant: %s", err)
        return ok

    def refresh(self) -> bool:
        """Extend an existing grant (sudo -n -v). False if there is nothing to extend."""
        if is_root():
            return True
        ok, err = run_cmd(["sudo", "-n", "-v"], timeout=self.timeout)
        if not ok:
            log.debug("sudo refresh failed: %s", err)
        return ok


def request_interactive(reason: str) -> bool:
    """
    Ask the operator for their password via `sudo -v`, showing reason first.
    Returns False when sudo is missing or the grant is refused.
    """
    sudo = shutil.which("sudo")
    if sudo is None:
        log.warning("sudo not found; elevated cleanup unavailable")
        return False
    if reason and reason.strip():
        console.print(f"  [cyan]🔒 {escape(reason.strip())}[/]")
    try:
        result = subprocess.run([sudo, "-v", "-p", "  Password: "])
    except OSError as e:
        log.warning("Could not run sudo: %s", e)
        return False
    if result.returncode != 0:
        log.info("sudo authentication refused (exit %s)", result.returncode)
        return False
    return True
