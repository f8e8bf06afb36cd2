#!/usr/bin/env python3
"""Cleanup logic: delete rule matches, run privileged rules inside the sudo session."""
import logging
import os
import shutil
from typing import List, Optional, Tuple

from rich.console import Console
from rich.markup import escape
from rich.rule import Rule
from rich.panel import Panel

from ..core import config as config_module
from ..core.constants import IOS_BACKUP_DIR, IOS_BACKUP_REPORT_BYTES
from ..core.rules import RULES
from ..utils.disk import human_size, du_path, older_files
from . import scanner_service as scanner
from .privilege import is_root, run_cmd
from .sudo_session import SessionManager, get_session

console = Console()
log = logging.getLogger(__name__)


def run_privileged(args: List[str], timeout: int = 600) -> Tuple[bool, str]:
    """Run args as root: directly when already root, else through `sudo -n` (never prompts)."""
    if not is_root():
        args = ["sudo", "-n"] + list(args)
    ok, err = run_cmd(args, timeout=timeout)
    if not ok:
        log.warning("privileged command failed: %s: %s", " ".join(args), err)
    return ok, err


def remove_path(p, need_sudo=False) -> bool:
    """Remove a file or directory tree; symlinks are unlinked, never followed."""
    if need_sudo:
        ok, _ = run_privileged(["rm", "-rf", "--", p])
        return ok
    try:
        if os.path.isdir(p) and not os.path.islink(p):
            shutil.rmtree(p)
        else:
            os.remove(p)
        return True
    except FileNotFoundError:
        return True
    except OSError as e:
        log.debug("could not remove %s: %s", p, e)
        return False


def delete_globs(items, dry_run=False, need_sudo=False) -> Tuple[int, int]:
    """Remove matches of (parent, glob, label) items. Returns (removed count, bytes)."""
    removed = 0
    freed = 0
    for parent, pattern, label in items:
        matches = scanner.glob_matches(parent, pattern)
        if not matches:
            continue
        size = sum(du_path(p) for p in matches)
        if dry_run:
            for p in matches:
                console.print(f"  [dim]dry-run: rm -rf {escape(p)}[/]")
            continue
        done = [p for p in matches if remove_path(p, need_sudo=need_sudo)]
        if done:
            removed += len(done)
            freed += size
            console.print(f"  [green]✓[/] {escape(label)} [green]({human_size(size)})[/]")
    return removed, freed


def delete_aged(aged, dry_run=False, temp_days=7):
    """Remove old files by (root, name_glob, days), via find so system dirs work under sudo."""
    for root, name_glob, days in aged:
        days = temp_days if days is None else days
        if not os.path.isdir(root):
            continue
        if dry_run:
            for p, _ in older_files(root, name_glob, days):
                console.print(f"  [dim]dry-run: rm {escape(p)}[/]")
            continue
        ok, err = run_privileged(
            ["find", root, "-type", "f", "-name", name_glob, "-mtime", f"+{days}", "-delete"]
        )
        if ok:
            console.print(f"  [green]✓[/] Old files in {escape(root)} ({escape(name_glob)}, {days}+ days)")
        else:
            console.print(f"  [yellow]![/] {escape(root)}: {escape(err)}")


def _clean_app_support_logs(rule, dry_run=False):
    items = scanner.candidates("app_support_logs")
    if dry_run:
        for p, _ in items:
            console.print(f"  [dim]dry-run: rm -rf {escape(p)}[/]")
        console.print(f"  [dim]dry-run: {len(items)} item(s)[/]")
        return
    freed = sum(s for p, s in items if remove_path(p))
    console.print(f"  [green]✓[/] App logs [green]({human_size(freed)})[/]")


def _clean_tm_failed_backups(rule, dry_run=False):
    items = scanner.candidates("time_machine_failed")
    if not items:
        console.print("  [green]✓[/] No failed Time Machine backups found")
        return
    tmutil = shutil.which("tmutil")
    for p, size in items:
        name = escape(os.path.basename(p))
        if dry_run:
            console.print(f"  [yellow]→[/] Failed backup: {name} [yellow]({human_size(size)} dry)[/]")
            continue
        if tmutil is None:
            console.print(f"  [yellow]![/] tmutil not available, skipping: {name}")
            continue
        ok, _ = run_privileged([tmutil, "delete", p])
        if ok:
            console.print(f"  [green]✓[/] Failed backup: {name} [green]({human_size(size)})[/]")
        else:
            console.print(f"  [yellow]![/] Could not delete: {name} (try manually with sudo)")


def _clean_finder_metadata(rule, dry_run=False):
    cfg = config_module.load()
    if cfg.get("protect_finder_metadata"):
        console.print("  [yellow]☻[/] Finder metadata protected by config (protect_finder_metadata)")
        return
    items = scanner.candidates("finder_metadata")
    if dry_run:
        for p, _ in items:
            console.print(f"  [dim]dry-run: rm {escape(p)}[/]")
        console.print(f"  [dim]dry-run: {len(items)} .DS_Store file(s)[/]")
        return
    removed = [(p, s) for p, s in items if remove_path(p)]
    freed = sum(s for _, s in removed)
    console.print(f"  [green]✓[/] .DS_Store files: {len(removed)} [green]({human_size(freed)})[/]")


def _report_ios_backups(rule, dry_run=False):
    size = scanner.ios_backup_size()
    if size <= IOS_BACKUP_REPORT_BYTES:
        console.print("  [green]✓[/] No large iOS backups found")
        return
    console.print(f"  Found [green]{human_size(size)}[/] iOS backups")
    console.print(f"  You can delete them manually: [cyan]{escape(IOS_BACKUP_DIR)}[/]")


SPECIAL_HANDLERS = {
    "app_support_logs": _clean_app_support_logs,
    "finder_metadata": _clean_finder_metadata,
    "ios_backups": _report_ios_backups,
    "time_machine_failed": _clean_tm_failed_backups,
}


def clean_rule(key, dry_run=False, session: Optional[SessionManager] = None, cfg=None) -> bool:
    """Run one rule. Returns False when it was skipped for lack of admin access."""
    rule = RULES[key]
    if not scanner.rule_applies(key):
        console.print(f"  [dim]Not applicable on this Mac ({rule['arch']} only).[/]")
        return True
    if rule["sudo"] and not dry_run:
        session = session or get_session()
        if not session.ensure(f"Admin access is needed to clean: {rule['desc']}"):
            console.print("  [yellow]Skipped: admin access was not granted.[/]")
            return False
    if rule["type"] == "special":
        SPECIAL_HANDLERS[key](rule, dry_run=dry_run)
        return True
    delete_globs(rule.get("items", []), dry_run=dry_run, need_sudo=rule["sudo"])
    if rule["type"] == "aged":
        cfg = cfg or config_module.load()
        delete_aged(rule["aged"], dry_run=dry_run, temp_days=int(cfg.get("temp_file_age_days") or 7))
    return True


def perform_cleanup(selected_keys, dry_run=False, session: Optional[SessionManager] = None):
    """Clean each selected rule. Returns the keys skipped for lack of admin access."""
    skipped = []
    cfg = config_module.load()
    console.print()
    console.print(Rule("[bold cyan]Cleaning[/]", style="cyan"))
    for key in selected_keys:
        rule = RULES[key]
        console.print()
        console.print(Panel(f"[bold]{rule['desc']}[/]", style="cyan", border_style="dim", padding=(0, 1)))
        if clean_rule(key, dry_run=dry_run, session=session, cfg=cfg):
            console.print("  [green]✓ Done.[/]")
        else:
            skipped.append(key)
    return skipped
