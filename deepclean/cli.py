#!/usr/bin/env python3
"""Command-line interface for deepclean."""
import json
import signal
import sys
import argparse

import questionary
from questionary import Choice
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.rule import Rule

from .utils.disk import human_size
from .utils.logger import setup_logging
from .services import scanner_service as scanner
from .services import cleanup_service as cleanup
from .services.sudo_session import get_session
from .core import config as config_module
from .core.rules import RULES, DANGEROUS_KEYS, SUDO_KEYS

console = Console()


def print_scan():
    keys, _ = scanner.visible_targets()
    console.print(Rule("[bold cyan]🧹 Deep Clean[/]", style="cyan"))
    console.print()
    console.print("[cyan]Scan results (sizes are approximate):[/]\n")
    table = Table(show_header=True, header_style="bold cyan", box=None, padding=(0, 2))
    table.add_column("Category", style="")
    table.add_column("Size", justify="right", style="yellow")
    total_bytes = 0
    for key in keys:
        items = scanner.candidates(key)
        size = sum(s for _, s in items)
        total_bytes += size
        size_str = human_size(size)
        if items:
            size_str = f"{size_str} ({len(items)} items)"
        note = " [dim](admin)[/]" if key in SUDO_KEYS else ""
        table.add_row(f"{RULES[key]['desc']}{note}", size_str)
    console.print(table)
    console.print()
    console.print(f"  [bold green]Total (approx.): {human_size(total_bytes)} that can be cleaned[/]")
    console.print()


def _prompt_choices_tui(keys: list):
    """Interactive checkbox TUI (space to toggle, enter to confirm). Returns selected keys."""
    choices = [Choice(f"{RULES[k]['desc']} — {scanner.format_target_size(k)}", value=k) for k in keys]
    choices.append(Choice("✓ Select all", value="__all__"))
    msg = "Select categories to clean: SPACE to toggle, ENTER to confirm. Select at least one."
    while True:
        result = questionary.checkbox(msg, choices=choices).ask()
        if result is None:
            return []  # Ctrl+C
        if not result:
            console.print("[yellow]No category selected. Use SPACE to mark categories, then ENTER. Ctrl+C to exit.[/]\n")
            msg = "Select at least one (SPACE to toggle, ENTER to confirm):"
            continue
        if "__all__" in result:
            return keys
        return [v for v in result if v != "__all__"]


def prompt_choices():
    """Prompt the user for choices."""
    keys, _ = scanner.visible_targets()
    if sys.stdin.isatty():
        return _prompt_choices_tui(keys)
    console.print()
    console.print("[cyan]Select what to clean (comma-separated numbers). Nothing is deleted without confirmation.[/]\n")
    for i, key in enumerate(keys, 1):
        console.print(f"  [bold]{i})[/] {RULES[key]['desc']}")
    console.print(f"  [bold]{len(keys)+1})[/] Everything above")
    choice = console.input("\n[cyan]Your choice: [/]").strip()
    if not choice:
        return []
    if choice == str(len(keys)+1):
        return keys
    idxs = []
    for part in choice.split(","):
        part = part.strip()
        if part.isdigit():
            n = int(part)
            if 1 <= n <= len(keys):
                idxs.append(keys[n-1])
    return idxs


def confirm(prompt):
    """Confirm the user's choice."""
    # Escape [y/N] so Rich doesn't treat it as markup (style tag)
    ans = console.input(f"[cyan]{prompt} {escape('[y/N]')}: [/]").strip().lower()
    return ans == "y"


def _list_categories() -> None:
    """List the categories."""
    console.print(Rule("[bold cyan]🧹 Deep Clean — Categories[/]", style="cyan"))
    console.print()
    console.print("[cyan]Available categories (targets):[/]\n")
    table = Table(show_header=True, header_style="bold cyan", box=None, padding=(0, 2))
    table.add_column("Key", style="cyan")
    table.add_column("Description", style="")
    table.add_column("Note", style="dim yellow")
    for key, rule in RULES.items():
        notes = []
        if key in SUDO_KEYS:
            notes.append("admin")
        if key in DANGEROUS_KEYS:
            notes.append("dangerous: requires --force")
        table.add_row(key, rule["desc"], f"({', '.join(notes)})" if notes else "")
    console.print(table)
    console.print()


def _run_config(argv: list) -> None:
    """Run the configuration tasks."""
    p = argparse.ArgumentParser(prog="deepclean config", description="Manage configuration.")
    p.add_argument("--init", action="store_true", help="Create default config file")
    p.add_argument("--show", action="store_true", help="Show current config")
    args = p.parse_args(argv)
    if args.init:
        path = config_module.init_config()
        console.print(Rule("[bold cyan]Config[/]", style="cyan"))
        console.print()
        console.print(f"  [green]✓[/] Created config at [cyan]{path}[/]")
        console.print()
        return
    if args.show:
        if not config_module.config_exists():
            console.print("[yellow]No config found. Run: deepclean config --init[/]")
            return
        cfg = config_module.load()
        console.print(Rule("[bold cyan]Config[/]", style="cyan"))
        console.print()
        console.print(json.dumps(cfg, indent=2))
        console.print()
        return
    p.print_help()


def _raise_system_exit(signum, frame):
    raise SystemExit(128 + signum)


def run_cleanup(selected, dry_run=False):
    """Clean the selected keys, releasing any sudo session on every exit path."""
    session = get_session()
    previous = signal.signal(signal.SIGTERM, _raise_system_exit)
    try:
        skipped = cleanup.perform_cleanup(selected, dry_run=dry_run, session=session)
    finally:
        session.release()
        signal.signal(signal.SIGTERM, previous)
    return skipped


def main(argv=None):
    """Main function."""
    argv = argv if argv is not None else sys.argv[1:]
    if argv and argv[0] == "categories":
        if len(argv) > 1 and argv[1] in ("-h", "--help"):
            console.print("[cyan]Usage:[/] deepclean categories")
            console.print("[dim]List all available cleanup targets.[/]")
            return
        _list_categories()
        return
    if argv and argv[0] == "config":
        _run_config(argv[1:])
        return

    parser = argparse.ArgumentParser(description="Clean macOS caches, logs, trash and stale app data.")
    parser.add_argument("--scan", action="store_true", help="Just scan and report sizes.")
    parser.add_argument("--interactive", action="store_true", help="Scan, then interactively choose what to clean.")
    parser.add_argument("--clean", nargs="*", help="Clean specific keys (e.g., user_essentials browsers).")
    parser.add_argument("--dry-run", action="store_true", help="Show what would be deleted without deleting.")
    parser.add_argument("--force", action="store_true", help="Force dangerous targets (required for deep_system, time_machine_failed).")
    parser.add_argument("--verbose", action="store_true", help="Log debug output to stderr.")
    args = parser.parse_args(argv)

    if not (args.scan or args.interactive or args.clean):
        parser.print_help()
        console.print("\n[dim]Subcommands: categories, config[/]")
        sys.exit(0)

    setup_logging(verbose=args.verbose)
    print_scan()

    selected = []
    if args.interactive:
        selected = prompt_choices()
        if not selected:
            console.print("[yellow]No selection. Exiting.[/]")
            sys.exit(0)
    elif args.clean:
        cfg = config_module.load()
        excl = set(cfg.get("exclude_targets") or [])
        for k in args.clean:
            if k not in RULES:
                console.print(f"[red]Unknown key: {k}[/]")
                console.print(f"[dim]Valid keys: {', '.join(sorted(RULES.keys()))}[/]")
                sys.exit(1)
            if k in excl:
                console.print(f"[yellow]{k} is excluded in config. Remove from exclude_targets to clean.[/]")
                sys.exit(1)
        selected = args.clean

    if selected:
        console.print()
        console.print("[bold]You selected:[/]")
        for k in selected:
            note = ""
            if k in DANGEROUS_KEYS:
                note = " [dim yellow](dangerous: requires --force)[/]"
            elif k in SUDO_KEYS:
                note = " [dim](needs admin password)[/]"
            console.print(f"  • {RULES[k]['desc']}{note}")

        if any(k in DANGEROUS_KEYS for k in selected) and not args.force:
            console.print()
            console.print("[red]One or more selected targets are dangerous and require the [bold]--force[/] flag to proceed.[/]")
            console.print("[dim]Rerun with --force if you really intend to delete them.[/]")
            sys.exit(1)

        if not confirm("\nProceed with cleanup?"):
            console.print("[yellow]Cancelled.[/]")
            sys.exit(0)
        skipped = run_cleanup(selected, dry_run=args.dry_run)
        console.print()
        console.print(Rule("[bold green]✓ Done.[/]", style="green"))
        console.print()
        if skipped:
            console.print(f"[yellow]Skipped without admin access: {', '.join(skipped)}[/]")
            console.print()


if __name__ == "__main__":
    main()
