#!/usr/bin/env python3
"""
Label Review - CLI Entry Point

Browse and prune review history from the terminal.
"""

import argparse
import sys

from rich.console import Console
from rich.prompt import Confirm
from rich.table import Table
from rich import box

from errors import ReviewError
from models import ActionType, EntryStatus, Identity
from repositories import configure_backend, get_repository
from config import get_settings
from review.history import HistoryBrowser, HistoryScope

console = Console()

STATUS_STYLES = {
    EntryStatus.COMPLETED: "green",
    EntryStatus.FAILED: "red",
}


def show_history(owner_id, page=1, all_owners=False, action_type=None, query=None):
    """Print one page of history as a table"""
    identity = Identity(owner_id=owner_id or "cli", is_privileged=all_owners)
    browser = HistoryBrowser(
        get_repository().history,
        identity,
        scope=HistoryScope.ALL if all_owners else HistoryScope.OWNER,
    )
    browser.set_filters(
        action_type=ActionType(action_type) if action_type else None,
        query=query,
    )
    window, items = browser.page(page)

    if window.is_empty:
        console.print("[dim]No history entries.[/dim]")
        return []

    title = "All History" if all_owners else f"History for {owner_id}"
    table = Table(title=title, box=box.ROUNDED)
    table.add_column("ID", style="dim")
    if all_owners:
        table.add_column("Owner", style="cyan")
    table.add_column("Type")
    table.add_column("File", style="cyan")
    table.add_column("When", style="dim")
    table.add_column("Status")
    table.add_column("Errors", justify="right")
    table.add_column("Warnings", justify="right")
    table.add_column("Country")

    for e in items:
        row = [e.id]
        if all_owners:
            row.append(e.owner_id)
        style = STATUS_STYLES.get(e.status, "")
        row += [
            e.action_type.value,
            e.file_name,
            f"{e.date} {e.time}",
            f"[{style}]{e.status.value}[/{style}]",
            "" if e.error_count is None else str(e.error_count),
            "" if e.warning_count is None else str(e.warning_count),
            e.country or "",
        ]
        table.add_row(*row)

    console.print(table)
    console.print(f"[dim]Page {window.page} of {window.total_pages} ({window.count} entries)[/dim]")
    return items


def show_stats():
    """Per-owner totals"""
    repo = get_repository().history
    stats = repo.stats_by_owner()
    if not stats:
        console.print("[dim]No history entries.[/dim]")
        return []

    table = Table(title="History by Owner", box=box.ROUNDED)
    table.add_column("Owner", style="cyan")
    table.add_column("Total", justify="right")
    table.add_column("Validations", justify="right")
    table.add_column("Translations", justify="right")
    table.add_column("Failed", justify="right", style="red")

    for s in stats:
        table.add_row(s.owner_id, str(s.total), str(s.validations), str(s.translations), str(s.failed))

    console.print(table)
    console.print(f"[dim]{repo.count()} entries total[/dim]")
    return stats


def purge(ids, owner_id=None, assume_yes=False):
    """Delete entries by id. With an owner, refuse ids that belong to anyone else."""
    if not ids:
        console.print("[yellow]No ids given.[/yellow]")
        return 0
    if not assume_yes and not Confirm.ask(f"Delete {len(ids)} entr{'y' if len(ids) == 1 else 'ies'}?"):
        return 0

    repo = get_repository().history
    if owner_id:
        removed = repo.delete_owned(owner_id, ids)
    else:
        removed = repo.delete_by_ids(ids)
    console.print(f"[green]Deleted {removed} entr{'y' if removed == 1 else 'ies'}.[/green]")
    return removed


def cli(argv=None):
    """Main CLI entry point"""
    parser = argparse.ArgumentParser(description="Label review history tools")
    parser.add_argument("--data-dir", help="Override the data directory")
    sub = parser.add_subparsers(dest="command")

    p_hist = sub.add_parser("history", help="List history entries")
    p_hist.add_argument("--owner", "-o", help="Owner id")
    p_hist.add_argument("--all", "-a", action="store_true", help="Everyone's history")
    p_hist.add_argument("--page", "-p", type=int, default=1)
    p_hist.add_argument("--type", "-t", choices=[a.value for a in ActionType])
    p_hist.add_argument("--query", "-q", help="Match file name or owner")

    sub.add_parser("stats", help="Totals per owner")

    p_purge = sub.add_parser("purge", help="Delete entries by id")
    p_purge.add_argument("ids", nargs="+")
    p_purge.add_argument("--owner", "-o", help="Only delete if every id belongs to this owner")
    p_purge.add_argument("--yes", "-y", action="store_true", help="Skip confirmation")

    args = parser.parse_args(argv)

    if args.data_dir:
        settings = get_settings()
        settings.update({"data_dir": args.data_dir})
        configure_backend(settings.history_backend, settings.history_dir)

    try:
        if args.command == "history":
            if not args.all and not args.owner:
                parser.error("history needs --owner or --all")
            show_history(args.owner, args.page, args.all, args.type, args.query)
        elif args.command == "stats":
            show_stats()
        elif args.command == "purge":
            purge(args.ids, args.owner, args.yes)
        else:
            parser.print_help()
    except ReviewError as e:
        console.print(f"[red]{e}[/red]")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(cli())
