"""CLI command implementations — read commands delegate to RecordQuery."""

from __future__ import annotations

import asyncio
import logging
import os
from typing import TYPE_CHECKING

import click
from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

if TYPE_CHECKING:
    from po_mails.cli.query import RecordQuery

from po_mails.mail.graph_client import MailFetchError
from po_mails.processing.types import Record
from po_mails.sync.service import SyncService
from po_mails.views.dates import format_date, month_name, short_preview
from po_mails.views.grouping import latest_per_company

logger = logging.getLogger(__name__)
console = Console(width=200)


def _sender_name(record: Record | None) -> str:
    if record is None or record.sender is None or not record.sender.name:
        return "Unknown sender"
    return record.sender.name.strip()


# ── po-mails fetch ───────────────────────────────────────────────────────────────


@click.command()
@click.pass_obj
def fetch(engine: RecordQuery) -> None:
    """Fetch the current PO window from the mailbox and store it."""
    try:
        records = asyncio.run(SyncService(engine.db).sync())
    except (MailFetchError, ValueError) as exc:
        detail = getattr(exc, "detail", None)
        console.print(f"[red]Failed to fetch emails: {exc}[/red]")
        if detail:
            console.print(f"[dim]{detail}[/dim]")
        raise SystemExit(1) from exc

    if not records:
        console.print("[yellow]No PO mails in the current window.[/yellow]")
        return

    table = Table(box=box.ROUNDED, show_header=True, header_style="bold cyan")
    table.add_column("Received", width=16)
    table.add_column("Subject", max_width=40)
    table.add_column("From", max_width=24)
    table.add_column("Candidate", max_width=24)
    table.add_column("End Client", max_width=24)
    table.add_column("Rate", max_width=16)

    for record in records:
        x = record.extracted
        table.add_row(
            format_date(record.received_at),
            record.subject,
            _sender_name(record),
            x.candidate_name or "-",
            x.end_client or "-",
            x.rate or "-",
        )

    console.print(table)
    console.print(f"[green]Stored {len(records)} record(s).[/green]")


# ── po-mails months ──────────────────────────────────────────────────────────────


@click.command()
@click.option("--query", "-q", "text", default="", help="Free-text filter.")
@click.option("--open", "open_months", multiple=True, help="Month label to expand, e.g. 'March 2024'.")
@click.option("--all", "expand_all", is_flag=True, help="Expand every month.")
@click.pass_obj
def months(engine: RecordQuery, text: str, open_months: tuple[str, ...], expand_all: bool) -> None:
    """List records by month, grouped by candidate."""
    buckets = engine.months(text)
    if not buckets:
        console.print("[yellow]No results found.[/yellow]")
        return

    wanted = {m.strip().lower() for m in open_months}
    total = sum(b.count for b in buckets)
    console.print(f"\n[bold]{total}[/bold] result(s)\n")

    for bucket in buckets:
        is_open = expand_all or bucket.label.lower() in wanted
        caret = "–" if is_open else "+"
        console.print(f"[bold]{caret} {bucket.label}[/bold]  [dim]{bucket.count}[/dim]")
        if not is_open:
            continue

        table = Table(box=box.SIMPLE, show_header=True, header_style="bold cyan")
        table.add_column("Candidate", max_width=28)
        table.add_column("Support", max_width=18)
        table.add_column("TL", max_width=18)
        table.add_column("Mgr", max_width=18)
        table.add_column("From", max_width=22)
        table.add_column("Received", width=16)
        table.add_column("POs", width=4)
        table.add_column("Rate", max_width=14)

        for group in bucket.groups:
            deduped = latest_per_company(group.records)
            first = deduped[0] if deduped else None
            x = first.extracted if first else None
            table.add_row(
                group.display_name,
                (x and x.interview_support_by) or "-",
                (x and x.team_lead) or "-",
                (x and x.manager) or "-",
                _sender_name(first),
                format_date(first.received_at) if first else "",
                str(len(deduped)),
                (x and x.rate) or "",
            )
        console.print(table)


# ── po-mails candidate ───────────────────────────────────────────────────────────


_DETAIL_FIELDS: list[tuple[str, str]] = [
    ("Candidate", "candidate_name"),
    ("Email", "email"),
    ("Phone", "phone_number"),
    ("Location", "location"),
    ("Position", "position_applied"),
    ("Job Location", "job_location"),
    ("End Client", "end_client"),
    ("Rate", "rate"),
    ("Interview Support By", "interview_support_by"),
    ("Team Lead", "team_lead"),
    ("Manager", "manager"),
]


@click.command()
@click.argument("name")
@click.option("--month", default=None, help="Restrict to one month label, e.g. 'March 2024'.")
@click.option("--query", "-q", "text", default="", help="Free-text filter.")
@click.pass_obj
def candidate(engine: RecordQuery, name: str, month: str | None, text: str) -> None:
    """Show the latest PO per company for one candidate."""
    group = engine.candidate(name, month=month, text=text)
    if group is None:
        console.print(f"[yellow]No candidate group named {name!r}.[/yellow]")
        return

    deduped = latest_per_company(group.records)
    head = deduped[0]
    console.print(f"\n[bold]{head.subject or 'PO details'}[/bold]")
    sender = head.sender.address if head.sender else ""
    console.print(f"[dim]{_sender_name(head)}  {sender}  {format_date(head.received_at)}[/dim]")
    if len(deduped) > 1:
        console.print(f"Total POs for candidate: [bold]{len(deduped)}[/bold]")

    for record in deduped:
        grid = Table.grid(padding=(0, 2))
        grid.add_column(style="dim")
        grid.add_column()
        for label, attr in _DETAIL_FIELDS:
            grid.add_row(label, getattr(record.extracted, attr) or "-")
        grid.add_row("Preview", short_preview(record.body_preview) or "-")
        title = format_date(record.received_at) or "Date unknown"
        if record.extracted.rate:
            title = f"{title}  ·  Rate: {record.extracted.rate}"
        console.print(Panel(grid, title=f"[bold]{title}[/bold]", border_style="blue"))


# ── po-mails support ─────────────────────────────────────────────────────────────


@click.command()
@click.option("--query", "-q", "text", default="", help="Free-text filter.")
@click.option("--year", default=None, help="Four-digit year or 'All'. Defaults to the latest year.")
@click.option("--month", default=None, help="Two-digit month or 'All'. Defaults to the latest month.")
@click.pass_obj
def support(engine: RecordQuery, text: str, year: str | None, month: str | None) -> None:
    """Count POs per interview-support person."""
    view = engine.support(text, year=year, month=month)
    year_label = "All Years" if view["year"] == "All" else view["year"]
    console.print(
        f"\n[bold]Interview Support By[/bold]  [dim]{year_label} · {month_name(view['month'])}[/dim]"
    )

    if not view["rows"]:
        console.print("[yellow]No records in this period.[/yellow]")
        return

    table = Table(box=box.ROUNDED, show_header=True, header_style="bold cyan")
    table.add_column("Expert", max_width=28)
    table.add_column("Count", width=6)
    table.add_column("Candidates", max_width=80)
    for row in view["rows"]:
        table.add_row(row["name"], str(row["count"]), ", ".join(row["candidates"]))
    console.print(table)


# ── po-mails serve ───────────────────────────────────────────────────────────────


@click.command()
@click.option("--host", default="127.0.0.1", show_default=True)
@click.option("--port", default=None, type=int, help="Defaults to PORT or 3000.")
@click.pass_obj
def serve(engine: RecordQuery, host: str, port: int | None) -> None:
    """Run the HTTP API (and static viewer, if PO_STATIC_DIR is set)."""
    import uvicorn

    from po_mails.api.app import create_app
    from po_mails.sync.scheduler import interval_from_env

    app = create_app(
        SyncService(engine.db),
        engine,
        static_dir=os.environ.get("PO_STATIC_DIR"),
        sync_interval=interval_from_env(),
    )
    bind_port = port or int(os.environ.get("PORT", "3000"))
    console.print(f"PO viewer running on http://{host}:{bind_port}")
    uvicorn.run(app, host=host, port=bind_port)
