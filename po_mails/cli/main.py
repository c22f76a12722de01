"""CLI entry point for the PO mail viewer."""

import logging
import os
from pathlib import Path

import click
from dotenv import load_dotenv

from po_mails.cli.query import RecordQuery
from po_mails.storage.db import RecordDatabase

logger = logging.getLogger(__name__)


@click.group()
@click.option(
    "--db",
    "db_path",
    default=None,
    help="SQLite file for stored records. Defaults to PO_DB_PATH or data/po_mails.db.",
)
@click.option("--verbose", is_flag=True, help="Log INFO messages to the terminal.")
@click.pass_context
def cli(ctx: click.Context, db_path: str | None, verbose: bool) -> None:
    """Browse PO notification emails from the terminal."""
    load_dotenv()
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)-8s %(name)s — %(message)s",
    )
    ctx.ensure_object(dict)
    path = Path(db_path or os.environ.get("PO_DB_PATH", "data/po_mails.db"))
    db = RecordDatabase(db_path=path)
    ctx.obj = RecordQuery(db)
    ctx.call_on_close(ctx.obj.close)


# Import and register commands after cli is defined to avoid circular imports.
from po_mails.cli.commands import candidate, fetch, months, serve, support  # noqa: E402

cli.add_command(fetch)
cli.add_command(months)
cli.add_command(candidate)
cli.add_command(support)
cli.add_command(serve)
