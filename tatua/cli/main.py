#!/usr/bin/env python3
"""Main CLI entry point for Tatua using Typer.

This module exposes the ticket desk on the command line: submitting,
listing (with filters, sorting and paging), viewing, editing, deleting and
exporting tickets against any of the storage backends.
"""

import asyncio
import logging
from enum import Enum
from pathlib import Path
from typing import List, Optional

import typer
from typing_extensions import Annotated

from ..config import TatuaConfig, load_config
from ..exceptions import ConfigLoadError, TatuaError
from ..grid.rules import parse_filter_rule, parse_sort_rule
from ..persistence.crypto import PayloadCipher
from ..tickets.columns import column_caption
from ..tickets.desk import TicketDesk
from ..tickets.service import TicketDraft

logger = logging.getLogger(__name__)

LIST_COLUMNS = ["id", "fullName", "email", "subject", "dateCreated"]


class ExitCode(Enum):
    """CLI exit codes."""
    SUCCESS = 0
    NOT_FOUND = 1
    CONFIG_ERROR = 2
    INPUT_ERROR = 3


app = typer.Typer(
    name="tatua",
    help="Tatua - ticket desk with encrypted local storage",
    add_completion=False
)


@app.callback()
def main(
    ctx: typer.Context,
    storage: Annotated[
        Optional[str],
        typer.Option("--storage", "-s", help="Storage backend (memory, session, local)")
    ] = None,
    config_file: Annotated[
        Optional[Path],
        typer.Option("--config", "-c", help="Path to YAML configuration file")
    ] = None,
    log_level: Annotated[
        Optional[str],
        typer.Option("--log-level", help="Logging level (DEBUG, INFO, WARNING, ERROR)")
    ] = None,
):
    """
    Tatua - submit and browse support tickets from the command line.
    """
    try:
        config = load_config(
            config_file,
            overrides={"storage_backend": storage, "log_level": log_level.upper() if log_level else None}
        )
    except ConfigLoadError as e:
        typer.echo(f"❌ Configuration error: {e.message}", err=True)
        raise typer.Exit(code=ExitCode.CONFIG_ERROR.value)

    logging.basicConfig(level=getattr(logging, config.log_level, logging.INFO))
    ctx.obj = TicketDesk(config)


def _desk(ctx: typer.Context) -> TicketDesk:
    desk = ctx.obj
    if desk is None:
        desk = TicketDesk(TatuaConfig.from_environment())
        ctx.obj = desk
    return desk


def _not_found(ticket_id: str) -> typer.Exit:
    typer.echo(f"❌ Ticket not found: {ticket_id}", err=True)
    return typer.Exit(code=ExitCode.NOT_FOUND.value)


@app.command()
def submit(
    ctx: typer.Context,
    full_name: Annotated[str, typer.Option("--name", "-n", help="Full name of the requester")],
    email: Annotated[str, typer.Option("--email", "-e", help="Contact email")],
    subject: Annotated[str, typer.Option("--subject", help="Ticket subject")],
    message: Annotated[str, typer.Option("--message", "-m", help="Ticket message")],
    phone: Annotated[str, typer.Option("--phone", help="Contact phone number")] = "",
    contact: Annotated[str, typer.Option("--contact", help="Preferred contact method")] = "Email",
):
    """Submit a new ticket."""
    desk = _desk(ctx)
    draft = TicketDraft(
        full_name=full_name,
        email=email,
        phone=phone,
        subject=subject,
        message=message,
        contact=contact
    )
    try:
        ticket = asyncio.run(desk.submit_ticket(draft))
    except TatuaError as e:
        typer.echo(f"❌ {e.message}", err=True)
        raise typer.Exit(code=ExitCode.INPUT_ERROR.value)
    typer.echo(f"✅ Ticket submitted: {ticket['id']}")


@app.command(name="list")
def list_tickets(
    ctx: typer.Context,
    filters: Annotated[
        Optional[List[str]],
        typer.Option("--filter", "-f", help="Filter rule column:relation:value (repeatable)")
    ] = None,
    sorters: Annotated[
        Optional[List[str]],
        typer.Option("--sort", help="Sort rule column[:asc|desc] (repeatable, first wins ties)")
    ] = None,
    page: Annotated[int, typer.Option("--page", "-p", min=1, help="Page number")] = 1,
    page_size: Annotated[
        Optional[int],
        typer.Option("--page-size", min=1, help="Tickets per page")
    ] = None,
):
    """List tickets as a paged, filtered and sorted grid."""
    desk = _desk(ctx)
    try:
        filter_rules = [parse_filter_rule(token) for token in filters or []]
        sort_rules = [parse_sort_rule(token) for token in sorters or []]
    except ValueError as e:
        typer.echo(f"❌ Invalid rule: {e}", err=True)
        raise typer.Exit(code=ExitCode.INPUT_ERROR.value)

    engine = desk.engine
    if page_size:
        engine.config = engine.config.model_copy(update={"page_size": page_size})

    async def load() -> None:
        await engine.set_filters(filter_rules)
        if sort_rules:
            await engine.set_sorters(sort_rules)
        await engine.set_page(page)

    asyncio.run(load())
    snapshot = engine.get_snapshot()

    message = engine.display_message()
    if message:
        typer.echo(message)
        return

    typer.echo(" | ".join(column_caption(column) for column in LIST_COLUMNS))
    for record in snapshot.data:
        typer.echo(" | ".join(str(record.get(column, "") or "–") for column in LIST_COLUMNS))

    first, last, total = engine.page_summary()
    typer.echo(f"Showing {first}-{last} of {total} (page {snapshot.current_page} of {max(1, snapshot.total_pages)})")


@app.command()
def show(
    ctx: typer.Context,
    ticket_id: Annotated[str, typer.Argument(help="Ticket ID")],
):
    """Show every field of a ticket."""
    exported = _desk(ctx).export_ticket(ticket_id)
    if exported is None:
        raise _not_found(ticket_id)
    typer.echo(exported[1])


@app.command()
def edit(
    ctx: typer.Context,
    ticket_id: Annotated[str, typer.Argument(help="Ticket ID")],
    full_name: Annotated[Optional[str], typer.Option("--name", "-n")] = None,
    email: Annotated[Optional[str], typer.Option("--email", "-e")] = None,
    phone: Annotated[Optional[str], typer.Option("--phone")] = None,
    subject: Annotated[Optional[str], typer.Option("--subject")] = None,
    message: Annotated[Optional[str], typer.Option("--message", "-m")] = None,
    contact: Annotated[Optional[str], typer.Option("--contact")] = None,
):
    """Edit fields of an existing ticket; omitted options keep their values."""
    desk = _desk(ctx)
    original = desk.view_ticket(ticket_id)
    if original is None:
        raise _not_found(ticket_id)

    changes = {
        "fullName": full_name,
        "email": email,
        "phone": phone,
        "subject": subject,
        "message": message,
        "contact": contact,
    }
    fields = {key: original.get(key) for key in changes}
    fields.update({key: value for key, value in changes.items() if value is not None})
    draft = TicketDraft.model_validate({key: value or "" for key, value in fields.items()})

    asyncio.run(desk.edit_ticket(ticket_id, draft))
    typer.echo(f"✅ Ticket updated: {ticket_id}")


@app.command()
def delete(
    ctx: typer.Context,
    ticket_id: Annotated[str, typer.Argument(help="Ticket ID")],
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Skip confirmation")] = False,
):
    """Delete a ticket."""
    desk = _desk(ctx)
    if not yes:
        typer.confirm(f"Delete ticket {ticket_id}?", abort=True)
    if not asyncio.run(desk.delete_ticket(ticket_id)):
        raise _not_found(ticket_id)
    typer.echo(f"✅ Ticket deleted: {ticket_id}")


@app.command()
def export(
    ctx: typer.Context,
    ticket_id: Annotated[str, typer.Argument(help="Ticket ID")],
    out: Annotated[
        Optional[Path],
        typer.Option("--out", "-o", help="Output directory (default: current directory)")
    ] = None,
):
    """Write a ticket's details to ticket_<id>.txt."""
    exported = _desk(ctx).export_ticket(ticket_id)
    if exported is None:
        raise _not_found(ticket_id)

    filename, text = exported
    target = (out or Path(".")) / filename
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(text, encoding="utf-8")
    typer.echo(f"✅ Exported to {target}")


@app.command(name="storage-info")
def storage_info(ctx: typer.Context):
    """Show which storage backend is active."""
    desk = _desk(ctx)
    info = desk.factory.get_repository_info(
        desk.config.repository_config(desk.storage_backend.value)
    )
    for key, value in info.items():
        typer.echo(f"{key}: {value}")


@app.command(name="generate-key")
def generate_key():
    """Print a new random key for TATUA_CIPHER_KEY."""
    typer.echo(PayloadCipher.generate_key())


if __name__ == "__main__":
    app()
