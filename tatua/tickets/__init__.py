"""Ticket domain for Tatua: records, columns and the desk facade."""

from .columns import TICKET_COLUMNS, TicketColumn, filterable_columns, sortable_columns
from .service import (
    TicketDraft,
    build_ticket_update,
    create_ticket,
    export_filename,
    format_ticket_details,
)
from .desk import TicketDesk

__all__ = [
    "TICKET_COLUMNS",
    "TicketColumn",
    "filterable_columns",
    "sortable_columns",
    "TicketDraft",
    "build_ticket_update",
    "create_ticket",
    "export_filename",
    "format_ticket_details",
    "TicketDesk",
]
