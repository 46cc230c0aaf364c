"""Column catalogue for the ticket grid."""

from dataclasses import dataclass
from typing import List


@dataclass(frozen=True)
class TicketColumn:
    """A ticket grid column and what the rule editors may do with it."""
    id: str
    caption: str
    sortable: bool = True
    filterable: bool = True


TICKET_COLUMNS: List[TicketColumn] = [
    TicketColumn("id", "Ticket ID"),
    TicketColumn("fullName", "Full Name"),
    TicketColumn("email", "Email", sortable=False),
    TicketColumn("subject", "Subject", sortable=False),
    TicketColumn("message", "Message", sortable=False, filterable=False),
    TicketColumn("dateCreated", "Date Created", filterable=False),
]


def sortable_columns() -> List[str]:
    return [column.id for column in TICKET_COLUMNS if column.sortable]


def filterable_columns() -> List[str]:
    return [column.id for column in TICKET_COLUMNS if column.filterable]


def column_caption(column_id: str) -> str:
    """Human caption for a column id, falling back to the id itself."""
    for column in TICKET_COLUMNS:
        if column.id == column_id:
            return column.caption
    return column_id
