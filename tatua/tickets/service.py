"""Ticket record construction and export.

Tickets are plain records (dicts with camelCase field names) so the grid
and storage layers can treat them like any other record. This module owns
the ticket-specific parts: building a new record from a draft, turning an
edit into a partial update, and the plain-text export.
"""

import secrets
import string
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..grid.rules import Record

_BASE36 = string.digits + string.ascii_lowercase

# Fields a ticket edit may change; id, dateCreated and status are fixed
EDITABLE_FIELDS = (
    "fullName",
    "email",
    "phone",
    "subject",
    "message",
    "contact",
    "attachmentName",
    "attachmentData",
)


class TicketDraft(BaseModel):
    """User-supplied ticket fields, before an id and timestamp are assigned.

    Field-level validation (formats, lengths) is the form layer's job; the
    draft only trims surrounding whitespace the way the form submit does.
    """

    model_config = ConfigDict(populate_by_name=True)

    full_name: str = Field(..., alias="fullName")
    email: str
    phone: str = ""
    subject: str
    message: str
    contact: str = "Email"
    attachment_name: Optional[str] = Field(default=None, alias="attachmentName")
    attachment_data: Optional[Dict[str, Any]] = Field(default=None, alias="attachmentData")

    @field_validator("full_name", "email", "phone", "message")
    @classmethod
    def strip_whitespace(cls, value: str) -> str:
        return value.strip()


def to_base36(number: int) -> str:
    """Lower-case base-36 rendering of a non-negative integer."""
    if number < 0:
        raise ValueError("to_base36 expects a non-negative integer")
    if number == 0:
        return "0"
    digits = []
    while number:
        number, remainder = divmod(number, 36)
        digits.append(_BASE36[remainder])
    return "".join(reversed(digits))


def generate_ticket_id(now: Optional[datetime] = None) -> str:
    """Return an id like ``TKT-LZ3K9Q1A-4F7QX``: millisecond clock plus 5 random chars."""
    now = now or datetime.now(timezone.utc)
    millis = int(now.timestamp() * 1000)
    suffix = "".join(secrets.choice(_BASE36) for _ in range(5))
    return f"TKT-{to_base36(millis)}-{suffix}".upper()


def iso_timestamp(moment: datetime) -> str:
    """UTC ISO-8601 with millisecond precision and a ``Z`` suffix."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    moment = moment.astimezone(timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


def create_ticket(draft: TicketDraft, now: Optional[datetime] = None) -> Record:
    """Build a new open ticket record from a draft."""
    now = now or datetime.now(timezone.utc)
    return {
        "id": generate_ticket_id(now),
        "fullName": draft.full_name,
        "email": draft.email,
        "phone": draft.phone,
        "subject": draft.subject,
        "message": draft.message,
        "contact": draft.contact,
        "attachmentName": draft.attachment_name,
        "attachmentData": draft.attachment_data,
        "dateCreated": iso_timestamp(now),
        "status": "Open",
    }


def build_ticket_update(draft: TicketDraft, original: Mapping[str, Any]) -> Record:
    """Partial update for an edited ticket.

    Without a new attachment the original attachment is kept.
    """
    update = draft.model_dump(by_alias=True)
    if draft.attachment_data is None:
        update["attachmentName"] = original.get("attachmentName")
        update["attachmentData"] = original.get("attachmentData")
    return {key: update[key] for key in EDITABLE_FIELDS}


def format_ticket_details(ticket: Mapping[str, Any]) -> str:
    """Plain-text ``key: value`` export of a ticket, without the attachment payload."""
    lines = []
    for key, value in ticket.items():
        if key == "attachmentData":
            continue
        lines.append(f"{key}: {'' if value is None else value}")
    return "\n".join(lines)


def export_filename(ticket: Mapping[str, Any]) -> str:
    return f"ticket_{ticket.get('id')}.txt"
