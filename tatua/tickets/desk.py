"""Ticket desk: explicit wiring of storage, grid and rule editors.

The desk is what a UI layer receives. It owns the active repository, a grid
engine reading from it, and factory methods for the rule editor sessions.
Every mutation refreshes the grid afterwards.
"""

import logging
from typing import Any, Optional, Tuple

from ..config import TatuaConfig
from ..grid.engine import GridConfig, GridEngine
from ..grid.providers import LocalDataProvider
from ..grid.rules import DEFAULT_SORTERS, Record
from ..grid.sessions import FilterEditorSession, SortEditorSession
from ..persistence.factory import RepositoryFactory, StorageBackend
from ..persistence.repositories import RecordRepository
from .columns import filterable_columns
from .service import (
    TicketDraft,
    build_ticket_update,
    create_ticket,
    export_filename,
    format_ticket_details,
)

logger = logging.getLogger(__name__)


class TicketDesk:
    """Ticket CRUD plus the grid that displays the tickets."""

    def __init__(
        self,
        config: Optional[TatuaConfig] = None,
        factory: Optional[RepositoryFactory] = None,
        backend: Optional[str] = None
    ):
        """Initialize the desk.

        Args:
            config: Desk configuration (defaults to TatuaConfig())
            factory: Repository factory; one is created from config if omitted
            backend: Storage backend overriding config.storage_backend
        """
        self.config = config or TatuaConfig()
        self.factory = factory or RepositoryFactory(
            storage_path=self.config.storage_path,
            cipher_key=self.config.cipher_key
        )
        self.storage_backend = StorageBackend(backend or self.config.storage_backend)
        self.repository: RecordRepository = self.factory.create_repository(
            self.config.repository_config(self.storage_backend.value)
        )

        # The provider reads whichever repository is active at fetch time
        self.engine = GridEngine(
            LocalDataProvider(lambda: self.repository.list_records()),
            GridConfig(
                name="tickets",
                page_size=self.config.page_size,
                selectable=True,
                empty_message="No tickets found"
            ),
            sorters=DEFAULT_SORTERS
        )
        logger.info(f"TicketDesk initialized with {self.storage_backend.value} storage")

    async def switch_storage(self, backend: str) -> bool:
        """Point the desk at another backend; return False if already active."""
        target = StorageBackend(backend)
        if target == self.storage_backend:
            return False
        self.repository = self.factory.create_repository(
            self.config.repository_config(target.value)
        )
        self.storage_backend = target
        self.engine.clear_selection()
        logger.info(f"Switched to {target.value} storage")
        await self.engine.refresh()
        return True

    async def submit_ticket(self, draft: TicketDraft) -> Record:
        """Create and store a ticket from a draft."""
        ticket = create_ticket(draft)
        self.repository.save_record(ticket)
        logger.info(f"Submitted ticket {ticket['id']}")
        await self.engine.refresh()
        return ticket

    def view_ticket(self, ticket_id: Any) -> Optional[Record]:
        return self.repository.get_record(ticket_id)

    async def edit_ticket(self, ticket_id: Any, draft: TicketDraft) -> bool:
        """Apply an edited draft to an existing ticket."""
        original = self.repository.get_record(ticket_id)
        if original is None:
            logger.warning(f"Cannot edit ticket {ticket_id}: not found")
            return False
        updated = self.repository.update_record(ticket_id, build_ticket_update(draft, original))
        await self.engine.refresh()
        return updated

    async def delete_ticket(self, ticket_id: Any) -> bool:
        deleted = self.repository.delete_record(ticket_id)
        if deleted:
            self.engine.deselect(ticket_id)
            logger.info(f"Deleted ticket {ticket_id}")
        await self.engine.refresh()
        return deleted

    def export_ticket(self, ticket_id: Any) -> Optional[Tuple[str, str]]:
        """Return ``(filename, text)`` for a ticket download, or None."""
        ticket = self.repository.get_record(ticket_id)
        if ticket is None:
            return None
        return export_filename(ticket), format_ticket_details(ticket)

    def open_filter_editor(self) -> FilterEditorSession:
        return FilterEditorSession(self.engine, columns=filterable_columns())

    def open_sort_editor(self) -> SortEditorSession:
        return SortEditorSession(self.engine, default_sorters=DEFAULT_SORTERS)
