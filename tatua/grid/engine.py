"""Grid engine: paging, rule and selection state driven by a data provider.

The engine moves through ``idle -> loading -> (ready | error) -> loading``.
Every rule or page mutation goes through ``refresh()``, which asks the data
provider for the current page. Provider failures are caught here and turned
into an error state with an empty view; they never reach the caller.

Overlapping refreshes are allowed. Responses are applied in the order they
complete, so the engine always reflects the most recently *completed* fetch.
Callers that need strict request ordering should wait for ``is_loading`` to
clear before mutating again.
"""

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Iterable, List, Optional, Set, Tuple

from pydantic import BaseModel, Field

from .providers import DataProvider
from .rules import FilterRule, PageRequest, PageResult, Record, SortRule

logger = logging.getLogger(__name__)

# Page size sent to providers when pagination is disabled
UNPAGED_PAGE_SIZE = 2**31 - 1


class GridStatus(str, Enum):
    """Lifecycle states of a grid engine."""
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    ERROR = "error"


class GridConfig(BaseModel):
    """Per-grid settings."""

    name: str = Field(default="grid", description="Name used to tag log messages")
    key_field: str = Field(default="id", min_length=1, description="Unique record field")
    page_size: int = Field(default=8, ge=1)
    pagination_enabled: bool = True
    selectable: bool = False
    empty_message: str = "No data available"
    error_message: str = "Error fetching data."
    logging: bool = Field(default=False, description="Emit verbose debug tracing")


@dataclass(frozen=True)
class GridSnapshot:
    """A detached copy of the engine state.

    Nothing in a snapshot is shared with the engine; mutating its lists or
    its selection set has no effect on the grid.
    """
    status: GridStatus
    current_page: int
    total_pages: int
    total_count: int
    page_size: int
    data: List[Record] = field(default_factory=list)
    filters: List[FilterRule] = field(default_factory=list)
    sorters: List[SortRule] = field(default_factory=list)
    selected_keys: Set[Any] = field(default_factory=set)
    error_message: Optional[str] = None
    is_loading: bool = False


class GridEngine:
    """Orchestrates grid state on top of a DataProvider."""

    def __init__(
        self,
        provider: DataProvider,
        config: Optional[GridConfig] = None,
        filters: Optional[Iterable[FilterRule]] = None,
        sorters: Optional[Iterable[SortRule]] = None
    ):
        """Initialize the engine.

        Args:
            provider: Source of pages
            config: Grid settings (defaults to GridConfig())
            filters: Initial committed filter rules
            sorters: Initial committed sort rules
        """
        self._provider = provider
        self.config = config or GridConfig()

        self._status = GridStatus.IDLE
        self._data: List[Record] = []
        self._total_count = 0
        self._total_pages = 1
        self._current_page = 1
        self._filters: List[FilterRule] = list(filters or [])
        self._sorters: List[SortRule] = list(sorters or [])
        self._selected: Set[Any] = set()
        self._error_message: Optional[str] = None
        self._in_flight = 0
        self._listeners: List[Callable[[GridSnapshot], None]] = []

        self._trace("Grid engine initialized")

    # -------- read-only state --------

    @property
    def status(self) -> GridStatus:
        return GridStatus.LOADING if self._in_flight else self._status

    @property
    def is_loading(self) -> bool:
        """True while any fetch is in flight."""
        return self._in_flight > 0

    @property
    def current_page(self) -> int:
        return self._current_page

    @property
    def total_pages(self) -> int:
        return self._total_pages

    @property
    def total_count(self) -> int:
        return self._total_count

    @property
    def filters(self) -> List[FilterRule]:
        return list(self._filters)

    @property
    def sorters(self) -> List[SortRule]:
        return list(self._sorters)

    @property
    def data(self) -> List[Record]:
        return [dict(record) for record in self._data]

    # -------- fetching --------

    def _page_size(self) -> int:
        return self.config.page_size if self.config.pagination_enabled else UNPAGED_PAGE_SIZE

    def _build_request(self) -> PageRequest:
        return PageRequest(
            page=self._current_page,
            page_size=self._page_size(),
            sorters=list(self._sorters),
            filters=list(self._filters)
        )

    async def refresh(self) -> None:
        """Fetch the current page with the current rules."""
        request = self._build_request()
        self._trace(
            f"Fetching page {request.page} with {len(request.filters)} filters "
            f"and {len(request.sorters)} sorters"
        )

        self._in_flight += 1
        self._status = GridStatus.LOADING
        try:
            result = await self._provider.fetch(request)
            page_moved = self._apply_result(request, result)
        except Exception as e:
            logger.error(f"[{self.config.name}] data provider failed: {e}", exc_info=True)
            self._apply_failure()
            page_moved = False
        finally:
            self._in_flight -= 1

        self._notify()

        if page_moved:
            # The requested page no longer exists; show the clamped one instead
            await self.refresh()

    def _apply_result(self, request: PageRequest, result: PageResult) -> bool:
        """Store a provider response; return True if the page had to be clamped."""
        if not isinstance(result, PageResult):
            result = PageResult.model_validate(result)

        self._data = [dict(record) for record in result.data]
        self._total_count = result.total_count
        if self.config.pagination_enabled:
            self._total_pages = math.ceil(self._total_count / self.config.page_size)
        else:
            self._total_pages = 1
        self._status = GridStatus.READY
        self._error_message = None

        self._current_page = max(1, min(request.page, self._total_pages or 1))
        self._trace(
            f"Loaded {len(self._data)} records, total={self._total_count}, "
            f"page {self._current_page}/{max(1, self._total_pages)}"
        )
        return self._current_page != request.page

    def _apply_failure(self) -> None:
        self._data = []
        self._total_count = 0
        self._total_pages = 0 if self.config.pagination_enabled else 1
        self._current_page = 1
        self._status = GridStatus.ERROR
        self._error_message = self.config.error_message

    # -------- mutations --------

    async def set_page(self, page: int) -> None:
        """Move to ``page``, clamped into the valid range.

        Does nothing (and does not fetch) when the clamped page equals the
        current one.
        """
        target = max(1, min(int(page), max(1, self._total_pages)))
        if target == self._current_page:
            self._trace(f"Page {page} resolves to current page {target}; skipping fetch")
            return
        self._current_page = target
        await self.refresh()

    async def next_page(self) -> None:
        await self.set_page(self._current_page + 1)

    async def previous_page(self) -> None:
        await self.set_page(self._current_page - 1)

    async def set_filters(self, rules: Iterable[FilterRule]) -> None:
        """Replace the filter rules wholesale and reload from page 1."""
        self._filters = list(rules)
        self._current_page = 1
        await self.refresh()

    async def set_sorters(self, rules: Iterable[SortRule]) -> None:
        """Replace the sort rules wholesale and reload from page 1."""
        self._sorters = list(rules)
        self._current_page = 1
        await self.refresh()

    # -------- selection --------

    def toggle_selection(self, key: Any) -> bool:
        """Flip the selection of one row key; return whether it is now selected."""
        if not self.config.selectable:
            return False
        if key in self._selected:
            self._selected.discard(key)
            return False
        self._selected.add(key)
        return True

    def select_page(self) -> None:
        """Select every row on the current page."""
        if not self.config.selectable:
            return
        key_field = self.config.key_field
        self._selected.update(
            record[key_field] for record in self._data if key_field in record
        )

    def deselect(self, key: Any) -> None:
        self._selected.discard(key)

    def clear_selection(self) -> None:
        self._selected.clear()

    def is_selected(self, key: Any) -> bool:
        return key in self._selected

    # -------- snapshots & display --------

    def get_snapshot(self) -> GridSnapshot:
        """Return a detached copy of the grid state."""
        return GridSnapshot(
            status=self.status,
            current_page=self._current_page,
            total_pages=self._total_pages,
            total_count=self._total_count,
            page_size=self.config.page_size,
            data=[dict(record) for record in self._data],
            filters=list(self._filters),
            sorters=list(self._sorters),
            selected_keys=set(self._selected),
            error_message=self._error_message,
            is_loading=self.is_loading
        )

    def page_summary(self) -> Tuple[int, int, int]:
        """Return ``(first_row, last_row, total_count)`` for the current page."""
        if self._total_count == 0:
            return 0, 0, 0
        if not self.config.pagination_enabled:
            return 1, self._total_count, self._total_count
        size = self.config.page_size
        first = (self._current_page - 1) * size + 1
        last = min(self._current_page * size, self._total_count)
        return first, last, self._total_count

    def display_message(self) -> Optional[str]:
        """Message to show in place of rows, or None when there are rows."""
        if self._status == GridStatus.ERROR:
            return self._error_message or self.config.error_message
        if not self._data:
            return self.config.empty_message
        return None

    def subscribe(self, listener: Callable[[GridSnapshot], None]) -> Callable[[], None]:
        """Call ``listener`` with a snapshot after every completed fetch.

        Returns a function that removes the listener.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        if not self._listeners:
            return
        snapshot = self.get_snapshot()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception as e:
                logger.warning(f"[{self.config.name}] grid listener failed: {e}")

    def _trace(self, message: str) -> None:
        if self.config.logging:
            logger.debug(f"[{self.config.name}] {message}")
