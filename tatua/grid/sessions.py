"""Rule editor sessions.

A session is the scratch buffer behind a filter or sort dialog. It copies
the engine's committed rules when opened, lets the caller add, remove and
edit rows, and then either commits the whole buffer in one engine call or
discards it. The engine never sees a half-edited rule set.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from typing import Generic, List, Optional, Sequence, TypeVar

from ..exceptions import EditorSessionClosedError
from .engine import GridEngine
from .rules import (
    DEFAULT_SORTERS,
    FilterRelation,
    FilterRule,
    SortDirection,
    SortRule,
)

logger = logging.getLogger(__name__)


@dataclass
class FilterRow:
    """Editable filter row."""
    column: str
    relation: FilterRelation = FilterRelation.CONTAINS
    value: str = ""

    def to_rule(self) -> FilterRule:
        return FilterRule(column=self.column, relation=self.relation, value=self.value)


@dataclass
class SortRow:
    """Editable sort row."""
    column: str = "dateCreated"
    direction: SortDirection = SortDirection.DESCENDING

    def to_rule(self) -> SortRule:
        return SortRule(column=self.column, direction=self.direction)


RowT = TypeVar("RowT", FilterRow, SortRow)


class _RuleEditorSession(ABC, Generic[RowT]):
    """Shared row buffer handling for filter and sort sessions."""

    kind = "rule"

    def __init__(self, engine: GridEngine, rows: List[RowT]):
        self._engine = engine
        self._rows: List[RowT] = rows or [self._blank_row()]
        self._open = True
        logger.debug(f"Opened {self.kind} editor with {len(self._rows)} rows")

    @abstractmethod
    def _blank_row(self) -> RowT:
        """Row appended by add_row() when none is given."""
        pass

    @abstractmethod
    def collect_rules(self) -> list:
        """Rules the buffer would commit."""
        pass

    @abstractmethod
    async def submit(self) -> list:
        """Commit the buffer to the engine and close the session."""
        pass

    @abstractmethod
    async def reset(self) -> None:
        """Restore the engine's default rules and close the session."""
        pass

    def _ensure_open(self) -> None:
        if not self._open:
            raise EditorSessionClosedError(self.kind)

    @property
    def is_open(self) -> bool:
        return self._open

    @property
    def rows(self) -> List[RowT]:
        """Copies of the buffered rows."""
        return [replace(row) for row in self._rows]

    def add_row(self, row: Optional[RowT] = None) -> int:
        """Append a row (blank by default); return its index."""
        self._ensure_open()
        self._rows.append(replace(row) if row is not None else self._blank_row())
        return len(self._rows) - 1

    def remove_row(self, index: int) -> None:
        self._ensure_open()
        del self._rows[index]

    def update_row(self, index: int, **fields) -> None:
        """Change fields of one buffered row."""
        self._ensure_open()
        self._rows[index] = replace(self._rows[index], **fields)

    def cancel(self) -> None:
        """Discard the buffer without touching the engine."""
        self._ensure_open()
        self._close()
        logger.debug(f"Cancelled {self.kind} editor")

    def _close(self) -> None:
        self._open = False
        self._rows = []


class FilterEditorSession(_RuleEditorSession[FilterRow]):
    """Scratch buffer for the grid's filter rules."""

    kind = "filter"

    def __init__(self, engine: GridEngine, columns: Optional[Sequence[str]] = None):
        """Open a session seeded from the engine's committed filters.

        Args:
            engine: Grid whose filters are being edited
            columns: Filterable column ids; the first one is used for blank rows
        """
        self._default_column = columns[0] if columns else engine.config.key_field
        rows = [
            FilterRow(column=rule.column, relation=rule.relation, value=rule.value)
            for rule in engine.filters
        ]
        super().__init__(engine, rows)

    def _blank_row(self) -> FilterRow:
        return FilterRow(column=self._default_column)

    def collect_rules(self) -> List[FilterRule]:
        """Rules the buffer would commit; blank-valued rows are dropped."""
        return [row.to_rule() for row in self._rows if (row.value or "").strip()]

    async def submit(self) -> List[FilterRule]:
        """Commit non-blank rows as the engine's filters."""
        self._ensure_open()
        rules = self.collect_rules()
        self._close()
        logger.info(f"Applying {len(rules)} filter rules")
        await self._engine.set_filters(rules)
        return rules

    async def reset(self) -> None:
        """Clear every filter on the engine."""
        self._ensure_open()
        self._close()
        logger.info("Clearing filter rules")
        await self._engine.set_filters([])


class SortEditorSession(_RuleEditorSession[SortRow]):
    """Scratch buffer for the grid's sort rules."""

    kind = "sort"

    def __init__(self, engine: GridEngine, default_sorters: Optional[Sequence[SortRule]] = None):
        """Open a session seeded from the engine's committed sorters.

        Args:
            engine: Grid whose sorters are being edited
            default_sorters: Rules restored by reset() (dateCreated descending if omitted)
        """
        self._defaults = list(default_sorters) if default_sorters else list(DEFAULT_SORTERS)
        rows = [SortRow(column=rule.column, direction=rule.direction) for rule in engine.sorters]
        super().__init__(engine, rows)

    def _blank_row(self) -> SortRow:
        first = self._defaults[0]
        return SortRow(column=first.column, direction=first.direction)

    def collect_rules(self) -> List[SortRule]:
        return [row.to_rule() for row in self._rows]

    async def submit(self) -> List[SortRule]:
        """Commit every buffered row, in order, as the engine's sorters."""
        self._ensure_open()
        rules = self.collect_rules()
        self._close()
        logger.info(f"Applying {len(rules)} sort rules")
        await self._engine.set_sorters(rules)
        return rules

    async def reset(self) -> None:
        """Restore the default sort order on the engine."""
        self._ensure_open()
        self._close()
        logger.info("Restoring default sort rules")
        await self._engine.set_sorters(self._defaults)
