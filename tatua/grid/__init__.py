"""Data grid engine for Tatua.

This package turns a record collection into a paginated, sorted and
filtered view, driven by any asynchronous data provider.
"""

from .rules import (
    DEFAULT_SORTERS,
    FilterRelation,
    FilterRule,
    PageRequest,
    PageResult,
    SortDirection,
    SortRule,
)
from .evaluator import filter_records, sort_records
from .providers import CallbackDataProvider, DataProvider, LocalDataProvider
from .engine import GridConfig, GridEngine, GridSnapshot, GridStatus
from .sessions import FilterEditorSession, FilterRow, SortEditorSession, SortRow

__all__ = [
    "DEFAULT_SORTERS",
    "FilterRelation",
    "FilterRule",
    "PageRequest",
    "PageResult",
    "SortDirection",
    "SortRule",
    "filter_records",
    "sort_records",
    "CallbackDataProvider",
    "DataProvider",
    "LocalDataProvider",
    "GridConfig",
    "GridEngine",
    "GridSnapshot",
    "GridStatus",
    "FilterEditorSession",
    "FilterRow",
    "SortEditorSession",
    "SortRow",
]
