"""Data provider contract for the grid engine.

A data provider turns a PageRequest into a PageResult asynchronously. The
grid engine only ever talks to this contract, so a local collection and a
remote query API plug into it the same way.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any, Awaitable, Callable, Iterable, Union

from .evaluator import evaluate
from .rules import PageRequest, PageResult, Record

logger = logging.getLogger(__name__)


RecordSource = Union[Iterable[Record], Callable[[], Iterable[Record]]]


class DataProvider(ABC):
    """Abstract base class for grid data providers."""

    @abstractmethod
    async def fetch(self, request: PageRequest) -> PageResult:
        """Return one page of records and the total matching count."""
        pass


class LocalDataProvider(DataProvider):
    """Client-side paging, filtering and sorting over a local collection.

    The source is either a fixed collection or a zero-argument callable
    (for example ``repository.list_records``). It is materialized afresh on
    every fetch, so each call works on its own snapshot and concurrent calls
    never share state.
    """

    def __init__(self, source: RecordSource):
        self._source = source

    def _materialize(self) -> list:
        source = self._source() if callable(self._source) else self._source
        return [dict(record) for record in source]

    async def fetch(self, request: PageRequest) -> PageResult:
        """Filter, sort and slice the current contents of the source."""
        records = self._materialize()
        processed = evaluate(records, request.filters, request.sorters)

        total_count = len(processed)
        page = processed[request.offset:request.offset + request.page_size]

        logger.debug(
            f"Local fetch page={request.page} size={request.page_size}: "
            f"{len(page)} of {total_count} records (source had {len(records)})"
        )
        return PageResult(data=page, total_count=total_count)


class CallbackDataProvider(DataProvider):
    """Adapter for any async callable that does its own querying.

    The callable may return a PageResult, a mapping with ``data`` and
    ``totalCount`` (or ``total_count``) keys, or a ``(data, total_count)``
    tuple. This is the shape a remote service adapter takes.
    """

    def __init__(self, callback: Callable[[PageRequest], Awaitable[Any]]):
        self._callback = callback

    async def fetch(self, request: PageRequest) -> PageResult:
        raw = await self._callback(request)
        return self._normalize(raw)

    @staticmethod
    def _normalize(raw: Any) -> PageResult:
        if isinstance(raw, PageResult):
            return raw

        if isinstance(raw, Mapping):
            data = raw.get("data")
            total = raw.get("totalCount", raw.get("total_count"))
        elif isinstance(raw, tuple) and len(raw) == 2:
            data, total = raw
        else:
            raise TypeError(f"Unsupported data provider response: {type(raw).__name__}")

        data = list(data) if isinstance(data, (list, tuple)) else []
        return PageResult(data=data, total_count=max(int(total or 0), 0))
