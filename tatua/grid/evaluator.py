"""Pure filter and sort evaluation over record collections.

Both functions return new lists and never mutate their input. Unknown
columns are not errors: they resolve to a missing value, which sorts lowest
and compares as the empty string in filters.
"""

import logging
import math
from collections.abc import Mapping
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Iterable, List, Optional, Sequence, Tuple

from .rules import FilterRelation, FilterRule, Record, SortRule

logger = logging.getLogger(__name__)

_MISSING_KEY: Tuple = (0,)


def resolve_field(record: Mapping, column: str) -> Any:
    """Look up ``column`` in a record.

    An exact key always wins. Otherwise a dotted column such as
    ``"customer.name"`` walks nested mappings. Anything unresolvable is None.
    """
    if column in record:
        return record[column]
    if "." not in column:
        return None

    value: Any = record
    for part in column.split("."):
        if isinstance(value, Mapping) and part in value:
            value = value[part]
        else:
            return None
    return value


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def matches_rule(record: Mapping, rule: FilterRule) -> bool:
    """Check a single record against a single filter rule, case-insensitively."""
    field_value = _as_text(resolve_field(record, rule.column)).lower()
    wanted = (rule.value or "").lower()

    if rule.relation == FilterRelation.EQUALS:
        return field_value == wanted
    if rule.relation == FilterRelation.CONTAINS:
        return wanted in field_value
    if rule.relation == FilterRelation.STARTS_WITH:
        return field_value.startswith(wanted)
    if rule.relation == FilterRelation.ENDS_WITH:
        return field_value.endswith(wanted)
    return True


def filter_records(records: Iterable[Record], rules: Sequence[FilterRule]) -> List[Record]:
    """Keep only records satisfying every rule (logical AND)."""
    records = list(records)
    if not rules:
        return records
    return [record for record in records if all(matches_rule(record, rule) for rule in rules)]


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, Decimal):
        return value.is_nan()
    return isinstance(value, float) and math.isnan(value)


def _kind(value: Any) -> str:
    if isinstance(value, bool):
        return "bool"
    if isinstance(value, (int, float, Decimal)):
        return "number"
    if isinstance(value, datetime):
        # Naive and aware datetimes cannot be compared with each other
        return "datetime-aware" if value.tzinfo is not None else "datetime"
    if isinstance(value, date):
        return "date"
    if isinstance(value, str):
        return "str"
    return "other"


def _needs_text_coercion(values: Sequence[Any]) -> bool:
    kinds = {_kind(value) for value in values if not _is_missing(value)}
    return len(kinds) > 1 or "other" in kinds


def _sort_keys(records: Sequence[Record], column: str) -> List[Tuple]:
    values = [resolve_field(record, column) for record in records]
    coerce = _needs_text_coercion(values)
    if coerce:
        logger.debug(f"Column '{column}' holds mixed types; comparing as strings")

    keys: List[Tuple] = []
    for value in values:
        if _is_missing(value):
            keys.append(_MISSING_KEY)
        else:
            keys.append((1, _as_text(value) if coerce else value))
    return keys


def sort_records(records: Iterable[Record], rules: Sequence[SortRule]) -> List[Record]:
    """Order records by a tie-break chain of sort rules.

    The first rule has the highest precedence. Python's sort is stable, so
    applying the rules from last to first yields the chained ordering and
    keeps records that tie on every rule in their input order.
    """
    result = list(records)
    if not rules:
        return result

    for rule in reversed(rules):
        keys = _sort_keys(result, rule.column)
        order = sorted(range(len(result)), key=keys.__getitem__, reverse=rule.descending)
        result = [result[index] for index in order]
    return result


def evaluate(
    records: Iterable[Record],
    filters: Optional[Sequence[FilterRule]] = None,
    sorters: Optional[Sequence[SortRule]] = None
) -> List[Record]:
    """Filter then sort, the order every provider applies them in."""
    return sort_records(filter_records(records, filters or []), sorters or [])
