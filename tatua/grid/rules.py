"""Rule and paging models for the data grid.

This module defines the immutable sort and filter rules the grid engine
owns, and the page request/result pair exchanged with data providers.
"""

from enum import Enum
from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field


Record = Dict[str, Any]


class SortDirection(str, Enum):
    """Sort direction for a single sort rule."""
    ASCENDING = "asc"
    DESCENDING = "desc"

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            lowered = value.strip().lower()
            aliases = {"ascending": "asc", "descending": "desc"}
            lowered = aliases.get(lowered, lowered)
            for member in cls:
                if member.value == lowered:
                    return member
        return None


class FilterRelation(str, Enum):
    """Relation between a record field and a filter value."""
    EQUALS = "equals"
    CONTAINS = "contains"
    STARTS_WITH = "startsWith"
    ENDS_WITH = "endsWith"

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            lowered = value.strip().lower()
            for member in cls:
                if member.value.lower() == lowered:
                    return member
        return None


class SortRule(BaseModel):
    """One link of a sort tie-break chain."""

    model_config = ConfigDict(frozen=True)

    column: str = Field(..., description="Record field name the rule sorts on")
    direction: SortDirection = Field(
        default=SortDirection.ASCENDING,
        description="Ascending or descending order"
    )

    @property
    def descending(self) -> bool:
        return self.direction == SortDirection.DESCENDING

    def reversed(self) -> "SortRule":
        """Return the same rule with the opposite direction."""
        flipped = SortDirection.ASCENDING if self.descending else SortDirection.DESCENDING
        return SortRule(column=self.column, direction=flipped)


class FilterRule(BaseModel):
    """A single case-insensitive string predicate over one column."""

    model_config = ConfigDict(frozen=True)

    column: str = Field(..., description="Record field name the rule inspects")
    relation: FilterRelation = Field(
        default=FilterRelation.CONTAINS,
        description="How the field value is compared with the rule value"
    )
    value: str = Field(default="", description="Value compared against the field")


DEFAULT_SORTERS: List[SortRule] = [
    SortRule(column="dateCreated", direction=SortDirection.DESCENDING)
]


class PageRequest(BaseModel):
    """Everything a data provider needs to produce one page."""

    model_config = ConfigDict(frozen=True)

    page: int = Field(default=1, ge=1, description="1-based page number")
    page_size: int = Field(default=8, ge=1, description="Maximum records per page")
    sorters: List[SortRule] = Field(default_factory=list)
    filters: List[FilterRule] = Field(default_factory=list)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


class PageResult(BaseModel):
    """One page of records plus the size of the full filtered collection."""

    data: List[Record] = Field(default_factory=list)
    total_count: int = Field(default=0, ge=0)


def parse_sort_rule(token: str) -> SortRule:
    """Parse ``column[:direction]`` into a SortRule.

    >>> parse_sort_rule("dateCreated:desc").direction
    <SortDirection.DESCENDING: 'desc'>
    """
    column, _, direction = token.partition(":")
    if not column.strip():
        raise ValueError(f"Sort rule '{token}' has no column")
    return SortRule(
        column=column.strip(),
        direction=SortDirection(direction) if direction else SortDirection.ASCENDING
    )


def parse_filter_rule(token: str) -> FilterRule:
    """Parse ``column:relation:value`` into a FilterRule.

    The value may itself contain colons; only the first two separate fields.
    """
    parts = token.split(":", 2)
    if len(parts) != 3 or not parts[0].strip():
        raise ValueError(f"Filter rule '{token}' must look like column:relation:value")
    column, relation, value = parts
    return FilterRule(column=column.strip(), relation=FilterRelation(relation), value=value)
