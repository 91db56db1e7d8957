"""Query data models.

This module defines the value types passed between the query layers:
- Attribute: a named integer dimension with its catalog domain
- AttributeRange: a per-request narrowing of one attribute
- QuerySpecification: the normalized description of one request
- Word: one row of the word table
- ResultPage: the bounded, ordered result of a query
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Iterator, Mapping, Optional, Tuple

from .enums import QueryMode


@dataclass(frozen=True)
class AttributeRange:
    """Inclusive integer range.

    ``min > max`` is allowed and matches nothing.
    """

    min: int
    max: int

    @property
    def is_inverted(self) -> bool:
        return self.min > self.max

    def to_dict(self) -> Dict[str, int]:
        return {"min": self.min, "max": self.max}


@dataclass(frozen=True)
class Attribute:
    """A filterable word attribute and its domain-wide bounds.

    Attributes:
        name: Column name of the attribute in the word table.
        min: Smallest value in the domain.
        max: Largest value in the domain.

    Examples:
        >>> Attribute(name="length", min=1, max=20).default_range
        AttributeRange(min=1, max=20)
    """

    name: str
    min: int
    max: int

    @property
    def default_range(self) -> AttributeRange:
        return AttributeRange(self.min, self.max)

    @property
    def min_parameter(self) -> str:
        return f"{self.name}Min"

    @property
    def max_parameter(self) -> str:
        return f"{self.name}Max"

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "min": self.min, "max": self.max}


@dataclass(frozen=True)
class QuerySpecification:
    """Normalized, fully-typed description of one word query.

    Attributes:
        text: Text filter, or None for no text filter.
        ranges: Per-attribute ranges that differ from the catalog default.
        cursor: Last seen word text; results resume after it.
        random_seed: Seed for random sampling, or None for the default seed.
        random_count: Number of words to sample; 0 selects cursor mode.
        limit: Maximum number of words returned.
    """

    text: Optional[str] = None
    ranges: Mapping[str, AttributeRange] = field(default_factory=dict)
    cursor: Optional[str] = None
    random_seed: Optional[str] = None
    random_count: int = 0
    limit: int = 100

    def __post_init__(self) -> None:
        """Freeze ranges and validate counts."""
        if self.random_count < 0:
            raise ValueError(f"random_count must be >= 0, got {self.random_count}")
        if self.limit < 0:
            raise ValueError(f"limit must be >= 0, got {self.limit}")
        object.__setattr__(self, "ranges", MappingProxyType(dict(self.ranges)))

    @property
    def mode(self) -> QueryMode:
        return QueryMode.RANDOM_SAMPLE if self.random_count > 0 else QueryMode.CURSOR

    def to_dict(self) -> Dict[str, Any]:
        return {
            "text": self.text,
            "ranges": {name: r.to_dict() for name, r in sorted(self.ranges.items())},
            "from": self.cursor,
            "randomSeed": self.random_seed,
            "randomCount": self.random_count,
            "limit": self.limit,
        }


@dataclass(frozen=True)
class Word:
    """A word and its attribute values, one per catalog attribute."""

    text: str
    attributes: Mapping[str, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        # types are not tracked by this service
        return {"text": self.text, "types": [], "attributes": dict(self.attributes)}


@dataclass(frozen=True)
class ResultPage:
    """Ordered page of words returned by a query.

    ``has_more`` is True when matches exist beyond ``limit``. ``next_cursor``
    is only set in cursor mode, where it can be passed back as ``from``.
    """

    words: Tuple[Word, ...]
    mode: QueryMode
    has_more: bool = False

    def __len__(self) -> int:
        return len(self.words)

    def __iter__(self) -> Iterator[Word]:
        return iter(self.words)

    @property
    def next_cursor(self) -> Optional[str]:
        if self.mode is QueryMode.CURSOR and self.has_more and self.words:
            return self.words[-1].text
        return None

    def to_dicts(self) -> list[Dict[str, Any]]:
        return [w.to_dict() for w in self.words]


__all__ = ["Attribute", "AttributeRange", "QuerySpecification", "Word", "ResultPage"]
