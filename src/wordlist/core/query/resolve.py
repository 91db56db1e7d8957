"""Request parameter resolution.

Turns raw, loosely-typed request parameters into a QuerySpecification.
Resolution never fails: malformed numbers degrade to 0 and unknown
parameters are ignored.
"""

from __future__ import annotations

import logging
import re
from typing import Dict, Mapping, Optional

from ..models import AttributeRange, QuerySpecification
from .catalog import AttributeCatalog


logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 100

TEXT_PARAM = "text"
CURSOR_PARAM = "from"
RANDOM_SEED_PARAM = "randomSeed"
RANDOM_COUNT_PARAM = "randomCount"
LIMIT_PARAM = "limit"

_INT_PATTERN = re.compile(r"^\s*[+-]?[0-9]+\s*$")
_INT32_MIN = -(2**31)
_INT32_MAX = 2**31 - 1


def parse_int(value: Optional[str]) -> Optional[int]:
    """Parse an integer parameter.

    Returns None when the parameter is absent and 0 when it is present but
    not a 32-bit integer.

    Examples:
        >>> parse_int(None) is None
        True
        >>> parse_int(" 42 ")
        42
        >>> parse_int("abc")
        0
    """
    if value is None:
        return None
    text = str(value)
    if not _INT_PATTERN.match(text):
        return 0
    number = int(text)
    if number < _INT32_MIN or number > _INT32_MAX:
        return 0
    return number


def get_string(params: Mapping[str, str], name: str) -> Optional[str]:
    value = params.get(name)
    return None if value is None else str(value)


class QueryParameterResolver:
    """Resolve raw parameters against an AttributeCatalog."""

    def __init__(self, catalog: AttributeCatalog, *, default_limit: int = DEFAULT_LIMIT) -> None:
        self.catalog = catalog
        self.default_limit = default_limit

    def resolve_ranges(self, params: Mapping[str, str]) -> Dict[str, AttributeRange]:
        """Resolve ``{name}Min``/``{name}Max`` for every catalog attribute.

        Only ranges that differ from the catalog default are returned.
        """
        ranges: Dict[str, AttributeRange] = {}
        for attr in self.catalog.all_attributes():
            lo = parse_int(params.get(attr.min_parameter))
            hi = parse_int(params.get(attr.max_parameter))
            resolved = AttributeRange(
                attr.min if lo is None else lo,
                attr.max if hi is None else hi,
            )
            if resolved != attr.default_range:
                ranges[attr.name] = resolved
        return ranges

    def resolve(self, params: Mapping[str, str]) -> QuerySpecification:
        random_count = parse_int(params.get(RANDOM_COUNT_PARAM))
        limit = parse_int(params.get(LIMIT_PARAM))
        spec = QuerySpecification(
            text=get_string(params, TEXT_PARAM),
            ranges=self.resolve_ranges(params),
            cursor=get_string(params, CURSOR_PARAM),
            random_seed=get_string(params, RANDOM_SEED_PARAM),
            random_count=max(0, random_count or 0),
            limit=max(0, self.default_limit if limit is None else limit),
        )
        logger.debug("Resolved query: %s", spec.to_dict())
        return spec
