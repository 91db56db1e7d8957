from __future__ import annotations

import logging
from functools import partial
from typing import Dict, Mapping, Optional

import polars as pl

from ..models import AttributeRange, QuerySpecification
from .catalog import AttributeCatalog
from .scan import TEXT_COLUMN


logger = logging.getLogger(__name__)

DEFAULT_RANDOM_SEED = ""
RANK_COLUMN = "__rank"

_FNV64_OFFSET = 0xCBF29CE484222325
_FNV64_PRIME = 0x100000001B3
_MASK64 = 0xFFFFFFFFFFFFFFFF


def fnv1a_64(data: str) -> int:
    """64-bit FNV-1a hash of the UTF-8 bytes of ``data``."""
    h = _FNV64_OFFSET
    for b in data.encode("utf-8"):
        h ^= b
        h = (h * _FNV64_PRIME) & _MASK64
    return h


def sample_rank(seed: str, text: str) -> int:
    """Seeded ranking key of a word; depends only on the seed and the text."""
    return fnv1a_64(seed + text)


def effective_ranges(
    spec: QuerySpecification, catalog: AttributeCatalog
) -> Dict[str, AttributeRange]:
    """Catalog default ranges narrowed by the ranges of ``spec``."""
    out: Dict[str, AttributeRange] = {}
    for attr in catalog.all_attributes():
        out[attr.name] = spec.ranges.get(attr.name, attr.default_range)
    return out


def apply_text_filter(lf: pl.LazyFrame, text: Optional[str]) -> pl.LazyFrame:
    """Keep words containing ``text`` (case-insensitive, literal substring)."""
    if text is None:
        return lf
    return lf.filter(
        pl.col(TEXT_COLUMN).str.to_lowercase().str.contains(text.lower(), literal=True)
    )


def apply_range_filters(
    lf: pl.LazyFrame, ranges: Mapping[str, AttributeRange]
) -> pl.LazyFrame:
    if not ranges:
        return lf
    exprs = []
    for name, rng in ranges.items():
        c = pl.col(name)
        exprs.append(c >= rng.min)
        exprs.append(c <= rng.max)
    return lf.filter(pl.all_horizontal(exprs))


def apply_cursor(lf: pl.LazyFrame, cursor: Optional[str]) -> pl.LazyFrame:
    """Order by text and resume strictly after ``cursor``."""
    if cursor is not None:
        lf = lf.filter(pl.col(TEXT_COLUMN) > cursor)
    return lf.sort(TEXT_COLUMN)


def apply_random_sample(
    lf: pl.LazyFrame, seed: Optional[str], count: int
) -> pl.LazyFrame:
    """Select ``count`` words ordered by their seeded rank.

    Ties on the rank are broken by text so the order is total.
    """
    seed = DEFAULT_RANDOM_SEED if seed is None else seed
    # Python call per filtered row; cost grows with the filtered set, not the page.
    rank = pl.col(TEXT_COLUMN).map_elements(
        partial(sample_rank, seed), return_dtype=pl.UInt64
    )
    return (
        lf.with_columns(rank.alias(RANK_COLUMN))
        .sort([RANK_COLUMN, TEXT_COLUMN])
        .limit(count)
        .drop(RANK_COLUMN)
    )


def build_words_query(
    lf: pl.LazyFrame, spec: QuerySpecification, catalog: AttributeCatalog
) -> pl.LazyFrame:
    """Build the filter + mode pipeline for ``spec``; bounding is left to the caller."""
    lf = lf.select([pl.col(TEXT_COLUMN).cast(pl.Utf8, strict=False), *catalog.names()])
    lf = lf.filter(pl.col(TEXT_COLUMN).is_not_null())
    lf = apply_text_filter(lf, spec.text)
    lf = apply_range_filters(lf, effective_ranges(spec, catalog))

    if spec.random_count > 0:
        lf = apply_random_sample(lf, spec.random_seed, spec.random_count)
    else:
        lf = apply_cursor(lf, spec.cursor)

    if logger.isEnabledFor(logging.DEBUG):
        logger.debug("Query plan (%s):\n%s", spec.mode.value, lf.explain(optimized=False))
    return lf
