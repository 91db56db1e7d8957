from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional, Sequence, Union

import polars as pl

from ..errors import StorageUnavailableError


logger = logging.getLogger(__name__)

TEXT_COLUMN = "text"
LENGTH_COLUMN = "length"
SUPPORTED_SUFFIXES = (".csv", ".parquet")


def resolve_words_path(path: Union[str, Path]) -> Path:
    """Return the word table path or raise if it cannot be read."""
    p = Path(path)
    if not p.exists():
        raise StorageUnavailableError(f"Word table not found: {p}")
    if p.suffix.lower() not in SUPPORTED_SUFFIXES:
        raise StorageUnavailableError(
            f"Unsupported word table format: {p.suffix or p.name} (expected .csv or .parquet)"
        )
    return p


def scan_words(
    path: Union[str, Path],
    *,
    derive_length: bool = False,
    attribute_columns: Optional[Sequence[str]] = None,
) -> pl.LazyFrame:
    """Return a LazyFrame scanning the word table without materializing.

    With ``derive_length`` a ``length`` column (character count of ``text``)
    is added when the table does not already carry one. ``attribute_columns``
    are cast to Int64; a header-only CSV infers every column as String.
    """
    p = resolve_words_path(path)
    try:
        if p.suffix.lower() == ".parquet":
            lf = pl.scan_parquet(str(p))
        else:
            lf = pl.scan_csv(str(p), has_header=True)
        columns = lf.collect_schema().names()
    except (pl.exceptions.PolarsError, OSError) as e:
        raise StorageUnavailableError(f"Failed to scan word table {p}: {e}") from e

    if TEXT_COLUMN not in columns:
        raise StorageUnavailableError(f"Word table {p} has no '{TEXT_COLUMN}' column")
    if derive_length and LENGTH_COLUMN not in columns:
        lf = lf.with_columns(
            pl.col(TEXT_COLUMN).str.len_chars().cast(pl.Int64).alias(LENGTH_COLUMN)
        )
    if attribute_columns:
        lf = lf.with_columns(
            [pl.col(c).cast(pl.Int64) for c in attribute_columns if c in columns]
        )
    logger.debug("Scanning word table %s", p)
    return lf


def discover_attribute_columns(lf: pl.LazyFrame) -> List[str]:
    """Integer-typed columns other than the text key."""
    try:
        schema = lf.collect_schema()
    except (pl.exceptions.PolarsError, OSError) as e:
        raise StorageUnavailableError(f"Failed to read word table schema: {e}") from e
    return [
        name
        for name, dtype in schema.items()
        if name != TEXT_COLUMN and dtype.is_integer()
    ]


def collect(lf: pl.LazyFrame) -> pl.DataFrame:
    """Collect a LazyFrame, surfacing storage failures as StorageUnavailableError."""
    try:
        return lf.collect()
    except (pl.exceptions.PolarsError, OSError) as e:
        raise StorageUnavailableError(f"Word table query failed: {e}") from e
