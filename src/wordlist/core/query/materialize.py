from __future__ import annotations

from typing import List, Sequence

import polars as pl

from ..enums import QueryMode
from ..models import ResultPage, Word
from .scan import TEXT_COLUMN, collect


def rows_to_words(df: pl.DataFrame, attribute_names: Sequence[str]) -> List[Word]:
    words: List[Word] = []
    for row in df.iter_rows(named=True):
        words.append(
            Word(
                text=row[TEXT_COLUMN],
                attributes={name: int(row[name]) for name in attribute_names},
            )
        )
    return words


def materialize_page(
    lf: pl.LazyFrame,
    *,
    limit: int,
    mode: QueryMode,
    attribute_names: Sequence[str],
) -> ResultPage:
    """Collect at most ``limit`` words, preserving the order of ``lf``.

    One extra row is fetched to tell whether more matches exist.
    """
    df = collect(lf.limit(limit + 1))
    has_more = df.height > limit
    if has_more:
        df = df.head(limit)
    return ResultPage(
        words=tuple(rows_to_words(df, attribute_names)),
        mode=mode,
        has_more=has_more,
    )
