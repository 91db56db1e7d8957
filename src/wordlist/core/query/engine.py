"""Word query engine.

Executes a QuerySpecification against the word table: text and range
filtering, then either cursor pagination ordered by text or seeded random
sampling, then bounding to the requested limit.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Optional, Union

import polars as pl

from ..models import QuerySpecification, ResultPage
from .catalog import AttributeCatalog
from .materialize import materialize_page
from .plan import build_words_query
from .scan import scan_words


logger = logging.getLogger(__name__)


class WordQueryEngine:
    """Resolve QuerySpecifications into ResultPages.

    The engine holds no per-request state; one instance serves concurrent
    requests. Each call scans the word table afresh, so storage failures
    surface on the request that hit them.

    Args:
        catalog: The loaded AttributeCatalog.
        data_path: Path to the CSV/Parquet word table.
        derive_length: Add a ``length`` column computed from the text.
    """

    def __init__(
        self,
        catalog: AttributeCatalog,
        data_path: Union[str, Path],
        *,
        derive_length: bool = False,
    ) -> None:
        self.catalog = catalog
        self.data_path = Path(data_path)
        self.derive_length = derive_length

    def scan(self) -> pl.LazyFrame:
        return scan_words(
            self.data_path,
            derive_length=self.derive_length,
            attribute_columns=self.catalog.names(),
        )

    def find_words(
        self, spec: QuerySpecification, *, lf: Optional[pl.LazyFrame] = None
    ) -> ResultPage:
        """Run ``spec`` and return a page of at most ``spec.limit`` words.

        Raises:
            StorageUnavailableError: If the word table cannot be read.
        """
        source = self.scan() if lf is None else lf
        query = build_words_query(source, spec, self.catalog)
        page = materialize_page(
            query,
            limit=spec.limit,
            mode=spec.mode,
            attribute_names=self.catalog.names(),
        )
        logger.info(
            "find_words mode=%s returned %d words (has_more=%s)",
            spec.mode.value,
            len(page),
            page.has_more,
        )
        return page

    async def find_words_async(self, spec: QuerySpecification) -> ResultPage:
        """Run ``find_words`` in a worker thread.

        Cancelling the awaiting task abandons the result; no partial page is
        ever returned.
        """
        return await asyncio.to_thread(self.find_words, spec)
