"""Core query engine public API.

Exposes the catalog, parameter resolution and the query engine used by the
CLI and server layers. Storage is a Polars LazyFrame scanned from a CSV or
Parquet word table.
"""

from .catalog import AttributeCatalog
from .engine import WordQueryEngine
from .materialize import materialize_page
from .plan import build_words_query, fnv1a_64, sample_rank
from .resolve import DEFAULT_LIMIT, QueryParameterResolver, parse_int
from .scan import discover_attribute_columns, scan_words

__all__ = [
    "AttributeCatalog",
    "WordQueryEngine",
    "QueryParameterResolver",
    "DEFAULT_LIMIT",
    "parse_int",
    "scan_words",
    "discover_attribute_columns",
    "build_words_query",
    "materialize_page",
    "fnv1a_64",
    "sample_rank",
]
