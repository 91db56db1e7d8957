"""Exception types raised by the query core."""

from __future__ import annotations


class WordListError(Exception):
    """Base class for word list errors."""


class CatalogLoadError(WordListError):
    """The attribute catalog could not be loaded.

    Raised at startup; the service must not begin serving without a catalog.
    """


class StorageUnavailableError(WordListError):
    """The word table could not be read.

    Transient per request: callers surface it as a failure, never as an
    empty result.
    """


__all__ = ["WordListError", "CatalogLoadError", "StorageUnavailableError"]
