"""Core enumerations used across the package."""

from __future__ import annotations

from enum import Enum


class QueryMode(str, Enum):
    """Retrieval mode chosen for a query.

    Values are strings to ease serialization in tool and CLI output.
    """

    CURSOR = "cursor"
    RANDOM_SAMPLE = "random_sample"


__all__ = ["QueryMode"]
