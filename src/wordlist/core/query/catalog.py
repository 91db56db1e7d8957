"""Attribute catalog: the fixed, ordered set of word attributes.

The catalog is loaded once at startup, either from an attributes YAML file
or by scanning the word table for integer columns and their min/max, and is
read-only afterwards.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional, Tuple, Union

import polars as pl
import yaml

from ..errors import CatalogLoadError, StorageUnavailableError
from ..models import Attribute
from .scan import collect, discover_attribute_columns, scan_words


logger = logging.getLogger(__name__)


class AttributeCatalog:
    """Immutable, name-ordered collection of Attributes."""

    __slots__ = ("_attributes", "_by_name")

    def __init__(self, attributes: Iterable[Attribute]) -> None:
        ordered = sorted(attributes, key=lambda a: a.name)
        if not ordered:
            raise CatalogLoadError("Attribute catalog is empty")
        by_name: Dict[str, Attribute] = {}
        for attr in ordered:
            if attr.name in by_name:
                raise CatalogLoadError(f"Duplicate attribute: {attr.name}")
            by_name[attr.name] = attr
        self._attributes: Tuple[Attribute, ...] = tuple(ordered)
        self._by_name = by_name

    @classmethod
    def load(
        cls,
        data_path: Union[str, Path],
        *,
        attributes_path: Optional[Union[str, Path]] = None,
        derive_length: bool = False,
    ) -> "AttributeCatalog":
        """Load the catalog from an attributes file or from the word table.

        Raises:
            CatalogLoadError: If the source is unreachable or yields no attributes.
        """
        try:
            lf = scan_words(data_path, derive_length=derive_length)
        except StorageUnavailableError as e:
            raise CatalogLoadError(str(e)) from e

        if attributes_path is not None:
            catalog = cls.from_yaml(attributes_path)
            try:
                columns = set(lf.collect_schema().names())
            except (pl.exceptions.PolarsError, OSError) as e:
                raise CatalogLoadError(str(e)) from e
            missing = [n for n in catalog.names() if n not in columns]
            if missing:
                raise CatalogLoadError(
                    f"Attributes missing from word table: {', '.join(missing)}"
                )
        else:
            catalog = cls.from_frame(lf)
        logger.info(
            "Loaded %d attributes: %s",
            len(catalog),
            ", ".join(a.name for a in catalog.all_attributes()),
        )
        return catalog

    @classmethod
    def from_yaml(cls, attributes_path: Union[str, Path]) -> "AttributeCatalog":
        """Load attribute definitions from YAML.

        Expected layout::

            attributes:
              - {name: length, min: 1, max: 20}
        """
        path = Path(attributes_path)
        if not path.exists():
            raise CatalogLoadError(f"Attributes file not found: {path}")
        try:
            with path.open("r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise CatalogLoadError(f"Invalid attributes file {path}: {e}") from e

        if not isinstance(data, dict):
            raise CatalogLoadError(f"Attributes file {path} must be a mapping")
        entries = data.get("attributes", []) or []
        attributes: List[Attribute] = []
        for item in entries:
            try:
                attributes.append(
                    Attribute(
                        name=str(item["name"]),
                        min=int(item["min"]),
                        max=int(item["max"]),
                    )
                )
            except (KeyError, TypeError, ValueError) as e:
                raise CatalogLoadError(f"Malformed attribute entry in {path}: {item!r}") from e
        return cls(attributes)

    @classmethod
    def from_frame(cls, lf: pl.LazyFrame) -> "AttributeCatalog":
        """Discover attributes as the integer columns of the word table.

        The domain of each attribute is the min/max found in the data; an
        empty table with typed columns (Parquet) yields a 0..0 domain.
        """
        try:
            columns = discover_attribute_columns(lf)
        except StorageUnavailableError as e:
            raise CatalogLoadError(str(e)) from e
        if not columns:
            raise CatalogLoadError("Word table has no integer attribute columns")

        exprs = []
        for c in columns:
            exprs.append(pl.col(c).min().alias(f"{c}__min"))
            exprs.append(pl.col(c).max().alias(f"{c}__max"))
        try:
            row = collect(lf.select(exprs)).row(0, named=True)
        except StorageUnavailableError as e:
            raise CatalogLoadError(str(e)) from e

        return cls(
            Attribute(
                name=c,
                min=int(row[f"{c}__min"] or 0),
                max=int(row[f"{c}__max"] or 0),
            )
            for c in columns
        )

    def all_attributes(self) -> Tuple[Attribute, ...]:
        """Attributes ordered by name ascending."""
        return self._attributes

    def get(self, name: str) -> Optional[Attribute]:
        return self._by_name.get(name)

    def names(self) -> List[str]:
        return [a.name for a in self._attributes]

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    def __iter__(self) -> Iterator[Attribute]:
        return iter(self._attributes)

    def __len__(self) -> int:
        return len(self._attributes)

    def __repr__(self) -> str:
        return f"AttributeCatalog({list(self._attributes)!r})"
