"""Shared pytest fixtures: temporary word tables and catalogs."""

from pathlib import Path
from typing import Dict, List

import polars as pl
import pytest

from wordlist.core.query import AttributeCatalog, QueryParameterResolver, WordQueryEngine


def make_words(count: int = 50) -> Dict[str, List]:
    """Deterministic word table columns: text plus two integer attributes."""
    texts = [f"word{i:02d}" for i in range(count)]
    return {
        "text": texts,
        "score": [i % 7 for i in range(count)],
        "tone": [(i % 5) - 2 for i in range(count)],
    }


def write_attributes_yaml(path: Path, attributes: List[Dict]) -> Path:
    lines = ["attributes:"]
    for a in attributes:
        lines.append(f"  - {{name: {a['name']}, min: {a['min']}, max: {a['max']}}}")
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path


@pytest.fixture
def words_csv(tmp_path: Path) -> Path:
    """Fifty words with ``score`` in 0..6 and ``tone`` in -2..2."""
    path = tmp_path / "words.csv"
    pl.DataFrame(make_words()).write_csv(path)
    return path


@pytest.fixture
def animals_csv(tmp_path: Path) -> Path:
    path = tmp_path / "animals.csv"
    pl.DataFrame(
        {
            "text": ["cat", "dog", "elephant"],
            "length": [3, 3, 8],
        }
    ).write_csv(path)
    return path


@pytest.fixture
def animals_attributes(tmp_path: Path) -> Path:
    return write_attributes_yaml(
        tmp_path / "attributes.yaml", [{"name": "length", "min": 1, "max": 20}]
    )


@pytest.fixture
def catalog(words_csv: Path) -> AttributeCatalog:
    return AttributeCatalog.load(words_csv)


@pytest.fixture
def resolver(catalog: AttributeCatalog) -> QueryParameterResolver:
    return QueryParameterResolver(catalog)


@pytest.fixture
def engine(catalog: AttributeCatalog, words_csv: Path) -> WordQueryEngine:
    return WordQueryEngine(catalog, words_csv)
