"""Word List — attribute-filtered word queries over a Polars word table.

The package exposes a small query core (catalog, parameter resolution and
the query engine) plus CLI and MCP/HTTP interfaces built on top of it.
"""

__all__ = [
    "__version__",
]

__version__ = "0.1.0"
