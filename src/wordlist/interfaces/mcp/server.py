"""
Word list server exposing the query core over MCP tools and plain HTTP.

HTTP routes (served by the streamable HTTP app):
 - GET /api/words
 - GET /api/attributes

MCP tools:
 - find_words
 - list_attributes
"""

from __future__ import annotations

import asyncio
import logging
import sys
from typing import Any, Dict, Optional, Tuple

from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from wordlist.config import ServiceSettings
from wordlist.core.errors import StorageUnavailableError
from wordlist.core.query import AttributeCatalog, QueryParameterResolver, WordQueryEngine

try:
    from mcp.server.fastmcp import FastMCP
except ImportError as exc:
    raise RuntimeError(
        "The 'mcp' package is required for the server. Install with: pip install mcp"
    ) from exc


_SERVER = FastMCP("wordlist")

# Set once by configure() before serving; read-only afterwards.
_CATALOG: Optional[AttributeCatalog] = None
_RESOLVER: Optional[QueryParameterResolver] = None
_ENGINE: Optional[WordQueryEngine] = None

# stdout belongs to the MCP stdio protocol
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stderr)],
)
logger = logging.getLogger(__name__)


def configure(settings: ServiceSettings) -> AttributeCatalog:
    """Load the attribute catalog and build the resolver and engine.

    Raises:
        CatalogLoadError: If the catalog cannot be loaded; the server must not start.
    """
    global _CATALOG, _RESOLVER, _ENGINE
    catalog = AttributeCatalog.load(
        settings.data_path,
        attributes_path=settings.attributes_path,
        derive_length=settings.derive_length,
    )
    _CATALOG = catalog
    _RESOLVER = QueryParameterResolver(catalog, default_limit=settings.default_limit)
    _ENGINE = WordQueryEngine(
        catalog, settings.data_path, derive_length=settings.derive_length
    )
    logger.info("Word table: %s", settings.data_path)
    return catalog


def _services() -> Tuple[AttributeCatalog, QueryParameterResolver, WordQueryEngine]:
    if _CATALOG is None or _RESOLVER is None or _ENGINE is None:
        raise RuntimeError("Server is not configured; call configure() first")
    return _CATALOG, _RESOLVER, _ENGINE


# -------------------------
# MARK: HTTP routes
# -------------------------


def _raw_params(request: Request) -> Dict[str, str]:
    """Flatten query parameters; repeated names are comma-joined."""
    qp = request.query_params
    return {name: ",".join(qp.getlist(name)) for name in qp.keys()}


@_SERVER.custom_route("/api/words", methods=["GET"])
async def words_endpoint(request: Request) -> Response:
    """Return a JSON array of matching words."""
    _, resolver, engine = _services()
    spec = resolver.resolve(_raw_params(request))
    try:
        page = await engine.find_words_async(spec)
    except StorageUnavailableError as e:
        logger.error("Word query failed: %s", e)
        return JSONResponse({"error": "Word storage unavailable"}, status_code=503)
    return JSONResponse(page.to_dicts())


@_SERVER.custom_route("/api/attributes", methods=["GET"])
async def attributes_endpoint(request: Request) -> Response:
    catalog, _, _ = _services()
    return JSONResponse([a.to_dict() for a in catalog.all_attributes()])


# -------------------------
# MARK: MCP tools
# -------------------------


@_SERVER.tool(
    "find_words",
    description=(
        "Find words by text and attribute ranges. Parameters use the HTTP names: "
        "text, from, randomSeed, randomCount, limit and <attribute>Min/<attribute>Max."
    ),
)
async def find_words(params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    _, resolver, engine = _services()
    spec = resolver.resolve(params or {})
    try:
        page = await engine.find_words_async(spec)
    except StorageUnavailableError as e:
        logger.error("Error in find_words: %s", e)
        return {"error": str(e)}
    return {
        "query": spec.to_dict(),
        "mode": page.mode.value,
        "words": page.to_dicts(),
        "has_more": page.has_more,
        "next_cursor": page.next_cursor,
    }


@_SERVER.tool("list_attributes", description="List word attributes and their domains.")
async def list_attributes() -> Dict[str, Any]:
    catalog, _, _ = _services()
    return {"attributes": [a.to_dict() for a in catalog.all_attributes()]}


# Transport functions
def run(settings: ServiceSettings) -> None:
    """Run the MCP server over stdio."""
    configure(settings)
    asyncio.run(_SERVER.run_stdio_async())


async def _run_http(host: str, port: int) -> None:
    """Start the HTTP server with explicit uvicorn configuration."""
    try:
        import uvicorn
    except ImportError:
        raise RuntimeError("uvicorn is required for HTTP mode: pip install uvicorn")

    app = _SERVER.streamable_http_app()
    config = uvicorn.Config(
        app,
        host=host,
        port=int(port),
        log_level="info",
    )
    server = uvicorn.Server(config)
    await server.serve()


def run_http(settings: ServiceSettings, *, host: Optional[str] = None, port: Optional[int] = None) -> None:
    """Run the server over HTTP (MCP streamable HTTP plus the /api routes)."""
    configure(settings)
    host = host or settings.host
    port = int(port or settings.port)
    logger.info("Starting HTTP server on %s:%d", host, port)
    asyncio.run(_run_http(host, port))
