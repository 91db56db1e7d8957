import argparse
import importlib
import json
import logging
import sys
from typing import Dict, List, Optional

import colorlog

from wordlist.config import ServiceSettings, load_settings
from wordlist.core.errors import CatalogLoadError, StorageUnavailableError
from wordlist.core.query import AttributeCatalog, QueryParameterResolver, WordQueryEngine

try:
    # Prefer package-defined version
    from wordlist import __version__ as _PACKAGE_VERSION
except ImportError:  # pragma: no cover - defensive fallback
    _PACKAGE_VERSION = "unknown"  # type: ignore[assignment]


def setup_logging(
    verbose: bool = False, warnings_only: bool = False, errors_only: bool = False
) -> None:
    logger = logging.getLogger()
    for h in list(logger.handlers):
        logger.removeHandler(h)
    log_format = (
        "%(asctime)s:%(levelname)s:%(name)s in %(filename)s:%(funcName)s:%(lineno)d: %(message)s"
    )
    log_colors = {
        "DEBUG": "cyan",
        "INFO": "green",
        "WARNING": "yellow",
        "ERROR": "red",
        "CRITICAL": "bold_red",
    }
    # stdout carries command output
    stream_handler = colorlog.StreamHandler(sys.stderr)
    formatter = colorlog.ColoredFormatter(f"%(log_color)s{log_format}", log_colors=log_colors)
    stream_handler.setFormatter(formatter)
    logger.addHandler(stream_handler)
    if errors_only:
        logger.setLevel(logging.ERROR)
    elif warnings_only:
        logger.setLevel(logging.WARNING)
    else:
        logger.setLevel(logging.DEBUG if verbose else logging.INFO)


def _resolve_settings(args: argparse.Namespace) -> ServiceSettings:
    settings = load_settings(getattr(args, "config", None))
    return settings.with_overrides(
        data_path=getattr(args, "data_path", None),
        attributes_path=getattr(args, "attributes", None),
        derive_length=True if getattr(args, "derive_length", False) else None,
    )


def _parse_params(pairs: Optional[List[str]]) -> Dict[str, str]:
    """Parse repeated ``name=value`` arguments into a parameter mapping."""
    params: Dict[str, str] = {}
    for pair in pairs or []:
        if "=" not in pair:
            raise ValueError(f"Expected name=value, got: {pair}")
        name, value = pair.split("=", 1)
        params[name.strip()] = value
    return params


def _load_catalog(settings: ServiceSettings) -> Optional[AttributeCatalog]:
    try:
        return AttributeCatalog.load(
            settings.data_path,
            attributes_path=settings.attributes_path,
            derive_length=settings.derive_length,
        )
    except CatalogLoadError as e:
        logging.error("Failed to load attribute catalog: %s", e)
        return None


def cmd_attributes(args: argparse.Namespace) -> int:
    """Print the attribute catalog as JSON."""
    settings = _resolve_settings(args)
    catalog = _load_catalog(settings)
    if catalog is None:
        return 2
    print(json.dumps([a.to_dict() for a in catalog.all_attributes()], indent=2))
    return 0


def cmd_query(args: argparse.Namespace) -> int:
    """Resolve request parameters and print the matching page as JSON."""
    try:
        params = _parse_params(args.param)
    except ValueError as e:
        logging.error("%s", e)
        return 2
    # Explicit flags win over --param entries of the same name
    for name, value in (
        ("text", args.text),
        ("from", args.start_from),
        ("randomSeed", args.random_seed),
        ("randomCount", args.random_count),
        ("limit", args.limit),
    ):
        if value is not None:
            params[name] = value

    settings = _resolve_settings(args)
    catalog = _load_catalog(settings)
    if catalog is None:
        return 2

    resolver = QueryParameterResolver(catalog, default_limit=settings.default_limit)
    engine = WordQueryEngine(catalog, settings.data_path, derive_length=settings.derive_length)
    spec = resolver.resolve(params)
    try:
        page = engine.find_words(spec)
    except StorageUnavailableError as e:
        logging.error("Word query failed: %s", e)
        return 1

    if args.words_only:
        payload: object = page.to_dicts()
    else:
        payload = {
            "query": spec.to_dict(),
            "mode": page.mode.value,
            "words": page.to_dicts(),
            "has_more": page.has_more,
            "next_cursor": page.next_cursor,
        }
    print(json.dumps(payload, indent=2, ensure_ascii=False))
    return 0


def cmd_serve(args: argparse.Namespace) -> int:
    """Start the server.

    Default: MCP over stdio. If --port is set, run HTTP transport at host:port.
    """
    try:
        server = importlib.import_module("wordlist.interfaces.mcp.server")
    except (ModuleNotFoundError, ImportError, RuntimeError) as e:
        logging.error(
            "Failed to import server. Ensure 'mcp' is installed. Error: %s",
            e,
        )
        return 3
    settings = _resolve_settings(args)
    try:
        if args.port:
            logging.info(
                "Starting HTTP server on %s:%s (data path: %s)",
                args.host or settings.host,
                args.port,
                settings.data_path,
            )
            server.run_http(settings, host=args.host, port=int(args.port))
        else:
            logging.info("Starting MCP stdio server with data path: %s", settings.data_path)
            server.run(settings)
    except CatalogLoadError as e:
        logging.error("Failed to load attribute catalog: %s", e)
        return 2
    except KeyboardInterrupt:
        pass
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="wordlist",
        description=f"Word List query service (v{_PACKAGE_VERSION})",
    )
    p.add_argument("--verbose", action="store_true", help="Enable verbose logging")
    p.add_argument(
        "--warnings-only",
        action="store_true",
        help="Show only warnings and errors (overrides --verbose)",
    )
    p.add_argument(
        "--errors-only",
        action="store_true",
        help="Show only errors (overrides --warnings-only and --verbose)",
    )
    p.add_argument(
        "--config",
        default=None,
        help="Path to settings YAML (defaults to $WORDLIST_CONFIG or config/wordlist.yaml)",
    )
    p.add_argument(
        "--data-path",
        default=None,
        help="Word table (.csv or .parquet). Overrides data_path from the config",
    )
    p.add_argument(
        "--attributes",
        default=None,
        help="Attribute definitions YAML. When omitted, attributes are discovered from the word table",
    )
    p.add_argument(
        "--derive-length",
        action="store_true",
        help="Add a 'length' attribute computed from the word text",
    )

    sub = p.add_subparsers(dest="command", required=True)

    p_attrs = sub.add_parser("attributes", help="Print the attribute catalog")
    p_attrs.set_defaults(func=cmd_attributes)

    p_query = sub.add_parser("query", help="Run a word query and print JSON")
    p_query.add_argument(
        "--param",
        action="append",
        metavar="NAME=VALUE",
        help="Raw request parameter, e.g. lengthMin=3 (repeatable)",
    )
    p_query.add_argument("--text", default=None, help="Text filter")
    p_query.add_argument(
        "--from",
        dest="start_from",
        default=None,
        help="Pagination cursor: last word text of the previous page",
    )
    p_query.add_argument("--random-seed", default=None, help="Seed for random sampling")
    p_query.add_argument(
        "--random-count",
        default=None,
        help="Number of words to sample (0 for cursor mode)",
    )
    p_query.add_argument("--limit", default=None, help="Maximum number of words (default 100)")
    p_query.add_argument(
        "--words-only",
        action="store_true",
        help="Print only the word array, as returned by GET /api/words",
    )
    p_query.set_defaults(func=cmd_query)

    p_serve = sub.add_parser("serve", help="Run the server (MCP stdio, or HTTP with --port)")
    p_serve.add_argument(
        "--port",
        default=None,
        help="If set, run HTTP transport on the given port",
    )
    p_serve.add_argument(
        "--host",
        default=None,
        help="Host to bind for HTTP transport (default from config, 127.0.0.1)",
    )
    p_serve.set_defaults(func=cmd_serve)

    return p


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(
        verbose=bool(args.verbose),
        warnings_only=bool(getattr(args, "warnings_only", False)),
        errors_only=bool(getattr(args, "errors_only", False)),
    )
    try:
        return args.func(args)
    except (FileNotFoundError, ValueError) as e:
        logging.error("Configuration error: %s", e)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
