"""Service configuration.

Defaults live in the constants below; a YAML file (``config/wordlist.yaml``
by default, or the path in ``WORDLIST_CONFIG``) can override them. CLI flags
take precedence over both.

Keys:
    - data_path: CSV or Parquet word table
    - attributes_path: optional YAML attribute definitions; when omitted,
      attributes are discovered from the word table
    - derive_length: add a ``length`` attribute computed from the text
    - default_limit: page size when ``limit`` is absent
    - host, port: HTTP transport bind address
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from .core.query.plan import DEFAULT_RANDOM_SEED
from .core.query.resolve import DEFAULT_LIMIT


logger = logging.getLogger(__name__)

# ============================================================================
# DEFAULTS
# ============================================================================

CONFIG_ENV_VAR = "WORDLIST_CONFIG"
DEFAULT_CONFIG_PATH = Path("config/wordlist.yaml")
DEFAULT_DATA_PATH = Path("data/words.csv")
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8765


@dataclass(frozen=True)
class ServiceSettings:
    """Resolved service settings."""

    data_path: Path = DEFAULT_DATA_PATH
    attributes_path: Optional[Path] = None
    derive_length: bool = False
    default_limit: int = DEFAULT_LIMIT
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT

    def with_overrides(self, **overrides: Any) -> "ServiceSettings":
        """Return a copy with non-None overrides applied."""
        values = {k: v for k, v in overrides.items() if v is not None}
        if "data_path" in values:
            values["data_path"] = Path(values["data_path"])
        if "attributes_path" in values:
            values["attributes_path"] = Path(values["attributes_path"])
        return replace(self, **values)


_TRUE_STRINGS = {"true", "yes", "on", "1"}
_FALSE_STRINGS = {"false", "no", "off", "0"}


def _parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE_STRINGS:
        return True
    if text in _FALSE_STRINGS:
        return False
    raise ValueError(f"expected a boolean, got {value!r}")


def _coerce(data: Dict[str, Any], source: Path) -> Dict[str, Any]:
    known = {f.name for f in fields(ServiceSettings)}
    out: Dict[str, Any] = {}
    for key, value in data.items():
        if key not in known:
            logger.warning("Ignoring unknown setting '%s' in %s", key, source)
            continue
        if value is None:
            continue
        if key in ("data_path", "attributes_path"):
            out[key] = Path(str(value))
        elif key in ("default_limit", "port"):
            out[key] = int(value)
        elif key == "derive_length":
            out[key] = _parse_bool(value)
        else:
            out[key] = str(value)
    return out


def load_settings(path: Optional[Union[str, Path]] = None) -> ServiceSettings:
    """Load settings from YAML.

    Args:
        path: Explicit config path. When None, ``WORDLIST_CONFIG`` or the
            default path is used.

    Returns:
        ServiceSettings with file values applied over the defaults.

    Raises:
        FileNotFoundError: If an explicitly requested file does not exist.
        ValueError: If the file is not a YAML mapping or a value has the wrong type.
    """
    explicit = path is not None or bool(os.environ.get(CONFIG_ENV_VAR))
    config_path = Path(path or os.environ.get(CONFIG_ENV_VAR) or DEFAULT_CONFIG_PATH)
    if not config_path.exists():
        if explicit:
            raise FileNotFoundError(f"Config file not found: {config_path}")
        logger.debug("No config file at %s; using defaults", config_path)
        return ServiceSettings()

    with config_path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file {config_path} must contain a mapping")
    try:
        values = _coerce(data, config_path)
    except (TypeError, ValueError) as e:
        raise ValueError(f"Invalid value in {config_path}: {e}") from e
    return ServiceSettings(**values)


__all__ = [
    "ServiceSettings",
    "load_settings",
    "CONFIG_ENV_VAR",
    "DEFAULT_LIMIT",
    "DEFAULT_RANDOM_SEED",
    "DEFAULT_CONFIG_PATH",
    "DEFAULT_DATA_PATH",
    "DEFAULT_HOST",
    "DEFAULT_PORT",
]
