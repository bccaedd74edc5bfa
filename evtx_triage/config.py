"""EVTX Triage - Configuration and logging setup"""

import logging
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from rich.console import Console
from rich.logging import RichHandler

from .taxonomy import DEFAULT_TAXONOMY, Taxonomy

KNOWN_KEYS = {'cloud_process_names', 'email_client_process_names', 'event_descriptions', 'log_level'}
LOG_LEVELS = ('DEBUG', 'INFO', 'WARNING', 'ERROR')


class ConfigError(ValueError):
    """Invalid configuration file"""


def _string_list(cfg: Dict[str, Any], key: str):
    value = cfg.get(key)
    if value is None:
        return None
    if not isinstance(value, list) or not all(isinstance(v, str) and v for v in value):
        raise ConfigError(f"'{key}' must be a list of non-empty strings")
    return value


def validate_config(cfg: Any) -> Dict[str, Any]:
    if cfg is None:
        return {}
    if not isinstance(cfg, dict):
        raise ConfigError("Config root must be a mapping")
    unknown = set(cfg) - KNOWN_KEYS
    if unknown:
        raise ConfigError(f"Unknown config key(s): {', '.join(sorted(unknown))}")

    _string_list(cfg, 'cloud_process_names')
    _string_list(cfg, 'email_client_process_names')

    descriptions = cfg.get('event_descriptions')
    if descriptions is not None:
        if not isinstance(descriptions, dict):
            raise ConfigError("'event_descriptions' must map event IDs to text")
        for key, text in descriptions.items():
            if not isinstance(key, int) or not isinstance(text, str):
                raise ConfigError(f"Invalid event description entry: {key!r}: {text!r}")

    level = cfg.get('log_level')
    if level is not None and str(level).upper() not in LOG_LEVELS:
        raise ConfigError(f"'log_level' must be one of {', '.join(LOG_LEVELS)}")
    return cfg


def load_config(path: Optional[str]) -> Dict[str, Any]:
    """Load and validate a YAML config; no path means defaults"""
    if not path:
        return {}
    p = Path(path)
    if not p.exists():
        raise ConfigError(f"Config not found: {p}")
    try:
        with open(p, 'r', encoding='utf-8') as f:
            cfg = yaml.safe_load(f)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {p}: {exc}") from exc
    return validate_config(cfg)


def build_taxonomy(cfg: Optional[Dict[str, Any]] = None) -> Taxonomy:
    cfg = cfg or {}
    if not cfg:
        return DEFAULT_TAXONOMY
    return DEFAULT_TAXONOMY.with_overrides(
        cloud_process_names=cfg.get('cloud_process_names'),
        email_client_process_names=cfg.get('email_client_process_names'),
        descriptions=cfg.get('event_descriptions'),
    )


def configure_logging(level: str = 'WARNING', console: Optional[Console] = None) -> None:
    """Route package logs through rich on stderr"""
    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
    )
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[handler],
        force=True,
    )
