"""
Configuration for wiring a registry from ``metatypes.toml``.

Example:

    [bootstrap]
    include_builtin = true
    entry_point_group = "metatypes.providers"
    disabled_providers = ["view-types"]

    [constraints]
    rulesets = ["rulesets/naming.toml"]

    [logging]
    level = "INFO"
"""

from __future__ import annotations

import logging
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .constraints.load import load_rulesets
from .registry.bootstrap import DEFAULT_ENTRY_POINT_GROUP
from .registry.registry import MetaDataRegistry, ScopeHandle

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "metatypes.toml"
RULESET_SCOPE = ScopeHandle("rulesets")
_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


@dataclass(frozen=True)
class MetaTypesConfig:
    include_builtin: bool = True
    entry_point_group: str | None = DEFAULT_ENTRY_POINT_GROUP
    disabled_providers: tuple[str, ...] = ()
    rulesets: tuple[Path, ...] = ()
    log_level: str = "WARNING"
    source: Path | None = field(default=None, compare=False)


def _section(data: dict[str, Any], name: str) -> dict[str, Any]:
    value = data.get(name, {})
    if not isinstance(value, dict):
        raise ValueError(f"[{name}] must be a table")
    return value


def _string_list(value: Any, what: str) -> list[str]:
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ValueError(f"{what} must be a list of strings")
    return [v.strip() for v in value if v.strip()]


def load_config(path: str | Path) -> MetaTypesConfig:
    """
    Load configuration from a TOML file.

    Ruleset paths are resolved relative to the file's directory.
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, "rb") as f:
        try:
            data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ValueError(f"Failed to parse config TOML: {e}") from e

    bootstrap = _section(data, "bootstrap")
    constraints = _section(data, "constraints")
    logging_section = _section(data, "logging")

    group = bootstrap.get("entry_point_group", DEFAULT_ENTRY_POINT_GROUP)
    if group is not None and not isinstance(group, str):
        raise ValueError("bootstrap.entry_point_group must be a string")

    level = str(logging_section.get("level", "WARNING")).strip().upper()
    if level not in _LOG_LEVELS:
        raise ValueError(f"logging.level must be one of {', '.join(sorted(_LOG_LEVELS))}")

    base = config_path.parent
    return MetaTypesConfig(
        include_builtin=bool(bootstrap.get("include_builtin", True)),
        entry_point_group=(group.strip() or None) if group is not None else None,
        disabled_providers=tuple(_string_list(bootstrap.get("disabled_providers"), "bootstrap.disabled_providers")),
        rulesets=tuple(base / p for p in _string_list(constraints.get("rulesets"), "constraints.rulesets")),
        log_level=level,
        source=config_path,
    )


def find_config(start: Path | None = None) -> Path | None:
    """``metatypes.toml`` in ``start`` (default: cwd) or the nearest parent directory."""
    here = (start or Path.cwd()).resolve()
    for directory in (here, *here.parents):
        candidate = directory / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None


def build_registry(config: MetaTypesConfig | None = None, *, name: str = "default") -> MetaDataRegistry:
    """Create a registry, bootstrap its providers and load the configured rulesets."""
    config = config or MetaTypesConfig()
    registry = MetaDataRegistry(name)
    registry.ensure_bootstrapped(
        include_builtin=config.include_builtin,
        entry_point_group=config.entry_point_group,
        disabled=config.disabled_providers,
    )
    if config.rulesets:
        count = registry.add_constraints(load_rulesets(config.rulesets), scope=RULESET_SCOPE)
        logger.info("Loaded %d constraint(s) from %d ruleset(s)", count, len(config.rulesets))
    return registry
