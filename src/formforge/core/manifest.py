"""
Project configuration for formforge.

Settings live in an optional ``formforge.toml``::

    [engine]
    rule_faults = "pass"        # pass | report

    [rules]
    modules = ["myapp.rules"]   # plug-ins exposing register_rules(registry)

    [logging]
    level = "INFO"
    log_dir = ".formforge/logs"
    json_file = true

A missing file means defaults. ``FORMFORGE_LOG_LEVEL`` overrides the log level.
"""

from __future__ import annotations

import logging
import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .errors import ConfigError, ErrorContext

MANIFEST_NAME = "formforge.toml"
LOG_LEVEL_ENV = "FORMFORGE_LOG_LEVEL"

VALID_FAULT_POLICIES = frozenset({"pass", "report"})
VALID_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})


@dataclass
class EngineConfig:
    """Validation engine behaviour."""

    rule_faults: str = "pass"  # "pass" | "report"


@dataclass
class RulesConfig:
    """Custom rule plug-ins."""

    modules: list[str] = field(default_factory=list)


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "WARNING"
    log_dir: str = ".formforge/logs"
    json_file: bool = False

    @property
    def level_number(self) -> int:
        return logging.getLevelName(self.level)  # type: ignore[no-any-return]


@dataclass
class ProjectManifest:
    """Complete formforge configuration."""

    engine: EngineConfig = field(default_factory=EngineConfig)
    rules: RulesConfig = field(default_factory=RulesConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    source: Path | None = None


def _section(data: dict[str, Any], name: str, path: Path) -> dict[str, Any]:
    section = data.get(name, {})
    if not isinstance(section, dict):
        raise ConfigError(f"[{name}] must be a table", ErrorContext(file=path))
    return section


def load_manifest(path: Path) -> ProjectManifest:
    """
    Load configuration from a ``formforge.toml`` file.

    Raises:
        ConfigError: If the file is not valid TOML or holds invalid values
    """
    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML: {e}", ErrorContext(file=path)) from e

    engine_data = _section(data, "engine", path)
    rules_data = _section(data, "rules", path)
    logging_data = _section(data, "logging", path)

    rule_faults = str(engine_data.get("rule_faults", "pass")).lower()
    if rule_faults not in VALID_FAULT_POLICIES:
        raise ConfigError(
            f"engine.rule_faults must be one of {sorted(VALID_FAULT_POLICIES)}, "
            f"got '{rule_faults}'",
            ErrorContext(file=path),
        )

    modules = rules_data.get("modules", [])
    if not isinstance(modules, list) or not all(isinstance(m, str) for m in modules):
        raise ConfigError("rules.modules must be a list of module names", ErrorContext(file=path))

    level = os.environ.get(LOG_LEVEL_ENV) or str(logging_data.get("level", "WARNING"))
    level = level.upper()
    if level not in VALID_LOG_LEVELS:
        raise ConfigError(f"Unknown log level '{level}'", ErrorContext(file=path))

    return ProjectManifest(
        engine=EngineConfig(rule_faults=rule_faults),
        rules=RulesConfig(modules=list(modules)),
        logging=LoggingConfig(
            level=level,
            log_dir=str(logging_data.get("log_dir", ".formforge/logs")),
            json_file=bool(logging_data.get("json_file", False)),
        ),
        source=path,
    )


def find_manifest(start: Path | None = None) -> Path | None:
    """Search ``start`` and its parents for ``formforge.toml``."""
    current = (start or Path.cwd()).resolve()
    for directory in (current, *current.parents):
        candidate = directory / MANIFEST_NAME
        if candidate.is_file():
            return candidate
    return None


def load_config(path: Path | None = None) -> ProjectManifest:
    """
    Load configuration from ``path``, or discover it from the working directory.

    Falls back to defaults (with the environment log level applied) when no
    manifest exists.
    """
    manifest_path = path or find_manifest()
    if manifest_path is not None:
        if not manifest_path.is_file():
            raise ConfigError("Config file not found", ErrorContext(file=manifest_path))
        return load_manifest(manifest_path)

    manifest = ProjectManifest()
    env_level = os.environ.get(LOG_LEVEL_ENV)
    if env_level:
        level = env_level.upper()
        if level not in VALID_LOG_LEVELS:
            raise ConfigError(f"Unknown log level '{level}' in {LOG_LEVEL_ENV}")
        manifest.logging.level = level
    return manifest
