"""Shared CLI state: configuration, logging and the validation engine."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

import typer

from formforge.core.errors import ConfigError
from formforge.core.manifest import VALID_LOG_LEVELS, ProjectManifest, load_config
from formforge.core.rules import RuleRegistry, create_default_registry, load_rule_modules
from formforge.core.validation import FaultPolicy, ValidationEngine
from formforge.logging import setup_logging

from .utils import exit_with_error

logger = logging.getLogger(__name__)


@dataclass
class CliContext:
    """Per-invocation state created by the root callback."""

    manifest: ProjectManifest

    def build_registry(self) -> RuleRegistry:
        """Built-in rules plus the plug-in modules named in the config."""
        registry = create_default_registry(
            report_faults=self.manifest.engine.rule_faults == FaultPolicy.REPORT.value
        )
        missing = set(self.manifest.rules.modules) - set(
            load_rule_modules(registry, self.manifest.rules.modules)
        )
        if missing:
            logger.warning("Rule modules not loaded: %s", ", ".join(sorted(missing)))
        return registry

    def build_engine(self) -> ValidationEngine:
        return ValidationEngine(
            registry=self.build_registry(),
            fault_policy=FaultPolicy(self.manifest.engine.rule_faults),
        )


def init_context(config: Path | None, log_level: str | None) -> CliContext:
    """Load configuration and configure logging; exits with code 1 on bad config."""
    try:
        manifest = load_config(config)
    except ConfigError as e:
        exit_with_error(e)

    if log_level:
        level = log_level.upper()
        if level not in VALID_LOG_LEVELS:
            exit_with_error(f"Unknown log level '{log_level}'")
        manifest.logging.level = level

    log_config = manifest.logging
    setup_logging(
        level=log_config.level,
        log_dir=log_config.log_dir,
        json_file=log_config.json_file,
    )
    if manifest.source:
        logger.debug("Using configuration from %s", manifest.source)
    return CliContext(manifest=manifest)


def get_context(ctx: typer.Context) -> CliContext:
    """Fetch the state stored by the root callback (or build defaults)."""
    if isinstance(ctx.obj, CliContext):
        return ctx.obj
    ctx.obj = init_context(None, None)
    return ctx.obj
