"""
Load and save module descriptors and form data.

Supports ``.json``, ``.yaml`` and ``.yml`` files. Everything here sits at the
edge of the engine: the core itself never performs I/O.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError as PydanticValidationError

from .errors import make_load_error
from .ir import ModuleDescriptor

logger = logging.getLogger(__name__)

YAML_SUFFIXES = frozenset({".yaml", ".yml"})


def _read_structured(path: Path) -> Any:
    """Read a JSON or YAML file into plain Python data."""
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise make_load_error("File not found", file=path) from None
    except OSError as e:
        raise make_load_error(f"Cannot read file: {e}", file=path) from e

    try:
        if path.suffix.lower() in YAML_SUFFIXES:
            return yaml.safe_load(text)
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise make_load_error(f"Invalid JSON: {e}", file=path) from e
    except yaml.YAMLError as e:
        raise make_load_error(f"Invalid YAML: {e}", file=path) from e


def parse_module(data: Any, source: Path | None = None) -> ModuleDescriptor:
    """
    Validate plain data as a module descriptor.

    Raises:
        SchemaLoadError: If the data does not describe a module
    """
    if not isinstance(data, dict):
        raise make_load_error(
            f"Module descriptor must be a mapping, got {type(data).__name__}", file=source
        )
    try:
        return ModuleDescriptor.model_validate(data)
    except PydanticValidationError as e:
        raise make_load_error(
            f"Invalid module descriptor: {e}",
            file=source,
            module_id=data.get("id") if isinstance(data.get("id"), str) else None,
        ) from e


def load_module(path: str | Path) -> ModuleDescriptor:
    """
    Load a module descriptor from a JSON or YAML file.

    Args:
        path: Path to the descriptor file

    Returns:
        Validated ModuleDescriptor

    Raises:
        SchemaLoadError: If the file is missing, malformed or invalid
    """
    path = Path(path)
    descriptor = parse_module(_read_structured(path), source=path)
    logger.debug(
        "Loaded module '%s' (%d fields) from %s", descriptor.id, len(descriptor.fields), path
    )
    return descriptor


def load_form_data(path: str | Path) -> dict[str, Any]:
    """
    Load form data (field id -> value) from a JSON or YAML file.

    An empty file yields an empty mapping.

    Raises:
        SchemaLoadError: If the file is missing, malformed or not a mapping
    """
    path = Path(path)
    data = _read_structured(path)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise make_load_error(f"Form data must be a mapping, got {type(data).__name__}", file=path)
    return {str(k): v for k, v in data.items()}


def dump_module(descriptor: ModuleDescriptor, path: str | Path) -> Path:
    """Write a module descriptor as JSON or YAML, chosen by file extension."""
    path = Path(path)
    data = descriptor.model_dump(mode="json")
    if path.suffix.lower() in YAML_SUFFIXES:
        content = yaml.safe_dump(data, sort_keys=False, allow_unicode=True)
    else:
        content = json.dumps(data, indent=2, ensure_ascii=False) + "\n"
    path.write_text(content, encoding="utf-8")
    return path
