"""
Formula loader: YAML file → validated ``FormulaSpec``.

Which file is read:
    explicit path  >  $HANIF_FORMULA  >  nearest formula.yml above cwd
    >  the bundled ``hanif-cli.yml``

The document may be flat or nest everything under a ``formula:`` key.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from hanif_formula.core.data import DEFAULT_FORMULA_FILE
from hanif_formula.core.models.formula import FormulaSpec

logger = logging.getLogger(__name__)

FORMULA_CONFIG_FILE = "formula.yml"
FORMULA_ENV_VAR = "HANIF_FORMULA"
_MAX_WALK_UP = 20


class ConfigError(Exception):
    """Raised when a formula file is invalid or missing."""


def find_formula_file(start_dir: Path | None = None) -> Path | None:
    """Nearest ``formula.yml`` in ``start_dir`` (default cwd) or its parents."""
    here = (start_dir or Path.cwd()).resolve()
    for directory in [here, *here.parents][:_MAX_WALK_UP]:
        candidate = directory / FORMULA_CONFIG_FILE
        if candidate.is_file():
            return candidate
    return None


def resolve_formula_path(path: Path | None = None, env: dict[str, str] | None = None) -> Path:
    """Pick the formula file to load; see the module docstring for the order."""
    if path is not None:
        return Path(path)
    environ = os.environ if env is None else env
    from_env = environ.get(FORMULA_ENV_VAR)
    if from_env:
        return Path(from_env).expanduser()
    return find_formula_file() or DEFAULT_FORMULA_FILE


def load_formula(path: Path | None = None) -> FormulaSpec:
    """Load and validate a formula definition.

    Raises:
        ConfigError: Missing, unreadable, not YAML, not a mapping, or
            rejected by the schema.
    """
    path = resolve_formula_path(path)
    data = _read_mapping(path)
    body = data["formula"] if isinstance(data.get("formula"), dict) else data

    try:
        formula = FormulaSpec.model_validate(body)
    except ValidationError as e:
        raise ConfigError(f"Invalid formula {path}:\n{_describe(e)}") from e

    logger.info("Loaded formula %s %s from %s", formula.name, formula.version, path)
    return formula


def _read_mapping(path: Path) -> dict[str, Any]:
    if not path.is_file():
        raise ConfigError(f"Formula file not found: {path}")
    logger.debug("Reading formula %s", path)

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")
    return data


def _describe(error: ValidationError) -> str:
    """One ``  field.path: message`` line per schema violation."""
    lines = []
    for item in error.errors():
        where = ".".join(str(part) for part in item["loc"]) or "(root)"
        lines.append(f"  {where}: {item['msg']}")
    return "\n".join(lines)
