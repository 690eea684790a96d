"""
Dependency resolution: map declared runtime dependency names to opt prefixes.

Precedence for each name:
    explicit override  >  HANIF_DEP_<NAME>  >  $HOMEBREW_PREFIX/opt/<name>  >  PATH lookup

A PATH hit at ``/usr/local/bin/bash`` resolves to opt prefix ``/usr/local``.
"""

from __future__ import annotations

import logging
import os
import re
import shutil
from pathlib import Path

from hanif_formula.core.errors import DependencyMissing
from hanif_formula.core.models.install_context import ResolvedDependency

logger = logging.getLogger(__name__)


def _env_key(name: str) -> str:
    return "HANIF_DEP_" + re.sub(r"[^A-Za-z0-9]", "_", name).upper()


def resolve_dependency(
    name: str,
    override: str | None = None,
    env: dict[str, str] | None = None,
) -> ResolvedDependency | None:
    """Resolve one dependency, or None if no source knows it."""
    environ = os.environ if env is None else env

    if override:
        return ResolvedDependency(name=name, opt_prefix=str(Path(override).expanduser()), source="override")

    from_env = environ.get(_env_key(name))
    if from_env:
        return ResolvedDependency(name=name, opt_prefix=str(Path(from_env).expanduser()), source="env")

    brew_prefix = environ.get("HOMEBREW_PREFIX")
    if brew_prefix:
        opt = Path(brew_prefix) / "opt" / name
        if opt.is_dir():
            return ResolvedDependency(name=name, opt_prefix=str(opt), source="homebrew")

    found = shutil.which(name, path=environ.get("PATH"))
    if found:
        # <opt_prefix>/bin/<name>
        return ResolvedDependency(name=name, opt_prefix=str(Path(found).parent.parent), source="path")

    return None


def resolve_dependencies(
    names: list[str],
    overrides: dict[str, str] | None = None,
    *,
    required: list[str] | None = None,
    env: dict[str, str] | None = None,
) -> dict[str, ResolvedDependency]:
    """Resolve every declared dependency.

    Args:
        names: Declared dependency names (``depends_on``).
        overrides: ``{name: opt_prefix}`` from the caller.
        required: Names that must resolve. Others are skipped with a log line.
        env: Environment to read (default: ``os.environ``).

    Raises:
        DependencyMissing: A required dependency did not resolve.
    """
    overrides = overrides or {}
    required = required or []
    resolved: dict[str, ResolvedDependency] = {}

    for name in names:
        dep = resolve_dependency(name, overrides.get(name), env=env)
        if dep is None:
            if name in required:
                raise DependencyMissing(name, "not found via override, env, HOMEBREW_PREFIX or PATH")
            logger.info("Dependency '%s' not resolved; not needed at install time", name)
            continue
        logger.debug("Resolved %s → %s (%s)", name, dep.opt_prefix, dep.source)
        resolved[name] = dep

    unknown = set(overrides) - set(names)
    if unknown:
        logger.warning("Ignoring overrides for undeclared dependencies: %s", ", ".join(sorted(unknown)))

    return resolved


def parse_dep_overrides(pairs: tuple[str, ...] | list[str]) -> dict[str, str]:
    """Parse ``NAME=PATH`` pairs from the command line.

    Raises:
        ValueError: A pair is malformed.
    """
    out: dict[str, str] = {}
    for raw in pairs:
        name, sep, path = raw.partition("=")
        if not sep or not name.strip() or not path.strip():
            raise ValueError(f"Expected NAME=PATH, got {raw!r}")
        out[name.strip()] = path.strip()
    return out
