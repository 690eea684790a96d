"""
CLI commands for runtime dependency resolution.

Thin wrappers over ``hanif_formula.core.services.install.dependencies``.
"""

from __future__ import annotations

import json
import sys

import click


@click.group()
def deps() -> None:
    """Dependencies: show how declared runtime dependencies resolve."""


@deps.command("resolve")
@click.option("--dep", "overrides", multiple=True, metavar="NAME=PATH", help="Opt prefix of a runtime dependency.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def resolve(ctx: click.Context, overrides: tuple[str, ...], as_json: bool) -> None:
    """Resolve every declared dependency to an opt prefix."""
    from hanif_formula.core.config.loader import ConfigError, load_formula
    from hanif_formula.core.services.install.dependencies import (
        parse_dep_overrides,
        resolve_dependencies,
    )

    try:
        formula = load_formula(ctx.obj.get("formula_path"))
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red")
        sys.exit(1)

    try:
        parsed = parse_dep_overrides(overrides)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="--dep") from e

    resolved = resolve_dependencies(formula.depends_on, parsed)

    rows = []
    for name in formula.depends_on:
        dep = resolved.get(name)
        rows.append({
            "name": name,
            "resolved": dep is not None,
            "opt_prefix": dep.opt_prefix if dep else None,
            "executable": str(dep.executable) if dep else None,
            "usable": dep.is_usable if dep else False,
            "source": dep.source if dep else None,
        })

    if as_json:
        click.echo(json.dumps({"formula": formula.name, "dependencies": rows}, indent=2))
        return

    click.secho(f"🔗 {formula.name} dependencies:", fg="cyan", bold=True)
    missing = 0
    for row in rows:
        if row["resolved"] and row["usable"]:
            click.secho(f"   ✅ {row['name']:<8}", fg="green", nl=False)
            click.echo(f" {row['executable']}  ({row['source']})")
        elif row["resolved"]:
            missing += 1
            click.secho(f"   ⚠️  {row['name']:<8}", fg="yellow", nl=False)
            click.echo(f" {row['executable']} not executable  ({row['source']})")
        else:
            missing += 1
            click.secho(f"   ❌ {row['name']:<8}", fg="red", nl=False)
            click.echo(" not found")
    click.echo()

    if missing:
        sys.exit(1)
