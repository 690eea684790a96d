"""
hanif-formula: CLI entrypoint.

Usage:
    hanif-formula --help
    hanif-formula info
    hanif-formula install --source ./hanif-cli-tools-1.0.0 --prefix /opt/homebrew/Cellar/hanif-cli/1.0.0
    hanif-formula test --prefix /opt/homebrew/Cellar/hanif-cli/1.0.0
    hanif-formula config check
"""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path

import click

from hanif_formula import __version__
from hanif_formula.core.observability.logging_config import setup_logging


@click.group()
@click.version_option(version=__version__, prog_name="hanif-formula")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--formula",
    "-f",
    "formula_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to a formula YAML (default: $HANIF_FORMULA, else formula.yml, else the bundled hanif-cli).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    formula_path: str | None,
) -> None:
    """hanif-formula: install and smoke-test the hanif CLI."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["formula_path"] = Path(formula_path) if formula_path else None

    # ── Logging setup (once, at process start) ──────────────────
    if debug:
        level = "DEBUG"
    elif verbose:
        level = "INFO"
    elif quiet:
        level = "ERROR"
    else:
        level = os.environ.get("HANIF_LOG_LEVEL", "WARNING")

    setup_logging(
        level=level,
        log_file=os.environ.get("HANIF_LOG_FILE"),
        log_file_level=os.environ.get("HANIF_LOG_FILE_LEVEL"),
        quiet_third_party=not debug,
    )


def _load_or_exit(ctx: click.Context):
    from hanif_formula.core.config.loader import ConfigError, load_formula

    try:
        return load_formula(ctx.obj.get("formula_path"))
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red")
        sys.exit(1)


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def info(ctx: click.Context, as_json: bool) -> None:
    """Show formula metadata, dependencies and layout."""
    formula = _load_or_exit(ctx)

    if as_json:
        click.echo(json.dumps(formula.model_dump(mode="json"), indent=2))
        return

    click.secho(f"\n📦 {formula.name} {formula.version}", fg="cyan", bold=True)
    if formula.desc:
        click.echo(f"   {formula.desc}")
    if formula.homepage:
        click.echo(f"   🏠 {formula.homepage}")
    if formula.license:
        click.echo(f"   License: {formula.license}")
    if formula.url:
        click.echo(f"   Source:  {formula.url}")
        click.echo(f"   sha256:  {formula.sha256 or '-'}")
    click.echo()

    click.secho(f"   Dependencies: {len(formula.depends_on)}", fg="white", bold=True)
    for dep in formula.depends_on:
        marker = " (interpreter)" if formula.shebang.enabled and dep == formula.shebang.runtime else ""
        click.echo(f"     • {dep}{marker}")

    layout = formula.layout
    click.echo()
    click.secho("   Layout:", fg="white", bold=True)
    click.echo(f"     {layout.lib_dir}/  → libexec/{layout.lib_dir}/")
    click.echo(f"     {layout.executable}  → bin/{formula.bin_name}")

    if formula.test:
        click.echo()
        click.secho(f"   Tests: {len(formula.test)}", fg="white", bold=True)
        for check in formula.test:
            click.echo(f"     • {formula.bin_name} {' '.join(check.args)}  ⊃ {check.expect!r}")
    click.echo()


@cli.command()
@click.pass_context
def caveats(ctx: click.Context) -> None:
    """Print post-install caveats."""
    from hanif_formula.formulae.hanif_cli import HanifCliFormula

    formula = _load_or_exit(ctx)
    text = HanifCliFormula(formula).caveats()
    if text:
        click.echo(text.rstrip("\n"))


@cli.command()
@click.option(
    "--source",
    "-s",
    required=True,
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help="Staged (unpacked) source tree.",
)
@click.option(
    "--prefix",
    "-p",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Install prefix (default: $HANIF_PREFIX, else $HOMEBREW_PREFIX/Cellar/<name>/<version>).",
)
@click.option("--dep", "deps", multiple=True, metavar="NAME=PATH", help="Opt prefix of a runtime dependency.")
@click.option("--skip-test", is_flag=True, help="Don't run the post-install test.")
@click.option("--timeout", type=float, default=None, help="Seconds allowed per test command.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def install(
    ctx: click.Context,
    source: Path,
    prefix: Path | None,
    deps: tuple[str, ...],
    skip_test: bool,
    timeout: float | None,
    as_json: bool,
) -> None:
    """Install from a staged source tree, then run the smoke test.

    Examples:

        hanif-formula install -s ./hanif-cli-tools-1.0.0 -p /tmp/keg

        hanif-formula install -s ./src -p /tmp/keg --dep bash=/opt/homebrew/opt/bash
    """
    from hanif_formula.core.services.install.dependencies import parse_dep_overrides
    from hanif_formula.core.use_cases.install import run_install

    try:
        overrides = parse_dep_overrides(deps)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="--dep") from e

    result = run_install(
        source=source,
        prefix=prefix,
        formula_path=ctx.obj.get("formula_path"),
        dep_overrides=overrides,
        skip_test=skip_test,
        timeout_seconds=timeout,
    )

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(0 if result.ok else 1)

    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(1)

    report = result.report
    assert report is not None
    click.secho(f"\n🍺 {report.formula} {report.version} → {report.prefix}", fg="cyan", bold=True)
    for receipt in report.receipts:
        _echo_receipt(ctx, receipt)

    for warning in report.warnings:
        click.secho(f"   ⚠️  {warning}", fg="yellow")

    click.echo()
    status_color = {"ok": "green", "partial": "yellow", "failed": "red"}.get(report.status, "white")
    click.secho(f"   Result: {report.status}", fg=status_color, bold=True)

    if report.caveats and not ctx.obj.get("quiet"):
        click.echo()
        click.secho("==> Caveats", fg="cyan", bold=True)
        click.echo(report.caveats.rstrip("\n"))

    if not report.all_ok:
        click.echo()
        sys.exit(1)

    click.echo()


@cli.command("test")
@click.option(
    "--prefix",
    "-p",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Install prefix to test (default: $HANIF_PREFIX, else $HOMEBREW_PREFIX/Cellar/<name>/<version>).",
)
@click.option("--timeout", type=float, default=None, help="Seconds allowed per test command.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def test_cmd(ctx: click.Context, prefix: Path | None, timeout: float | None, as_json: bool) -> None:
    """Run the post-install smoke test against an installed prefix."""
    from hanif_formula.core.use_cases.install import run_test

    result = run_test(
        prefix=prefix,
        formula_path=ctx.obj.get("formula_path"),
        timeout_seconds=timeout,
    )

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(0 if result.ok else 1)

    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(1)

    assert result.test_receipt is not None
    _echo_receipt(ctx, result.test_receipt)
    click.echo()
    if not result.ok:
        sys.exit(1)


def _echo_receipt(ctx: click.Context, receipt) -> None:
    timing = f" ({receipt.duration_ms}ms)" if receipt.duration_ms else ""
    if receipt.ok:
        click.secho(f"   ✓ {receipt.phase}", fg="green", nl=False)
        click.echo(f"{timing} {receipt.output}".rstrip())
    elif receipt.failed:
        click.secho(f"   ✗ {receipt.phase}", fg="red", nl=False)
        click.echo(timing)
        for line in (receipt.error or "").split("\n")[:5]:
            click.echo(f"     │ {line}")
    else:
        click.secho(f"   ⊘ {receipt.phase} ", fg="yellow", nl=False)
        click.echo(f"({receipt.output})")

    if ctx.obj.get("verbose"):
        for outcome in receipt.metadata.get("outcomes", []):
            marker = "✓" if outcome["status"] == "passed" else "✗"
            click.echo(f"     {marker} {outcome['check']}: {' '.join(outcome['command'])}")


@cli.group()
def config() -> None:
    """Formula configuration commands."""


@config.command("check")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def config_check(ctx: click.Context, as_json: bool) -> None:
    """Validate the formula definition."""
    from hanif_formula.core.use_cases.config_check import check_config

    result = check_config(config_path=ctx.obj.get("formula_path"))

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(0 if result.valid else 1)

    if result.valid:
        assert result.formula is not None
        click.secho("✅ Formula is valid", fg="green", bold=True)
        click.echo(f"   Formula: {result.formula.name} {result.formula.version}")
        click.echo(f"   File:    {result.config_path}")
        click.echo(f"   Tests:   {len(result.formula.test)}")
    else:
        click.secho("❌ Formula errors:", fg="red", bold=True)
        for err in result.errors:
            click.echo(f"   • {err}")

    if result.warnings:
        click.echo()
        click.secho("⚠️  Warnings:", fg="yellow")
        for warn in result.warnings:
            click.echo(f"   • {warn}")

    if not result.valid:
        click.echo()
        sys.exit(1)

    click.echo()


# ── Register sub-command groups from hanif_formula/ui/cli/ ──────

from hanif_formula.ui.cli.deps import deps  # noqa: E402

cli.add_command(deps)


if __name__ == "__main__":
    cli()
