"""
Config check use case: validate a formula file and report issues.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from hanif_formula.core.config.loader import ConfigError, load_formula, resolve_formula_path
from hanif_formula.core.models.formula import FormulaSpec


@dataclass
class ConfigCheckResult:
    """Result of formula validation."""

    valid: bool = False
    formula: FormulaSpec | None = None
    config_path: Path | None = None
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "valid": self.valid,
            "config_path": str(self.config_path) if self.config_path else None,
            "errors": self.errors,
            "warnings": self.warnings,
            "formula_name": self.formula.name if self.formula else None,
            "version": self.formula.version if self.formula else None,
            "test_count": len(self.formula.test) if self.formula else 0,
        }


def check_config(config_path: Path | None = None) -> ConfigCheckResult:
    """Validate a formula definition and report issues.

    Args:
        config_path: Optional explicit path to the formula YAML.

    Returns:
        ConfigCheckResult with validation status and any issues.
    """
    result = ConfigCheckResult()
    config_path = resolve_formula_path(config_path)
    result.config_path = config_path

    try:
        formula = load_formula(config_path)
        result.formula = formula
    except ConfigError as e:
        result.errors.append(str(e))
        return result

    # Semantic checks
    if formula.shebang.enabled and formula.shebang.runtime not in formula.depends_on:
        result.errors.append(
            f"Shebang runtime '{formula.shebang.runtime}' is not declared in depends_on."
        )

    names = [c.name for c in formula.test]
    dupes = {n for n in names if names.count(n) > 1}
    if dupes:
        result.errors.append(f"Duplicate test names: {', '.join(sorted(dupes))}")

    if not formula.test:
        result.warnings.append("No test checks defined; the built-in version/help checks will be used.")

    if not formula.sha256 or "HERE" in formula.sha256.upper():
        result.warnings.append("sha256 is a placeholder; set the real archive checksum before release.")

    if not formula.homepage:
        result.warnings.append("No homepage set.")

    result.valid = len(result.errors) == 0
    return result
