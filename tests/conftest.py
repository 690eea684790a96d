"""
Shared test fixtures and configuration.
"""

import os
import shutil
from pathlib import Path

import pytest

from hanif_formula.core.context import clear_install_context
from hanif_formula.core.models import InstallContext, ResolvedDependency

from tests.helpers import HANIF_SCRIPT, write_script


@pytest.fixture(autouse=True)
def _reset_install_context():
    yield
    clear_install_context()


@pytest.fixture(autouse=True)
def _no_formula_override(monkeypatch):
    monkeypatch.delenv("HANIF_FORMULA", raising=False)


@pytest.fixture
def staged_source(tmp_path: Path) -> Path:
    """An unpacked hanif source tree: lib/a.sh, lib/sub/b.sh, bin/hanif."""
    src = tmp_path / "hanif-cli-tools-1.0.0"
    (src / "lib" / "sub").mkdir(parents=True)
    (src / "lib" / "a.sh").write_text("a() { echo a; }\n")
    (src / "lib" / "sub" / "b.sh").write_bytes(b"b() { echo b; }\r\n\xff\n")
    write_script(src / "bin" / "hanif", HANIF_SCRIPT)
    return src


@pytest.fixture
def bash_opt(tmp_path: Path) -> Path:
    """A fake bash opt prefix whose bin/bash is a working POSIX shell."""
    opt = tmp_path / "opt" / "bash"
    (opt / "bin").mkdir(parents=True)
    real_sh = shutil.which("sh") or "/bin/sh"
    os.symlink(real_sh, opt / "bin" / "bash")
    return opt


@pytest.fixture
def bash_dep(bash_opt: Path) -> ResolvedDependency:
    return ResolvedDependency(name="bash", opt_prefix=str(bash_opt), source="override")


@pytest.fixture
def install_ctx(tmp_path: Path, staged_source: Path, bash_dep: ResolvedDependency) -> InstallContext:
    return InstallContext(
        name="hanif-cli",
        version="1.0.0",
        buildpath=str(staged_source),
        prefix=str(tmp_path / "Cellar" / "hanif-cli" / "1.0.0"),
        dependencies={"bash": bash_dep},
        timeout_seconds=10,
    )
