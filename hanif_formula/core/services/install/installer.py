"""
Installer: place staged files into the prefix and fix the interpreter line.

Order is fixed: library tree, then executable, then the shebang rewrite
(which needs the executable already in place). Every step either
completes or raises; nothing already copied is rolled back.
"""

from __future__ import annotations

import logging
import os
import shutil
from dataclasses import dataclass, field
from pathlib import Path

from hanif_formula.core.errors import (
    DependencyMissing,
    PatternNotFound,
    SourceMissing,
    WriteFailure,
)
from hanif_formula.core.models.install_context import ResolvedDependency
from hanif_formula.core.services.install.text_transform import (
    ambient_shebang_pattern,
    inreplace_file,
    shebang_for,
)

logger = logging.getLogger(__name__)

EXECUTABLE_MODE = 0o755


@dataclass
class InstallResult:
    """What the installer put on disk."""

    lib_dir: Path | None = None
    executable: Path | None = None
    files_copied: int = 0
    shebang_rewritten: bool = False
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "lib_dir": str(self.lib_dir) if self.lib_dir else None,
            "executable": str(self.executable) if self.executable else None,
            "files_copied": self.files_copied,
            "shebang_rewritten": self.shebang_rewritten,
            "warnings": self.warnings,
        }


def check_source(buildpath: Path, lib_dir: str, executable: str) -> tuple[Path, Path]:
    """Locate the library directory and executable in the staged tree.

    Raises:
        SourceMissing: Either one is absent or of the wrong kind.
    """
    src_lib = buildpath / lib_dir
    src_exe = buildpath / executable
    if not src_lib.is_dir():
        raise SourceMissing(src_lib, kind="directory")
    if not src_exe.is_file():
        raise SourceMissing(src_exe, kind="file")
    return src_lib, src_exe


def install_tree(src: Path, dest_dir: Path) -> tuple[Path, int]:
    """Copy directory ``src`` into ``dest_dir`` as ``dest_dir/<src.name>``.

    Symlinks are copied as symlinks. Existing files at the target are
    overwritten and stale links replaced, so re-running an install converges.

    Returns:
        ``(target_dir, file_count)``.

    Raises:
        WriteFailure: Any filesystem error while copying.
    """
    target = dest_dir / src.name
    try:
        dest_dir.mkdir(parents=True, exist_ok=True)
        if target.is_dir() and not target.is_symlink():
            _clear_link_targets(src, target)
        shutil.copytree(src, target, symlinks=True, dirs_exist_ok=True)
    except (OSError, shutil.Error) as e:
        raise WriteFailure(target, str(e)) from e

    count = sum(1 for p in target.rglob("*") if p.is_file() or p.is_symlink())
    logger.info("Installed %d files into %s", count, target)
    return target, count


def _clear_link_targets(src: Path, target: Path) -> None:
    """Remove entries of a previous install that copytree cannot overwrite.

    ``os.symlink`` fails on an existing path, and ``copy2`` onto an old
    symlink writes through it. Either side being a link clears the target.
    """
    for entry in src.rglob("*"):
        dest = target / entry.relative_to(src)
        if not (entry.is_symlink() or dest.is_symlink()):
            continue
        if dest.is_symlink() or dest.is_file():
            dest.unlink()
        elif dest.is_dir():
            shutil.rmtree(dest)


def install_executable(src: Path, bin_dir: Path, name: str | None = None) -> Path:
    """Copy one executable into ``bin_dir`` and mark it ``0755``.

    Raises:
        WriteFailure: Any filesystem error while copying or chmod-ing.
    """
    target = bin_dir / (name or src.name)
    try:
        bin_dir.mkdir(parents=True, exist_ok=True)
        shutil.copy2(src, target)
        os.chmod(target, EXECUTABLE_MODE)
    except OSError as e:
        raise WriteFailure(target, str(e)) from e

    logger.info("Installed %s", target)
    return target


def rewrite_shebang(executable: Path, runtime: ResolvedDependency) -> bool:
    """Point an ``#!/usr/bin/env <runtime>`` line at the resolved runtime.

    Only the first line is considered, and only an exact ambient
    directive for ``runtime.name`` is replaced. Applying it twice is the
    same as applying it once.

    Returns:
        True when the line was rewritten.

    Raises:
        PatternNotFound: The first line is not an ambient directive.
        WriteFailure: The rewritten file could not be written.
    """
    pattern = ambient_shebang_pattern(runtime.name)
    replacement = shebang_for(runtime.executable)
    try:
        matched = inreplace_file(executable, pattern, replacement)
    except OSError as e:
        raise WriteFailure(executable, str(e)) from e

    if not matched:
        raise PatternNotFound(executable, pattern.pattern)

    logger.info("Rewrote interpreter of %s to %s", executable.name, replacement)
    return True


def require_runtime(dep: ResolvedDependency | None, name: str) -> ResolvedDependency:
    """Return ``dep`` if its binary exists and is executable.

    Raises:
        DependencyMissing: Not resolved, missing, or not executable.
    """
    if dep is None:
        raise DependencyMissing(name, "not resolved")
    exe = dep.executable
    if not exe.is_file():
        raise DependencyMissing(name, f"{exe} does not exist")
    if not os.access(exe, os.X_OK):
        raise DependencyMissing(name, f"{exe} is not executable")
    return dep


def install_layout(
    buildpath: Path,
    libexec: Path,
    bin_dir: Path,
    *,
    lib_dir: str = "lib",
    executable: str = "bin/hanif",
    bin_name: str | None = None,
    runtime: ResolvedDependency | None = None,
) -> InstallResult:
    """Run the whole install procedure.

    1. Check the staged tree holds ``lib_dir`` and ``executable``.
    2. Copy ``lib_dir`` under ``libexec``.
    3. Copy ``executable`` into ``bin_dir`` as ``bin_name``, mode 0755.
    4. If ``runtime`` is given, rewrite the executable's ambient shebang
       to it. A non-matching first line is logged and recorded, not fatal.

    Raises:
        SourceMissing, WriteFailure, DependencyMissing: Fatal, install aborts.
    """
    result = InstallResult()
    src_lib, src_exe = check_source(buildpath, lib_dir, executable)
    if runtime is not None:
        require_runtime(runtime, runtime.name)

    result.lib_dir, result.files_copied = install_tree(src_lib, libexec)
    result.executable = install_executable(src_exe, bin_dir, bin_name)

    if runtime is not None:
        try:
            result.shebang_rewritten = rewrite_shebang(result.executable, runtime)
        except PatternNotFound as e:
            logger.warning("%s", e)
            result.warnings.append(str(e))

    return result
