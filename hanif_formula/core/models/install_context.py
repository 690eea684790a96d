"""
Install context: the paths a formula needs at install and test time.

The package manager (or our CLI acting as one) resolves the staged
source tree, the installation prefix and every runtime dependency's
opt prefix, then hands them to the formula through this model.
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import BaseModel, Field


class ResolvedDependency(BaseModel):
    """A runtime dependency resolved to an absolute opt prefix.

    For ``bash`` resolved to ``/opt/homebrew/opt/bash``, ``opt_bin`` is
    ``/opt/homebrew/opt/bash/bin`` and ``executable`` is ``.../bin/bash``.
    """

    name: str
    opt_prefix: str
    source: str = ""             # how it was resolved: override, env, homebrew, path

    @property
    def opt_bin(self) -> Path:
        return Path(self.opt_prefix) / "bin"

    @property
    def executable(self) -> Path:
        return self.opt_bin / self.name

    @property
    def is_usable(self) -> bool:
        exe = self.executable
        return exe.is_file() and os.access(exe, os.X_OK)


class InstallContext(BaseModel):
    """Everything ``install()`` and ``test()`` read from their host."""

    name: str
    version: str = ""
    buildpath: str = "."         # staged, unpacked source tree
    prefix: str                  # keg root, e.g. <HOMEBREW_PREFIX>/Cellar/<name>/<version>
    dependencies: dict[str, ResolvedDependency] = Field(default_factory=dict)
    timeout_seconds: float | None = None

    @property
    def bin(self) -> Path:
        return Path(self.prefix) / "bin"

    @property
    def libexec(self) -> Path:
        return Path(self.prefix) / "libexec"

    def dependency(self, name: str) -> ResolvedDependency | None:
        return self.dependencies.get(name)
