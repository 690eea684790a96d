"""
Formula model: declarative install recipe.

Loaded from a formula YAML file (see ``core/data/hanif-cli.yml``).
Fetch metadata (url, sha256) is carried for display only; downloading
and checksum verification belong to the package manager.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator


class FormulaLayout(BaseModel):
    """Where files live in the staged source tree and where they go.

    ``lib_dir`` is copied to ``<prefix>/libexec/<lib_dir>``; ``executable``
    is copied to ``<prefix>/bin/<bin_name>``.
    """

    lib_dir: str = "lib"
    executable: str = "bin/hanif"
    bin_name: str = ""           # defaults to the executable's file name

    @field_validator("lib_dir", "executable")
    @classmethod
    def _relative(cls, v: str) -> str:
        if not v or v.startswith("/") or ".." in v.split("/"):
            raise ValueError(f"must be a relative path inside the source tree: {v!r}")
        return v.rstrip("/")

    @property
    def effective_bin_name(self) -> str:
        return self.bin_name or self.executable.rsplit("/", 1)[-1]


class ShebangRewrite(BaseModel):
    """Rewrite ``#!/usr/bin/env <runtime>`` to the resolved runtime binary."""

    enabled: bool = True
    runtime: str = "bash"        # must also appear in depends_on


class TestCheck(BaseModel):
    """One post-install assertion: run the executable, expect a substring."""

    __test__ = False             # not a pytest test class

    name: str
    args: list[str] = Field(default_factory=list)
    expect: str

    @property
    def label(self) -> str:
        return self.name or " ".join(self.args)


class FormulaSpec(BaseModel):
    """A complete formula: metadata, dependencies, layout, tests, caveats."""

    name: str
    desc: str = ""
    homepage: str = ""
    url: str = ""
    sha256: str = ""
    license: str = ""
    version: str

    depends_on: list[str] = Field(default_factory=list)
    layout: FormulaLayout = Field(default_factory=FormulaLayout)
    shebang: ShebangRewrite = Field(default_factory=ShebangRewrite)
    test: list[TestCheck] = Field(default_factory=list)
    caveats: str = ""

    @field_validator("version", mode="before")
    @classmethod
    def _version_str(cls, v: object) -> str:
        # YAML reads 1.0 as a float
        return str(v)

    @property
    def bin_name(self) -> str:
        return self.layout.effective_bin_name

    def render_caveats(self) -> str:
        """Caveats text with ``{name}``, ``{version}``, ``{homepage}`` and ``{bin_name}`` filled in.

        Any other braces (``${HOME}``, ``{a,b}``) are shell text and pass through.
        """
        text = self.caveats
        for key, value in (
            ("name", self.name),
            ("version", self.version),
            ("homepage", self.homepage),
            ("bin_name", self.bin_name),
        ):
            text = text.replace("{" + key + "}", value)
        return text
