"""
Tests for CLI commands: info, caveats, install, test, config check, deps.
"""

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from hanif_formula.main import cli
from tests.helpers import write_script


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch):
    for var in ("HANIF_PREFIX", "HOMEBREW_PREFIX", "HANIF_DEP_BASH", "HANIF_DEP_GIT", "HANIF_LOG_LEVEL"):
        monkeypatch.delenv(var, raising=False)


class TestCLIGlobal:
    def test_help(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "hanif" in result.output

    def test_version(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "1.0.0" in result.output


class TestInfoCommand:
    def test_info(self):
        result = CliRunner().invoke(cli, ["info"])
        assert result.exit_code == 0
        assert "hanif-cli 1.0.0" in result.output
        assert "bash (interpreter)" in result.output

    def test_info_json(self):
        result = CliRunner().invoke(cli, ["info", "--json"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["name"] == "hanif-cli"
        assert data["depends_on"] == ["bash", "git"]

    def test_bad_formula(self, tmp_path: Path):
        bad = tmp_path / "f.yml"
        bad.write_text("- nope\n")
        result = CliRunner().invoke(cli, ["--formula", str(bad), "info"])
        assert result.exit_code == 1


class TestCaveatsCommand:
    def test_caveats(self):
        result = CliRunner().invoke(cli, ["caveats"])
        assert result.exit_code == 0
        assert "Hanif CLI has been installed!" in result.output
        assert 'hanif git nf "my feature"' in result.output

    def test_shell_braces_printed_verbatim(self, tmp_path: Path):
        path = tmp_path / "f.yml"
        path.write_text("name: x\nversion: '1'\ncaveats: 'export PATH=${HOME}/bin:$PATH'\n")
        result = CliRunner().invoke(cli, ["--formula", str(path), "caveats"])
        assert result.exit_code == 0
        assert "export PATH=${HOME}/bin:$PATH" in result.output


class TestInstallCommand:
    def test_install_and_test(self, staged_source: Path, bash_opt: Path, tmp_path: Path):
        prefix = tmp_path / "keg"
        result = CliRunner().invoke(cli, [
            "install", "--source", str(staged_source), "--prefix", str(prefix),
            "--dep", f"bash={bash_opt}",
        ])
        assert result.exit_code == 0, result.output
        assert "Result: ok" in result.output
        assert "Caveats" in result.output
        assert (prefix / "bin" / "hanif").read_text().startswith(f"#!{bash_opt}/bin/bash\n")

    def test_install_json(self, staged_source: Path, bash_opt: Path, tmp_path: Path):
        result = CliRunner().invoke(cli, [
            "install", "-s", str(staged_source), "-p", str(tmp_path / "keg"),
            "--dep", f"bash={bash_opt}", "--json",
        ])
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["report"]["status"] == "ok"

    def test_prefix_from_env(self, staged_source: Path, bash_opt: Path, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("HOMEBREW_PREFIX", str(tmp_path / "brew"))
        result = CliRunner().invoke(cli, [
            "install", "-s", str(staged_source), "--dep", f"bash={bash_opt}", "--skip-test",
        ])
        assert result.exit_code == 0, result.output
        assert (tmp_path / "brew" / "Cellar" / "hanif-cli" / "1.0.0" / "bin" / "hanif").is_file()

    def test_no_prefix(self, staged_source: Path, bash_opt: Path):
        result = CliRunner().invoke(cli, ["install", "-s", str(staged_source), "--dep", f"bash={bash_opt}"])
        assert result.exit_code == 1
        assert "No install prefix" in result.output

    def test_missing_source_layout(self, tmp_path: Path, bash_opt: Path):
        empty = tmp_path / "empty"
        empty.mkdir()
        result = CliRunner().invoke(cli, [
            "install", "-s", str(empty), "-p", str(tmp_path / "keg"), "--dep", f"bash={bash_opt}",
        ])
        assert result.exit_code == 1
        assert "missing" in result.output

    def test_bad_dep_override(self, staged_source: Path, tmp_path: Path):
        result = CliRunner().invoke(cli, [
            "install", "-s", str(staged_source), "-p", str(tmp_path / "keg"), "--dep", "bash",
        ])
        assert result.exit_code == 2

    def test_broken_binary_fails(self, staged_source: Path, bash_opt: Path, tmp_path: Path):
        write_script(staged_source / "bin" / "hanif", "#!/usr/bin/env bash\necho 'unknown tool'\n")
        result = CliRunner().invoke(cli, [
            "install", "-s", str(staged_source), "-p", str(tmp_path / "keg"), "--dep", f"bash={bash_opt}",
        ])
        assert result.exit_code == 1
        assert "AssertionFailed(version)" in result.output


class TestTestCommand:
    def _install(self, staged_source: Path, bash_opt: Path, prefix: Path) -> None:
        result = CliRunner().invoke(cli, [
            "install", "-s", str(staged_source), "-p", str(prefix),
            "--dep", f"bash={bash_opt}", "--skip-test",
        ])
        assert result.exit_code == 0, result.output

    def test_passes(self, staged_source: Path, bash_opt: Path, tmp_path: Path):
        prefix = tmp_path / "keg"
        self._install(staged_source, bash_opt, prefix)
        result = CliRunner().invoke(cli, ["-v", "test", "--prefix", str(prefix)])
        assert result.exit_code == 0, result.output
        assert "2/2 checks passed" in result.output

    def test_not_installed(self, tmp_path: Path):
        result = CliRunner().invoke(cli, ["test", "--prefix", str(tmp_path / "keg")])
        assert result.exit_code == 1
        assert "not installed" in result.output

    def test_json(self, staged_source: Path, bash_opt: Path, tmp_path: Path):
        prefix = tmp_path / "keg"
        self._install(staged_source, bash_opt, prefix)
        result = CliRunner().invoke(cli, ["test", "--prefix", str(prefix), "--json"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["test"]["status"] == "ok"


class TestConfigCheckCommand:
    def test_bundled(self):
        result = CliRunner().invoke(cli, ["config", "check"])
        assert result.exit_code == 0
        assert "Formula is valid" in result.output

    def test_invalid_json(self, tmp_path: Path):
        path = tmp_path / "f.yml"
        path.write_text("name: x\nversion: '1'\ndepends_on: []\n")
        result = CliRunner().invoke(cli, ["--formula", str(path), "config", "check", "--json"])
        assert result.exit_code == 1
        assert json.loads(result.output)["valid"] is False


class TestDepsCommand:
    def test_resolve_json(self, bash_opt: Path, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("PATH", str(tmp_path / "empty-path"))
        result = CliRunner().invoke(cli, ["deps", "resolve", "--dep", f"bash={bash_opt}", "--json"])
        assert result.exit_code == 0
        rows = {r["name"]: r for r in json.loads(result.output)["dependencies"]}
        assert rows["bash"]["usable"] is True
        assert rows["git"]["resolved"] is False

    def test_resolve_missing_exits_1(self, bash_opt: Path, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("PATH", str(tmp_path / "empty-path"))
        result = CliRunner().invoke(cli, ["deps", "resolve", "--dep", f"bash={bash_opt}"])
        assert result.exit_code == 1
        assert "not found" in result.output
