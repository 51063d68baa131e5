"""Tests for the cuehand CLI — sanitize, narrow, classify and config show."""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml
from rich.console import Console
from typer.testing import CliRunner

from conftest import LOGIN_PAGE
from cuehand import __version__
from cuehand.cli.app import app

runner = CliRunner()


@pytest.fixture
def page_file(tmp_path: Path) -> Path:
    path = tmp_path / "login.html"
    path.write_text(LOGIN_PAGE, encoding="utf-8")
    return path


@pytest.fixture
def wide_console(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep Rich tables from wrapping long paths in the test terminal."""
    monkeypatch.setattr("cuehand.cli.config_cmd.console", Console(width=200))


# ---------------------------------------------------------------------------
# 1. Global options
# ---------------------------------------------------------------------------

class TestGlobalOptions:
    def test_version(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert f"cuehand v{__version__}" in result.output

    def test_no_args_shows_help(self):
        result = runner.invoke(app, [])
        assert "sanitize" in result.output
        assert "classify" in result.output


# ---------------------------------------------------------------------------
# 2. sanitize
# ---------------------------------------------------------------------------

class TestSanitizeCommand:
    def test_sanitize_file(self, page_file: Path):
        result = runner.invoke(app, ["sanitize", str(page_file)])
        assert result.exit_code == 0
        assert '<button type="submit" id="login-btn">Log in</button>' in result.output
        assert "window.analytics" not in result.output
        assert "<nav>" not in result.output

    def test_sanitize_stdin_keep_layout(self):
        result = runner.invoke(app, ["sanitize", "-", "--keep-layout"], input="<main><div>hi</div></main>")
        assert result.exit_code == 0
        assert "<div>hi</div>" in result.output
        assert "<main>" not in result.output

    def test_missing_file(self, tmp_path: Path):
        result = runner.invoke(app, ["sanitize", str(tmp_path / "missing.html")])
        assert result.exit_code == 2
        assert "File not found" in result.output


# ---------------------------------------------------------------------------
# 3. narrow
# ---------------------------------------------------------------------------

class TestNarrowCommand:
    def test_narrow_match(self, page_file: Path):
        result = runner.invoke(app, ["narrow", str(page_file), "log in", "-t", "button"])
        assert result.exit_code == 0
        assert 'id="login-btn"' in result.output
        assert 'id="log-btn"' not in result.output

    def test_narrow_no_match(self, page_file: Path):
        result = runner.invoke(app, ["narrow", str(page_file), "checkout", "--tag", "button", "--tag", "a"])
        assert result.exit_code == 1
        assert "checkout" in result.output


# ---------------------------------------------------------------------------
# 4. classify
# ---------------------------------------------------------------------------

class TestClassifyCommand:
    def test_family(self):
        result = runner.invoke(app, ["classify", "get all the links and images"])
        assert result.exit_code == 0
        assert result.output.strip() == "link: a"

    def test_no_family(self):
        result = runner.invoke(app, ["classify", "get the page title"])
        assert result.exit_code == 0
        assert "none (full page content)" in result.output


# ---------------------------------------------------------------------------
# 5. config show
# ---------------------------------------------------------------------------

class TestConfigShow:
    def test_shows_resolved_settings(
        self, tmp_project_dir: Path, monkeypatch: pytest.MonkeyPatch, wide_console: None
    ):
        monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-ant-test-key-123")
        result = runner.invoke(app, ["config", "show", "--dir", str(tmp_project_dir)])
        assert result.exit_code == 0
        assert "Cuehand Configuration" in result.output
        assert "sk-ant-...123" in result.output
        assert "sk-ant-test-key-123" not in result.output
        assert "env: ANTHROPIC_API_KEY" in result.output
        assert "selector" in result.output
        assert "$2.50" in result.output

    def test_missing_key_reported(
        self, tmp_project_dir: Path, tmp_path: Path, monkeypatch: pytest.MonkeyPatch, wide_console: None
    ):
        monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
        monkeypatch.chdir(tmp_path)
        monkeypatch.setattr(Path, "home", lambda: tmp_path / "fakehome")
        result = runner.invoke(app, ["config", "show", "--dir", str(tmp_project_dir)])
        assert result.exit_code == 0
        assert "NOT SET" in result.output

    def test_key_from_project_config(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch, wide_console: None):
        monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
        monkeypatch.chdir(tmp_path)
        monkeypatch.setattr(Path, "home", lambda: tmp_path / "fakehome")
        project_dir = tmp_path / ".cuehand"
        project_dir.mkdir()
        (project_dir / "config.yaml").write_text(
            yaml.dump({"anthropic_api_key": "sk-ant-project-key-999"}), encoding="utf-8"
        )
        result = runner.invoke(app, ["config", "show", "--dir", str(project_dir)])
        assert result.exit_code == 0
        assert "sk-ant-...999" in result.output
        assert "config.yaml" in result.output

    def test_invalid_config(self, tmp_path: Path, wide_console: None):
        project_dir = tmp_path / ".cuehand"
        project_dir.mkdir()
        (project_dir / "config.yaml").write_text(yaml.dump({"strategy": "vision"}), encoding="utf-8")
        result = runner.invoke(app, ["config", "show", "--dir", str(project_dir)])
        assert result.exit_code == 2
        assert "Unknown strategy" in result.output
