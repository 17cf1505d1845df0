"""
Tests for CLI commands — sync, status, config check, self-check, global options.
"""

import json
from pathlib import Path
from unittest.mock import patch

from click.testing import CliRunner

from reposync.main import cli


class TestCLIGlobal:
    """Tests for global CLI behavior."""

    def test_help(self):
        result = CliRunner().invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "local repository" in result.output

    def test_short_help(self):
        result = CliRunner().invoke(cli, ["-h"])
        assert result.exit_code == 0
        assert "status" in result.output

    def test_version(self):
        result = CliRunner().invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output

    def test_unknown_option_is_usage_error(self):
        result = CliRunner().invoke(cli, ["--bogus"])
        assert result.exit_code == 2

    def test_unknown_command_is_usage_error(self):
        result = CliRunner().invoke(cli, ["frobnicate"])
        assert result.exit_code == 2


class TestSyncCommand:
    def test_default_runs_sync(self, config_file: Path, registry, fake):
        with patch("reposync.core.use_cases.sync.default_registry", return_value=registry):
            result = CliRunner().invoke(cli, ["--config", str(config_file)])
        assert result.exit_code == 0, result.output
        assert "installed" in result.output
        assert "Elapsed:" in result.output
        assert fake.installed_version == "1.0-1"

    def test_sync_json(self, config_file: Path, registry, fake):
        with patch("reposync.core.use_cases.sync.default_registry", return_value=registry):
            result = CliRunner().invoke(cli, ["-q", "-c", str(config_file), "sync", "--json"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["outcome"] == "installed"
        assert data["decision"] == "fresh_install"

    def test_fatal_exits_nonzero(self, config_file: Path, registry, fake, os_release: Path):
        os_release.write_text("ID=fedora\n")
        with patch("reposync.core.use_cases.sync.default_registry", return_value=registry):
            result = CliRunner().invoke(cli, ["-c", str(config_file)])
        assert result.exit_code == 1
        assert "fedora" in result.output

    def test_missing_config_exits_nonzero(self, tmp_path: Path):
        result = CliRunner().invoke(cli, ["-c", str(tmp_path / "missing.yml")])
        assert result.exit_code == 1
        assert "not found" in result.output


class TestStatusCommand:
    def test_status_json(self, config_file: Path, registry, fake):
        with patch("reposync.core.use_cases.status.default_registry", return_value=registry):
            result = CliRunner().invoke(cli, ["-q", "-c", str(config_file), "status", "--json"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["package"] == "demo"
        assert data["media"] == "demo-local"
        assert data["local"]["installed"] is False
        assert "last_run" not in data

    def test_status_after_sync(self, config_file: Path, registry, fake):
        runner = CliRunner()
        with patch("reposync.core.use_cases.sync.default_registry", return_value=registry):
            runner.invoke(cli, ["-c", str(config_file)])
        with patch("reposync.core.use_cases.status.default_registry", return_value=registry):
            result = runner.invoke(cli, ["-c", str(config_file), "status"])
        assert result.exit_code == 0
        assert "installed 1.0-1" in result.output
        assert "Last run:" in result.output


class TestConfigCheckCommand:
    def test_valid(self, config_file: Path):
        result = CliRunner().invoke(cli, ["-c", str(config_file), "config", "check"])
        assert result.exit_code == 0
        assert "Configuration is valid" in result.output

    def test_invalid_json(self, tmp_path: Path):
        path = tmp_path / "bad.yml"
        path.write_text("target: {}\n")
        result = CliRunner().invoke(cli, ["-q", "-c", str(path), "config", "check", "--json"])
        assert result.exit_code == 1
        data = json.loads(result.output)
        assert data["valid"] is False
        assert data["errors"]


class TestSelfCheckCommand:
    def test_not_configured(self, config_file: Path):
        result = CliRunner().invoke(cli, ["-c", str(config_file), "self-check"])
        assert result.exit_code == 0
        assert "not configured" in result.output
