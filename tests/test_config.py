"""
Tests for configuration loading and the derived defaults.
"""

import textwrap
from pathlib import Path

import pytest

from reposync.core.config.loader import (
    ConfigError,
    find_config_file,
    load_config,
    user_config_path,
)
from reposync.core.models.config import KeyConfig, SyncConfig, TargetConfig
from reposync.core.use_cases.config_check import check_config

MINIMAL = textwrap.dedent("""\
    target:
      package: demo
      artifact_url: https://dl.example.com/linux/rpm/demo-latest.x86_64.rpm
""")


def _write(tmp_path: Path, content: str, name: str = "reposync.yml") -> Path:
    path = tmp_path / name
    path.write_text(content)
    return path


class TestModels:
    def test_target_derivations(self):
        target = TargetConfig(
            package="demo",
            artifact_url="https://dl.example.com/linux/rpm/demo-latest.x86_64.rpm?x=1",
        )
        assert target.artifact_name == "demo-latest.x86_64.rpm"
        assert target.listing_url == "https://dl.example.com/linux/rpm/"
        assert target.media_name == "demo-local"
        assert target.subdir == "demo"

    def test_explicit_values_kept(self):
        target = TargetConfig(
            package="demo",
            artifact_url="https://dl.example.com/a/demo.rpm",
            listing_url="https://dl.example.com/index/",
            media_name="Demo",
        )
        assert target.listing_url == "https://dl.example.com/index/"
        assert target.media_name == "Demo"

    def test_artifact_name_required(self):
        with pytest.raises(ValueError):
            TargetConfig(package="demo", artifact_url="https://dl.example.com/rpm/")

    def test_key_filename_derived(self):
        key = KeyConfig(url="https://dl.example.com/keys/signing.pub")
        assert key.filename == "signing.pub"
        assert key.enabled
        assert not KeyConfig().enabled

    def test_default_release_table(self):
        config = SyncConfig(target=TargetConfig(package="d", artifact_url="https://x/d.rpm"))
        assert config.release_flags("7") == ["--allow-nodeps"]
        assert config.release_flags("9") == ["--force"]
        assert config.release_flags("cauldron") == ["--force"]
        assert config.release_flags("10") is None
        assert config.platform.fallback_flags == ["--force"]
        assert config.tools.elevate == ["sudo"]


class TestLoader:
    def test_flat_document(self, tmp_path: Path):
        config = load_config(_write(tmp_path, MINIMAL))
        assert config.target.package == "demo"

    def test_wrapped_document(self, tmp_path: Path):
        wrapped = "reposync:\n" + textwrap.indent(MINIMAL, "  ")
        assert load_config(_write(tmp_path, wrapped)).target.package == "demo"

    def test_integer_release_keys(self, tmp_path: Path):
        content = MINIMAL + textwrap.dedent("""\
            platform:
              releases:
                9:
                  install_flags: ["--force", "--auto"]
        """)
        config = load_config(_write(tmp_path, content))
        assert config.release_flags("9") == ["--force", "--auto"]
        assert config.release_flags("7") is None

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(ConfigError, match="not found"):
            load_config(tmp_path / "nope.yml")

    def test_invalid_yaml(self, tmp_path: Path):
        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_config(_write(tmp_path, "target: [unclosed"))

    def test_not_a_mapping(self, tmp_path: Path):
        with pytest.raises(ConfigError, match="mapping"):
            load_config(_write(tmp_path, "- a\n- b\n"))

    def test_schema_error(self, tmp_path: Path):
        with pytest.raises(ConfigError, match="Invalid configuration"):
            load_config(_write(tmp_path, "target:\n  package: demo\n"))


class TestFindConfig:
    def test_env_var_wins(self, tmp_path: Path, monkeypatch):
        _write(tmp_path, MINIMAL)
        monkeypatch.setenv("REPOSYNC_CONFIG", str(tmp_path / "custom.yml"))
        assert find_config_file(tmp_path) == tmp_path / "custom.yml"

    def test_local_file(self, tmp_path: Path, monkeypatch):
        monkeypatch.delenv("REPOSYNC_CONFIG", raising=False)
        path = _write(tmp_path, MINIMAL)
        assert find_config_file(tmp_path) == path

    def test_user_file(self, tmp_path: Path, monkeypatch):
        monkeypatch.delenv("REPOSYNC_CONFIG", raising=False)
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
        user = user_config_path()
        user.parent.mkdir(parents=True)
        user.write_text(MINIMAL)
        assert find_config_file(tmp_path / "empty") == user

    def test_nothing_found(self, tmp_path: Path, monkeypatch):
        monkeypatch.delenv("REPOSYNC_CONFIG", raising=False)
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
        assert find_config_file(tmp_path) is None


class TestConfigCheck:
    def test_valid_with_warnings(self, tmp_path: Path):
        result = check_config(_write(tmp_path, MINIMAL))
        assert result.valid
        assert any("signing key" in w for w in result.warnings)
        assert any("self_update" in w for w in result.warnings)
        assert result.to_dict()["releases"] == ["7", "8", "9", "cauldron"]

    def test_invalid(self, tmp_path: Path):
        result = check_config(_write(tmp_path, "nope"))
        assert not result.valid
        assert result.errors
