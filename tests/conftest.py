"""
Shared test fixtures and configuration.
"""

import platform
from pathlib import Path

import pytest
import yaml

from fakes import ARTIFACT_URL, KEY_URL, LINE_V1, FakeSystem
from reposync.adapters.mock import MockAdapter
from reposync.adapters.registry import AdapterRegistry
from reposync.core.context import SyncPaths, build_paths
from reposync.core.models.config import KeyConfig, PlatformConfig, SyncConfig, TargetConfig


@pytest.fixture
def os_release(tmp_path: Path) -> Path:
    path = tmp_path / "os-release"
    path.write_text('NAME="Mageia"\nID=mageia\nVERSION_ID="9"\n')
    return path


@pytest.fixture
def config(tmp_path: Path, os_release: Path) -> SyncConfig:
    """Config pointed at the temp dir, on whatever machine runs the tests."""
    return SyncConfig(
        target=TargetConfig(package="demo", artifact_url=ARTIFACT_URL),
        platform=PlatformConfig(
            architecture=platform.machine(),
            allow_root=True,
            os_release_path=str(os_release),
        ),
        key=KeyConfig(url=KEY_URL, trust_store_dir=str(tmp_path / "trust")),
        download_dir=str(tmp_path / "downloads"),
    )


@pytest.fixture
def config_file(tmp_path: Path, config: SyncConfig) -> Path:
    path = tmp_path / "reposync.yml"
    path.write_text(yaml.safe_dump({"reposync": config.model_dump(mode="json")}))
    return path


@pytest.fixture
def mock() -> MockAdapter:
    return MockAdapter()


@pytest.fixture
def registry(mock: MockAdapter) -> AdapterRegistry:
    reg = AdapterRegistry()
    reg.register(mock)
    return reg


@pytest.fixture
def fake(mock: MockAdapter) -> FakeSystem:
    system = FakeSystem(mock)
    system.publish(b"rpm-v1", LINE_V1, "1.0-1")
    system.publish_key()
    return system


@pytest.fixture
def paths(config: SyncConfig) -> SyncPaths:
    return build_paths(config, Path(config.download_dir))
