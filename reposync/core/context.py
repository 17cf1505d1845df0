"""
Sync context — everything a run needs, passed explicitly to every step.

Paths, URLs, the package name, the selected install flags and the tool
bindings all live here. Steps never consult module globals or
environment variables; what a step can touch is what its SyncContext
holds.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from reposync.adapters.registry import AdapterRegistry
from reposync.core.engine.executor import Workflow
from reposync.core.models.config import SyncConfig
from reposync.core.services.tools import Toolbox

logger = logging.getLogger(__name__)

MANIFEST_FILE = "README.txt"
INDEX_DIR = "media_info"
STATE_DIR = ".state"


@dataclass(frozen=True)
class SyncPaths:
    """Every file the tool reads or writes in its work directory."""

    work_dir: Path
    artifact_name: str
    key_filename: str = ""
    trust_store_dir: Path = Path("/etc/pki/rpm-gpg")

    @property
    def artifact(self) -> Path:
        return self.work_dir / self.artifact_name

    @property
    def snapshot(self) -> Path:
        return self.work_dir / f"{self.artifact_name}.listing"

    @property
    def snapshot_backup(self) -> Path:
        # previous generation keeps a trailing "-"
        return self.work_dir / f"{self.artifact_name}.listing-"

    @property
    def key(self) -> Path | None:
        return self.work_dir / self.key_filename if self.key_filename else None

    @property
    def key_checksum(self) -> Path | None:
        return self.work_dir / f"{self.key_filename}.sha256" if self.key_filename else None

    @property
    def trusted_key(self) -> Path | None:
        return self.trust_store_dir / self.key_filename if self.key_filename else None

    @property
    def manifest(self) -> Path:
        return self.work_dir / MANIFEST_FILE

    @property
    def index_dir(self) -> Path:
        return self.work_dir / INDEX_DIR

    @property
    def state_dir(self) -> Path:
        return self.work_dir / STATE_DIR

    def aside(self, tag: str) -> Path:
        """Name for a superseded artifact, e.g. ``foo.rpm.1.2-3``."""
        return self.work_dir / f"{self.artifact_name}.{tag}"


@dataclass
class SyncContext:
    """Explicit per-run state threaded through each step."""

    config: SyncConfig
    paths: SyncPaths
    tools: Toolbox
    workflow: Workflow = field(default_factory=Workflow)
    install_flags: list[str] = field(default_factory=list)
    release: str = ""

    @property
    def package(self) -> str:
        return self.config.target.package


def resolve_download_dir(config: SyncConfig, registry: AdapterRegistry) -> Path:
    """The operating user's downloads folder.

    Explicit ``download_dir`` wins; otherwise ask the user-directory tool
    and fall back to ``~/Downloads`` when it is missing or silent.
    """
    if config.download_dir:
        return Path(config.download_dir).expanduser()

    lookup = Toolbox(registry, config.tools, Path.home())
    receipt = lookup.resolve_user_dir()
    if receipt.ok and receipt.output.strip():
        return Path(receipt.output.strip().splitlines()[0])

    logger.debug("User-directory lookup failed (%s); using ~/Downloads", receipt.error)
    return Path.home() / "Downloads"


def build_paths(config: SyncConfig, download_dir: Path) -> SyncPaths:
    return SyncPaths(
        work_dir=download_dir / config.target.subdir,
        artifact_name=config.target.artifact_name,
        key_filename=config.key.filename if config.key.enabled else "",
        trust_store_dir=Path(config.key.trust_store_dir),
    )


def build_context(
    config: SyncConfig,
    registry: AdapterRegistry,
    workflow: Workflow | None = None,
) -> SyncContext:
    """Resolve paths and bind tools for one run."""
    registry.set_elevate_prefix(config.tools.elevate)
    paths = build_paths(config, resolve_download_dir(config, registry))
    return SyncContext(
        config=config,
        paths=paths,
        tools=Toolbox(registry, config.tools, paths.work_dir),
        workflow=workflow or Workflow(),
    )
