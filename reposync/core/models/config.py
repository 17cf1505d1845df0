"""
Sync configuration — the canonical description of what to mirror and how.

Loaded from reposync.yml. Every path, URL, package name and tool command
used by the workflow is declared here; nothing is read from ambient
variables at step time.
"""

from __future__ import annotations

from posixpath import basename
from typing import Any
from urllib.parse import urlsplit

from pydantic import BaseModel, Field, field_validator, model_validator


class TargetConfig(BaseModel):
    """The upstream artifact and the package it installs."""

    package: str
    artifact_url: str
    listing_url: str = ""
    artifact_name: str = ""
    media_name: str = ""
    subdir: str = ""

    @model_validator(mode="after")
    def _fill_derived(self) -> TargetConfig:
        if not self.artifact_name:
            self.artifact_name = basename(urlsplit(self.artifact_url).path)
        if not self.artifact_name:
            raise ValueError(f"Cannot derive artifact name from URL: {self.artifact_url}")
        if not self.listing_url:
            # Directory listing of the folder that holds the artifact
            self.listing_url = self.artifact_url.rsplit("/", 1)[0] + "/"
        if not self.media_name:
            self.media_name = f"{self.package}-local"
        if not self.subdir:
            self.subdir = self.package
        return self


class ReleaseProfile(BaseModel):
    """Install flags selected for a known distribution release."""

    install_flags: list[str] = Field(default_factory=list)
    description: str = ""


def _default_releases() -> dict[str, ReleaseProfile]:
    return {
        "7": ReleaseProfile(install_flags=["--allow-nodeps"], description="older release"),
        "8": ReleaseProfile(install_flags=["--force"]),
        "9": ReleaseProfile(install_flags=["--force"]),
        "cauldron": ReleaseProfile(install_flags=["--force"], description="development"),
    }


class PlatformConfig(BaseModel):
    """Which platform this tool agrees to run on."""

    distribution: str = "mageia"
    architecture: str = "x86_64"
    releases: dict[str, ReleaseProfile] = Field(default_factory=_default_releases)
    fallback_flags: list[str] = Field(default_factory=lambda: ["--force"])
    allow_root: bool = False
    os_release_path: str = "/etc/os-release"

    @field_validator("releases", mode="before")
    @classmethod
    def _stringify_release_keys(cls, value: Any) -> Any:
        # YAML reads `9:` as an int key
        if isinstance(value, dict):
            return {str(k): v for k, v in value.items()}
        return value


class KeyConfig(BaseModel):
    """Signing key location, upstream and in the system trust store."""

    url: str = ""
    filename: str = ""
    trust_store_dir: str = "/etc/pki/rpm-gpg"

    @model_validator(mode="after")
    def _fill_filename(self) -> KeyConfig:
        if self.url and not self.filename:
            self.filename = basename(urlsplit(self.url).path)
        return self

    @property
    def enabled(self) -> bool:
        return bool(self.url and self.filename)


class SelfUpdateConfig(BaseModel):
    """Where the authoritative copy of this tool's script lives."""

    script_url: str = ""
    local_path: str = ""        # default: reposync/main.py of this install
    homepage: str = ""


class ToolsConfig(BaseModel):
    """Argument-list prefixes for every external collaborator.

    Each entry is an explicit argv prefix; the workflow appends
    positional arguments (URLs, paths, package names) to it.
    """

    fetch: list[str] = Field(
        default_factory=lambda: ["curl", "--fail", "--silent", "--show-error", "--location"]
    )
    query: list[str] = Field(
        default_factory=lambda: ["rpm", "-q", "--queryformat", "%{VERSION}-%{RELEASE}"]
    )
    list_media: list[str] = Field(default_factory=lambda: ["urpmq", "--list-media"])
    add_media: list[str] = Field(default_factory=lambda: ["urpmi.addmedia"])
    generate_index: list[str] = Field(
        default_factory=lambda: ["genhdlist2", "--allow-empty-media"]
    )
    install: list[str] = Field(default_factory=lambda: ["urpmi", "--auto"])
    uninstall: list[str] = Field(default_factory=lambda: ["urpme", "--auto"])
    force_install: list[str] = Field(
        default_factory=lambda: ["rpm", "-Uvh", "--nodeps", "--force"]
    )
    import_key: list[str] = Field(default_factory=lambda: ["rpm", "--import"])
    copy_file: list[str] = Field(default_factory=lambda: ["install", "-m", "0644"])
    user_dir: list[str] = Field(default_factory=lambda: ["xdg-user-dir", "DOWNLOAD"])
    elevate: list[str] = Field(default_factory=lambda: ["sudo"])
    timeout: int = 600


class SyncConfig(BaseModel):
    """Root configuration — loaded from reposync.yml."""

    version: int = 1

    target: TargetConfig
    platform: PlatformConfig = Field(default_factory=PlatformConfig)
    key: KeyConfig = Field(default_factory=KeyConfig)
    self_update: SelfUpdateConfig = Field(default_factory=SelfUpdateConfig)
    tools: ToolsConfig = Field(default_factory=ToolsConfig)

    download_dir: str | None = None   # None = resolve the user's downloads folder

    def release_flags(self, release: str) -> list[str] | None:
        """Install flags for a known release, or None when unknown."""
        profile = self.platform.releases.get(release)
        return list(profile.install_flags) if profile is not None else None
