"""
Config check use case — validate reposync.yml without running anything.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from reposync.core.config.loader import ConfigError, find_config_file, load_config
from reposync.core.models.config import SyncConfig

logger = logging.getLogger(__name__)


@dataclass
class ConfigCheckResult:
    """Result of configuration validation."""

    valid: bool = False
    path: Path | None = None
    config: SyncConfig | None = None
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        result: dict = {
            "valid": self.valid,
            "path": str(self.path) if self.path else None,
            "errors": self.errors,
            "warnings": self.warnings,
        }
        if self.config:
            result["package"] = self.config.target.package
            result["artifact_url"] = self.config.target.artifact_url
            result["listing_url"] = self.config.target.listing_url
            result["releases"] = sorted(self.config.platform.releases)
        return result


def check_config(config_path: Path | None = None) -> ConfigCheckResult:
    """Validate configuration and collect advisory warnings."""
    result = ConfigCheckResult()
    result.path = config_path or find_config_file()

    try:
        config = load_config(result.path)
    except ConfigError as e:
        result.errors.append(str(e))
        return result

    result.valid = True
    result.config = config

    if not config.key.enabled:
        result.warnings.append("No signing key configured (key.url); trust store is not managed")
    if not config.self_update.script_url:
        result.warnings.append("No self_update.script_url configured; self-check is skipped")
    if not config.platform.releases:
        result.warnings.append(
            "platform.releases is empty; every release will warn and use fallback flags"
        )

    return result
