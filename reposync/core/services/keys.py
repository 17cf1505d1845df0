"""
Signing key management — local copy, checksum, system trust store.

A key whose checksum file disagrees with it is never used: that is a
fatal result. A key seen for the first time gets its checksum recorded
(trust on first use).
"""

from __future__ import annotations

import filecmp
import hashlib
import logging
from pathlib import Path

from reposync.core.context import SyncContext
from reposync.core.engine.executor import StepResult
from reposync.core.services.tools import FETCH_KEY

logger = logging.getLogger(__name__)


def sha256_file(path: Path) -> str:
    h = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(8192), b""):
            h.update(chunk)
    return h.hexdigest()


def write_checksum(path: Path, checksum_path: Path) -> str:
    """Write ``<hex>  <name>`` (sha256sum format) and return the digest."""
    digest = sha256_file(path)
    checksum_path.write_text(f"{digest}  {path.name}\n", encoding="utf-8")
    return digest


def verify_checksum(path: Path, checksum_path: Path) -> bool:
    """True when the first digest in ``checksum_path`` matches ``path``."""
    fields = checksum_path.read_text(encoding="utf-8").split()
    if not fields:
        return False
    return fields[0].lower() == sha256_file(path)


def _usable(path: Path) -> bool:
    return path.is_file() and path.stat().st_size > 0


def ensure_local_key(ctx: SyncContext) -> StepResult:
    """Make sure a verified signing key sits in the work directory."""
    key, checksum = ctx.paths.key, ctx.paths.key_checksum
    if key is None or checksum is None:
        return StepResult.skip("no signing key configured")

    if _usable(key):
        if checksum.is_file():
            if not verify_checksum(key, checksum):
                return StepResult.fatal(
                    f"{key.name} does not match {checksum.name}; refusing to continue "
                    f"with a modified signing key"
                )
            return StepResult.success(f"{key.name} matches {checksum.name}")
        digest = write_checksum(key, checksum)
        return StepResult.success(f"recorded {checksum.name} ({digest[:16]}…)")

    ctx.paths.work_dir.mkdir(parents=True, exist_ok=True)
    receipt = ctx.tools.fetch(ctx.config.key.url, key, action_id=FETCH_KEY)
    if not receipt.ok or not _usable(key):
        return StepResult.warning(
            f"Could not download signing key {ctx.config.key.url} "
            f"(exit {receipt.return_code})",
            key_available=False,
        )
    digest = write_checksum(key, checksum)
    return StepResult.success(f"downloaded {key.name}, sha256 {digest[:16]}…")


def ensure_trusted_key(ctx: SyncContext) -> StepResult:
    """Install the local key into the trust store and import it if needed."""
    key, trusted = ctx.paths.key, ctx.paths.trusted_key
    if key is None or trusted is None:
        return StepResult.skip("no signing key configured")
    if not _usable(key):
        return StepResult.warning(f"{key.name} unavailable; trust store not updated")

    if trusted.is_file():
        if filecmp.cmp(key, trusted, shallow=False):
            return StepResult.success(f"{trusted} already trusted")
        action = "replaced"
    else:
        action = "installed"

    copied = ctx.tools.copy_privileged(key, trusted)
    if not copied.ok:
        return StepResult.warning(
            f"Could not copy {key.name} to {trusted.parent} (exit {copied.return_code})"
        )

    imported = ctx.tools.import_key(trusted)
    if not imported.ok:
        return StepResult.warning(
            f"{trusted} {action} but import failed (exit {imported.return_code})"
        )
    return StepResult.success(f"{trusted} {action} and imported")
