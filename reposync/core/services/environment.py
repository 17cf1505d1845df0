"""
Environment validation — refuse to run anywhere but the target platform.

Checks, in order: privilege level, distribution, architecture, release.
The first three are fatal; an unknown release only warns, so a new
distribution release keeps working before the release table catches up.
"""

from __future__ import annotations

import logging
import os
import platform
from pathlib import Path

from reposync.core.context import SyncContext
from reposync.core.engine.executor import StepResult

logger = logging.getLogger(__name__)


def read_os_release(path: Path) -> dict[str, str]:
    """Parse an os-release file into a dict (quotes stripped).

    Returns an empty dict when the file is missing or unreadable.
    """
    data: dict[str, str] = {}
    try:
        with open(path, encoding="utf-8") as f:
            for line in f:
                line = line.strip()
                if not line or line.startswith("#") or "=" not in line:
                    continue
                key, value = line.split("=", 1)
                data[key] = value.strip().strip('"').strip("'")
    except OSError as e:
        logger.debug("Cannot read %s: %s", path, e)
    return data


def check_privilege(ctx: SyncContext, euid: int | None = None) -> StepResult:
    """Refuse to run as root unless the config allows it.

    Privileged operations are elevated one by one; running the whole
    tool as root would also put the work directory under root's home.
    """
    if euid is None:
        euid = os.geteuid()
    if euid == 0 and not ctx.config.platform.allow_root:
        return StepResult.fatal(
            "Do not run reposync as root; privileged steps are elevated individually"
        )
    return StepResult.success(f"running as uid {euid}")


def select_install_flags(ctx: SyncContext, release: str) -> tuple[list[str], bool]:
    """Install flags for ``release`` and whether the release is known."""
    flags = ctx.config.release_flags(release)
    if flags is None:
        return list(ctx.config.platform.fallback_flags), False
    return flags, True


def validate_environment(
    ctx: SyncContext,
    os_release: dict[str, str] | None = None,
    machine: str | None = None,
) -> StepResult:
    """Check distribution, architecture and release; select install flags.

    Side effect: sets ``ctx.release`` and ``ctx.install_flags``.
    """
    expected = ctx.config.platform
    if os_release is None:
        os_release = read_os_release(Path(expected.os_release_path))
    if machine is None:
        machine = platform.machine()

    distro = os_release.get("ID", "")
    if distro != expected.distribution:
        return StepResult.fatal(
            f"This tool supports {expected.distribution} only (found {distro or 'unknown'})",
            distribution=distro,
        )

    if machine != expected.architecture:
        return StepResult.fatal(
            f"This tool supports {expected.architecture} only (found {machine})",
            architecture=machine,
        )

    release = os_release.get("VERSION_ID", "")
    flags, known = select_install_flags(ctx, release)
    ctx.release = release
    ctx.install_flags = flags

    if not known:
        return StepResult.warning(
            f"Release '{release or 'unknown'}' is not in the supported list "
            f"({', '.join(sorted(expected.releases)) or 'none'}); "
            f"continuing with flags {flags}",
            release=release,
            install_flags=flags,
        )

    return StepResult.success(
        f"{distro} {release} {machine}, install flags {flags}",
        release=release,
        install_flags=flags,
    )
