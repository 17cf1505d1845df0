"""
Typed wrappers for every external collaborator.

Each method builds an explicit argv from the configured tool prefix,
dispatches it through the adapter registry under a fixed action ID,
and returns the Receipt. Nothing here decides severity; callers do.
"""

from __future__ import annotations

import logging
from pathlib import Path

from reposync.adapters.registry import AdapterRegistry
from reposync.core.models.action import Action, Receipt
from reposync.core.models.config import ToolsConfig

logger = logging.getLogger(__name__)

# ── Action IDs ──────────────────────────────────────────────────

FETCH_ARTIFACT = "fetch:artifact"
FETCH_LISTING = "fetch:listing"
FETCH_KEY = "fetch:key"
FETCH_SELF = "fetch:self"
QUERY_PACKAGE = "query:package"
LIST_MEDIA = "media:list"
ADD_MEDIA = "media:add"
GENERATE_INDEX = "index:generate"
INSTALL_PACKAGE = "install:package"
UNINSTALL_PACKAGE = "install:uninstall"
FORCE_INSTALL = "install:force"
COPY_KEY = "key:copy"
IMPORT_KEY = "key:import"
RESOLVE_USER_DIR = "userdir:resolve"


class Toolbox:
    """External tools bound to one registry, tool table and work dir."""

    def __init__(self, registry: AdapterRegistry, tools: ToolsConfig, work_dir: Path):
        self.registry = registry
        self.tools = tools
        self.work_dir = work_dir

    def _run(self, action_id: str, argv: list[str], *, elevate: bool = False) -> Receipt:
        action = Action(id=action_id, argv=argv, elevate=elevate, timeout=self.tools.timeout)
        cwd = str(self.work_dir) if self.work_dir.is_dir() else "."
        return self.registry.execute_action(action, work_dir=cwd)

    # ── Network ─────────────────────────────────────────────────

    def fetch(self, url: str, dest: Path, action_id: str = FETCH_ARTIFACT) -> Receipt:
        """Download ``url`` to ``dest`` via a ``.part`` file.

        ``dest`` is only replaced when the download completes, so a failed
        fetch never truncates the previous copy.
        """
        part = dest.with_name(dest.name + ".part")
        receipt = self._run(action_id, [*self.tools.fetch, "--output", str(part), url])
        if receipt.ok:
            if part.is_file():
                part.replace(dest)
            else:
                return Receipt.failure(
                    adapter=receipt.adapter,
                    action_id=action_id,
                    error=f"Download reported success but {part.name} is missing",
                    return_code=receipt.return_code,
                )
        else:
            part.unlink(missing_ok=True)
        return receipt

    def fetch_text(self, url: str, action_id: str = FETCH_LISTING) -> Receipt:
        """Download ``url`` and return its body in ``receipt.output``."""
        return self._run(action_id, [*self.tools.fetch, url])

    # ── Package database ────────────────────────────────────────

    def query_package(self, package: str) -> Receipt:
        """Exit 0 means installed; ``output`` carries the version."""
        return self._run(QUERY_PACKAGE, [*self.tools.query, package])

    def install_package(self, package: str, flags: list[str]) -> Receipt:
        return self._run(
            INSTALL_PACKAGE, [*self.tools.install, *flags, package], elevate=True
        )

    def uninstall_package(self, package: str) -> Receipt:
        return self._run(UNINSTALL_PACKAGE, [*self.tools.uninstall, package], elevate=True)

    def force_install(self, artifact: Path) -> Receipt:
        return self._run(FORCE_INSTALL, [*self.tools.force_install, str(artifact)], elevate=True)

    # ── Repository ──────────────────────────────────────────────

    def list_media(self) -> Receipt:
        return self._run(LIST_MEDIA, list(self.tools.list_media))

    def add_media(self, name: str, path: Path) -> Receipt:
        return self._run(ADD_MEDIA, [*self.tools.add_media, name, str(path)], elevate=True)

    def generate_index(self, directory: Path) -> Receipt:
        return self._run(GENERATE_INDEX, [*self.tools.generate_index, str(directory)])

    # ── Trust store ─────────────────────────────────────────────

    def copy_privileged(self, src: Path, dest: Path) -> Receipt:
        return self._run(COPY_KEY, [*self.tools.copy_file, str(src), str(dest)], elevate=True)

    def import_key(self, path: Path) -> Receipt:
        return self._run(IMPORT_KEY, [*self.tools.import_key, str(path)], elevate=True)

    # ── User directories ────────────────────────────────────────

    def resolve_user_dir(self) -> Receipt:
        return self._run(RESOLVE_USER_DIR, list(self.tools.user_dir))
