"""Adapters — bindings for the external command-line tools.

Public re-exports for convenient access.
"""

from reposync.adapters.base import Adapter, ExecutionContext
from reposync.adapters.mock import MockAdapter
from reposync.adapters.registry import AdapterRegistry
from reposync.adapters.shell.command import CommandAdapter

__all__ = [
    "Adapter",
    "AdapterRegistry",
    "CommandAdapter",
    "ExecutionContext",
    "MockAdapter",
]


def default_registry(elevate_prefix: list[str] | None = None) -> AdapterRegistry:
    """Registry wired with the real command adapter."""
    registry = AdapterRegistry(elevate_prefix=elevate_prefix)
    registry.register(CommandAdapter())
    return registry
