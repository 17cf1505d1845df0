"""
Domain models — Pydantic types for reposync.

All models are re-exported here for convenient access:

    from reposync.core.models import SyncConfig, Action, Receipt, SyncState
"""

from reposync.core.models.action import Action, Receipt
from reposync.core.models.config import (
    KeyConfig,
    PlatformConfig,
    ReleaseProfile,
    SelfUpdateConfig,
    SyncConfig,
    TargetConfig,
    ToolsConfig,
)
from reposync.core.models.state import LocalState, RunRecord, SyncState

__all__ = [
    # action.py
    "Action",
    # config.py
    "KeyConfig",
    # state.py
    "LocalState",
    "PlatformConfig",
    "Receipt",
    "ReleaseProfile",
    "RunRecord",
    "SelfUpdateConfig",
    "SyncConfig",
    "SyncState",
    "TargetConfig",
    "ToolsConfig",
]
