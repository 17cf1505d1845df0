"""
Adapter base — what an adapter gets and what it must provide.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from pydantic import BaseModel, Field

from reposync.core.models.action import Action, Receipt


class ExecutionContext(BaseModel):
    """An Action plus where and how the registry wants it run."""

    action: Action
    work_dir: str = "."
    elevate_prefix: list[str] = Field(default_factory=list)

    @property
    def cwd(self) -> str:
        return self.action.cwd or self.work_dir


class Adapter(ABC):
    """Runs Actions of one kind. ``execute`` must return a Receipt, never raise."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Value matched against ``Action.adapter``."""

    @abstractmethod
    def is_available(self) -> bool: ...

    @abstractmethod
    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        """Cheap pre-flight check; returns (ok, reason)."""

    @abstractmethod
    def execute(self, context: ExecutionContext) -> Receipt: ...

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} {self.name}>"
