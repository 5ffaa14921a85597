import enum
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime

from ..models import Exclusions, ResourceKey


class Action(str, enum.Enum):
    ACT = "act"
    SKIP = "skip"


@dataclass(frozen=True)
class Decision:
    action: Action
    reason: str | None = None

    @property
    def act(self) -> bool:
        return self.action is Action.ACT


ACT = Decision(Action.ACT)


class SelectionRule(ABC):
    reason: str = ""

    @abstractmethod
    def should_skip(
        self,
        resource: ResourceKey,
        exclusions: Exclusions,
        older_than_days: int | None,
        now: datetime,
    ) -> bool:
        """Return True when the resource must be left alone."""
