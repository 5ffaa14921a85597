from datetime import datetime, timezone

from ..models import Exclusions, ResourceKey
from .base import ACT, Action, Decision, SelectionRule
from .exclusion import SUBSTRING_DISPLAY_KINDS, ExclusionRule
from .older_than import AGE_AWARE_KINDS, OlderThanRule
from .utils import age_in_days, parse_created_at, sanitize_count


# Order matters: an excluded resource is reported as excluded whatever its age.
SELECTION_RULES: list[SelectionRule] = [
    ExclusionRule(),
    OlderThanRule(),
]


def decide(
    resource: ResourceKey,
    exclusions: Exclusions,
    older_than_days: int | None = None,
    now: datetime | None = None,
) -> Decision:
    current = now or datetime.now(timezone.utc)
    for rule in SELECTION_RULES:
        if rule.should_skip(resource, exclusions, older_than_days, current):
            return Decision(Action.SKIP, rule.reason)
    return ACT


__all__ = [
    "ACT",
    "AGE_AWARE_KINDS",
    "Action",
    "Decision",
    "ExclusionRule",
    "OlderThanRule",
    "SELECTION_RULES",
    "SUBSTRING_DISPLAY_KINDS",
    "SelectionRule",
    "age_in_days",
    "decide",
    "parse_created_at",
    "sanitize_count",
]
