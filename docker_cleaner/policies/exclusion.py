from datetime import datetime

from ..models import Exclusions, ResourceKey, ResourceKind
from .base import SelectionRule


# Kinds whose display name is a list of references matched by substring.
SUBSTRING_DISPLAY_KINDS = frozenset({ResourceKind.IMAGE})


class ExclusionRule(SelectionRule):
    reason = "excluded"

    def should_skip(
        self,
        resource: ResourceKey,
        exclusions: Exclusions,
        older_than_days: int | None,
        now: datetime,
    ) -> bool:
        substring = resource.kind in SUBSTRING_DISPLAY_KINDS
        for pattern in exclusions.for_kind(resource.kind):
            if resource.matches(pattern, substring_display=substring):
                return True
        return False
