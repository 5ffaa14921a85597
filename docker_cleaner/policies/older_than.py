from datetime import datetime

from ..models import Exclusions, ResourceKey, ResourceKind
from .base import SelectionRule
from .utils import age_in_days, parse_created_at


# Kinds whose backends expose a creation time.
AGE_AWARE_KINDS = frozenset({ResourceKind.CONTAINER, ResourceKind.IMAGE})


class OlderThanRule(SelectionRule):
    reason = "too_recent"

    def should_skip(
        self,
        resource: ResourceKey,
        exclusions: Exclusions,
        older_than_days: int | None,
        now: datetime,
    ) -> bool:
        if older_than_days is None:
            return False
        if resource.kind not in AGE_AWARE_KINDS:
            return False

        created = parse_created_at(resource.created_at)
        if created is None:
            # Unknown age counts as old enough.
            return False
        return age_in_days(created, now) <= int(older_than_days)
