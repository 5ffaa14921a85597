from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field


REMOVED = "removed"
EXCLUDED = "excluded"
PROCESSED = "processed"
CLEANED = "cleaned"
FAILED = "failed"

METRICS = frozenset({REMOVED, EXCLUDED, PROCESSED, CLEANED, FAILED})

# (label, ledger category, count metric, excluded metric or None for N/A)
SUMMARY_ROWS: list[tuple[str, str, str, str | None]] = [
    ("Containers", "containers", REMOVED, EXCLUDED),
    ("Images", "images", REMOVED, EXCLUDED),
    ("Volumes", "volumes", REMOVED, EXCLUDED),
    ("Builders (Processed)", "builders", PROCESSED, EXCLUDED),
    ("Builders (Removed)", "builders", REMOVED, None),
    ("Minikube Profiles", "minikube", REMOVED, EXCLUDED),
    ("Kind Clusters", "kind", REMOVED, EXCLUDED),
    ("Dangling Images", "dangling_images", REMOVED, None),
    ("Dangling Containers", "dangling_containers", REMOVED, None),
    ("Dangling Volumes", "dangling_volumes", REMOVED, None),
    ("Dangling Networks", "dangling_networks", REMOVED, None),
    ("Dangling Build Cache", "dangling_build_cache", REMOVED, None),
    ("Cleaned Logs", "logs", CLEANED, None),
]

ROW_FORMAT = "{:<25} | {:<8} | {:<8}"


@dataclass
class RunReport:
    """Accumulate-only ledger of what a run did, keyed by (category, metric)."""

    counts: dict[tuple[str, str], int] = field(default_factory=lambda: defaultdict(int))

    def add(self, category: str, metric: str, amount: int = 1) -> None:
        if metric not in METRICS:
            raise ValueError(f"Unknown metric '{metric}'. Allowed values: {sorted(METRICS)}")
        amount = int(amount)
        if amount < 0:
            raise ValueError("report counts can only grow")
        self.counts[(category, metric)] += amount

    def get(self, category: str, metric: str) -> int:
        return int(self.counts.get((category, metric), 0))

    def total(self, metric: str) -> int:
        return sum(value for (_, name), value in self.counts.items() if name == metric)

    def rows(self) -> list[tuple[str, str, str]]:
        out: list[tuple[str, str, str]] = []
        for label, category, metric, excluded_metric in SUMMARY_ROWS:
            excluded = str(self.get(category, excluded_metric)) if excluded_metric else "N/A"
            out.append((label, str(self.get(category, metric)), excluded))
        return out

    def render(self) -> list[str]:
        lines = [
            "Cleanup completed.",
            "",
            "Cleanup Summary:",
            ROW_FORMAT.format("Resource Type", "Removed", "Excluded"),
            ROW_FORMAT.format("-" * 25, "-" * 8, "-" * 8),
        ]
        lines.extend(ROW_FORMAT.format(*row) for row in self.rows())
        return lines
