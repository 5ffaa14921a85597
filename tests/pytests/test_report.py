from __future__ import annotations

import importlib
import sys
from pathlib import Path

import pytest


REPO_ROOT = Path(__file__).parents[2]
if str(REPO_ROOT) not in sys.path:
    sys.path.append(str(REPO_ROOT))

report_module = importlib.import_module("docker_cleaner.report")
RunReport = report_module.RunReport


def test_fresh_report_renders_every_row_as_zero() -> None:
    lines = RunReport().render()

    assert lines[:3] == ["Cleanup completed.", "", "Cleanup Summary:"]
    assert lines[3] == "Resource Type             | Removed  | Excluded"
    assert lines[4] == "------------------------- | -------- | --------"
    assert len(lines) == 5 + len(report_module.SUMMARY_ROWS)
    assert lines[5] == "Containers                | 0        | 0       "
    assert lines[-1] == "Cleaned Logs              | 0        | N/A     "


def test_rows_use_na_where_excluded_has_no_meaning() -> None:
    report = RunReport()
    report.add("builders", "processed", 2)
    report.add("builders", "excluded")
    report.add("builders", "removed")
    report.add("dangling_images", "removed", 4)

    rows = {label: (removed, excluded) for label, removed, excluded in report.rows()}
    assert rows["Builders (Processed)"] == ("2", "1")
    assert rows["Builders (Removed)"] == ("1", "N/A")
    assert rows["Dangling Images"] == ("4", "N/A")
    assert rows["Dangling Build Cache"] == ("0", "N/A")


def test_report_counts_only_grow() -> None:
    report = RunReport()
    report.add("containers", "removed")
    report.add("containers", "removed", 0)

    with pytest.raises(ValueError):
        report.add("containers", "removed", -1)
    with pytest.raises(ValueError, match="Unknown metric"):
        report.add("containers", "deleted")

    assert report.get("containers", "removed") == 1


def test_total_sums_a_metric_across_categories() -> None:
    report = RunReport()
    report.add("images", "failed", 2)
    report.add("volumes", "failed")
    report.add("volumes", "removed", 5)
    assert report.total("failed") == 3
