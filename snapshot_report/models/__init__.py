"""
Data models.

This package contains the report row model shared by the collector and the
HTML renderer.

Modules:
- record: SnapshotRecord and size/age helpers
"""

from snapshot_report.models.record import (
    NO_SNAPSHOTS_MESSAGE,
    SnapshotRecord,
    days_old,
    match_timezone,
    placeholder_record,
    report_title,
    round_size,
    size_from_mb,
)

__all__ = [
    "NO_SNAPSHOTS_MESSAGE",
    "SnapshotRecord",
    "days_old",
    "match_timezone",
    "placeholder_record",
    "report_title",
    "round_size",
    "size_from_mb",
]
