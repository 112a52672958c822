"""Snapshot report row model.

One SnapshotRecord is built per VM snapshot on every run. Records are never
persisted or mutated; the age column is derived from ``created`` at render
time rather than stored.
"""

from dataclasses import dataclass
from datetime import datetime

NO_SNAPSHOTS_MESSAGE = "No snapshots found"

MB_PER_GB = 1024


def round_size(value: float) -> float:
    """Round a size in GB to two decimals, clamping negatives to zero."""
    return round(max(float(value), 0.0), 2)


def size_from_mb(size_mb: float) -> float:
    """Convert a size reported in MB to rounded GB."""
    return round_size(float(size_mb) / MB_PER_GB)


def match_timezone(value: datetime, reference: datetime) -> datetime:
    """
    Give ``value`` the same awareness as ``reference``.

    A naive value is assumed to be in the reference's zone; an aware value
    compared against a naive reference drops its zone.
    """
    if (value.tzinfo is None) == (reference.tzinfo is None):
        return value
    if value.tzinfo is None:
        return value.replace(tzinfo=reference.tzinfo)
    return value.replace(tzinfo=None)


def days_old(created: datetime | None, now: datetime) -> int | None:
    """
    Whole days between ``created`` and ``now``.

    Naive and aware timestamps are compared on the same footing: when only one
    side carries a timezone, the other is assumed to be in the same zone.
    Snapshots stamped slightly in the future (clock skew) count as 0 days.

    Returns:
        Number of days, or None when ``created`` is unknown
    """
    if created is None:
        return None

    created = match_timezone(created, now)
    return max((now - created).days, 0)


@dataclass(frozen=True)
class SnapshotRecord:
    """One row of the snapshot report."""

    vm: str
    name: str
    description: str = ""
    size_gb: float = 0.0
    creator: str = ""  # short username, "" when unresolved
    created: datetime | None = None

    def __post_init__(self):
        # frozen dataclass: normalise through object.__setattr__
        object.__setattr__(self, "size_gb", round_size(self.size_gb))
        object.__setattr__(self, "description", self.description or "")
        object.__setattr__(self, "creator", self.creator or "")

    @property
    def is_placeholder(self) -> bool:
        return self.created is None and self.vm == NO_SNAPSHOTS_MESSAGE


def placeholder_record() -> SnapshotRecord:
    """Row shown when the server has no snapshots at all."""
    return SnapshotRecord(vm=NO_SNAPSHOTS_MESSAGE, name="")


def report_title(server: str) -> str:
    """Report heading and mail subject for a management server."""
    return f"{server} Snapshot Report"
