"""
Snapshot collection from the management server.
"""

from snapshot_report.collect.attribution import (
    SNAPSHOT_CREATE_MESSAGE,
    resolve_creator,
    strip_domain,
)
from snapshot_report.collect.snapshots import collect_snapshots

__all__ = ["SNAPSHOT_CREATE_MESSAGE", "collect_snapshots", "resolve_creator", "strip_domain"]
