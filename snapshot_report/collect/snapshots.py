"""
Enumerate every VM snapshot on the server as report records.
"""

import logging
from typing import Iterator

from snapshot_report.collect.attribution import DEFAULT_WINDOW_SECONDS, resolve_creator
from snapshot_report.models import SnapshotRecord, round_size, size_from_mb
from snapshot_report.vcenter.base import ManagementClient, SnapshotInfo, walk_snapshots

logger = logging.getLogger(__name__)


def snapshot_size_gb(snapshot: SnapshotInfo) -> float:
    """Size in GB, converting from MB on servers that only report MB."""
    if snapshot.size_gb is not None:
        return round_size(snapshot.size_gb)
    if snapshot.size_mb is not None:
        return size_from_mb(snapshot.size_mb)
    return 0.0


def collect_snapshots(
    client: ManagementClient, window_seconds: int = DEFAULT_WINDOW_SECONDS
) -> Iterator[SnapshotRecord]:
    """
    Yield one record per snapshot of every VM.

    This is a generator over live server data: iterating again re-queries the
    server. An empty result is left for the renderer to replace with a
    placeholder row.

    Args:
        client: Connected management client
        window_seconds: Audit event search half-width passed to the resolver

    Yields:
        SnapshotRecord for each snapshot, snapshot trees flattened depth-first
    """
    for vm in client.list_vms():
        for snapshot in walk_snapshots(vm.snapshots):
            creator = resolve_creator(client, vm.key, snapshot.created, window_seconds)
            logger.debug(f"{vm.name}/{snapshot.name}: creator={creator or '<unknown>'}")
            yield SnapshotRecord(
                vm=vm.name,
                name=snapshot.name,
                description=snapshot.description,
                size_gb=snapshot_size_gb(snapshot),
                creator=creator,
                created=snapshot.created,
            )
