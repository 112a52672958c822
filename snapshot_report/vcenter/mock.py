"""
Mock management client for offline runs and testing (no server calls).
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Any

import yaml

from snapshot_report.exceptions import ServerConnectionError
from snapshot_report.models import match_timezone
from snapshot_report.vcenter.base import (
    AuditEvent,
    ManagementClient,
    SnapshotInfo,
    VirtualMachineInfo,
)

logger = logging.getLogger(__name__)


class MockClient(ManagementClient):
    """
    Serves VMs, snapshots and events from an inventory document.

    VMs are keyed by ``key`` when given, otherwise by name; events refer to
    that key in their ``vm`` field. Naive event timestamps are taken to be in
    the same zone as the query window.

    The inventory is either passed in-memory (``config["inventory"]``) or read
    from a YAML file (``config["inventory_file"]``)::

        vms:
          - name: web01
            snapshots:
              - name: before-patch
                created: 2026-10-01T09:00:00+00:00
                size_mb: 2048
                children: []
        events:
          - vm: web01
            created: 2026-10-01T09:00:03+00:00
            message: "Task: Create virtual machine snapshot"
            username: CORP\\alice
    """

    def __init__(self, config: dict, inventory: dict[str, Any] | None = None):
        super().__init__(config)
        self._inventory = inventory if inventory is not None else config.get("inventory")
        self.connected = False

    def connect(self) -> None:
        if self._inventory is None:
            inventory_file = self.config.get("inventory_file")
            if not inventory_file:
                raise ServerConnectionError(
                    self.host or "mock", "no inventory_file configured for mock provider"
                )
            path = Path(inventory_file)
            if not path.exists():
                raise ServerConnectionError(self.host or "mock", f"inventory not found: {path}")
            self._inventory = yaml.safe_load(path.read_text()) or {}
            logger.debug(f"Loaded mock inventory from {path}")
        self.connected = True

    def disconnect(self) -> None:
        self.connected = False

    def list_vms(self) -> list[VirtualMachineInfo]:
        return [
            VirtualMachineInfo(
                name=vm["name"],
                snapshots=[_parse_snapshot(s) for s in vm.get("snapshots") or []],
                key=vm.get("key", ""),
            )
            for vm in self._data().get("vms") or []
        ]

    def query_events(self, vm_key: str, begin: datetime, end: datetime) -> list[AuditEvent]:
        events = []
        for entry in self._data().get("events") or []:
            if entry.get("vm") != vm_key:
                continue
            event = AuditEvent(
                created=match_timezone(_parse_time(entry["created"]), begin),
                message=entry.get("message", ""),
                username=entry.get("username", ""),
                category=entry.get("category", "info"),
            )
            if event.category == "info" and begin <= event.created <= end:
                events.append(event)
        return events

    def _data(self) -> dict[str, Any]:
        if not self.connected:
            raise RuntimeError("Mock client not connected. Call connect() first.")
        return self._inventory or {}


def _parse_time(value: Any) -> datetime:
    # PyYAML already turns unquoted ISO timestamps into datetimes
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value))


def _parse_snapshot(data: dict[str, Any]) -> SnapshotInfo:
    return SnapshotInfo(
        name=data["name"],
        created=_parse_time(data["created"]),
        description=data.get("description") or "",
        size_gb=data.get("size_gb"),
        size_mb=data.get("size_mb"),
        children=[_parse_snapshot(c) for c in data.get("children") or []],
    )
