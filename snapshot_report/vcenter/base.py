"""
Abstract base class for virtualization management server clients.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime


@dataclass
class SnapshotInfo:
    """A snapshot as reported by the management server.

    Older servers only expose a size in MB; ``size_gb`` is None in that case.
    """

    name: str
    created: datetime
    description: str = ""
    size_gb: float | None = None
    size_mb: float | None = None
    children: list["SnapshotInfo"] = field(default_factory=list)


@dataclass
class VirtualMachineInfo:
    """A VM and its snapshot tree (root snapshots only).

    ``key`` identifies the VM on the server (the managed object id on
    vSphere); names are not unique across folders and datacenters.
    """

    name: str
    snapshots: list[SnapshotInfo] = field(default_factory=list)
    key: str = ""

    def __post_init__(self):
        if not self.key:
            self.key = self.name


@dataclass
class AuditEvent:
    """An audit/event-log entry scoped to a VM."""

    created: datetime
    message: str
    username: str = ""
    category: str = "info"


def walk_snapshots(snapshots: list[SnapshotInfo]):
    """Flatten a snapshot tree depth-first, parents before children."""
    for snapshot in snapshots:
        yield snapshot
        yield from walk_snapshots(snapshot.children)


class ManagementClient(ABC):
    """Abstract base class for management server clients."""

    def __init__(self, config: dict):
        """
        Initialize client.

        Args:
            config: ``server`` section of the workspace configuration
        """
        self.config = config
        self.host = config.get("host", "")
        self.port = config.get("port", 443)

    @abstractmethod
    def connect(self) -> None:
        """
        Open a session with the server.

        Raises:
            ServerConnectionError: If the server cannot be reached or rejects the login
        """
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Close the session, if one is open."""
        pass

    @abstractmethod
    def list_vms(self) -> list[VirtualMachineInfo]:
        """Return every VM known to the server together with its snapshot tree."""
        pass

    @abstractmethod
    def query_events(self, vm_key: str, begin: datetime, end: datetime) -> list[AuditEvent]:
        """
        Return informational events for the VM identified by ``vm_key`` between
        ``begin`` and ``end`` inclusive.

        Events are returned in the order the server reports them.

        Raises:
            EventQueryError: If the server rejects or fails the query
            ServerConnectionError: If the session has been lost
        """
        pass

    def __enter__(self):
        self.connect()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.disconnect()
        return False
