"""
Management server client abstraction layer.
"""

from snapshot_report.credentials import Credential
from snapshot_report.exceptions import UnsupportedProviderError
from snapshot_report.vcenter.base import (
    AuditEvent,
    ManagementClient,
    SnapshotInfo,
    VirtualMachineInfo,
    walk_snapshots,
)
from snapshot_report.vcenter.mock import MockClient
from snapshot_report.vcenter.vsphere import VSphereClient

PROVIDERS = ["vsphere", "mock"]


def get_client(config: dict, credential: Credential | None = None) -> ManagementClient:
    """
    Factory function to get a management client based on config.

    Args:
        config: Configuration dict with a 'server' section
        credential: Login for providers that need one

    Returns:
        ManagementClient instance (not yet connected)

    Raises:
        UnsupportedProviderError: If provider is not supported
    """
    server_config = config.get("server", {})
    provider_name = server_config.get("provider", "vsphere").lower()

    if provider_name == "mock":
        return MockClient(server_config)
    if provider_name == "vsphere":
        if credential is None:
            raise ValueError("vsphere provider requires a credential")
        return VSphereClient(server_config, credential)

    raise UnsupportedProviderError(provider_name, PROVIDERS)


__all__ = [
    "AuditEvent",
    "ManagementClient",
    "MockClient",
    "SnapshotInfo",
    "VSphereClient",
    "VirtualMachineInfo",
    "get_client",
    "walk_snapshots",
]
