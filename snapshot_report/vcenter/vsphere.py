"""
VMware vSphere (vCenter / ESXi) client implementation using pyVmomi.
"""

import logging
from datetime import datetime

from snapshot_report.credentials import Credential
from snapshot_report.exceptions import EventQueryError, ServerConnectionError
from snapshot_report.util.redact import redact_sensitive
from snapshot_report.vcenter.base import (
    AuditEvent,
    ManagementClient,
    SnapshotInfo,
    VirtualMachineInfo,
)

logger = logging.getLogger(__name__)

BYTES_PER_MB = 1024 * 1024


class VSphereClient(ManagementClient):
    """vCenter client backed by pyVmomi."""

    def __init__(self, config: dict, credential: Credential):
        super().__init__(config)
        self.credential = credential
        self.verify_ssl = config.get("verify_ssl", True)
        self.service_instance = None
        self._vm_refs: dict[str, object] = {}

    def connect(self) -> None:
        """Log in to vCenter."""
        try:
            from pyVim.connect import SmartConnect
        except ImportError:
            raise ImportError("pyvmomi package not installed. Install with: pip install pyvmomi")

        logger.info(f"Connecting to {self.host}:{self.port} as {self.credential.username}")
        try:
            self.service_instance = SmartConnect(
                host=self.host,
                user=self.credential.username,
                pwd=self.credential.password,
                port=self.port,
                disableSslCertValidation=not self.verify_ssl,
            )
        except Exception as e:
            raise ServerConnectionError(self.host, redact_sensitive(str(e) or type(e).__name__)) from e

    def disconnect(self) -> None:
        if self.service_instance is None:
            return

        from pyVim.connect import Disconnect

        try:
            Disconnect(self.service_instance)
        except Exception as e:
            # Session may already have expired server side
            logger.warning(f"Error disconnecting from {self.host}: {redact_sensitive(str(e))}")
        finally:
            self.service_instance = None
            self._vm_refs = {}

    def list_vms(self) -> list[VirtualMachineInfo]:
        from pyVmomi import vim

        content = self._content()
        view = content.viewManager.CreateContainerView(
            content.rootFolder, [vim.VirtualMachine], True
        )
        try:
            vm_objects = list(view.view)
        finally:
            view.Destroy()

        vms = []
        for vm in vm_objects:
            # VM names repeat across folders and datacenters; the moId does not
            key = vm._moId
            self._vm_refs[key] = vm
            snapshot_root = vm.snapshot
            if snapshot_root is None:
                vms.append(VirtualMachineInfo(name=vm.name, key=key))
                continue

            sizes = _snapshot_sizes_mb(vm)
            vms.append(
                VirtualMachineInfo(
                    name=vm.name,
                    snapshots=[_convert_tree(node, sizes) for node in snapshot_root.rootSnapshotList],
                    key=key,
                )
            )

        logger.debug(f"Found {len(vms)} VM(s) on {self.host}")
        return vms

    def query_events(self, vm_key: str, begin: datetime, end: datetime) -> list[AuditEvent]:
        from pyVmomi import vim, vmodl

        vm_ref = self._vm_refs.get(vm_key)
        if vm_ref is None:
            logger.debug(f"No managed object reference cached for VM {vm_key}")
            return []

        spec = vim.event.EventFilterSpec()
        spec.entity = vim.event.EventFilterSpec.ByEntity(entity=vm_ref, recursion="self")
        spec.time = vim.event.EventFilterSpec.ByTime(beginTime=begin, endTime=end)
        spec.category = ["info"]

        content = self._content()
        try:
            events = content.eventManager.QueryEvents(spec) or []
        except vim.fault.NotAuthenticated as e:
            raise ServerConnectionError(self.host, "session is no longer authenticated") from e
        except (vmodl.MethodFault, OSError) as e:
            raise EventQueryError(vm_key, redact_sensitive(str(e) or type(e).__name__)) from e

        return [
            AuditEvent(
                created=event.createdTime,
                message=event.fullFormattedMessage or "",
                username=event.userName or "",
            )
            for event in events
        ]

    def _content(self):
        if self.service_instance is None:
            raise RuntimeError("vSphere client not connected. Call connect() first.")
        return self.service_instance.RetrieveContent()


def _chain_keys(disks) -> set[int]:
    keys: set[int] = set()
    for disk in disks or []:
        for unit in disk.chain or []:
            keys.update(unit.fileKey or [])
    return keys


def _snapshot_sizes_mb(vm) -> dict[str, float]:
    """
    Work out the on-disk size of each snapshot from the VM's extended file layout.

    A snapshot owns its state and memory files plus the delta disks written
    after it was taken: the chain files its children (or, for the current
    snapshot, the running VM) reference that it does not.

    Returns:
        Mapping of snapshot managed object id to size in MB
    """
    layout = vm.layoutEx
    if layout is None:
        return {}

    file_sizes = {f.key: f.size or 0 for f in layout.file or []}
    chains: dict[str, set[int]] = {}
    state_bytes: dict[str, int] = {}
    for snapshot_layout in layout.snapshot or []:
        moid = snapshot_layout.key._moId
        chains[moid] = _chain_keys(snapshot_layout.disk)
        state_bytes[moid] = file_sizes.get(snapshot_layout.dataKey, 0) + file_sizes.get(
            getattr(snapshot_layout, "memoryKey", -1), 0
        )

    current = getattr(vm.snapshot, "currentSnapshot", None)
    current_moid = current._moId if current is not None else None
    running_keys = _chain_keys(getattr(layout, "disk", None))

    sizes: dict[str, float] = {}

    def visit(nodes):
        for node in nodes:
            moid = node.snapshot._moId
            children = node.childSnapshotList or []
            next_keys: set[int] = set()
            for child in children:
                next_keys |= chains.get(child.snapshot._moId, set())
            if moid == current_moid:
                next_keys |= running_keys
            delta = next_keys - chains.get(moid, set())
            total = state_bytes.get(moid, 0) + sum(file_sizes.get(k, 0) for k in delta)
            sizes[moid] = total / BYTES_PER_MB
            visit(children)

    visit(vm.snapshot.rootSnapshotList or [])
    return sizes


def _convert_tree(node, sizes: dict[str, float]) -> SnapshotInfo:
    return SnapshotInfo(
        name=node.name,
        created=node.createTime,
        description=node.description or "",
        size_mb=sizes.get(node.snapshot._moId, 0.0),
        children=[_convert_tree(child, sizes) for child in node.childSnapshotList or []],
    )
