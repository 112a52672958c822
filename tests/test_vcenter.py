"""
Tests for the management client layer (factory, mock and vSphere clients).
"""

from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest

from snapshot_report.credentials import Credential
from snapshot_report.exceptions import (
    EventQueryError,
    ServerConnectionError,
    UnsupportedProviderError,
)
from snapshot_report.vcenter import MockClient, VSphereClient, get_client, walk_snapshots
from snapshot_report.vcenter.base import SnapshotInfo
from snapshot_report.vcenter.vsphere import _snapshot_sizes_mb

CREDENTIAL = Credential("CORP\\svc", "pw")
CREATED = datetime(2026, 10, 1, 9, 0, tzinfo=timezone.utc)
MB = 1024 * 1024


class TestGetClient:
    """Tests for the client factory."""

    def test_vsphere_default(self):
        client = get_client({"server": {"host": "vc01"}}, CREDENTIAL)
        assert isinstance(client, VSphereClient)
        assert client.host == "vc01"
        assert client.port == 443

    def test_vsphere_needs_credential(self):
        with pytest.raises(ValueError):
            get_client({"server": {"host": "vc01", "provider": "vsphere"}})

    def test_mock(self):
        client = get_client({"server": {"host": "vc01", "provider": "mock"}})
        assert isinstance(client, MockClient)

    def test_unknown_provider(self):
        with pytest.raises(UnsupportedProviderError):
            get_client({"server": {"host": "vc01", "provider": "hyperv"}})


class TestWalkSnapshots:
    """Tests for snapshot tree flattening."""

    def test_depth_first(self):
        tree = [
            SnapshotInfo(
                "a",
                CREATED,
                children=[SnapshotInfo("a1", CREATED, children=[SnapshotInfo("a1x", CREATED)])],
            ),
            SnapshotInfo("b", CREATED),
        ]

        assert [s.name for s in walk_snapshots(tree)] == ["a", "a1", "a1x", "b"]


class TestMockClient:
    """Tests for the inventory-backed mock client."""

    def test_loads_inventory_file(self, inventory_file):
        client = MockClient({"host": "vc", "inventory_file": str(inventory_file)})

        with client:
            vms = client.list_vms()

        assert [vm.name for vm in vms] == ["web01", "db01", "idle01"]
        assert vms[0].snapshots[0].children[0].name == "after-patch"
        assert not client.connected

    def test_missing_inventory_file(self, tmp_path):
        client = MockClient({"host": "vc", "inventory_file": str(tmp_path / "nope.yaml")})

        with pytest.raises(ServerConnectionError):
            client.connect()

    def test_no_inventory_configured(self):
        with pytest.raises(ServerConnectionError):
            MockClient({"host": "vc"}).connect()

    def test_requires_connect(self, inventory):
        client = MockClient({"host": "vc"}, inventory=inventory)

        with pytest.raises(RuntimeError):
            client.list_vms()

    def test_non_info_events_filtered(self):
        inventory = {
            "events": [
                {
                    "vm": "VM1",
                    "created": CREATED,
                    "message": "Task: Create virtual machine snapshot",
                    "username": "bob",
                    "category": "warning",
                }
            ]
        }
        client = MockClient({"host": "vc"}, inventory=inventory)
        client.connect()

        assert client.query_events("VM1", CREATED, CREATED) == []


def _fake_snapshot_vm():
    """VM with snapshot tree root -> child and an extended file layout."""
    root_ref = SimpleNamespace(_moId="snapshot-1")
    child_ref = SimpleNamespace(_moId="snapshot-2")

    child = SimpleNamespace(
        name="child",
        description="",
        createTime=CREATED,
        snapshot=child_ref,
        childSnapshotList=[],
    )
    root = SimpleNamespace(
        name="root",
        description="base",
        createTime=CREATED,
        snapshot=root_ref,
        childSnapshotList=[child],
    )

    def unit(*keys):
        return SimpleNamespace(fileKey=list(keys))

    layout = SimpleNamespace(
        file=[
            SimpleNamespace(key=1, size=100 * MB),  # base disk
            SimpleNamespace(key=2, size=10 * MB),  # root vmsn
            SimpleNamespace(key=3, size=50 * MB),  # delta 1
            SimpleNamespace(key=4, size=5 * MB),  # child vmsn
            SimpleNamespace(key=5, size=20 * MB),  # running delta
        ],
        disk=[SimpleNamespace(chain=[unit(1), unit(3), unit(5)])],
        snapshot=[
            SimpleNamespace(
                key=root_ref,
                dataKey=2,
                memoryKey=-1,
                disk=[SimpleNamespace(chain=[unit(1)])],
            ),
            SimpleNamespace(
                key=child_ref,
                dataKey=4,
                memoryKey=-1,
                disk=[SimpleNamespace(chain=[unit(1), unit(3)])],
            ),
        ],
    )
    return SimpleNamespace(
        _moId="vm-101",
        name="VM1",
        snapshot=SimpleNamespace(rootSnapshotList=[root], currentSnapshot=child_ref),
        layoutEx=layout,
    )


class TestVSphereClient:
    """Tests for the pyVmomi-backed client."""

    def test_connect_failure_wraps_cause(self):
        client = VSphereClient({"host": "vc01"}, CREDENTIAL)

        with patch("pyVim.connect.SmartConnect", side_effect=OSError("Connection refused")):
            with pytest.raises(ServerConnectionError) as exc_info:
                client.connect()

        assert "vc01" in exc_info.value.message
        assert "Connection refused" in exc_info.value.message

    def test_connect_passes_login(self):
        client = VSphereClient({"host": "vc01", "port": 8443, "verify_ssl": False}, CREDENTIAL)

        with patch("pyVim.connect.SmartConnect") as mock_connect:
            client.connect()

        mock_connect.assert_called_once_with(
            host="vc01",
            user="CORP\\svc",
            pwd="pw",
            port=8443,
            disableSslCertValidation=True,
        )

    def test_disconnect(self):
        client = VSphereClient({"host": "vc01"}, CREDENTIAL)
        si = MagicMock()
        client.service_instance = si

        with patch("pyVim.connect.Disconnect") as mock_disconnect:
            client.disconnect()

        mock_disconnect.assert_called_once_with(si)
        assert client.service_instance is None

    def test_not_connected(self):
        with pytest.raises(RuntimeError):
            VSphereClient({"host": "vc01"}, CREDENTIAL).list_vms()

    def test_list_vms(self):
        client = VSphereClient({"host": "vc01"}, CREDENTIAL)
        no_snapshots = SimpleNamespace(_moId="vm-102", name="VM2", snapshot=None, layoutEx=None)
        view = MagicMock()
        view.view = [_fake_snapshot_vm(), no_snapshots]
        client.service_instance = MagicMock()
        content = client.service_instance.RetrieveContent.return_value
        content.viewManager.CreateContainerView.return_value = view

        vms = client.list_vms()

        view.Destroy.assert_called_once()
        assert [vm.name for vm in vms] == ["VM1", "VM2"]
        root = vms[0].snapshots[0]
        assert root.name == "root"
        assert root.description == "base"
        assert root.size_gb is None
        assert root.size_mb == 60
        assert root.children[0].size_mb == 25
        assert vms[1].snapshots == []

    def test_snapshot_sizes(self):
        sizes = _snapshot_sizes_mb(_fake_snapshot_vm())

        # root: vmsn + delta written after it; child: vmsn + running delta
        assert sizes == {"snapshot-1": 60, "snapshot-2": 25}

    def test_query_events_unknown_vm(self):
        client = VSphereClient({"host": "vc01"}, CREDENTIAL)
        client.service_instance = MagicMock()

        assert client.query_events("VM9", CREATED, CREATED) == []

    def test_same_named_vms_keep_own_reference(self):
        client = VSphereClient({"host": "vc01"}, CREDENTIAL)
        dc1 = SimpleNamespace(_moId="vm-1", name="web", snapshot=None, layoutEx=None)
        dc2 = SimpleNamespace(_moId="vm-2", name="web", snapshot=None, layoutEx=None)
        view = MagicMock()
        view.view = [dc1, dc2]
        client.service_instance = MagicMock()
        content = client.service_instance.RetrieveContent.return_value
        content.viewManager.CreateContainerView.return_value = view

        vms = client.list_vms()

        assert [(vm.name, vm.key) for vm in vms] == [("web", "vm-1"), ("web", "vm-2")]
        assert client._vm_refs["vm-1"] is dc1
        assert client._vm_refs["vm-2"] is dc2


class _NotAuthenticated(Exception):
    pass


class _MethodFault(Exception):
    pass


@pytest.fixture
def fake_pyvmomi():
    """Stand-ins for pyVmomi's vim and vmodl namespaces."""
    vim = MagicMock()
    vim.fault.NotAuthenticated = _NotAuthenticated
    vmodl = MagicMock()
    vmodl.MethodFault = _MethodFault
    with patch("pyVmomi.vim", vim), patch("pyVmomi.vmodl", vmodl):
        yield vim


class TestVSphereQueryEvents:
    """Tests for the vSphere audit event query."""

    BEGIN = datetime(2026, 10, 1, 8, 59, 50, tzinfo=timezone.utc)
    END = datetime(2026, 10, 1, 9, 0, 10, tzinfo=timezone.utc)

    def _client(self):
        client = VSphereClient({"host": "vc01"}, CREDENTIAL)
        client.service_instance = MagicMock()
        vm_ref = SimpleNamespace(_moId="vm-101", name="VM1")
        client._vm_refs["vm-101"] = vm_ref
        event_manager = client.service_instance.RetrieveContent.return_value.eventManager
        return client, vm_ref, event_manager

    def test_filter_spec(self, fake_pyvmomi):
        client, vm_ref, event_manager = self._client()
        event_manager.QueryEvents.return_value = []

        client.query_events("vm-101", self.BEGIN, self.END)

        filter_spec = fake_pyvmomi.event.EventFilterSpec
        filter_spec.ByEntity.assert_called_once_with(entity=vm_ref, recursion="self")
        filter_spec.ByTime.assert_called_once_with(beginTime=self.BEGIN, endTime=self.END)
        spec = filter_spec.return_value
        assert spec.entity is filter_spec.ByEntity.return_value
        assert spec.time is filter_spec.ByTime.return_value
        assert spec.category == ["info"]
        event_manager.QueryEvents.assert_called_once_with(spec)

    def test_events_mapped(self, fake_pyvmomi):
        client, _, event_manager = self._client()
        event_manager.QueryEvents.return_value = [
            SimpleNamespace(
                createdTime=CREATED,
                fullFormattedMessage="Task: Create virtual machine snapshot",
                userName="CORP\\alice",
            ),
            SimpleNamespace(createdTime=CREATED, fullFormattedMessage=None, userName=None),
        ]

        events = client.query_events("vm-101", self.BEGIN, self.END)

        assert [(e.created, e.message, e.username) for e in events] == [
            (CREATED, "Task: Create virtual machine snapshot", "CORP\\alice"),
            (CREATED, "", ""),
        ]

    def test_no_events(self, fake_pyvmomi):
        client, _, event_manager = self._client()
        event_manager.QueryEvents.return_value = None

        assert client.query_events("vm-101", self.BEGIN, self.END) == []

    def test_lost_session_is_fatal(self, fake_pyvmomi):
        client, _, event_manager = self._client()
        event_manager.QueryEvents.side_effect = _NotAuthenticated()

        with pytest.raises(ServerConnectionError):
            client.query_events("vm-101", self.BEGIN, self.END)

    def test_server_fault_becomes_event_query_error(self, fake_pyvmomi):
        client, _, event_manager = self._client()
        event_manager.QueryEvents.side_effect = _MethodFault("InvalidArgument")

        with pytest.raises(EventQueryError) as exc_info:
            client.query_events("vm-101", self.BEGIN, self.END)
        assert "vm-101" in exc_info.value.message

    def test_network_error_becomes_event_query_error(self, fake_pyvmomi):
        client, _, event_manager = self._client()
        event_manager.QueryEvents.side_effect = ConnectionResetError("reset by peer")

        with pytest.raises(EventQueryError):
            client.query_events("vm-101", self.BEGIN, self.END)


class TestMockClientKeys:
    """Tests for VM keys and timestamps in the mock client."""

    def test_key_defaults_to_name(self):
        client = MockClient({"host": "vc"}, inventory={"vms": [{"name": "web"}]})
        client.connect()

        assert client.list_vms()[0].key == "web"

    def test_explicit_key(self):
        inventory = {"vms": [{"name": "web", "key": "vm-1"}, {"name": "web", "key": "vm-2"}]}
        client = MockClient({"host": "vc"}, inventory=inventory)
        client.connect()

        assert [vm.key for vm in client.list_vms()] == ["vm-1", "vm-2"]

    def test_naive_event_in_aware_window(self):
        inventory = {
            "events": [
                {
                    "vm": "VM1",
                    "created": datetime(2026, 10, 1, 9, 0, 3),
                    "message": "Task: Create virtual machine snapshot",
                    "username": "CORP\\alice",
                }
            ]
        }
        client = MockClient({"host": "vc"}, inventory=inventory)
        client.connect()

        events = client.query_events(
            "VM1",
            datetime(2026, 10, 1, 8, 59, 50, tzinfo=timezone.utc),
            datetime(2026, 10, 1, 9, 0, 10, tzinfo=timezone.utc),
        )

        assert [e.username for e in events] == ["CORP\\alice"]
