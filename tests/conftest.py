"""
Pytest configuration and shared fixtures.
"""

from datetime import datetime, timezone
from pathlib import Path

import pytest
import yaml

from snapshot_report.vcenter.mock import MockClient
from snapshot_report.workspace import Workspace


@pytest.fixture
def temp_workspace(tmp_path):
    """Create a temporary workspace for testing."""
    workspace = Workspace(tmp_path / "workspace")
    workspace.initialize()
    return workspace


@pytest.fixture
def fixtures_dir():
    """Return path to test fixtures directory."""
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def inventory_file(fixtures_dir):
    """Return path to the sample inventory."""
    return fixtures_dir / "inventory.yaml"


@pytest.fixture
def inventory(inventory_file):
    """Sample inventory as a dict."""
    return yaml.safe_load(inventory_file.read_text())


@pytest.fixture
def mock_client(inventory):
    """Connected mock client serving the sample inventory."""
    client = MockClient({"host": "vcenter.test"}, inventory=inventory)
    client.connect()
    yield client
    client.disconnect()


@pytest.fixture
def run_time():
    """Fixed run timestamp for deterministic reports."""
    return datetime(2026, 10, 18, 10, 0, 0, tzinfo=timezone.utc)
