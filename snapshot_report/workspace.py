"""
Workspace management for snapshot-report.
"""

import json
from pathlib import Path
from typing import Any

import yaml
from jsonschema import ValidationError, validate

from snapshot_report.exceptions import InvalidConfigError

# Package root, used to find the bundled schema
PACKAGE_ROOT = Path(__file__).parent


class Workspace:
    """Manages the snapshot-report workspace structure and configuration."""

    CONFIG_NAME = "snapshot-report.yaml"

    REQUIRED_DIRS = [
        "credentials",
        "reports",
    ]

    DEFAULT_CONFIG = {
        "server": {
            "host": "vcenter.example.com",
            "port": 443,
            "provider": "vsphere",
            "verify_ssl": True,
            "inventory_file": None,
        },
        "credentials": {
            "file": "credentials/vcenter.cred",
            "key_file": "credentials/vcenter.key",
            "key_env": "SNAPSHOT_REPORT_CREDENTIAL_KEY",
        },
        "report": {
            "output_dir": "reports",
            "group_by": "Creator",
            "event_window_seconds": 10,
        },
        "mail": {
            "enabled": True,
            "to": "vmware-admins@example.com",
            "from": "snapshot-report@example.com",
            "relay": "smtp.example.com",
            "port": 25,
        },
    }

    def __init__(self, root: Path):
        self.root = Path(root)
        self.config_file = self.root / self.CONFIG_NAME
        self._config_cache: dict[str, Any] | None = None

    def initialize(self) -> None:
        """Initialize workspace directory structure and config."""
        for dir_path in self.REQUIRED_DIRS:
            (self.root / dir_path).mkdir(parents=True, exist_ok=True)

        with open(self.config_file, "w") as f:
            yaml.dump(self.DEFAULT_CONFIG, f, default_flow_style=False, sort_keys=False)

    def load_config(self) -> dict[str, Any]:
        """Load and validate workspace configuration (cached after first load)."""
        if self._config_cache is not None:
            return self._config_cache

        if not self.config_file.exists():
            raise FileNotFoundError(f"Config file not found: {self.config_file}")

        with open(self.config_file) as f:
            try:
                config = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise InvalidConfigError(f"YAML syntax error: {e}") from e

        if config is None:
            raise InvalidConfigError(f"config file is empty: {self.config_file}")

        if not isinstance(config, dict):
            raise InvalidConfigError(f"expected mapping, got {type(config).__name__}")

        self._validate_config_schema(config)

        self._config_cache = config

        return config

    def resolve_path(self, value: str | Path) -> Path:
        """Resolve a config path relative to the workspace root."""
        path = Path(value).expanduser()
        if path.is_absolute():
            return path
        return self.root / path

    @property
    def output_dir(self) -> Path:
        config = self.load_config()
        return self.resolve_path(config.get("report", {}).get("output_dir", "reports"))

    def _validate_config_schema(self, config: dict) -> None:
        """Validate config against JSON schema."""
        schema_file = PACKAGE_ROOT / "schema/config.schema.json"
        if not schema_file.exists():
            raise FileNotFoundError(
                f"Configuration schema file not found: {schema_file}\n"
                f"This indicates an incomplete installation. Please reinstall vm-snapshot-report:\n"
                f"  pip install --force-reinstall vm-snapshot-report"
            )

        schema = json.loads(schema_file.read_text())
        try:
            validate(instance=config, schema=schema)
        except ValidationError as e:
            path = ".".join(str(p) for p in e.path)
            details = e.message if not path else f"{e.message} (at {path})"
            raise InvalidConfigError(details) from e
