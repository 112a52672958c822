"""
Tests for error handling and exception formatting.
"""

from snapshot_report.exceptions import (
    CredentialDecryptError,
    CredentialError,
    CredentialKeyMissingError,
    CredentialNotFoundError,
    DeliveryError,
    EventQueryError,
    InvalidConfigError,
    ReportConfigurationError,
    ServerConnectionError,
    SnapshotReportError,
    UnsupportedProviderError,
    WorkspaceNotFoundError,
    format_error_for_cli,
)


class TestCustomExceptions:
    """Tests for custom exception classes."""

    def test_base_error(self):
        error = SnapshotReportError("Test error")
        assert str(error) == "Test error"
        assert error.message == "Test error"
        assert error.suggestion is None

    def test_base_error_with_suggestion(self):
        error = SnapshotReportError("Test error", "Try this fix")
        assert "Test error" in str(error)
        assert "Try this fix" in str(error)

    def test_workspace_not_found(self):
        error = WorkspaceNotFoundError()
        assert "workspace" in str(error).lower()
        assert "init" in str(error).lower()

    def test_workspace_not_found_with_path(self):
        assert "/some/path" in str(WorkspaceNotFoundError("/some/path"))

    def test_connection_error_appends_cause(self):
        error = ServerConnectionError("vc01.example.com", "Connection refused")

        assert error.message == "Unable to connect to vc01.example.com: Connection refused"

    def test_credential_not_found(self):
        error = CredentialNotFoundError("/ws/credentials/vcenter.cred")
        assert "/ws/credentials/vcenter.cred" in str(error)
        assert "credentials set" in str(error)

    def test_credential_decrypt_mentions_key_env(self):
        error = CredentialDecryptError("/ws/cred", "MY_KEY")
        assert "MY_KEY" in str(error)

    def test_credential_key_missing_mentions_key_env(self):
        error = CredentialKeyMissingError("MY_KEY")
        assert "MY_KEY" in error.suggestion
        assert "key_file" in error.suggestion

    def test_credential_key_missing_without_env(self):
        assert "key_file" in CredentialKeyMissingError().suggestion

    def test_event_query_error_names_vm(self):
        error = EventQueryError("vm-101", "InvalidArgument")
        assert error.message == "Event query failed for vm-101: InvalidArgument"
        assert error.suggestion is None

    def test_report_configuration_lists_columns(self):
        error = ReportConfigurationError("Owner", ["VM", "Creator"])
        assert "Owner" in error.message
        assert "VM, Creator" in error.suggestion

    def test_unsupported_provider(self):
        error = UnsupportedProviderError("hyperv", ["vsphere", "mock"])
        assert "hyperv" in str(error)
        assert "vsphere" in str(error)

    def test_delivery_error_points_at_report(self):
        error = DeliveryError("smtp:25", "refused", "/ws/reports/r.html")
        assert "/ws/reports/r.html" in error.suggestion

    def test_invalid_config(self):
        error = InvalidConfigError("bad port")
        assert "bad port" in str(error)
        assert "snapshot-report init" in str(error)

    def test_hierarchy(self):
        assert issubclass(InvalidConfigError, SnapshotReportError)
        assert issubclass(CredentialDecryptError, SnapshotReportError)
        assert issubclass(ServerConnectionError, SnapshotReportError)
        assert issubclass(CredentialKeyMissingError, CredentialError)
        assert not issubclass(CredentialKeyMissingError, ValueError)


class TestFormatErrorForCli:
    """Tests for CLI error formatting."""

    def test_custom_error_with_suggestion(self):
        output = format_error_for_cli(SnapshotReportError("Boom", "Do this"))

        assert "[red]Error:[/red] Boom" in output
        assert "[yellow]Do this[/yellow]" in output

    def test_custom_error_without_suggestion(self):
        output = format_error_for_cli(SnapshotReportError("Boom"))
        assert "[yellow]" not in output

    def test_generic_error(self):
        assert format_error_for_cli(ValueError("bad")) == "[red]Error:[/red] bad"
