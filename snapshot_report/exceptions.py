"""
Custom exceptions for snapshot-report with helpful error messages.
"""


class SnapshotReportError(Exception):
    """Base exception for snapshot-report errors."""

    def __init__(self, message: str, suggestion: str = None):
        self.message = message
        self.suggestion = suggestion
        super().__init__(self.message)

    def __str__(self):
        if self.suggestion:
            return f"{self.message}\n\nSuggestion: {self.suggestion}"
        return self.message


class WorkspaceError(SnapshotReportError):
    """Errors related to workspace management."""

    pass


class WorkspaceNotFoundError(WorkspaceError):
    """Workspace not found or not initialized."""

    def __init__(self, path: str = None):
        message = "Not in a snapshot-report workspace."
        if path:
            message = f"No snapshot-report workspace found at: {path}"

        suggestion = (
            "Initialize a new workspace with:\n"
            "  snapshot-report init <workspace-dir>\n\n"
            "Or navigate to an existing workspace directory."
        )
        super().__init__(message, suggestion)


class ConfigurationError(SnapshotReportError):
    """Configuration file errors."""

    pass


class InvalidConfigError(ConfigurationError):
    """Configuration file is invalid."""

    def __init__(self, error_details: str):
        message = f"Invalid configuration file: {error_details}"

        suggestion = (
            "Fix the snapshot-report.yaml file.\n"
            "You can regenerate the default configuration:\n"
            "  mv snapshot-report.yaml snapshot-report.yaml.backup\n"
            "  snapshot-report init .\n\n"
            "Then merge your settings back from the backup."
        )
        super().__init__(message, suggestion)


class CredentialError(SnapshotReportError):
    """Errors related to the encrypted credential file."""

    pass


class CredentialNotFoundError(CredentialError):
    """No credential has been stored yet."""

    def __init__(self, path: str):
        message = f"Credential file not found: {path}"
        suggestion = (
            "Store the management server account first:\n"
            "  snapshot-report credentials set --username <DOMAIN\\user>"
        )
        super().__init__(message, suggestion)


class CredentialDecryptError(CredentialError):
    """Credential file exists but cannot be decrypted with the configured key."""

    def __init__(self, path: str, key_env: str = None):
        message = f"Unable to decrypt credential file: {path}"
        if key_env:
            suggestion = (
                f"Check that {key_env} (or the configured key file) holds the key the\n"
                "credential was saved with, or store the credential again:\n"
                "  snapshot-report credentials set --username <DOMAIN\\user>"
            )
        else:
            suggestion = (
                "Store the credential again:\n"
                "  snapshot-report credentials set --username <DOMAIN\\user>"
            )
        super().__init__(message, suggestion)


class CredentialKeyMissingError(CredentialError):
    """No encryption key is configured for the credential file."""

    def __init__(self, key_env: str = None):
        message = "No credential encryption key configured."
        if key_env:
            suggestion = (
                f"Export the key in {key_env}, or set credentials.key_file in\n"
                "snapshot-report.yaml so a key can be generated:\n"
                "  credentials:\n"
                "    key_file: credentials/vcenter.key"
            )
        else:
            suggestion = (
                "Set credentials.key_file (or credentials.key_env) in snapshot-report.yaml."
            )
        super().__init__(message, suggestion)


class EventQueryError(SnapshotReportError):
    """The server failed an audit event query for one VM."""

    def __init__(self, vm: str, cause: str):
        message = f"Event query failed for {vm}: {cause}"
        super().__init__(message)


class ServerConnectionError(SnapshotReportError):
    """Cannot reach or authenticate against the management server."""

    def __init__(self, server: str, cause: str):
        message = f"Unable to connect to {server}: {cause}"
        suggestion = (
            "This could be due to:\n"
            "  - The server address or port being wrong\n"
            "  - An expired or mistyped password\n"
            "  - A certificate the client does not trust (see server.verify_ssl)\n\n"
            "The run was aborted; the next scheduled run will try again."
        )
        super().__init__(message, suggestion)


class UnsupportedProviderError(ConfigurationError):
    """Configured management client provider is not known."""

    def __init__(self, provider_name: str, available: list[str]):
        message = f"Unsupported server provider: {provider_name}"
        providers_list = "\n  - ".join(available)
        suggestion = f"Set server.provider in snapshot-report.yaml to one of:\n  - {providers_list}"
        super().__init__(message, suggestion)


class ReportConfigurationError(SnapshotReportError):
    """Report rendering is misconfigured (e.g. grouping column missing)."""

    def __init__(self, column: str, header: list[str]):
        message = f"Grouping column '{column}' not found in report header"
        suggestion = (
            f"Report columns are: {', '.join(header)}\n"
            "Set report.group_by in snapshot-report.yaml to one of them."
        )
        super().__init__(message, suggestion)


class DeliveryError(SnapshotReportError):
    """Sending the report failed."""

    def __init__(self, relay: str, cause: str, report_path: str = None):
        message = f"Failed to send report through {relay}: {cause}"
        if report_path:
            suggestion = f"The report was still written to:\n  {report_path}"
        else:
            suggestion = "Check mail.relay and mail.port in snapshot-report.yaml."
        super().__init__(message, suggestion)


def format_error_for_cli(error: Exception) -> str:
    """
    Format an exception for CLI display with helpful information.

    Args:
        error: The exception to format

    Returns:
        Formatted error message string
    """
    if isinstance(error, SnapshotReportError):
        output = f"[red]Error:[/red] {error.message}"
        if error.suggestion:
            output += f"\n\n[yellow]{error.suggestion}[/yellow]"
        return output
    else:
        return f"[red]Error:[/red] {str(error)}"
