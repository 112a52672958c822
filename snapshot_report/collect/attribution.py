"""
Attribute snapshots to the account that created them.

vCenter does not record a creator on the snapshot itself, so the creator is
read from the audit event the create task leaves behind.
"""

import logging
from datetime import datetime, timedelta

from snapshot_report.exceptions import EventQueryError
from snapshot_report.util.redact import redact_sensitive
from snapshot_report.vcenter.base import ManagementClient

logger = logging.getLogger(__name__)

SNAPSHOT_CREATE_MESSAGE = "Task: Create virtual machine snapshot"
DEFAULT_WINDOW_SECONDS = 10
DOMAIN_SEPARATOR = "\\"


def strip_domain(username: str) -> str:
    """
    Drop a ``DOMAIN\\`` prefix from a username.

    Example:
        >>> strip_domain("CORP\\\\alice")
        'alice'
        >>> strip_domain("alice")
        'alice'
    """
    return (username or "").split(DOMAIN_SEPARATOR)[-1]


def resolve_creator(
    client: ManagementClient,
    vm: str,
    created: datetime,
    window_seconds: int = DEFAULT_WINDOW_SECONDS,
) -> str:
    """
    Find who created a snapshot by searching the VM's audit events.

    Looks at informational events in ``[created - window, created + window]``
    whose message is exactly ``SNAPSHOT_CREATE_MESSAGE``. When several match,
    the first one the server returns is used; no attempt is made to pick the
    closest or most relevant event.

    Args:
        client: Connected management client
        vm: Key of the VM the snapshot belongs to (``VirtualMachineInfo.key``)
        created: Snapshot creation time
        window_seconds: Half-width of the search window

    Returns:
        Short username of the creator, or "" when no event matches or the
        server fails the event query

    Raises:
        ServerConnectionError: If the session is lost; the run cannot continue
    """
    window = timedelta(seconds=window_seconds)
    try:
        events = client.query_events(vm, created - window, created + window)
    except EventQueryError as e:
        logger.warning(f"{redact_sensitive(e.message)} (snapshot at {created})")
        return ""

    for event in events:
        if event.message == SNAPSHOT_CREATE_MESSAGE:
            return strip_domain(event.username)

    logger.debug(f"No snapshot create event found for {vm} around {created}")
    return ""
