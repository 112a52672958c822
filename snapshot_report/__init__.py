"""
snapshot-report: VMware snapshot reporting tool.

Connects to a vCenter server, lists every VM snapshot, works out who created
each one from the audit event log, and publishes the result as an HTML report
written to disk and mailed to the VMware admins.

Main features:
- Creator attribution from "Create virtual machine snapshot" task events
- HTML table colour-banded by creator
- Fernet-encrypted credential file for unattended scheduled runs
- Offline mock provider for previews and testing
"""

__version__ = "0.1.0"
