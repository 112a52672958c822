"""
Report delivery: writing the HTML file and mailing it.
"""

from snapshot_report.delivery.files import report_filename, write_report
from snapshot_report.delivery.mail import build_message, send_report

__all__ = ["build_message", "report_filename", "send_report", "write_report"]
