"""
HTML report generation for snapshot-report.

Turns collected snapshot records into a single self-contained HTML document,
colour-banded by snapshot creator.
"""

from snapshot_report.report.html import (
    COLUMNS,
    ReportResult,
    generate_snapshot_report,
    render_report,
    report_title,
)

__all__ = ["COLUMNS", "ReportResult", "generate_snapshot_report", "render_report", "report_title"]
