"""
Write rendered reports to disk.
"""

import logging
from datetime import date
from pathlib import Path

from snapshot_report.util.files import ensure_dir, write_text

logger = logging.getLogger(__name__)

FILENAME_PREFIX = "SnapshotReport"


def report_filename(run_date: date) -> str:
    """File name for a run, e.g. ``SnapshotReport-10-18-2026.html``."""
    return f"{FILENAME_PREFIX}-{run_date.strftime('%m-%d-%Y')}.html"


def write_report(html: str, output_dir: str | Path, run_date: date) -> Path:
    """
    Write the report as UTF-8 HTML, replacing any earlier report from the same day.

    Returns:
        Path of the written file
    """
    path = ensure_dir(output_dir) / report_filename(run_date)
    write_text(path, html)
    logger.info(f"Wrote report to {path}")
    return path
