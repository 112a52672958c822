"""
HTML report generation.

Sorts snapshot records by creator, lays them out as a table and assigns each
row a band class that flips whenever the creator changes, so every creator's
snapshots read as one coloured block.
"""

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader

from snapshot_report.collect import collect_snapshots
from snapshot_report.delivery.files import write_report
from snapshot_report.exceptions import ReportConfigurationError
from snapshot_report.models import SnapshotRecord, days_old, placeholder_record, report_title
from snapshot_report.vcenter.base import ManagementClient
from snapshot_report.workspace import Workspace

logger = logging.getLogger(__name__)

# Package root, used to find templates
PACKAGE_ROOT = Path(__file__).parent.parent

COLUMNS = ["VM", "Name", "Description", "SizeGB", "Creator", "Created", "Days Old"]
DEFAULT_GROUP_BY = "Creator"
ROW_CLASSES = ("even", "odd")
TIMESTAMP_FORMAT = "%m/%d/%Y %H:%M:%S"


@dataclass
class ReportResult:
    """Outcome of a report run."""

    path: Path
    html: str
    record_count: int


def sort_records(records: Iterable[SnapshotRecord]) -> list[SnapshotRecord]:
    """Stable sort by (creator, vm) so each creator's snapshots are contiguous."""
    return sorted(records, key=lambda r: (r.creator, r.vm))


def format_timestamp(value: datetime | None) -> str:
    return value.strftime(TIMESTAMP_FORMAT) if value is not None else ""


def record_cells(record: SnapshotRecord, now: datetime) -> list[str]:
    """Render one record as table cells in COLUMNS order."""
    if record.is_placeholder:
        return [record.vm] + [""] * (len(COLUMNS) - 1)

    age = days_old(record.created, now)
    return [
        record.vm,
        record.name,
        record.description,
        f"{record.size_gb:.2f}",
        record.creator,
        format_timestamp(record.created),
        "" if age is None else str(age),
    ]


def group_column_index(header: Sequence[str], column: str) -> int:
    """
    Locate the grouping column in the header row.

    Raises:
        ReportConfigurationError: If the column is not part of the header
    """
    try:
        return list(header).index(column)
    except ValueError:
        raise ReportConfigurationError(column, list(header)) from None


def next_row_class(
    previous_class: str | None,
    previous_key: str | None,
    key: str,
    palette: Sequence[str] = ROW_CLASSES,
) -> str:
    """Class for the current row given the previous row's class and grouping key."""
    if previous_class is None:
        return palette[0]
    if key == previous_key:
        return previous_class
    return palette[(palette.index(previous_class) + 1) % len(palette)]


def assign_row_classes(keys: Iterable[str], palette: Sequence[str] = ROW_CLASSES) -> list[str]:
    """
    Band rows by grouping key.

    The first row takes the first palette entry; the class advances only when
    the key differs from the previous row's key.

    Example:
        >>> assign_row_classes(["alice", "alice", "bob", "carol", "carol"])
        ['even', 'even', 'odd', 'even', 'even']
    """
    classes: list[str] = []
    previous_class: str | None = None
    previous_key: str | None = None
    for key in keys:
        previous_class = next_row_class(previous_class, previous_key, key, palette)
        previous_key = key
        classes.append(previous_class)
    return classes


def build_table(
    records: Iterable[SnapshotRecord],
    now: datetime,
    group_by: str = DEFAULT_GROUP_BY,
) -> dict[str, Any]:
    """
    Build the header and banded rows for the report table.

    An empty record set becomes a single placeholder row.

    Returns:
        Dict with ``header`` (list of column names) and ``rows`` (list of
        dicts with ``cells`` and ``css_class``)
    """
    header = list(COLUMNS)
    key_index = group_column_index(header, group_by)

    ordered = sort_records(records)
    if not ordered:
        logger.info("No snapshots found; rendering placeholder row")
        ordered = [placeholder_record()]

    cell_rows = [record_cells(record, now) for record in ordered]
    classes = assign_row_classes(cells[key_index] for cells in cell_rows)

    return {
        "header": header,
        "rows": [
            {"cells": cells, "css_class": css_class}
            for cells, css_class in zip(cell_rows, classes)
        ],
    }


def render_report(
    records: Iterable[SnapshotRecord],
    title: str,
    run_timestamp: datetime,
    group_by: str = DEFAULT_GROUP_BY,
) -> str:
    """
    Render snapshot records as a self-contained HTML document.

    Args:
        records: Snapshot records in any order
        title: Page and heading title
        run_timestamp: Time of the run; drives the age column and the footer
        group_by: Header name of the column that drives row banding

    Returns:
        HTML string with all styling inlined

    Raises:
        ReportConfigurationError: If ``group_by`` is not a report column
    """
    table = build_table(records, run_timestamp, group_by)
    context = {
        "title": title,
        "header": table["header"],
        "rows": table["rows"],
        "run_date": format_timestamp(run_timestamp),
    }
    return render_report_template(context)


def render_report_template(context: dict[str, Any]) -> str:
    """
    Render HTML template with report context.

    Args:
        context: Report data dict

    Returns:
        Rendered HTML string
    """
    template_dir = PACKAGE_ROOT / "templates/report"
    env = Environment(loader=FileSystemLoader(str(template_dir)), autoescape=True)

    template = env.get_template("snapshot_report.html.j2")

    return template.render(**context)


def generate_snapshot_report(
    workspace: Workspace,
    client: ManagementClient,
    now: datetime | None = None,
    output_path: Path | None = None,
) -> ReportResult:
    """
    Collect snapshots from a connected client, render and write the report.

    Args:
        workspace: Workspace instance
        client: Connected management client
        now: Run timestamp (defaults to the current local time)
        output_path: Optional output directory (defaults to report.output_dir)

    Returns:
        ReportResult with the written file path and rendered HTML

    Example:
        >>> ws = Workspace(Path("my-workspace"))
        >>> with get_client(ws.load_config(), credential) as client:
        ...     result = generate_snapshot_report(ws, client)
        >>> print(result.path)
        /path/to/my-workspace/reports/SnapshotReport-10-18-2026.html
    """
    config = workspace.load_config()
    report_config = config.get("report", {})

    if now is None:
        now = datetime.now().astimezone()

    if output_path is None:
        output_path = workspace.output_dir

    records = list(
        collect_snapshots(client, report_config.get("event_window_seconds", 10))
    )
    logger.info(f"Collected {len(records)} snapshot(s) from {client.host}")

    html = render_report(
        records,
        title=report_title(config["server"]["host"]),
        run_timestamp=now,
        group_by=report_config.get("group_by", DEFAULT_GROUP_BY),
    )

    path = write_report(html, output_path, now)
    return ReportResult(path=path, html=html, record_count=len(records))
