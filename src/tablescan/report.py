"""Report assembly and serialization."""

from typing import Iterable, Optional

from tablescan.models import Finding, Report

REPORT_VERSION = 1
DEFAULT_FORMAT = "csv"


def build_report(
    findings: Iterable[Finding],
    item_count: int,
    format: str = DEFAULT_FORMAT,
) -> Report:
    """
    Assemble scan results into a report.

    Args:
        findings: Findings in traversal order
        item_count: Number of cells scanned
        format: Tag for the source table format

    Returns:
        Report carrying the current schema version
    """
    return Report(
        version=REPORT_VERSION,
        format=format,
        item_count=item_count,
        errors=tuple(findings),
    )


def dumps(report: Report, indent: Optional[int] = None) -> str:
    """Serialize a report to JSON."""
    return report.to_json(indent=indent)
