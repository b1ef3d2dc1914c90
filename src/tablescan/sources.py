"""CSV table source and JSON report sink."""

import csv
import logging
from pathlib import Path
from typing import Optional, Union

from tablescan.models import Report
from tablescan.report import dumps
from tablescan.table import MalformedTableError

logger = logging.getLogger(__name__)


def read_table(
    path: Union[str, Path],
    delimiter: str = ",",
    encoding: str = "utf-8",
) -> list[list[str]]:
    """
    Read a CSV file into rows of text, header row included.

    Values are not type-converted.

    Raises:
        MalformedTableError: If the file is not valid CSV
    """
    with open(path, "r", encoding=encoding, newline="") as f:
        try:
            rows = [row for row in csv.reader(f, delimiter=delimiter)]
        except csv.Error as e:
            raise MalformedTableError(f"Could not parse CSV: {e}") from e

    logger.info(f"Read {len(rows)} rows from {path}")
    return rows


def write_report(
    report: Report,
    path: Union[str, Path],
    indent: Optional[int] = None,
) -> None:
    """Write a report as JSON."""
    Path(path).write_text(dumps(report, indent=indent), encoding="utf-8")
    logger.info(f"Wrote report with {len(report.errors)} findings to {path}")
