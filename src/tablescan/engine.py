"""Core detection engine: per-cell classification and whole-table scans."""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Optional, Sequence

from tablescan.models import AddressedCell, Finding, ItemType, Report, ScanResult
from tablescan.registry import DetectorRegistry, load_registry
from tablescan.report import DEFAULT_FORMAT, build_report
from tablescan.table import Table, address_cells

logger = logging.getLogger(__name__)


class Classifier:
    """Attributes a cell to the first detector in the registry that matches it."""

    def __init__(self, registry: DetectorRegistry) -> None:
        self.registry = registry

    def classify(self, cell: AddressedCell) -> Optional[Finding]:
        """
        Classify a single cell.

        Detectors are tried in registry order and evaluation stops at the
        first match.

        Returns:
            Finding for the first matching detector, or None
        """
        for detector in self.registry:
            if detector.matches(cell.value):
                return Finding(
                    code=detector.code,
                    message=detector.message,
                    location=cell.location,
                    item_type=ItemType.CELL,
                )
        return None


class Scanner:
    """
    Runs the classifier over every addressed cell of a table.

    The scan is exhaustive and findings come back in row-major order.
    """

    def __init__(
        self,
        registry: DetectorRegistry,
        workers: int = 1,
        format: str = DEFAULT_FORMAT,
    ) -> None:
        """
        Initialize scanner with detector registry.

        Args:
            registry: DetectorRegistry with detectors in priority order
            workers: Number of threads rows are spread over (1 scans inline)
            format: Source format tag written into reports
        """
        self.registry = registry
        self.classifier = Classifier(registry)
        self.workers = max(1, workers)
        self.format = format

    def scan(self, rows: Sequence[Sequence[AddressedCell]]) -> ScanResult:
        """Classify every cell of the addressed rows."""
        result = ScanResult()

        if self.workers > 1 and len(rows) > 1:
            with ThreadPoolExecutor(max_workers=self.workers) as pool:
                # map() yields in submission order, keeping row-major output
                for row_findings in pool.map(self._scan_row, rows):
                    result.findings.extend(row_findings)
        else:
            for row in rows:
                result.findings.extend(self._scan_row(row))

        result.item_count = sum(len(row) for row in rows)

        logger.debug(f"Scanned {result.item_count} cells, {result.finding_count} findings")
        return result

    def analyse(self, table: Table, strict: bool = True) -> Report:
        """
        Scan a raw table and build its report.

        Args:
            table: Header row followed by data rows
            strict: Reject ragged rows (see address_cells)

        Raises:
            MalformedTableError: If the table structure is invalid
        """
        rows = address_cells(table, strict=strict)
        result = self.scan(rows)

        logger.info(
            f"Scan complete: {result.item_count} cells, {result.finding_count} findings"
        )
        return build_report(result.findings, result.item_count, format=self.format)

    def _scan_row(self, row: Sequence[AddressedCell]) -> list[Finding]:
        findings = []
        for cell in row:
            finding = self.classifier.classify(cell)
            if finding is not None:
                findings.append(finding)
        return findings


def analyse(
    table: Table,
    registry: Optional[DetectorRegistry] = None,
    strict: bool = True,
    format: str = DEFAULT_FORMAT,
) -> Report:
    """Scan a table with the given registry, or the bundled detectors."""
    if registry is None:
        registry = load_registry()
    return Scanner(registry, format=format).analyse(table, strict=strict)
