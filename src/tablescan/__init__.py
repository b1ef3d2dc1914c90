"""
tablescan: Find sensitive and personally identifiable data in tables.

This package scans rows of cells against an ordered set of pattern
detectors and reports, by coordinate, every cell that matched.
"""

__version__ = "0.1.0"

from tablescan.engine import Classifier, Scanner, analyse
from tablescan.registry import load_registry, DetectorRegistry
from tablescan.models import AddressedCell, Detector, Finding, Report
from tablescan.report import build_report
from tablescan.table import address_cells, MalformedTableError

__all__ = [
    "Classifier",
    "Scanner",
    "analyse",
    "load_registry",
    "DetectorRegistry",
    "AddressedCell",
    "Detector",
    "Finding",
    "Report",
    "build_report",
    "address_cells",
    "MalformedTableError",
]
