"""Data models for tablescan."""

import json
import re
from dataclasses import dataclass, field
from typing import Any, Optional
from enum import Enum


class Category(str, Enum):
    """Sensitive data category types."""

    IP = "ip"
    NATIONAL_INSURANCE = "national_insurance"
    EMAIL = "email"
    DATE = "date"
    CREDIT_CARD = "credit_card"
    VEHICLE = "vehicle"
    PHONE = "phone"
    SOCIAL_MEDIA = "social_media"
    OTHER = "other"


class ItemType(str, Enum):
    """Kind of table item a finding points at."""

    CELL = "cell"


@dataclass(frozen=True)
class Examples:
    """Detector validation examples."""

    match: tuple[str, ...] = ()
    nomatch: tuple[str, ...] = ()


@dataclass(frozen=True)
class Detector:
    """Compiled detector definition."""

    code: str
    message: str
    namespace: str
    category: Category
    pattern: str
    compiled: re.Pattern[str]
    anchored: bool = False
    description: str = ""
    flags: tuple[str, ...] = ()
    examples: Optional[Examples] = None

    def matches(self, text: str) -> bool:
        """
        Return True if the detector recognizes text.

        Anchored detectors require the whole value to match, the others only
        need the pattern to occur somewhere in it.
        """
        if self.anchored:
            return self.compiled.fullmatch(text) is not None
        return self.compiled.search(text) is not None


@dataclass(frozen=True)
class Location:
    """Zero-based coordinate of a cell in the data region."""

    row_index: int
    column_index: int

    def to_dict(self) -> dict[str, int]:
        return {"rowIndex": self.row_index, "columnIndex": self.column_index}


@dataclass(frozen=True)
class AddressedCell:
    """Single table cell with its column name and coordinate."""

    value: str
    column_name: str
    row_index: int
    column_index: int

    @property
    def location(self) -> Location:
        """Return the cell location."""
        return Location(self.row_index, self.column_index)


@dataclass(frozen=True)
class Finding:
    """A detector match against one table item."""

    code: str
    message: str
    location: Location
    item_type: ItemType = ItemType.CELL

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "item": {
                "itemType": self.item_type.value,
                "location": self.location.to_dict(),
            },
        }


@dataclass
class ScanResult:
    """Result from a scan over addressed rows."""

    findings: list[Finding] = field(default_factory=list)
    item_count: int = 0

    @property
    def has_findings(self) -> bool:
        """Return True if any cell matched."""
        return len(self.findings) > 0

    @property
    def finding_count(self) -> int:
        """Return number of findings."""
        return len(self.findings)


@dataclass(frozen=True)
class Report:
    """Versioned result of scanning one table."""

    version: int
    format: str
    item_count: int
    errors: tuple[Finding, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        """Return the report in its published wire shape."""
        return {
            "version": self.version,
            "format": self.format,
            "item-count": self.item_count,
            "errors": [finding.to_dict() for finding in self.errors],
        }

    def to_json(self, indent: Optional[int] = None) -> str:
        """Serialize the report to JSON."""
        return json.dumps(self.to_dict(), indent=indent)
