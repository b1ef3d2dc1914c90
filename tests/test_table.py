"""Tests for cell addressing."""

import pytest

from tablescan import address_cells, MalformedTableError, Scanner, load_registry
from tablescan.models import AddressedCell


class TestAddressCells:
    """Tests for converting tables into addressed cells."""

    def test_addresses_data_region(self):
        """Test that indexes are relative to data rows and columns."""
        rows = address_cells([["name", "ip"], ["bob", "10.0.0.1"], ["amy", "x"]])

        assert rows == [
            [
                AddressedCell("bob", "name", 0, 0),
                AddressedCell("10.0.0.1", "ip", 0, 1),
            ],
            [
                AddressedCell("amy", "name", 1, 0),
                AddressedCell("x", "ip", 1, 1),
            ],
        ]

    def test_header_is_not_addressed(self):
        """Test that a header-only table has no cells."""
        assert address_cells([["a", "b", "c"]]) == []

    def test_missing_header(self):
        """Test that an empty table is rejected."""
        with pytest.raises(MalformedTableError, match="no header row"):
            address_cells([])

    def test_ragged_row_rejected(self):
        """Test that strict mode rejects rows of the wrong length."""
        with pytest.raises(MalformedTableError, match="Data row 1 has 3 cells, header has 2"):
            address_cells([["a", "b"], ["1", "2"], ["1", "2", "3"]])

    def test_short_row_rejected(self):
        """Test that short rows are rejected too."""
        with pytest.raises(MalformedTableError):
            address_cells([["a", "b"], ["1"]])

    def test_malformed_table_is_value_error(self):
        """Test that callers catching ValueError also catch table errors."""
        assert issubclass(MalformedTableError, ValueError)

    def test_lenient_extra_cells(self):
        """Test that extra cells get an empty column name in lenient mode."""
        rows = address_cells([["a"], ["1", "2"], []], strict=False)

        assert rows[0] == [AddressedCell("1", "a", 0, 0), AddressedCell("2", "", 0, 1)]
        assert rows[1] == []

    def test_cell_location(self):
        """Test the location helper."""
        cell = address_cells([["a", "b"], ["x", "y"]])[0][1]
        assert (cell.location.row_index, cell.location.column_index) == (0, 1)


class TestMalformedScan:
    """Tests for structural failures during a scan."""

    def test_scan_fails_atomically(self):
        """Test that no partial report is produced for a ragged table."""
        scanner = Scanner(load_registry())
        with pytest.raises(MalformedTableError):
            scanner.analyse([["a", "b"], ["192.168.0.1", "x"], ["only one"]])

    def test_lenient_item_count(self):
        """Test that lenient scans count the cells actually present."""
        scanner = Scanner(load_registry())
        report = scanner.analyse([["a", "b"], ["192.168.0.1"], ["x", "y", "@extra"]], strict=False)

        assert report.item_count == 4
        assert [(f.location.row_index, f.location.column_index) for f in report.errors] == [
            (0, 0),
            (1, 2),
        ]
