"""Cell addressing: turn a header + data rows table into addressed cells."""

import logging
from typing import Sequence

from tablescan.models import AddressedCell

logger = logging.getLogger(__name__)

Table = Sequence[Sequence[str]]


class MalformedTableError(ValueError):
    """Raised when a table's structure makes it impossible to scan."""


def address_cells(table: Table, strict: bool = True) -> list[list[AddressedCell]]:
    """
    Address every data cell of a table.

    Row 0 is the header and is only used for column names. Row and column
    indexes are zero-based over the data region.

    Args:
        table: Header row followed by data rows
        strict: Reject data rows whose length differs from the header.
                When False, such rows are addressed as they are and cells
                beyond the header get an empty column name.

    Returns:
        One list of AddressedCell per data row, in input order

    Raises:
        MalformedTableError: If the header row is missing, or a row is ragged
                             in strict mode
    """
    if len(table) == 0:
        raise MalformedTableError("Table has no header row")

    header = list(table[0])
    width = len(header)
    rows: list[list[AddressedCell]] = []

    for row_index, row in enumerate(table[1:]):
        if len(row) != width:
            if strict:
                raise MalformedTableError(
                    f"Data row {row_index} has {len(row)} cells, header has {width}"
                )
            logger.debug(f"Data row {row_index} has {len(row)} cells, header has {width}")

        rows.append(
            [
                AddressedCell(
                    value=value,
                    column_name=header[column_index] if column_index < width else "",
                    row_index=row_index,
                    column_index=column_index,
                )
                for column_index, value in enumerate(row)
            ]
        )

    return rows
