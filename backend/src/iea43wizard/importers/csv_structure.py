"""Structural checks on tokenized logger CSV rows."""

import logging
from typing import Any, Optional, Sequence

from ..config import (
    HEADER_KEYWORDS,
    HEADER_SCAN_ROWS,
    MAX_TIMESTAMP_WARNINGS,
    MIN_HEADER_CELLS,
    MIN_HEADER_FILL_RATIO,
    TIMESTAMP_KEYWORDS,
    TIMESTAMP_SCAN_COLUMNS,
)
from ..schema import CSVIssue, CSVStructure, CSVValidationResult
from ..utils_time import is_valid_timestamp

logger = logging.getLogger(__name__)


def _is_empty_cell(cell: Any) -> bool:
    return cell is None or cell == ""


def _cell_text(cell: Any) -> str:
    return "" if cell is None else str(cell)


def drop_empty_rows(rows: Sequence[Any]) -> list[list[Any]]:
    """Rows that are lists with at least one non-empty cell."""
    return [
        list(row) for row in rows
        if isinstance(row, (list, tuple)) and any(not _is_empty_cell(cell) for cell in row)
    ]


def find_header_row(rows: list[list[Any]]) -> int:
    """
    Index of the header row among the first few rows.

    A header row has more than one cell, is reasonably filled and mentions
    a measurement keyword. Falls back to the first row.
    """
    for i, row in enumerate(rows[:HEADER_SCAN_ROWS]):
        if len(row) <= 1:
            continue
        filled = [cell for cell in row if not _is_empty_cell(cell)]
        if len(filled) <= max(MIN_HEADER_CELLS, len(row) * MIN_HEADER_FILL_RATIO):
            continue
        lowered = [_cell_text(cell).lower() for cell in row]
        if any(keyword in cell for keyword in HEADER_KEYWORDS for cell in lowered):
            return i
    return 0


def find_timestamp_column(headers: list[str]) -> Optional[int]:
    """Index of the first timestamp-like header among the leading columns."""
    for i, header in enumerate(headers[:TIMESTAMP_SCAN_COLUMNS]):
        lowered = header.lower()
        if any(keyword in lowered for keyword in TIMESTAMP_KEYWORDS):
            return i
    return None


def validate_csv_structure(rows: Sequence[Any]) -> CSVValidationResult:
    """
    Validate tokenized CSV rows from a logger data file.

    Locates the header row and the timestamp column, then checks every data
    row's width and timestamp. Width mismatches and bad timestamps are
    warnings; only a missing header, missing data rows or missing data
    columns are errors.

    Args:
        rows: Rows of raw string cells, as produced by a CSV reader

    Returns:
        CSVValidationResult; ``data`` is None whenever an error was found
    """
    errors: list[CSVIssue] = []

    non_empty_rows = drop_empty_rows(rows)
    if len(non_empty_rows) < 2:
        errors.append(CSVIssue(
            type="error",
            message="CSV file must contain at least 2 rows (header and data)",
            suggested_fix="Ensure the CSV has both a header row and data rows",
        ))
        return CSVValidationResult(is_valid=False, errors=errors, data=None)

    header_row_index = find_header_row(non_empty_rows)
    headers = [_cell_text(cell) for cell in non_empty_rows[header_row_index]]
    logger.debug("header row %d: %s", header_row_index, headers)

    if not any(header.strip() for header in headers):
        errors.append(CSVIssue(
            type="error",
            message="CSV file must contain valid headers",
            suggested_fix="Ensure the first row contains column names",
        ))
        return CSVValidationResult(is_valid=False, errors=errors, data=None)

    timestamp_column = find_timestamp_column(headers)
    if timestamp_column is None:
        errors.append(CSVIssue(
            type="warning",
            message="No timestamp column detected. First column will be treated as timestamp.",
            suggested_fix='Include a column with "timestamp", "date", or "time" in the header',
        ))
    time_col_index = timestamp_column if timestamp_column is not None else 0

    structure = CSVStructure(
        headers=headers,
        header_row_index=header_row_index,
        time_col_index=time_col_index,
    )
    if not structure.data_columns():
        errors.append(CSVIssue(
            type="error",
            message="No valid measurement columns found",
            suggested_fix="Ensure there are columns containing measurement data (wind speed, temperature, etc.)",
        ))
        return CSVValidationResult(is_valid=False, errors=errors, data=None)

    invalid_timestamp_count = 0
    for i in range(header_row_index + 1, len(non_empty_rows)):
        row = non_empty_rows[i]
        if len(row) != len(headers):
            errors.append(CSVIssue(
                type="warning",
                message=f"Row {i + 1} has {len(row)} columns, expected {len(headers)}. This row will be skipped.",
                row=i + 1,
            ))
            continue

        timestamp = row[time_col_index]
        if not is_valid_timestamp(timestamp):
            invalid_timestamp_count += 1
            if invalid_timestamp_count <= MAX_TIMESTAMP_WARNINGS:
                errors.append(CSVIssue(
                    type="warning",
                    message=f'Invalid timestamp in row {i + 1}: "{_cell_text(timestamp)}"',
                    row=i + 1,
                    column=headers[time_col_index],
                ))

    if invalid_timestamp_count > MAX_TIMESTAMP_WARNINGS:
        errors.append(CSVIssue(
            type="warning",
            message=(
                f"{invalid_timestamp_count - MAX_TIMESTAMP_WARNINGS} "
                "additional rows with invalid timestamps found"
            ),
        ))

    has_errors = any(issue.type == "error" for issue in errors)
    return CSVValidationResult(
        is_valid=not has_errors,
        errors=errors,
        data=None if has_errors else structure,
    )
