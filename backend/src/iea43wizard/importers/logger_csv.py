"""Logger data-file importer producing measurement points."""

import csv
import io
import logging
from typing import Any, BinaryIO, Dict, List, Optional, TextIO

from .base import ImportResult, detect_delimiter, read_with_encoding_fallback
from .column_header import parse_column_header
from .csv_structure import validate_csv_structure
from ..points import build_points, parse_data_columns
from ..schema import CSVIssue, CSVValidationResult

logger = logging.getLogger(__name__)


class LoggerCSVImporter:
    """Importer for logger data CSV files (one measurement point per column)."""

    @classmethod
    def read_rows(cls, file: BinaryIO | TextIO | bytes | str) -> List[List[str]]:
        """
        Decode and tokenize a CSV file.

        Raises:
            ValueError: If the content cannot be decoded with any supported encoding
        """
        content, encoding_used = read_with_encoding_fallback(file)
        if content is None:
            raise ValueError("Failed to read file with any supported encoding")
        delimiter = detect_delimiter(content)
        logger.debug("decoded CSV as %s with delimiter %r", encoding_used, delimiter)
        return list(csv.reader(io.StringIO(content), delimiter=delimiter))

    @classmethod
    def inspect(cls, file: BinaryIO | TextIO | bytes | str) -> Dict[str, Any]:
        """
        Check a CSV file and preview the column inference without building points.

        Returns:
            Dictionary with the structural validation result and, when the file
            is valid, the inferred metadata of every data column
        """
        try:
            rows = cls.read_rows(file)
        except (ValueError, csv.Error) as e:
            result = CSVValidationResult(
                is_valid=False,
                errors=[CSVIssue(type="error", message=f"Error reading file: {e}")],
            )
            return {"validation": result.model_dump(), "columns": []}

        result = validate_csv_structure(rows)
        columns = []
        if result.is_valid and result.data is not None:
            columns = [
                parse_column_header(header).model_dump()
                for header in result.data.data_columns()
            ]
        return {"validation": result.model_dump(), "columns": columns}

    @classmethod
    def import_file(
        cls,
        file: BinaryIO | TextIO | bytes | str,
        logger_id: str,
        *,
        group_by: str = "column",
        date_from: Optional[str] = None,
        date_to: Optional[str] = None,
        height_reference_id: str = "ground_level",
    ) -> ImportResult:
        """
        Import a logger CSV file.

        Args:
            file: File-like object, bytes or text containing CSV data
            logger_id: Identifier of the logger that recorded the file
            group_by: Point grouping, see points.build_points
            date_from: Start date of the created measurement configs
            date_to: End date of the created measurement configs
            height_reference_id: Height reference of the created points

        Returns:
            ImportResult with measurement points and any warnings
        """
        if not logger_id or not logger_id.strip():
            return ImportResult.failure_message("Logger must have an ID or serial number before uploading data")

        try:
            rows = cls.read_rows(file)
        except (ValueError, csv.Error) as e:
            return ImportResult.failure_message(f"Error reading file: {e}")

        validation = validate_csv_structure(rows)
        if not validation.is_valid or validation.data is None:
            return ImportResult.failure(validation.errors)

        structure = validation.data
        points = build_points(
            structure.headers,
            structure.time_col_index,
            logger_id,
            group_by=group_by,
            date_from=date_from,
            date_to=date_to,
            height_reference_id=height_reference_id,
        )
        columns = parse_data_columns(structure.headers, structure.time_col_index)

        issues = list(validation.errors)
        issues.append(CSVIssue(
            type="warning",
            message=f"Successfully imported {len(points)} measurement points from {len(columns)} columns",
        ))
        logger.info("logger %s: %d points from %d columns", logger_id, len(points), len(columns))
        return ImportResult.success(points, issues, structure=structure, columns=columns)
