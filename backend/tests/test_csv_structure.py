"""Tests for the CSV structural validator."""

from iea43wizard.importers.csv_structure import (
    drop_empty_rows,
    find_header_row,
    find_timestamp_column,
    validate_csv_structure,
)


def _warnings(result):
    return [issue for issue in result.errors if issue.type == "warning"]


class TestValidateCSVStructure:
    """Test cases for validate_csv_structure."""

    def test_minimal_valid_file(self):
        """Test the smallest valid logger file."""
        result = validate_csv_structure([["Timestamp", "WindSpeed_40m"], ["2024-01-01 00:00", "5.2"]])

        assert result.is_valid is True
        assert result.data is not None
        assert result.data.time_col_index == 0
        assert result.data.header_row_index == 0
        assert result.data.data_columns() == ["WindSpeed_40m"]
        assert result.errors == []

    def test_single_row_is_rejected(self):
        result = validate_csv_structure([["Timestamp", "WindSpeed_40m"]])

        assert result.is_valid is False
        assert result.data is None
        assert result.errors[0].message == "CSV file must contain at least 2 rows (header and data)"

    def test_empty_rows_are_ignored(self):
        """Test blank lines do not count towards the row minimum."""
        result = validate_csv_structure([["Timestamp", "WS_40m"], [], ["", ""], ["2024-01-01 00:00", "5.2"]])
        assert result.is_valid is True

        result = validate_csv_structure([["Timestamp", "WS_40m"], ["", ""]])
        assert result.is_valid is False

    def test_blank_header_row(self):
        result = validate_csv_structure([["", "", "x"], ["", "", ""], ["1", "2", "3"]])
        # the first non-empty row becomes the header since none qualifies
        assert result.is_valid is True

        result = validate_csv_structure([[" ", " "], ["2024-01-01 00:00", "5.2"]])
        assert result.is_valid is False
        assert result.errors[0].message == "CSV file must contain valid headers"

    def test_header_row_found_after_metadata(self):
        """Test logger preamble rows are skipped when locating the header."""
        rows = [
            ["Logger", "NRG SymphoniePRO"],
            ["Site", "North ridge", ""],
            ["Date/Time", "WindSpeed_80m_Avg", "WindDir_80m_Avg", "Temp_2m_Avg"],
            ["2024-01-01 00:00", "5.2", "240", "11.0"],
            ["2024-01-01 00:10", "5.6", "245", "11.1"],
        ]
        result = validate_csv_structure(rows)

        assert result.is_valid is True
        assert result.data.header_row_index == 2
        assert result.data.time_col_index == 0
        assert len(result.data.data_columns()) == 3

    def test_timestamp_column_not_first(self):
        rows = [
            ["Record", "TIMESTAMP", "WS_80m"],
            ["1", "2024-01-01T00:00:00Z", "5.2"],
        ]
        result = validate_csv_structure(rows)
        assert result.data.time_col_index == 1
        assert result.data.data_columns() == ["Record", "WS_80m"]

    def test_missing_timestamp_column_defaults_to_first(self):
        rows = [["Channel", "WS_40m", "WS_60m"], ["2024-01-01 00:00", "5.2", "5.9"]]
        result = validate_csv_structure(rows)

        assert result.is_valid is True
        assert result.data.time_col_index == 0
        assert _warnings(result)[0].message == "No timestamp column detected. First column will be treated as timestamp."

    def test_no_measurement_columns(self):
        result = validate_csv_structure([["Timestamp", ""], ["2024-01-01 00:00", ""], ["2024-01-01 00:10", "1"]])

        assert result.is_valid is False
        assert result.data is None
        assert any(issue.message == "No valid measurement columns found" for issue in result.errors)

    def test_row_width_mismatch_is_warning(self):
        rows = [
            ["Timestamp", "WS_40m", "WS_60m"],
            ["2024-01-01 00:00", "5.2"],
            ["2024-01-01 00:10", "5.2", "5.9"],
        ]
        result = validate_csv_structure(rows)

        assert result.is_valid is True
        assert result.errors[0].type == "warning"
        assert result.errors[0].message == "Row 2 has 2 columns, expected 3. This row will be skipped."
        assert result.errors[0].row == 2

    def test_invalid_timestamps_are_capped(self):
        """Test only three timestamp warnings are detailed, the rest rolled up."""
        rows = [["Timestamp", "WS_40m"]] + [[f"bad value {i}", "5.0"] for i in range(5)]
        result = validate_csv_structure(rows)

        assert result.is_valid is True
        messages = [issue.message for issue in _warnings(result)]
        assert messages[0] == 'Invalid timestamp in row 2: "bad value 0"'
        assert len([m for m in messages if m.startswith("Invalid timestamp")]) == 3
        assert messages[-1] == "2 additional rows with invalid timestamps found"
        assert _warnings(result)[0].column == "Timestamp"

    def test_is_valid_matches_error_presence(self):
        """Test warnings alone never invalidate a file."""
        rows = [["Channel", "WS_40m"], ["oops", "5.2", "extra"], ["x", "1"]]
        result = validate_csv_structure(rows)

        assert _warnings(result)
        assert result.is_valid is not any(issue.type == "error" for issue in result.errors)


class TestStructureHelpers:
    """Test cases for the header and timestamp discovery helpers."""

    def test_drop_empty_rows(self):
        rows = [["a"], [], ["", None], "not a row", ["", "b"]]
        assert drop_empty_rows(rows) == [["a"], ["", "b"]]

    def test_find_header_row_falls_back_to_first(self):
        assert find_header_row([["x", "y"], ["1", "2"]]) == 0

    def test_find_timestamp_column_limited_to_six(self):
        headers = ["a", "b", "c", "d", "e", "f", "Timestamp"]
        assert find_timestamp_column(headers) is None
        assert find_timestamp_column(["WS", "UTC"]) == 1
