"""Tests for the logger CSV importer, including encodings and delimiters."""

import io

from iea43wizard.importers.base import detect_delimiter, read_with_encoding_fallback
from iea43wizard.importers.logger_csv import LoggerCSVImporter


CSV_CONTENT = """Timestamp,WindSpeed_80m_Avg,WindDir_80m_deg,Temp_2m
2024-01-01T00:00:00Z,5.2,240,11.0
2024-01-01T00:10:00Z,5.6,245,11.1"""


class TestLoggerCSVImporter:
    """Test cases for LoggerCSVImporter.import_file."""

    def test_import_points(self):
        result = LoggerCSVImporter.import_file(io.StringIO(CSV_CONTENT), "LOG-1", date_from="2024-01-01T00:00:00Z")

        assert result.ok
        assert [p.name for p in result.points] == ["WindSpeed_80m_Avg", "WindDir_80m_deg", "Temp_2m"]
        assert [p.measurement_type_id for p in result.points] == ["wind_speed", "wind_direction", "temperature"]
        assert result.structure.time_col_index == 0
        assert len(result.columns) == 3
        assert result.warnings[-1].message == "Successfully imported 3 measurement points from 3 columns"

    def test_group_by_height_type(self):
        content = "Timestamp,WS_80m_Avg,WindMax_80m\n2024-01-01T00:00:00Z,5.2,7.0"
        result = LoggerCSVImporter.import_file(io.StringIO(content), "LOG-1", group_by="height_type")

        assert len(result.points) == 1
        assert result.points[0].name == "wind_speed_80m"
        assert result.warnings[-1].message == "Successfully imported 1 measurement points from 2 columns"

    def test_logger_id_required(self):
        result = LoggerCSVImporter.import_file(io.StringIO(CSV_CONTENT), "  ")

        assert not result.ok
        assert result.errors[0].message == "Logger must have an ID or serial number before uploading data"

    def test_structural_errors_abort_import(self):
        result = LoggerCSVImporter.import_file(io.StringIO("Timestamp,WS_40m\n"), "LOG-1")

        assert not result.ok
        assert result.points is None
        assert result.errors[0].message == "CSV file must contain at least 2 rows (header and data)"

    def test_warnings_carried_through(self):
        content = "Timestamp,WS_40m,WS_60m\n2024-01-01T00:00:00Z,5.2\n2024-01-01T00:10:00Z,5.2,5.9"
        result = LoggerCSVImporter.import_file(io.StringIO(content), "LOG-1")

        assert result.ok
        assert result.warnings[0].message == "Row 2 has 2 columns, expected 3. This row will be skipped."

    def test_height_reference(self):
        result = LoggerCSVImporter.import_file(io.StringIO(CSV_CONTENT), "BUOY", height_reference_id="sea_level")
        assert {p.height_reference_id for p in result.points} == {"sea_level"}


class TestEncodingsDelimiters:
    """Test cases for encoding and delimiter detection."""

    def test_utf8_sig_encoding(self):
        """Test UTF-8-BOM content does not leak the BOM into the first header."""
        file_obj = io.BytesIO(CSV_CONTENT.encode("utf-8-sig"))
        result = LoggerCSVImporter.import_file(file_obj, "LOG-1")

        assert result.ok
        assert result.structure.headers[0] == "Timestamp"

    def test_latin1_encoding(self):
        content = "Timestamp,Température_2m\n2024-01-01T00:00:00Z,11.0"
        file_obj = io.BytesIO(content.encode("latin-1"))
        result = LoggerCSVImporter.import_file(file_obj, "LOG-1")

        assert result.ok
        assert result.points[0].name == "Température_2m"
        assert result.points[0].measurement_type_id == "temperature"

    def test_semicolon_delimiter(self):
        content = CSV_CONTENT.replace(",", ";")
        result = LoggerCSVImporter.import_file(io.StringIO(content), "LOG-1")

        assert result.ok
        assert len(result.points) == 3

    def test_tab_delimiter(self):
        content = CSV_CONTENT.replace(",", "\t")
        result = LoggerCSVImporter.import_file(io.BytesIO(content.encode("utf-8")), "LOG-1")

        assert result.ok
        assert len(result.points) == 3

    def test_detect_delimiter(self):
        assert detect_delimiter("a;b;c\n1;2;3") == ";"
        assert detect_delimiter("a\tb\tc") == "\t"
        assert detect_delimiter("a,b;c,d") == ","
        assert detect_delimiter("single") == ","

    def test_read_with_encoding_fallback(self):
        content, encoding = read_with_encoding_fallback("\ufeffTimestamp".encode("utf-8"))
        assert content == "Timestamp"
        assert encoding == "utf-8"

        content, encoding = read_with_encoding_fallback(b"caf\xe9")
        assert content == "café"
        assert encoding == "latin1"


class TestInspect:
    """Test cases for LoggerCSVImporter.inspect."""

    def test_inspect_valid_file(self):
        report = LoggerCSVImporter.inspect(io.BytesIO(CSV_CONTENT.encode("utf-8")))

        assert report["validation"]["is_valid"] is True
        assert [c["name"] for c in report["columns"]] == ["WindSpeed_80m_Avg", "WindDir_80m_deg", "Temp_2m"]
        assert report["columns"][0]["height"] == 80

    def test_inspect_invalid_file(self):
        report = LoggerCSVImporter.inspect(io.BytesIO(b"Timestamp\n"))

        assert report["validation"]["is_valid"] is False
        assert report["columns"] == []
