"""Tests for logger CSV template generation."""

import csv
import io

import pytest

from iea43wizard.importers.csv_structure import validate_csv_structure
from iea43wizard.points import parse_data_columns
from iea43wizard.templates import (
    HEADER_STEMS,
    default_template,
    generate_template,
    render_csv,
    template_header,
)


class TestTemplateHeaders:
    """Test cases for template_header."""

    def test_header_format(self):
        assert template_header("wind_speed", 80, "avg", "m/s") == "WindSpeed_80m_Avg_m/s"
        assert template_header("wind_direction", 60, "avg") == "WindDir_60m_Avg"
        assert template_header("wave_height", 0, "max", "m") == "Hmax_Max_m"

    def test_unsupported_combination(self):
        with pytest.raises(ValueError):
            template_header("wind_direction", 80, "sd")

    def test_every_stem_parses_back(self):
        """Test generated headers map back to the same type, height and statistic."""
        measurements = {}
        for measurement_type, statistic in HEADER_STEMS:
            measurements.setdefault(measurement_type, []).append(statistic)
        template = generate_template([(t, [0, 10, 100], stats) for t, stats in measurements.items()])

        parsed = parse_data_columns(template.headers, 0)
        assert len(parsed) == len(template.columns) - 1
        for column, info in zip(template.columns[1:], parsed):
            assert info.name == column.name
            assert info.measurement_type == column.measurement_type
            assert info.statistic_type == column.statistic_type
            assert info.height == column.height


class TestGenerateTemplate:
    """Test cases for generate_template."""

    def test_timestamp_column_first(self):
        template = generate_template([("wind_speed", [40, 60], ["avg", "max"])])

        assert template.headers == [
            "Timestamp",
            "WindSpeed_40m_Avg_m/s",
            "WindMax_40m_Max_m/s",
            "WindSpeed_60m_Avg_m/s",
            "WindMax_60m_Max_m/s",
        ]
        assert template.example_row[0] == "2024-01-01T00:00:00Z"
        assert template.example_row[1] == "8.5"
        assert template.skipped == []

    def test_unsupported_combinations_skipped(self):
        template = generate_template([("wind_direction", [40, 60], ["avg", "sd"])])

        assert template.headers == ["Timestamp", "WindDir_40m_Avg_deg", "WindDir_60m_Avg_deg"]
        assert template.skipped == ["wind_direction/sd"]

    def test_custom_units(self):
        template = generate_template([("temperature", [2], ["avg"])], units={"temperature": "K"})
        assert template.headers[1] == "Temp_2m_Avg_K"

    def test_unknown_types_rejected(self):
        with pytest.raises(ValueError):
            generate_template([("wind_power", [80], ["avg"])])
        with pytest.raises(ValueError):
            generate_template([("wind_speed", [80], ["mean"])])

    def test_fractional_heights_rejected(self):
        with pytest.raises(ValueError):
            generate_template([("wind_speed", [80.5], ["avg"])])
        with pytest.raises(ValueError):
            generate_template([("wind_speed", [-1], ["avg"])])

    def test_default_template_is_valid_logger_file(self):
        """Test the default template passes the CSV structural validator."""
        text = render_csv(default_template())
        rows = list(csv.reader(io.StringIO(text)))
        result = validate_csv_structure(rows)

        assert result.is_valid is True
        assert result.errors == []
        assert result.data.time_col_index == 0
        assert len(result.data.data_columns()) == 9


class TestRenderCSV:
    """Test cases for render_csv."""

    def test_plain(self):
        template = generate_template([("pressure", [2], ["avg"])])
        assert render_csv(template) == "Timestamp,Pressure_2m_Avg_hPa\n2024-01-01T00:00:00Z,1013.2\n"

    def test_with_instructions(self):
        text = render_csv(generate_template([("pressure", [2], ["avg"])]), include_instructions=True)
        lines = text.splitlines()

        assert lines[0].startswith("# ")
        assert lines[1].startswith("# 1. ")
        assert lines[-2] == "Timestamp,Pressure_2m_Avg_hPa"
