"""Logger CSV templates whose headers are understood by the column header parser."""

import csv
import io
import logging
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from pydantic import BaseModel, Field

from .compliance import schema_enum

logger = logging.getLogger(__name__)

TIMESTAMP_HEADER = "Timestamp"
TIMESTAMP_EXAMPLE = "2024-01-01T00:00:00Z"

# (measurement type, statistic) -> header stem. Only combinations the header
# parser maps back to the same type and statistic are listed.
HEADER_STEMS: Dict[Tuple[str, str], str] = {
    ("wind_speed", "avg"): "WindSpeed",
    ("wind_speed", "max"): "WindMax",
    ("wind_speed", "min"): "WindMin",
    ("wind_speed", "sd"): "StdDev",
    ("wind_speed", "gust"): "WindGust",
    ("wind_speed", "ti"): "Turbulence",
    ("wind_direction", "avg"): "WindDir",
    ("temperature", "avg"): "Temp",
    ("pressure", "avg"): "Pressure",
    ("humidity", "avg"): "Humidity",
    ("wave_height", "avg"): "Hsig",
    ("wave_height", "max"): "Hmax",
    ("wave_period", "avg"): "PeakPeriod",
    ("wave_direction", "avg"): "WaveDirection",
}

STATISTIC_LABELS = {
    "avg": "Avg",
    "max": "Max",
    "min": "Min",
    "sd": "Std",
    "ti": "TI",
    "gust": "Gust",
    "sum": "Sum",
}

DEFAULT_UNITS = {
    "wind_speed": "m/s",
    "wind_direction": "deg",
    "temperature": "C",
    "pressure": "hPa",
    "humidity": "%",
    "wave_height": "m",
    "wave_period": "s",
    "wave_direction": "deg",
}

EXAMPLE_VALUES = {
    ("wind_speed", "avg"): "8.5",
    ("wind_speed", "max"): "12.3",
    ("wind_speed", "min"): "4.2",
    ("wind_speed", "sd"): "2.1",
    ("wind_speed", "gust"): "15.8",
    ("wind_speed", "ti"): "0.12",
    ("wind_direction", "avg"): "245",
    ("temperature", "avg"): "15.2",
    ("pressure", "avg"): "1013.2",
    ("humidity", "avg"): "65",
    ("wave_height", "avg"): "2.1",
    ("wave_height", "max"): "3.8",
    ("wave_period", "avg"): "7.2",
    ("wave_direction", "avg"): "180",
}

DEFAULT_MEASUREMENTS = [
    ("wind_speed", [40, 60], ["avg", "max"]),
    ("wind_direction", [40, 60], ["avg"]),
    ("temperature", [2], ["avg"]),
    ("pressure", [2], ["avg"]),
    ("humidity", [2], ["avg"]),
]

INSTRUCTIONS = [
    "Keep the timestamp column first, in ISO 8601 format (YYYY-MM-DDTHH:MM:SSZ)",
    "Column names carry measurement type, height and statistic (e.g. WindSpeed_80m_Avg)",
    "Heights are whole meters above the height reference",
    "Remove or add columns as needed for your logger",
    "The example row only illustrates the format; replace it with logger data",
]


class TemplateColumn(BaseModel):
    name: str
    measurement_type: Optional[str] = None
    height: Optional[int] = None
    statistic_type: Optional[str] = None
    unit: Optional[str] = None
    example: str


class CSVTemplate(BaseModel):
    """Generated template: header row, one example row and column metadata."""

    headers: List[str] = Field(default_factory=list)
    example_row: List[str] = Field(default_factory=list)
    columns: List[TemplateColumn] = Field(default_factory=list)
    skipped: List[str] = Field(default_factory=list)


def template_header(measurement_type: str, height: int, statistic: str, unit: Optional[str] = None) -> str:
    """
    Header for one template column: ``<Stem>_<height>m_<Stat>[_<unit>]``.

    The height part is left out for height 0.

    Raises:
        ValueError: If the combination has no parser-compatible header
    """
    stem = HEADER_STEMS.get((measurement_type, statistic))
    if stem is None:
        raise ValueError(f"No template header for {measurement_type} ({statistic})")
    parts = [stem]
    if height > 0:
        parts.append(f"{height}m")
    parts.append(STATISTIC_LABELS.get(statistic, statistic))
    if unit:
        parts.append(unit)
    return "_".join(parts)


def _check_heights(heights: Iterable[object]) -> List[int]:
    checked = []
    for height in heights:
        if isinstance(height, bool) or not isinstance(height, (int, float)) or height < 0 \
                or not float(height).is_integer():
            raise ValueError(f"Template heights must be whole, non-negative meters, got {height!r}")
        checked.append(int(height))
    return checked


def generate_template(
    measurements: Sequence[Tuple[str, Sequence[object], Sequence[str]]],
    units: Optional[Dict[str, str]] = None,
) -> CSVTemplate:
    """
    Build a template for measurement type / heights / statistics combinations.

    Args:
        measurements: (measurement_type, heights, statistics) triples
        units: Unit per measurement type, defaults to DEFAULT_UNITS

    Returns:
        CSVTemplate with the timestamp column first. Combinations without a
        parser-compatible header are listed in ``skipped``.

    Raises:
        ValueError: For measurement or statistic types unknown to the schema,
            and for fractional or negative heights
    """
    units = DEFAULT_UNITS if units is None else units
    known_types = set(schema_enum("measurement_type"))
    known_stats = set(schema_enum("statistic_type"))

    template = CSVTemplate(
        headers=[TIMESTAMP_HEADER],
        example_row=[TIMESTAMP_EXAMPLE],
        columns=[TemplateColumn(name=TIMESTAMP_HEADER, example=TIMESTAMP_EXAMPLE)],
    )

    for measurement_type, heights, statistics in measurements:
        if measurement_type not in known_types:
            raise ValueError(f"Unknown measurement type '{measurement_type}'")
        unknown = [stat for stat in statistics if stat not in known_stats]
        if unknown:
            raise ValueError(f"Unknown statistic types: {', '.join(unknown)}")

        for height in _check_heights(heights):
            for statistic in statistics:
                if (measurement_type, statistic) not in HEADER_STEMS:
                    template.skipped.append(f"{measurement_type}/{statistic}")
                    continue
                unit = units.get(measurement_type)
                name = template_header(measurement_type, height, statistic, unit)
                if name in template.headers:
                    continue
                example = EXAMPLE_VALUES.get((measurement_type, statistic), "0")
                template.headers.append(name)
                template.example_row.append(example)
                template.columns.append(TemplateColumn(
                    name=name,
                    measurement_type=measurement_type,
                    height=height,
                    statistic_type=statistic,
                    unit=unit,
                    example=example,
                ))

    # one entry per combination, not per height
    template.skipped = list(dict.fromkeys(template.skipped))
    if template.skipped:
        logger.info("template skipped unsupported combinations: %s", ", ".join(template.skipped))
    return template


def default_template() -> CSVTemplate:
    """Template with the usual met-mast columns."""
    return generate_template(DEFAULT_MEASUREMENTS)


def render_csv(template: CSVTemplate, include_instructions: bool = False) -> str:
    """CSV text of a template; instructions become leading ``#`` comment lines."""
    out = io.StringIO()
    if include_instructions:
        out.write("# CSV import template for IEA Task 43 measurement points\n")
        for i, line in enumerate(INSTRUCTIONS, start=1):
            out.write(f"# {i}. {line}\n")
    writer = csv.writer(out, lineterminator="\n")
    writer.writerow(template.headers)
    writer.writerow(template.example_row)
    return out.getvalue()
