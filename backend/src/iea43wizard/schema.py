"""Pydantic schema models for the IEA Task 43 station-configuration core."""

from typing import Any, Literal, Optional

from pydantic import BaseModel, Field


MeasurementType = Literal[
    "wind_speed", "wind_direction", "temperature", "pressure", "humidity",
    "wave_height", "wave_period", "wave_direction", "position", "other",
]

StatisticType = Literal[
    "avg", "sd", "max", "min", "count", "availability", "quality", "sum",
    "median", "mode", "range", "gust", "ti", "ti30sec", "text",
]

HeightReference = Literal["ground_level", "sea_level", "sea_floor"]

IssueType = Literal["error", "warning"]


class ColumnInfo(BaseModel):
    """Metadata inferred from a single logger column header."""

    name: str
    measurement_type: MeasurementType = "other"
    height: Optional[float] = None
    unit: Optional[str] = None
    statistic_type: StatisticType = "avg"


class ColumnName(BaseModel):
    """Logger data-file column feeding a measurement point."""

    column_name: str
    statistic_type_id: StatisticType
    is_ignored: bool = False
    notes: Optional[str] = None


class LoggerMeasurementConfig(BaseModel):
    """Link between a measurement point and a logger's data columns."""

    logger_id: Optional[str] = None
    date_from: str
    date_to: Optional[str] = None
    notes: Optional[str] = None
    column_name: list[ColumnName] = Field(default_factory=list)


class Sensor(BaseModel):
    """Sensor mounted at a measurement point."""

    oem: Optional[str] = None
    model: Optional[str] = None
    serial_number: Optional[str] = None
    sensor_type_id: Optional[str] = None
    date_from: Optional[str] = None
    date_to: Optional[str] = None
    notes: Optional[str] = None


class MeasurementPoint(BaseModel):
    """Named, height-referenced measurement at a location."""

    name: str
    measurement_type_id: MeasurementType
    height_m: Optional[float] = None
    height_reference_id: HeightReference = "ground_level"
    unit: Optional[str] = None
    notes: Optional[str] = None
    logger_measurement_config: list[LoggerMeasurementConfig] = Field(default_factory=list)
    sensor: list[Sensor] = Field(default_factory=list)


class CSVIssue(BaseModel):
    """Blocking error or advisory warning found while checking a CSV file."""

    type: IssueType
    message: str
    row: Optional[int] = None
    column: Optional[str] = None
    suggested_fix: Optional[str] = None


class CSVStructure(BaseModel):
    """Header location information for a structurally valid CSV file."""

    headers: list[str]
    header_row_index: int
    time_col_index: int

    def data_columns(self) -> list[str]:
        """Non-timestamp, non-blank header cells in column order."""
        return [
            name for i, name in enumerate(self.headers)
            if i != self.time_col_index and name and name.strip()
        ]


class CSVValidationResult(BaseModel):
    """Outcome of the CSV structural validation."""

    is_valid: bool
    errors: list[CSVIssue] = Field(default_factory=list)
    data: Optional[CSVStructure] = None


class ValidationIssue(BaseModel):
    """Single finding of the required-fields or schema compliance validator."""

    path: str
    message: str
    keyword: Optional[str] = None
    expected_type: Optional[str] = None
    actual_value: Optional[Any] = None
    severity: IssueType = "error"


class ValidationResult(BaseModel):
    """Findings of a document validator."""

    is_valid: bool
    errors: list[ValidationIssue] = Field(default_factory=list)
    warnings: list[ValidationIssue] = Field(default_factory=list)

    def blocking_errors(self) -> list[ValidationIssue]:
        """Errors that prevent export."""
        return [issue for issue in self.errors if issue.severity == "error"]
