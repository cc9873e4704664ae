"""Measurement point construction, merging and bulk editing."""

import copy
import logging
from collections import OrderedDict
from typing import Any, Dict, Iterable, List, Optional, Sequence

from .importers.column_header import parse_column_header
from .schema import ColumnInfo, ColumnName, LoggerMeasurementConfig, MeasurementPoint
from .utils_time import utc_now_iso

logger = logging.getLogger(__name__)

GROUP_BY_OPTIONS = ("column", "height_type")
BULK_EDIT_FIELDS = ("measurement_type_id", "height_m", "height_reference_id")


def _format_height(height: float) -> str:
    return str(int(height)) if float(height).is_integer() else str(height)


def parse_data_columns(headers: Sequence[str], time_col_index: int) -> List[ColumnInfo]:
    """Parse every non-timestamp, non-blank header, defaulting missing heights to 0."""
    columns = []
    for i, header in enumerate(headers):
        if i == time_col_index or not header or not header.strip():
            continue
        info = parse_column_header(header)
        if info.height is None:
            info.height = 0
        columns.append(info)
    return columns


def _point_for_columns(
    name: str,
    columns: List[ColumnInfo],
    logger_id: str,
    date_from: str,
    date_to: Optional[str],
    height_reference_id: str,
) -> MeasurementPoint:
    first = columns[0]
    return MeasurementPoint(
        name=name,
        measurement_type_id=first.measurement_type,
        height_m=first.height,
        height_reference_id=height_reference_id,
        unit=first.unit,
        logger_measurement_config=[
            LoggerMeasurementConfig(
                logger_id=logger_id,
                date_from=date_from,
                date_to=date_to,
                column_name=[
                    ColumnName(
                        column_name=column.name,
                        statistic_type_id=column.statistic_type,
                        is_ignored=False,
                    )
                    for column in columns
                ],
            )
        ],
        sensor=[],
    )


def build_points(
    headers: Sequence[str],
    time_col_index: int,
    logger_id: str,
    *,
    group_by: str = "column",
    date_from: Optional[str] = None,
    date_to: Optional[str] = None,
    height_reference_id: str = "ground_level",
) -> List[MeasurementPoint]:
    """
    Build measurement points for the data columns of a logger file.

    Args:
        headers: Header row of the CSV file, verbatim
        time_col_index: Index of the timestamp column, which is skipped
        logger_id: Logger identifier (logger_id or serial number)
        group_by: "column" for one point per column, "height_type" to merge
            columns sharing measurement type and height into one point
        date_from: Start of the measurement config, defaults to now
        date_to: End of the measurement config, defaults to open-ended
        height_reference_id: Height reference given to every point

    Returns:
        list of MeasurementPoint in column order

    Raises:
        ValueError: If group_by is not a known grouping
    """
    if group_by not in GROUP_BY_OPTIONS:
        raise ValueError(f"Unknown group_by '{group_by}'. Expected one of: {', '.join(GROUP_BY_OPTIONS)}")

    date_from = date_from or utc_now_iso()
    columns = parse_data_columns(headers, time_col_index)

    if group_by == "column":
        points = [
            _point_for_columns(column.name, [column], logger_id, date_from, date_to, height_reference_id)
            for column in columns
        ]
    else:
        groups: "OrderedDict[tuple, List[ColumnInfo]]" = OrderedDict()
        for column in columns:
            groups.setdefault((column.measurement_type, column.height), []).append(column)
        points = [
            _point_for_columns(
                f"{measurement_type}_{_format_height(height)}m",
                grouped,
                logger_id,
                date_from,
                date_to,
                height_reference_id,
            )
            for (measurement_type, height), grouped in groups.items()
        ]

    logger.debug("built %d points from %d columns for logger %s", len(points), len(columns), logger_id)
    return points


def new_point(logger_id: str, *, date_from: Optional[str] = None, date_to: Optional[str] = None) -> MeasurementPoint:
    """Blank point for a manual "add", attached to a logger with no columns yet."""
    return MeasurementPoint(
        name="",
        measurement_type_id="other",
        height_m=0,
        height_reference_id="ground_level",
        logger_measurement_config=[
            LoggerMeasurementConfig(
                logger_id=logger_id,
                date_from=date_from or utc_now_iso(),
                date_to=date_to,
                column_name=[],
            )
        ],
        sensor=[],
    )


def point_logger_id(point: Dict[str, Any]) -> Optional[str]:
    """Logger identifier of a point dict's first measurement config."""
    configs = point.get("logger_measurement_config") or []
    if not configs or not isinstance(configs[0], dict):
        return None
    return configs[0].get("logger_id")


def merge_logger_points(
    existing: Iterable[Dict[str, Any]],
    new_points: Iterable[Any],
    logger_id: str,
) -> List[Dict[str, Any]]:
    """
    Replace a logger's previously imported points with a new import.

    Points of other loggers are kept untouched and in order; the new points
    are appended after them.

    Returns:
        New list of point dicts; the inputs are not modified
    """
    kept = [copy.deepcopy(point) for point in existing if point_logger_id(point) != logger_id]
    added = [
        point.model_dump() if isinstance(point, MeasurementPoint) else copy.deepcopy(point)
        for point in new_points
    ]
    return kept + added


def filter_points(
    points: Sequence[Dict[str, Any]],
    *,
    name: str = "",
    measurement_type: str = "",
    height: str = "",
    height_reference: str = "",
    notes: str = "",
) -> List[int]:
    """
    Indexes of the points matching every non-blank filter.

    name, notes and height are case-insensitive substring filters; the
    measurement type and height reference must match exactly.
    """
    matches = []
    for i, point in enumerate(points):
        if name.strip() and name.lower() not in (point.get("name") or "").lower():
            continue
        if measurement_type.strip() and point.get("measurement_type_id") != measurement_type:
            continue
        if height.strip() and height not in str(point.get("height_m", "")):
            continue
        if height_reference.strip() and point.get("height_reference_id") != height_reference:
            continue
        if notes.strip() and notes.lower() not in (point.get("notes") or "").lower():
            continue
        matches.append(i)
    return matches


def bulk_edit_points(
    points: Sequence[Dict[str, Any]],
    indexes: Iterable[int],
    updates: Dict[str, Any],
) -> List[Dict[str, Any]]:
    """
    Apply the same field updates to a selection of points.

    Only measurement_type_id, height_m and height_reference_id can be bulk
    edited; empty update values are ignored.

    Raises:
        ValueError: If an index is out of range, a field cannot be bulk edited
            or height_m is not a number
    """
    unknown = [field for field in updates if field not in BULK_EDIT_FIELDS]
    if unknown:
        raise ValueError(f"Fields cannot be bulk edited: {', '.join(unknown)}")

    updates = {field: value for field, value in updates.items() if value is not None and value != ""}
    if "height_m" in updates:
        try:
            updates["height_m"] = float(updates["height_m"])
        except (TypeError, ValueError):
            raise ValueError("height_m must be a number")

    edited = [copy.deepcopy(point) for point in points]
    for index in indexes:
        if not 0 <= index < len(edited):
            raise ValueError(f"Measurement point index {index} out of range")
        edited[index].update(updates)
    return edited


def remove_point(points: Sequence[Dict[str, Any]], index: int) -> List[Dict[str, Any]]:
    """Copy of the point list without the point at ``index``."""
    if not 0 <= index < len(points):
        raise ValueError(f"Measurement point index {index} out of range")
    return [copy.deepcopy(point) for i, point in enumerate(points) if i != index]
