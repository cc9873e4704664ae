"""Presence checks for fields every exportable document must carry."""

from typing import Any, Dict, List

from .schema import ValidationIssue, ValidationResult


ROOT_REQUIRED = ["author", "organisation", "date", "version"]
LOCATION_REQUIRED = ["name", "latitude_ddeg", "longitude_ddeg", "measurement_station_type_id"]
LOGGER_REQUIRED = ["logger_oem_id", "logger_serial_number", "date_from"]
POINT_REQUIRED = ["name", "measurement_type_id", "height_reference_id"]
SENSOR_REQUIRED = ["oem", "model", "serial_number", "sensor_type_id", "date_from"]
COLUMN_REQUIRED = ["column_name", "statistic_type_id"]


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str) and value.strip() == "":
        return True
    if isinstance(value, (list, dict)) and len(value) == 0:
        return True
    return False


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _as_list(value: Any) -> List[Any]:
    return value if isinstance(value, list) else []


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _check_fields(obj: Dict[str, Any], fields: List[str], prefix: str, errors: List[ValidationIssue]) -> None:
    for field in fields:
        if _is_missing(obj.get(field)):
            path = f"{prefix}.{field}" if prefix else field
            errors.append(ValidationIssue(path=path, message=f"{field} is required", keyword="required"))


def _check_sensor(sensor: Any, path: str, errors: List[ValidationIssue]) -> None:
    _check_fields(_as_dict(sensor), SENSOR_REQUIRED, path, errors)


def _check_point(point: Any, path: str, errors: List[ValidationIssue]) -> None:
    point = _as_dict(point)
    _check_fields(point, POINT_REQUIRED, path, errors)

    if not _is_number(point.get("height_m")):
        errors.append(ValidationIssue(
            path=f"{path}.height_m",
            message="height_m must be a number",
            keyword="type",
            expected_type="number",
            actual_value=point.get("height_m"),
        ))

    configs = _as_list(point.get("logger_measurement_config"))
    if not configs:
        errors.append(ValidationIssue(
            path=f"{path}.logger_measurement_config",
            message="At least one logger measurement config is required",
            keyword="required",
        ))
    for c, config in enumerate(configs):
        config_path = f"{path}.logger_measurement_config[{c}]"
        config = _as_dict(config)
        _check_fields(config, ["date_from"], config_path, errors)

        columns = _as_list(config.get("column_name"))
        if not columns:
            errors.append(ValidationIssue(
                path=f"{config_path}.column_name",
                message="At least one column name is required",
                keyword="required",
            ))
        for n, column in enumerate(columns):
            _check_fields(_as_dict(column), COLUMN_REQUIRED, f"{config_path}.column_name[{n}]", errors)

    for s, sensor in enumerate(_as_list(point.get("sensor"))):
        _check_sensor(sensor, f"{path}.sensor[{s}]", errors)


def _check_location(location: Any, path: str, errors: List[ValidationIssue]) -> None:
    location = _as_dict(location)
    _check_fields(location, LOCATION_REQUIRED, path, errors)

    loggers = _as_list(location.get("logger_main_config"))
    if not loggers:
        errors.append(ValidationIssue(
            path=f"{path}.logger_main_config",
            message="At least one logger is required",
            keyword="required",
        ))
    for j, logger in enumerate(loggers):
        _check_fields(_as_dict(logger), LOGGER_REQUIRED, f"{path}.logger_main_config[{j}]", errors)

    points = _as_list(location.get("measurement_point"))
    legacy_sensors = [sensor for sensor in _as_list(location.get("sensors")) if sensor]
    point_sensors = [
        sensor
        for point in points
        for sensor in _as_list(_as_dict(point).get("sensor"))
        if sensor
    ]
    if not legacy_sensors and not point_sensors:
        errors.append(ValidationIssue(
            path=f"{path}.sensors",
            message="At least one sensor is required",
            keyword="required",
        ))
    for s, sensor in enumerate(_as_list(location.get("sensors"))):
        if sensor:
            _check_sensor(sensor, f"{path}.sensors[{s}]", errors)

    if not points:
        errors.append(ValidationIssue(
            path=f"{path}.measurement_point",
            message="At least one measurement point is required",
            keyword="required",
        ))
    for k, point in enumerate(points):
        _check_point(point, f"{path}.measurement_point[{k}]", errors)


def validate_required_fields(doc: Any) -> ValidationResult:
    """
    Report every structurally required field that is absent from a document.

    Runs independently of the JSON Schema and never stops at the first
    problem: all violations are collected in one pass. Empty strings and
    empty lists count as missing; a height of 0 is a valid height.

    Args:
        doc: IEA Task 43 document as a plain dict

    Returns:
        ValidationResult with one error per violation
    """
    errors: List[ValidationIssue] = []
    if not isinstance(doc, dict):
        errors.append(ValidationIssue(path="root", message="Document must be a JSON object", keyword="type"))
        return ValidationResult(is_valid=False, errors=errors)

    _check_fields(doc, ROOT_REQUIRED, "", errors)

    locations = _as_list(doc.get("measurement_location"))
    if not locations:
        errors.append(ValidationIssue(
            path="measurement_location",
            message="At least one measurement location is required",
            keyword="required",
        ))
    for i, location in enumerate(locations):
        _check_location(location, f"measurement_location[{i}]", errors)

    return ValidationResult(is_valid=not errors, errors=errors)
