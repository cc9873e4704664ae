"""Export pipeline: cleaning, validation gate, JSON rendering and statistics."""

import copy
import json
import logging
import math
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from .compliance import validate_iea_compliance
from .config import FORM_ONLY_ANY_LEVEL_FIELDS, FORM_ONLY_POINT_FIELDS, FORM_ONLY_ROOT_FIELDS
from .required_fields import validate_required_fields
from .schema import ValidationResult
from .utils_time import date_part

logger = logging.getLogger(__name__)

COMPLETENESS_FIELDS = ["author", "organisation", "measurement_location"]


class CleaningResult(BaseModel):
    """Document prepared for export plus a record of what was changed."""

    cleaned: Dict[str, Any]
    removed_fields: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)


class ExportCheck(BaseModel):
    """Both validation results for a cleaned document and the export verdict."""

    required_fields: ValidationResult
    compliance: ValidationResult
    cleaning: CleaningResult

    @property
    def can_export(self) -> bool:
        return export_verdict(self.required_fields, self.compliance)

    def summary(self) -> Dict[str, Any]:
        """JSON-ready view used by the API and the CLI."""
        return {
            "can_export": self.can_export,
            "required_fields": self.required_fields.model_dump(),
            "compliance": self.compliance.model_dump(),
            "removed_fields": self.cleaning.removed_fields,
            "cleaning_warnings": self.cleaning.warnings,
        }


class ExportBlockedError(ValueError):
    """Raised when a document fails the export gate."""

    def __init__(self, check: ExportCheck):
        self.check = check
        required = len(check.required_fields.errors)
        blocking = len(check.compliance.blocking_errors())
        super().__init__(
            f"Export blocked: {required} missing required fields, {blocking} schema errors"
        )


def _sensor_key(sensor: Any) -> Any:
    if isinstance(sensor, dict) and sensor.get("serial_number"):
        return sensor["serial_number"]
    return json.dumps(sensor, sort_keys=True, default=str)


def migrate_legacy_sensors(doc: Dict[str, Any]) -> Dict[str, Any]:
    """
    Move location-level ``sensors[]`` onto the measurement points.

    Each point receives a copy of every legacy sensor it does not already
    carry (matched by serial number), after which the location-level list is
    dropped. A location without measurement points keeps its legacy sensors.

    Returns:
        Migrated deep copy of the document
    """
    migrated = copy.deepcopy(doc)
    for location in migrated.get("measurement_location") or []:
        if not isinstance(location, dict):
            continue
        legacy = [sensor for sensor in location.get("sensors") or [] if sensor]
        points = [point for point in location.get("measurement_point") or [] if isinstance(point, dict)]
        if "sensors" not in location or not points:
            continue
        for point in points:
            own = point.get("sensor") if isinstance(point.get("sensor"), list) else []
            carried = {_sensor_key(sensor) for sensor in own}
            point["sensor"] = own + [
                copy.deepcopy(sensor) for sensor in legacy if _sensor_key(sensor) not in carried
            ]
        del location["sensors"]
        logger.info("migrated %d legacy sensors of location %r", len(legacy), location.get("name"))
    return migrated


def _strip_keys(obj: Any, keys: List[str], path: str, removed: List[str]) -> None:
    if isinstance(obj, list):
        for i, item in enumerate(obj):
            _strip_keys(item, keys, f"{path}[{i}]", removed)
        return
    if not isinstance(obj, dict):
        return
    for key in list(obj.keys()):
        current = f"{path}.{key}" if path else key
        if key in keys:
            del obj[key]
            removed.append(current)
            continue
        _strip_keys(obj[key], keys, current, removed)


def strip_form_only_fields(doc: Dict[str, Any], removed: List[str]) -> None:
    """Remove wizard-only fields in place, recording their paths in ``removed``."""
    for key in FORM_ONLY_ROOT_FIELDS:
        if key in doc:
            del doc[key]
            removed.append(key)

    for i, location in enumerate(doc.get("measurement_location") or []):
        if not isinstance(location, dict):
            continue
        for k, point in enumerate(location.get("measurement_point") or []):
            if not isinstance(point, dict):
                continue
            for key in FORM_ONLY_POINT_FIELDS:
                if key in point:
                    del point[key]
                    removed.append(f"measurement_location[{i}].measurement_point[{k}].{key}")

    _strip_keys(doc, FORM_ONLY_ANY_LEVEL_FIELDS, "", removed)


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    if isinstance(value, str) and value.strip() == "":
        return True
    return isinstance(value, (list, dict)) and len(value) == 0


def drop_empty_values(obj: Any) -> None:
    """Recursively drop None/NaN values, blank strings and empty lists/objects in place."""
    if isinstance(obj, list):
        for item in obj:
            drop_empty_values(item)
        obj[:] = [item for item in obj if item is not None]
        return
    if not isinstance(obj, dict):
        return
    for key in list(obj.keys()):
        drop_empty_values(obj[key])
        if _is_empty(obj[key]):
            del obj[key]


def _ensure_structure(doc: Dict[str, Any], warnings: List[str]) -> None:
    if not isinstance(doc.get("measurement_location"), list):
        doc["measurement_location"] = []
        warnings.append("Added empty measurement_location array")

    for i, location in enumerate(doc["measurement_location"]):
        if isinstance(location, dict) and not isinstance(location.get("measurement_point"), list):
            location["measurement_point"] = []
            warnings.append(f"Added empty measurement_point array for location {i + 1}")


def clean_document(doc: Dict[str, Any]) -> CleaningResult:
    """
    Prepare a wizard document for export.

    Steps, on a deep copy: migrate legacy location-level sensors, derive the
    document ``date`` from the campaign start when it is missing, strip
    form-only fields, drop empty values and make sure the location and
    measurement point lists exist.

    Raises:
        ValueError: If the document is not a JSON object
    """
    if not isinstance(doc, dict):
        raise ValueError("Document must be a JSON object")

    removed: List[str] = []
    warnings: List[str] = []

    cleaned = migrate_legacy_sensors(doc)

    if not cleaned.get("date"):
        derived = date_part(cleaned.get("startDate"))
        if derived:
            cleaned["date"] = derived
            warnings.append(f"Document date set from campaign start date ({derived})")

    strip_form_only_fields(cleaned, removed)
    drop_empty_values(cleaned)
    _ensure_structure(cleaned, warnings)

    return CleaningResult(cleaned=cleaned, removed_fields=removed, warnings=warnings)


def export_verdict(required_fields: ValidationResult, compliance: ValidationResult) -> bool:
    """Export is allowed when no field is missing and no schema error blocks it."""
    return not required_fields.errors and not compliance.blocking_errors()


def check_export(doc: Dict[str, Any], schema: Optional[Dict[str, Any]] = None) -> ExportCheck:
    """Clean a document and run both validators on the result."""
    cleaning = clean_document(doc)
    required = validate_required_fields(cleaning.cleaned)
    compliance = validate_iea_compliance(cleaning.cleaned, schema)
    check = ExportCheck(required_fields=required, compliance=compliance, cleaning=cleaning)
    logger.debug(
        "export check: %d required-field errors, %d schema findings, can_export=%s",
        len(required.errors), len(compliance.errors), check.can_export,
    )
    return check


def render_json(doc: Dict[str, Any]) -> str:
    """Pretty-printed JSON with 2-space indent, non-ASCII kept as is."""
    return json.dumps(doc, indent=2, ensure_ascii=False)


def export_document(doc: Dict[str, Any], schema: Optional[Dict[str, Any]] = None) -> str:
    """
    Run the full export pipeline.

    Returns:
        Exported JSON text

    Raises:
        ExportBlockedError: If the cleaned document fails the export gate
        ValueError: If the document is not a JSON object
    """
    check = check_export(doc, schema)
    if not check.can_export:
        raise ExportBlockedError(check)
    logger.info(
        "exported document with %d locations (%d fields removed)",
        len(check.cleaning.cleaned.get("measurement_location", [])),
        len(check.cleaning.removed_fields),
    )
    return render_json(check.cleaning.cleaned)


def export_statistics(doc: Dict[str, Any]) -> Dict[str, Any]:
    """
    Summary figures of a document.

    Returns:
        Dictionary with total_locations, total_measurement_points,
        station_types (histogram), data_completeness (percentage of author,
        organisation and measurement_location present) and
        required_fields_complete
    """
    locations = [loc for loc in doc.get("measurement_location") or [] if isinstance(loc, dict)]
    station_types: Dict[str, int] = {}
    total_points = 0
    for location in locations:
        total_points += len(location.get("measurement_point") or [])
        station_type = location.get("measurement_station_type_id") or "unknown"
        station_types[station_type] = station_types.get(station_type, 0) + 1

    completed = [field for field in COMPLETENESS_FIELDS if not _is_empty(doc.get(field))]
    completeness = round(len(completed) / len(COMPLETENESS_FIELDS) * 100, 1)

    return {
        "total_locations": len(locations),
        "total_measurement_points": total_points,
        "station_types": station_types,
        "data_completeness": completeness,
        "required_fields_complete": len(completed) == len(COMPLETENESS_FIELDS),
    }
