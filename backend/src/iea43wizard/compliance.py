"""JSON Schema compliance checks against the IEA Task 43 data model."""

import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from jsonschema import Draft7Validator, FormatChecker
from jsonschema.exceptions import SchemaError, ValidationError
from jsonschema.validators import validator_for

from .config import get_settings
from .schema import ValidationIssue, ValidationResult

logger = logging.getLogger(__name__)

# Keywords whose violations block export; everything else is advisory.
BLOCKING_KEYWORDS = {"required", "type", "enum", "minimum", "maximum"}

JSON_TYPE_NAMES = {
    type(None): "null",
    bool: "boolean",
    int: "number",
    float: "number",
    str: "string",
    list: "array",
    dict: "object",
}


@lru_cache(maxsize=8)
def _load_schema_file(path: str) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def load_schema(path: Optional[Union[str, Path]] = None) -> Dict[str, Any]:
    """
    Load the IEA Task 43 JSON Schema.

    Args:
        path: Schema file, defaults to the configured schema path

    Returns:
        Parsed schema document (cached per path)

    Raises:
        OSError: If the file cannot be read
        ValueError: If the file is not valid JSON
    """
    if path is None:
        path = get_settings().schema_path
    return _load_schema_file(str(path))


def schema_enum(definition: str, schema: Optional[Dict[str, Any]] = None) -> List[Any]:
    """Allowed values of an enum definition in the schema, empty if it has none."""
    schema = schema if schema is not None else load_schema()
    node = (schema.get("definitions") or schema.get("$defs") or {}).get(definition) or {}
    return [value for value in node.get("enum", []) if value is not None]


def _json_type(value: Any) -> str:
    return JSON_TYPE_NAMES.get(type(value), type(value).__name__)


def _error_path(error: ValidationError) -> str:
    path = ".".join(str(part) for part in error.absolute_path)
    if path:
        return path
    return ".".join(str(part) for part in error.absolute_schema_path) or "root"


def _missing_property(error: ValidationError) -> str:
    instance = error.instance if isinstance(error.instance, dict) else {}
    missing = [name for name in error.validator_value if name not in instance]
    for name in missing:
        if repr(name) in error.message:
            return name
    return missing[0] if missing else ""


def _format_message(error: ValidationError) -> str:
    keyword = error.validator
    value = error.validator_value

    if keyword == "required":
        return f"Missing required field: {_missing_property(error)}"
    if keyword == "enum":
        return f"Invalid value. Must be one of: {', '.join(str(v) for v in value)}"
    if keyword == "type":
        expected = " or ".join(value) if isinstance(value, list) else value
        return f"Invalid type. Expected {expected}, got {_json_type(error.instance)}"
    if keyword == "format":
        return f"Invalid format. Expected {value} format"
    if keyword == "minimum":
        return f"Value must be at least {value}"
    if keyword == "maximum":
        return f"Value must be at most {value}"
    if keyword == "minLength":
        return f"Value must be at least {value} characters long"
    if keyword == "maxLength":
        return f"Value must be at most {value} characters long"
    return error.message


def _expected_type(error: ValidationError) -> Optional[str]:
    if error.validator == "type":
        value = error.validator_value
        return ", ".join(value) if isinstance(value, list) else value
    if error.validator == "enum":
        return "enum"
    schema_type = error.schema.get("type") if isinstance(error.schema, dict) else None
    if isinstance(schema_type, list):
        return ", ".join(schema_type)
    return schema_type


def _to_issue(error: ValidationError) -> ValidationIssue:
    actual = error.instance
    # Containers are reported by path only
    if isinstance(actual, (dict, list)):
        actual = None
    return ValidationIssue(
        path=_error_path(error),
        message=_format_message(error),
        keyword=error.validator,
        expected_type=_expected_type(error),
        actual_value=actual,
        severity="error" if error.validator in BLOCKING_KEYWORDS else "warning",
    )


def _advisory_warnings(doc: Dict[str, Any]) -> List[ValidationIssue]:
    warnings = []
    if not doc.get("license"):
        warnings.append(ValidationIssue(
            path="license",
            message="Consider adding a license for data sharing",
            keyword="recommended",
            severity="warning",
        ))
    if not doc.get("plant_name"):
        warnings.append(ValidationIssue(
            path="plant_name",
            message="Consider adding a plant name for better identification",
            keyword="recommended",
            severity="warning",
        ))
    return warnings


def validate_iea_compliance(doc: Any, schema: Optional[Dict[str, Any]] = None) -> ValidationResult:
    """
    Validate a document against the IEA Task 43 JSON Schema.

    All schema violations are reported, each with a readable message and a
    severity: required/type/enum/minimum/maximum violations are errors,
    everything else (format, pattern, length, ...) is a warning.

    Args:
        doc: Document to validate
        schema: Schema document, defaults to the configured schema

    Returns:
        ValidationResult; is_valid is True only when the document conforms
        to the schema completely. A schema that cannot be loaded or used is
        reported as a single "root" error.
    """
    try:
        if schema is None:
            schema = load_schema()
        cls = validator_for(schema, default=Draft7Validator)
        cls.check_schema(schema)
        validator = cls(schema, format_checker=FormatChecker())
        errors = [_to_issue(error) for error in validator.iter_errors(doc)]
    except (OSError, ValueError, SchemaError) as e:
        logger.warning("schema validation could not run: %s", e)
        return ValidationResult(
            is_valid=False,
            errors=[ValidationIssue(path="root", message=f"Schema validation failed: {e}", keyword="schema")],
        )

    warnings = _advisory_warnings(doc) if isinstance(doc, dict) else []
    logger.debug(
        "compliance: %d findings (%d blocking), %d advisories",
        len(errors), sum(1 for e in errors if e.severity == "error"), len(warnings),
    )
    return ValidationResult(is_valid=not errors, errors=errors, warnings=warnings)

