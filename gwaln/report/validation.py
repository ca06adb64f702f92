"""
JSON Schema validation for persisted structured reports.

The report schema ships inside the package (``gwaln/report/schemas``) so
validation works from any working directory and from a wheel install.
"""

import json
from importlib import resources
from pathlib import Path
from typing import Any, Dict, Optional

import jsonschema

SCHEMA_PACKAGE = "gwaln.report"
SCHEMA_RESOURCE = "schemas/analysis_report.schema.json"


class ReportValidationError(Exception):
    """Raised when a structured report does not match the report schema."""
    pass


def load_report_schema(schema_path: Optional[Path] = None) -> Dict[str, Any]:
    """
    Load the report JSON schema.

    Args:
        schema_path: Explicit schema file; the packaged schema is used when omitted

    Raises:
        FileNotFoundError: If an explicit schema_path does not exist
    """
    if schema_path is not None:
        with open(schema_path, 'r', encoding='utf-8') as f:
            return json.load(f)
    resource = resources.files(SCHEMA_PACKAGE).joinpath(SCHEMA_RESOURCE)
    return json.loads(resource.read_text(encoding='utf-8'))


def validate_structured_report(report: Dict[str, Any], schema_path: Optional[Path] = None) -> bool:
    """
    Validate a structured report against the schema.

    Returns:
        True if valid

    Raises:
        ReportValidationError: If validation fails
    """
    schema = load_report_schema(schema_path)
    try:
        jsonschema.validate(report, schema)
    except jsonschema.ValidationError as e:
        path = ".".join(str(p) for p in e.absolute_path) if e.absolute_path else "<root>"
        raise ReportValidationError(f"Schema validation failed at {path}: {e.message}")
    return True
