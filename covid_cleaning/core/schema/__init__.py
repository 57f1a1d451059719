"""
Raw and cleaned table schemas.
"""

from .tables import (
    CLEANED_RECORD_SCHEMA,
    METRIC_COLUMNS,
    RAW_OBSERVATION_SCHEMA,
    SourceSchemaError,
    conform_to_raw_schema,
)

__all__ = [
    "RAW_OBSERVATION_SCHEMA",
    "CLEANED_RECORD_SCHEMA",
    "METRIC_COLUMNS",
    "SourceSchemaError",
    "conform_to_raw_schema",
]
