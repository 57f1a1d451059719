"""
Core data models for the COVID-19 cleaning pipeline.

All models use Pydantic for runtime validation and type safety.
"""

from .pipeline_run import PipelineRunResult
from .profile_summary import ProfileSummary
from .quality_report import NEGATIVE_AUDIT_COLUMNS, NULL_AUDIT_COLUMNS, QualityReport

__all__ = [
    "ProfileSummary",
    "QualityReport",
    "PipelineRunResult",
    "NULL_AUDIT_COLUMNS",
    "NEGATIVE_AUDIT_COLUMNS",
]
