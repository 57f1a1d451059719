"""
PipelineRunResult model representing the outcome of one cleaning run.
"""

import uuid
from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, Field

from .profile_summary import ProfileSummary
from .quality_report import QualityReport


class PipelineRunResult(BaseModel):
    """
    Outcome of one pipeline run, persisted to the run audit table.

    Attributes:
        run_id: Unique run identifier
        started_at: When the run started
        finished_at: When the run finished
        window_start: First date of the window the run used
        window_end: Last date of the window the run used
        expected_day_count: Days in the window
        status: "success", "density_violation" (table written but row count is off) or "failure"
        profile: Profiler output (None when profiling was skipped)
        quality: Quality Checker output (None when checking was skipped)
        catalog_countries: Countries in the resolved catalog
        rows_written: Rows in the replaced output table
        observed_rows: Rows backed by a real observation (record_exists = 1)
        filler_rows: Synthesized grid rows (record_exists = 0)
        output_target: Path or table name the cleaned table was written to
        duration_seconds: Wall-clock duration of the run
    """

    run_id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    started_at: datetime = Field(default_factory=datetime.utcnow)
    finished_at: datetime | None = None
    window_start: date
    window_end: date
    expected_day_count: int = Field(..., ge=1)
    status: Literal["success", "density_violation", "failure"] = "success"
    profile: ProfileSummary | None = None
    quality: QualityReport | None = None
    catalog_countries: int = Field(0, ge=0)
    rows_written: int = Field(0, ge=0)
    observed_rows: int = Field(0, ge=0)
    filler_rows: int = Field(0, ge=0)
    output_target: str | None = None
    duration_seconds: float | None = Field(None, ge=0.0)

    @property
    def expected_rows(self) -> int:
        """Row count the density invariant demands."""
        return self.expected_day_count * self.catalog_countries

    @property
    def density_ok(self) -> bool:
        return self.rows_written == self.expected_rows

    class Config:
        json_schema_extra = {
            "example": {
                "run_id": "5f0c1e7a9d8b4f3e8c2a1b0d9e8f7a6b",
                "window_start": "2020-01-01",
                "window_end": "2022-09-17",
                "expected_day_count": 991,
                "status": "success",
                "catalog_countries": 243,
                "rows_written": 240813,
                "observed_rows": 221347,
                "filler_rows": 19466,
                "output_target": "data/cleaned_covid_data",
                "duration_seconds": 184.2
            }
        }
