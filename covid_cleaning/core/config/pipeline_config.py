"""
PipelineConfig model holding every tunable constant of the cleaning pipeline.

The window bounds and plausibility caps are the only configuration surface
of the system; the expected day count is derived from the window so the two
can never drift apart.
"""

import re
from datetime import date
from typing import Literal

from pydantic import BaseModel, Field, field_validator, model_validator


class SourceConfig(BaseModel):
    """
    Where the raw observations are read from.

    Attributes:
        path: File or directory holding the raw dataset
        format: File format (csv, json, parquet)
        table: Catalog table name (takes precedence over path)
    """

    path: str | None = None
    format: Literal["csv", "json", "parquet"] = "csv"
    table: str | None = None

    class Config:
        frozen = True


class OutputConfig(BaseModel):
    """
    Where the cleaned table is written.

    Attributes:
        path: Output directory (replaced on every run)
        table: Catalog table name (replaced on every run)
        format: Output file format for path targets
        partitions: Number of output files; part files follow the (date, location_key) order
    """

    path: str | None = "data/cleaned_covid_data"
    table: str | None = None
    format: Literal["parquet", "csv", "json"] = "parquet"
    partitions: int = Field(1, ge=1)

    class Config:
        frozen = True


class WarehouseConfig(BaseModel):
    """
    Optional PostgreSQL sink for the cleaned table and the run audit.

    Connection settings are read from DB_* environment variables.
    """

    enabled: bool = False
    table: str = Field("cleaned_covid_data", pattern=r"^[a-z_][a-z0-9_]*$")
    run_table: str = Field("pipeline_run", pattern=r"^[a-z_][a-z0-9_]*$")

    class Config:
        frozen = True


class PipelineConfig(BaseModel):
    """
    Immutable configuration passed to every pipeline stage.

    Attributes:
        window_start: First calendar date of the analysis window (inclusive)
        window_end: Last calendar date of the analysis window (inclusive)
        max_confirmed_cap: Largest plausible daily new_confirmed value
        max_deceased_cap: Largest plausible daily new_deceased value
        country_key_pattern: Regex a location_key must match to denote a country
        country_aggregation_level: aggregation_level value of country rows
        source: Raw dataset location
        output: Cleaned table location
        warehouse: PostgreSQL sink settings
    """

    window_start: date = date(2020, 1, 1)
    window_end: date = date(2022, 9, 17)
    max_confirmed_cap: int = Field(400_000, ge=0)
    max_deceased_cap: int = Field(10_000, ge=0)
    country_key_pattern: str = r"^[A-Z]{2}$"
    country_aggregation_level: int = Field(0, ge=0)
    source: SourceConfig = Field(default_factory=SourceConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    warehouse: WarehouseConfig = Field(default_factory=WarehouseConfig)

    @field_validator("country_key_pattern")
    @classmethod
    def check_pattern_compiles(cls, v):
        """Reject patterns that are not valid regular expressions."""
        try:
            re.compile(v)
        except re.error as e:
            raise ValueError(f"Invalid country_key_pattern: {e}")
        return v

    @model_validator(mode="after")
    def check_window_order(self):
        """Validate that the window is not inverted."""
        if self.window_end < self.window_start:
            raise ValueError(
                f"window_end {self.window_end} is before window_start {self.window_start}"
            )
        return self

    @property
    def expected_day_count(self) -> int:
        """Number of calendar days in the window, both bounds included."""
        return (self.window_end - self.window_start).days + 1

    def with_overrides(self, **overrides) -> "PipelineConfig":
        """
        Return a validated copy with the given top-level fields replaced.

        None values are ignored so CLI flags that were not given keep the
        configured value.
        """
        data = self.model_dump()
        for key, value in overrides.items():
            if value is None:
                continue
            if isinstance(value, dict) and isinstance(data.get(key), dict):
                data[key] = {**data[key], **{k: v for k, v in value.items() if v is not None}}
            else:
                data[key] = value
        return PipelineConfig.model_validate(data)

    class Config:
        frozen = True
        json_schema_extra = {
            "example": {
                "window_start": "2020-01-01",
                "window_end": "2022-09-17",
                "max_confirmed_cap": 400000,
                "max_deceased_cap": 10000,
                "country_key_pattern": "^[A-Z]{2}$",
                "country_aggregation_level": 0,
                "source": {"path": "data/covid19_open_data.csv", "format": "csv"},
                "output": {"path": "data/cleaned_covid_data", "format": "parquet"},
            }
        }
