"""
QualityReport model representing per-column defect measurements of the raw dataset.
"""

from typing import Any

from pydantic import BaseModel, Field

NULL_AUDIT_COLUMNS = [
    "date",
    "location_key",
    "new_confirmed",
    "new_deceased",
    "country_name",
    "cumulative_confirmed",
    "population",
    "stringency_index",
    "new_persons_vaccinated",
]

NEGATIVE_AUDIT_COLUMNS = [
    "new_confirmed",
    "new_deceased",
    "cumulative_confirmed",
    "new_persons_vaccinated",
]


class QualityReport(BaseModel):
    """
    Data-quality defects of the raw dataset, one field per measurement.

    Defects are measurements, not failures: nothing here rejects a run.

    Attributes:
        null_*: Null counts per audited column
        negative_*: Rows where a non-negative metric is negative
        min_new_confirmed / min_new_deceased: How negative the case and death metrics get
        duplicate_rows: Excess rows over distinct (date, location_key) keys
        max_*: Country-level maxima of the four metrics
        extreme_new_confirmed / extreme_new_deceased: Country-level rows above the caps
        countries_with_missing_dates: Countries observed on fewer days than the window holds
        avg_missing_dates: Average shortfall across countries (None when no country is in scope)
        valid_country_keys: Distinct country keys in scope
        expected_day_count: Window length the coverage audit compared against
    """

    null_date: int = Field(0, ge=0)
    null_location_key: int = Field(0, ge=0)
    null_new_confirmed: int = Field(0, ge=0)
    null_new_deceased: int = Field(0, ge=0)
    null_country_name: int = Field(0, ge=0)
    null_cumulative_confirmed: int = Field(0, ge=0)
    null_population: int = Field(0, ge=0)
    null_stringency_index: int = Field(0, ge=0)
    null_new_persons_vaccinated: int = Field(0, ge=0)

    negative_new_confirmed: int = Field(0, ge=0)
    negative_new_deceased: int = Field(0, ge=0)
    negative_cumulative_confirmed: int = Field(0, ge=0)
    negative_new_persons_vaccinated: int = Field(0, ge=0)
    min_new_confirmed: int | None = None
    min_new_deceased: int | None = None

    duplicate_rows: int = Field(0, ge=0)

    max_new_confirmed: int | None = None
    extreme_new_confirmed: int = Field(0, ge=0)
    max_new_deceased: int | None = None
    extreme_new_deceased: int = Field(0, ge=0)
    max_cumulative_confirmed: int | None = None
    max_new_persons_vaccinated: int | None = None

    countries_with_missing_dates: int = Field(0, ge=0)
    avg_missing_dates: float | None = None

    valid_country_keys: int = Field(0, ge=0)

    expected_day_count: int = Field(..., ge=1)

    @classmethod
    def from_row(cls, row: dict[str, Any], expected_day_count: int) -> "QualityReport":
        """Build a report from the single combined audit row."""
        return cls(**row, expected_day_count=expected_day_count)

    def null_counts(self) -> dict[str, int]:
        return {column: getattr(self, f"null_{column}") for column in NULL_AUDIT_COLUMNS}

    def negative_counts(self) -> dict[str, int]:
        return {column: getattr(self, f"negative_{column}") for column in NEGATIVE_AUDIT_COLUMNS}

    def defect_counts(self) -> dict[str, dict[str, int]]:
        """
        Flatten the countable defects as {audit: {column: count}}.

        Used to publish one gauge per defect.
        """
        return {
            "null": self.null_counts(),
            "negative": self.negative_counts(),
            "duplicate": {"date_location_key": self.duplicate_rows},
            "outlier": {
                "new_confirmed": self.extreme_new_confirmed,
                "new_deceased": self.extreme_new_deceased,
            },
            "coverage_gap": {"location_key": self.countries_with_missing_dates},
        }

    @property
    def total_defects(self) -> int:
        return sum(
            count
            for audit in self.defect_counts().values()
            for count in audit.values()
        )

    class Config:
        json_schema_extra = {
            "example": {
                "null_date": 0,
                "null_location_key": 0,
                "null_new_confirmed": 2711,
                "null_population": 1402,
                "negative_new_confirmed": 5913,
                "min_new_confirmed": -6402,
                "duplicate_rows": 0,
                "max_new_confirmed": 1435392,
                "extreme_new_confirmed": 17,
                "countries_with_missing_dates": 198,
                "avg_missing_dates": 41.7,
                "valid_country_keys": 245,
                "expected_day_count": 991
            }
        }
