"""
ProfileSummary model representing volume and coverage of the raw dataset.
"""

from datetime import date

from pydantic import BaseModel, Field


class ProfileSummary(BaseModel):
    """
    Volume and coverage statistics of the raw dataset inside the window.

    Attributes:
        total_rows: Rows with a location key inside the window
        min_date: Earliest observed date (None for an empty window)
        max_date: Latest observed date (None for an empty window)
        unique_dates: Distinct observed dates
        unique_location_keys_approx: Approximate distinct location keys (HyperLogLog)
        country_keys: Exact distinct country-level keys matching the country pattern
        country_level_rows: Rows at the country aggregation level
        region_level_rows: Rows below the country aggregation level
    """

    total_rows: int = Field(0, ge=0)
    min_date: date | None = None
    max_date: date | None = None
    unique_dates: int = Field(0, ge=0)
    unique_location_keys_approx: int = Field(0, ge=0)
    country_keys: int = Field(0, ge=0)
    country_level_rows: int = Field(0, ge=0)
    region_level_rows: int = Field(0, ge=0)

    class Config:
        json_schema_extra = {
            "example": {
                "total_rows": 12525825,
                "min_date": "2020-01-01",
                "max_date": "2022-09-17",
                "unique_dates": 991,
                "unique_location_keys_approx": 21842,
                "country_keys": 245,
                "country_level_rows": 230441,
                "region_level_rows": 12295384
            }
        }
