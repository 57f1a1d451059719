"""
Volume and coverage profile of the raw dataset.
"""

from pyspark.sql import DataFrame
from pyspark.sql import functions as F

from covid_cleaning.core.config import PipelineConfig
from covid_cleaning.core.filters import (
    apply_filters,
    has_location_key,
    in_window,
    is_country_key,
    is_country_level,
    is_sub_national,
)
from covid_cleaning.core.models import ProfileSummary
from covid_cleaning.observability.logger import get_logger

logger = get_logger(__name__)


class Profiler:
    """
    Computes row counts, date range and location counts over the window.

    Only rows dated inside the window with a location key are profiled.
    """

    def __init__(self, config: PipelineConfig):
        self.config = config

    def summarize(self, raw_df: DataFrame) -> DataFrame:
        """
        Build the one-row profile frame.

        Args:
            raw_df: Raw observations conforming to RAW_OBSERVATION_SCHEMA

        Returns:
            Single-row DataFrame with the ProfileSummary columns
        """
        config = self.config
        scoped = apply_filters(raw_df, in_window(config), has_location_key())
        country_key = F.when(
            is_country_key(config) & is_country_level(config), F.col("location_key")
        )

        return scoped.agg(
            F.count(F.lit(1)).alias("total_rows"),
            F.min("date").alias("min_date"),
            F.max("date").alias("max_date"),
            F.countDistinct("date").alias("unique_dates"),
            F.approx_count_distinct("location_key").alias("unique_location_keys_approx"),
            F.countDistinct(country_key).alias("country_keys"),
            F.count(F.when(is_country_level(config), 1)).alias("country_level_rows"),
            F.count(F.when(is_sub_national(config), 1)).alias("region_level_rows"),
        )

    def profile(self, raw_df: DataFrame) -> ProfileSummary:
        """
        Profile the raw dataset.

        An empty window yields zero counts and null dates.
        """
        row = self.summarize(raw_df).first()
        summary = ProfileSummary(**row.asDict())
        logger.info(
            f"Profiled {summary.total_rows} rows across {summary.country_keys} countries",
            extra=summary.model_dump(mode="json"),
        )
        return summary
