"""
Data-quality audits of the raw dataset.

Six independent audits (nulls, negatives, duplicates, outliers, coverage
gaps, country metadata) each aggregate to exactly one row; the rows are
cross joined into a single report row. Defects are measured, never
repaired here; remediation lives in the Cleaner.
"""

from pyspark.sql import Column, DataFrame
from pyspark.sql import functions as F

from covid_cleaning.core.config import PipelineConfig
from covid_cleaning.core.filters import (
    apply_filters,
    country_scope,
    has_location_key,
    in_window,
    is_country_level,
)
from covid_cleaning.core.models import NEGATIVE_AUDIT_COLUMNS, NULL_AUDIT_COLUMNS, QualityReport
from covid_cleaning.observability.logger import get_logger

logger = get_logger(__name__)


def count_if(condition: Column) -> Column:
    """Count rows where condition holds; 0 on empty input."""
    return F.count(F.when(condition, 1))


class QualityChecker:
    """
    Measures per-column defects of the raw dataset inside the window.
    """

    def __init__(self, config: PipelineConfig):
        self.config = config

    def null_audit(self, raw_df: DataFrame) -> DataFrame:
        scoped = apply_filters(raw_df, in_window(self.config))
        return scoped.agg(*[
            count_if(F.col(column).isNull()).alias(f"null_{column}")
            for column in NULL_AUDIT_COLUMNS
        ])

    def negative_audit(self, raw_df: DataFrame) -> DataFrame:
        """Negative counts of the non-negative metrics, plus how low cases and deaths go."""
        scoped = apply_filters(raw_df, in_window(self.config))
        return scoped.agg(
            *[
                count_if(F.col(column) < 0).alias(f"negative_{column}")
                for column in NEGATIVE_AUDIT_COLUMNS
            ],
            F.min("new_confirmed").alias("min_new_confirmed"),
            F.min("new_deceased").alias("min_new_deceased"),
        )

    def duplicate_audit(self, raw_df: DataFrame) -> DataFrame:
        """Excess rows over distinct (date, location_key); nonzero means the key is not unique."""
        scoped = apply_filters(raw_df, in_window(self.config), has_location_key())
        return scoped.agg(
            (F.count(F.lit(1)) - F.countDistinct("date", "location_key")).alias("duplicate_rows")
        )

    def outlier_audit(self, raw_df: DataFrame) -> DataFrame:
        """Country-level maxima and rows above the plausibility caps."""
        config = self.config
        scoped = apply_filters(raw_df, in_window(config), is_country_level(config))
        return scoped.agg(
            F.max("new_confirmed").alias("max_new_confirmed"),
            count_if(F.col("new_confirmed") > config.max_confirmed_cap).alias("extreme_new_confirmed"),
            F.max("new_deceased").alias("max_new_deceased"),
            count_if(F.col("new_deceased") > config.max_deceased_cap).alias("extreme_new_deceased"),
            F.max("cumulative_confirmed").alias("max_cumulative_confirmed"),
            F.max("new_persons_vaccinated").alias("max_new_persons_vaccinated"),
        )

    def coverage_by_country(self, raw_df: DataFrame) -> DataFrame:
        """
        Observed and missing day counts per country.

        Returns:
            DataFrame(location_key, observed_days, missing_days)
        """
        expected = self.config.expected_day_count
        return (
            apply_filters(raw_df, country_scope(self.config))
            .groupBy("location_key")
            .agg(F.countDistinct("date").alias("observed_days"))
            .withColumn("missing_days", F.lit(expected) - F.col("observed_days"))
        )

    def coverage_gap_audit(self, raw_df: DataFrame) -> DataFrame:
        expected = self.config.expected_day_count
        return self.coverage_by_country(raw_df).agg(
            count_if(F.col("observed_days") < expected).alias("countries_with_missing_dates"),
            F.avg("missing_days").alias("avg_missing_dates"),
        )

    def metadata_audit(self, raw_df: DataFrame) -> DataFrame:
        scoped = apply_filters(raw_df, country_scope(self.config))
        return scoped.agg(F.countDistinct("location_key").alias("valid_country_keys"))

    def combined_audit(self, raw_df: DataFrame) -> DataFrame:
        """
        Cross join the six one-row audits into a single report row.
        """
        audits = [
            self.null_audit(raw_df),
            self.negative_audit(raw_df),
            self.duplicate_audit(raw_df),
            self.outlier_audit(raw_df),
            self.coverage_gap_audit(raw_df),
            self.metadata_audit(raw_df),
        ]
        combined = audits[0]
        for audit in audits[1:]:
            combined = combined.crossJoin(audit)
        return combined

    def check(self, raw_df: DataFrame) -> QualityReport:
        """
        Run every audit and return the combined report.

        Args:
            raw_df: Raw observations conforming to RAW_OBSERVATION_SCHEMA

        Returns:
            QualityReport for the configured window
        """
        row = self.combined_audit(raw_df).first()
        report = QualityReport.from_row(row.asDict(), self.config.expected_day_count)

        logger.info(
            f"Quality check found {report.total_defects} countable defects",
            extra={"defects": report.defect_counts()},
        )
        if report.duplicate_rows > 0:
            logger.warning(
                f"{report.duplicate_rows} duplicate (date, location_key) rows; "
                "their groups will be rejected by the cleaner"
            )
        return report
