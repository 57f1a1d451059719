"""
Named row-scope predicates shared by the diagnostic and remediation stages.

Every stage decides which raw rows are "in scope" through these functions,
so the Quality Checker's counts and the Cleaner's output always agree on
what a country row inside the window is.
"""

from functools import reduce

from pyspark.sql import Column, DataFrame
from pyspark.sql import functions as F

from covid_cleaning.core.config import PipelineConfig


def in_window(config: PipelineConfig) -> Column:
    """Row date falls inside [window_start, window_end]."""
    return F.col("date").between(F.lit(config.window_start), F.lit(config.window_end))


def has_date() -> Column:
    return F.col("date").isNotNull()


def has_location_key() -> Column:
    return F.col("location_key").isNotNull()


def has_population() -> Column:
    return F.col("population").isNotNull()


def is_country_key(config: PipelineConfig) -> Column:
    """location_key matches the country code pattern (two uppercase letters by default)."""
    return F.col("location_key").rlike(config.country_key_pattern)


def is_country_level(config: PipelineConfig) -> Column:
    return F.col("aggregation_level") == F.lit(config.country_aggregation_level)


def is_sub_national(config: PipelineConfig) -> Column:
    return F.col("aggregation_level") > F.lit(config.country_aggregation_level)


def country_scope(config: PipelineConfig) -> Column:
    """
    Country-level rows inside the window.

    A row is in country scope when it has a location key matching the
    country pattern, sits at the country aggregation level and is dated
    inside the window.
    """
    return (
        has_location_key()
        & is_country_key(config)
        & is_country_level(config)
        & in_window(config)
    )


def apply_filters(df: DataFrame, *predicates: Column) -> DataFrame:
    """
    Keep rows satisfying every predicate.

    Null predicate results drop the row, matching SQL WHERE semantics.
    """
    if not predicates:
        return df
    return df.filter(reduce(lambda left, right: left & right, predicates))
