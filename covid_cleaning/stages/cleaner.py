"""
Builds the dense, capped, deduplicated country-level table.

Flow: resolve country catalog → generate date grid → sanitize observations → dense join

The catalog and the sanitized observations are independent of each other;
both must exist before the join.
"""

from pyspark.sql import Column, DataFrame, SparkSession, Window
from pyspark.sql import functions as F
from pyspark.sql.types import DoubleType, IntegerType, LongType

from covid_cleaning.core.config import PipelineConfig
from covid_cleaning.core.filters import apply_filters, country_scope, has_date, has_population
from covid_cleaning.core.schema import CLEANED_RECORD_SCHEMA
from covid_cleaning.observability.logger import get_logger

logger = get_logger(__name__)

JOIN_KEYS = ["date", "location_key"]


def bounded_sum(column: str, upper: int | None = None) -> Column:
    """
    Sum only values in [0, upper] (or [0, inf) without an upper bound).

    Null, negative and above-cap values contribute 0.
    """
    value = F.col(column)
    accepted = value >= 0 if upper is None else value.between(0, upper)
    return F.sum(F.when(accepted, value).otherwise(F.lit(0))).alias(column)


class Cleaner:
    """
    Produces one cleaned record per (date, country) across the whole window.

    Cleaned records follow CLEANED_RECORD_SCHEMA. Countries without any
    population value are left out entirely.
    """

    def __init__(self, spark: SparkSession, config: PipelineConfig):
        """
        Initialize cleaner.

        Args:
            spark: Active Spark session
            config: Pipeline configuration
        """
        self.spark = spark
        self.config = config

    def resolve_catalog(self, raw_df: DataFrame) -> DataFrame:
        """
        Resolve one name and one population per country.

        Population is taken from the earliest dated row (smallest value on
        a tie) so a country keeps a single denominator even when upstream
        estimates change mid-series. The name is the earliest non-null one.

        Returns:
            DataFrame(location_key, country_name, population)
        """
        scoped = apply_filters(raw_df, country_scope(self.config), has_population())

        earliest = Window.partitionBy("location_key").orderBy(
            F.col("date").asc(),
            F.col("population").asc(),
            F.col("country_name").asc_nulls_last(),
        )
        whole_series = earliest.rowsBetween(Window.unboundedPreceding, Window.unboundedFollowing)

        return (
            scoped
            .withColumn("_rank", F.row_number().over(earliest))
            .withColumn("_country_name", F.first("country_name", ignorenulls=True).over(whole_series))
            .filter(F.col("_rank") == 1)
            .select(
                "location_key",
                F.col("_country_name").alias("country_name"),
                "population",
            )
        )

    def date_grid(self) -> DataFrame:
        """Every calendar date of the window, one row each."""
        return self.spark.range(1).select(
            F.explode(
                F.sequence(
                    F.lit(self.config.window_start),
                    F.lit(self.config.window_end),
                    F.expr("INTERVAL 1 DAY"),
                )
            ).alias("date")
        )

    def build_grid(self, catalog: DataFrame) -> DataFrame:
        """
        Cross the window dates with every cataloged country.

        Returns:
            DataFrame(date, location_key, country_name, population) with
            expected_day_count × catalog rows
        """
        return self.date_grid().crossJoin(catalog)

    def sanitize_observations(self, raw_df: DataFrame) -> DataFrame:
        """
        Aggregate country rows per (date, location_key) with caps applied.

        Groups fed by more than one raw row are dropped entirely rather
        than merged: a duplicated key yields no observation at all.

        Returns:
            DataFrame(date, location_key, aggregation_level, new_confirmed,
            new_deceased, cumulative_confirmed, new_persons_vaccinated,
            stringency_index, _observed)
        """
        config = self.config
        scoped = apply_filters(raw_df, has_date(), country_scope(config))

        return (
            scoped
            .groupBy("date", "location_key", "aggregation_level")
            .agg(
                bounded_sum("new_confirmed", config.max_confirmed_cap),
                bounded_sum("new_deceased", config.max_deceased_cap),
                bounded_sum("cumulative_confirmed"),
                bounded_sum("new_persons_vaccinated"),
                F.avg(F.coalesce(F.col("stringency_index"), F.lit(0.0))).alias("stringency_index"),
                F.count(F.lit(1)).alias("_row_count"),
            )
            .filter(F.col("_row_count") == 1)
            .drop("_row_count")
            .withColumn("_observed", F.lit(True))
        )

    def dense_join(self, grid: DataFrame, observations: DataFrame) -> DataFrame:
        """
        Left join the grid with sanitized observations.

        Missing metrics become 0 and record_exists marks whether a real
        observation backed the row. Output is sorted by date, location_key.
        """
        joined = grid.join(observations, on=JOIN_KEYS, how="left")

        def metric(column: str, data_type) -> Column:
            return F.coalesce(F.col(column), F.lit(0)).cast(data_type).alias(column)

        cleaned = joined.select(
            F.col("date"),
            F.col("location_key"),
            F.col("aggregation_level").cast(IntegerType()).alias("aggregation_level"),
            F.col("country_name"),
            metric("new_confirmed", LongType()),
            metric("new_deceased", LongType()),
            metric("cumulative_confirmed", LongType()),
            F.col("population").cast(LongType()).alias("population"),
            metric("stringency_index", DoubleType()),
            metric("new_persons_vaccinated", LongType()),
            F.when(F.col("_observed").isNotNull(), F.lit(1))
            .otherwise(F.lit(0))
            .cast(IntegerType())
            .alias("record_exists"),
        )

        return cleaned.select(*CLEANED_RECORD_SCHEMA.fieldNames()).orderBy(
            F.col("date").asc(), F.col("location_key").asc()
        )

    def clean(self, raw_df: DataFrame) -> DataFrame:
        """
        Build the cleaned table.

        Args:
            raw_df: Raw observations conforming to RAW_OBSERVATION_SCHEMA

        Returns:
            Lazily evaluated DataFrame following CLEANED_RECORD_SCHEMA
        """
        catalog = self.resolve_catalog(raw_df)
        observations = self.sanitize_observations(raw_df)
        grid = self.build_grid(catalog)

        logger.info(
            "Built cleaning plan",
            extra={
                "window_start": self.config.window_start.isoformat(),
                "window_end": self.config.window_end.isoformat(),
                "expected_day_count": self.config.expected_day_count,
            },
        )
        return self.dense_join(grid, observations)
