"""
Batch cleaning pipeline orchestration.

Coordinates the flow: read → (profile ‖ check) → clean → replace output → audit
"""

import time
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime

from pyspark import StorageLevel
from pyspark.sql import DataFrame, SparkSession
from pyspark.sql import functions as F

from covid_cleaning.batch.readers import RawObservationReader
from covid_cleaning.batch.writers import BatchWarehouseWriter, CleanedTableWriter
from covid_cleaning.core.config import PipelineConfig
from covid_cleaning.core.models import PipelineRunResult, ProfileSummary, QualityReport
from covid_cleaning.observability import metrics
from covid_cleaning.observability.logger import get_logger, log_operation
from covid_cleaning.stages import Cleaner, Profiler, QualityChecker
from covid_cleaning.warehouse.connection import WarehouseConnectionPool

logger = get_logger(__name__)


class CleaningPipeline:
    """
    Orchestrates one batch run of the cleaning pipeline.

    Flow:
    1. Read the raw snapshot once and persist it
    2. Profile and quality-check it (concurrently by default)
    3. Build the dense cleaned table
    4. Replace the output table (and the warehouse table, if enabled)
    5. Verify the density invariant and publish metrics
    """

    def __init__(
        self,
        spark: SparkSession,
        config: PipelineConfig,
        warehouse_pool: WarehouseConnectionPool | None = None,
    ):
        """
        Initialize cleaning pipeline.

        Args:
            spark: Active Spark session
            config: Pipeline configuration
            warehouse_pool: Open pool for the PostgreSQL sink (None disables it)
        """
        self.spark = spark
        self.config = config

        self.reader = RawObservationReader(spark)
        self.profiler = Profiler(config)
        self.quality_checker = QualityChecker(config)
        self.cleaner = Cleaner(spark, config)
        self.table_writer = CleanedTableWriter(spark)

        self.warehouse_writer = None
        if warehouse_pool is not None:
            self.warehouse_writer = BatchWarehouseWriter(
                warehouse_pool,
                table=config.warehouse.table,
                run_table=config.warehouse.run_table,
            )

    def load_raw(self) -> DataFrame:
        """Read the configured raw source."""
        with metrics.track_duration("read"):
            return self.reader.read_source(self.config.source)

    def profile(self, raw_df: DataFrame) -> ProfileSummary:
        with log_operation("Profile raw dataset", logger=logger), metrics.track_duration("profile"):
            summary = self.profiler.profile(raw_df)
        metrics.record_profile(summary)
        return summary

    def check(self, raw_df: DataFrame) -> QualityReport:
        with log_operation("Quality check", logger=logger), metrics.track_duration("check"):
            report = self.quality_checker.check(raw_df)
        metrics.record_quality(report)
        return report

    def clean(self, raw_df: DataFrame) -> DataFrame:
        return self.cleaner.clean(raw_df)

    def diagnose(
        self,
        raw_df: DataFrame,
        parallel: bool = True,
    ) -> tuple[ProfileSummary, QualityReport]:
        """
        Run Profiler and Quality Checker.

        Both only read the raw snapshot, so with parallel=True their Spark
        jobs are submitted from two threads at once.
        """
        if not parallel:
            return self.profile(raw_df), self.check(raw_df)

        with ThreadPoolExecutor(max_workers=2, thread_name_prefix="diagnose") as executor:
            profile_future = executor.submit(self.profile, raw_df)
            quality_future = executor.submit(self.check, raw_df)
            return profile_future.result(), quality_future.result()

    def write(self, cleaned_df: DataFrame) -> int:
        """Replace the configured output table."""
        with log_operation("Replace cleaned table", logger=logger), metrics.track_duration("write"):
            return self.table_writer.replace(cleaned_df, self.config.output)

    def run(self, parallel: bool = True, diagnose: bool = True) -> PipelineRunResult:
        """
        Execute the complete pipeline.

        Args:
            parallel: Run profiling and quality checks concurrently
            diagnose: Run profiling and quality checks at all

        Returns:
            PipelineRunResult describing the run

        Raises:
            Exception: Any read, write or warehouse failure, after it was logged
                and counted; the output is not replaced on failure
        """
        config = self.config
        result = PipelineRunResult(
            window_start=config.window_start,
            window_end=config.window_end,
            expected_day_count=config.expected_day_count,
            output_target=config.output.table or config.output.path,
        )
        started = time.time()
        raw_df = None

        try:
            with log_operation("Cleaning pipeline run", logger=logger, run_id=result.run_id):
                raw_df = self.load_raw().persist(StorageLevel.MEMORY_AND_DISK)

                if diagnose:
                    result.profile, result.quality = self.diagnose(raw_df, parallel=parallel)

                with metrics.track_duration("clean"):
                    cleaned_df = self.clean(raw_df)
                    result.catalog_countries = self.cleaner.resolve_catalog(raw_df).count()

                result.rows_written = self.write(cleaned_df)
                result.observed_rows, result.filler_rows = self._count_by_existence(cleaned_df)

                if not result.density_ok:
                    result.status = "density_violation"
                    logger.error(
                        f"Cleaned table has {result.rows_written} rows, "
                        f"expected {result.expected_rows} "
                        f"({config.expected_day_count} days × {result.catalog_countries} countries)"
                    )

                if self.warehouse_writer is None:
                    self._finish(result, started)
                else:
                    with log_operation("Replace warehouse table", logger=logger), \
                            metrics.track_duration("warehouse"):
                        self.warehouse_writer.write_dataframe(cleaned_df)
                        # finish time precedes the audit insert that stores it
                        self._finish(result, started)
                        self.warehouse_writer.record_run(result)
        except Exception:
            metrics.record_failure()
            raise
        finally:
            if raw_df is not None:
                raw_df.unpersist()

        metrics.record_run(result)
        logger.info(
            f"Pipeline run {result.run_id} finished with status {result.status}",
            extra={
                "rows_written": result.rows_written,
                "observed_rows": result.observed_rows,
                "filler_rows": result.filler_rows,
                "catalog_countries": result.catalog_countries,
            },
        )
        return result

    @staticmethod
    def _finish(result: PipelineRunResult, started: float) -> None:
        result.finished_at = datetime.utcnow()
        result.duration_seconds = round(time.time() - started, 3)

    @staticmethod
    def _count_by_existence(cleaned_df: DataFrame) -> tuple[int, int]:
        """Count observed (record_exists = 1) and filler (record_exists = 0) rows."""
        row = cleaned_df.agg(
            F.count(F.when(F.col("record_exists") == 1, 1)).alias("observed"),
            F.count(F.when(F.col("record_exists") == 0, 1)).alias("filler"),
        ).first()
        return row["observed"], row["filler"]
