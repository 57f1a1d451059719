"""
Command-line interface for the cleaning pipeline.

Usage:
    python -m covid_cleaning.cli.batch_cli <profile|check|clean|run> [options]
"""

import argparse
import sys
from datetime import date

from dotenv import load_dotenv
from pyspark.sql import SparkSession

from covid_cleaning.batch.pipeline import CleaningPipeline
from covid_cleaning.core.config import PipelineConfig, load_config
from covid_cleaning.observability import metrics
from covid_cleaning.observability.logger import configure_all, get_logger
from covid_cleaning.warehouse.connection import WarehouseConnectionPool

logger = get_logger(__name__)


def create_spark_session(app_name: str = "CovidCleaning") -> SparkSession:
    """
    Create Spark session for batch processing.

    Args:
        app_name: Application name

    Returns:
        SparkSession
    """
    spark = SparkSession.builder \
        .appName(app_name) \
        .master("local[*]") \
        .config("spark.sql.adaptive.enabled", "true") \
        .config("spark.sql.adaptive.coalescePartitions.enabled", "true") \
        .config("spark.scheduler.mode", "FAIR") \
        .getOrCreate()

    return spark


def build_config(args) -> PipelineConfig:
    """Load the configuration file and apply command-line overrides."""
    config = load_config(args.config)
    return config.with_overrides(
        window_start=args.window_start,
        window_end=args.window_end,
        source={"path": args.input, "format": args.format, "table": args.table},
        output={"path": args.output, "table": args.output_table},
    )


def profile_command(pipeline: CleaningPipeline, args) -> None:
    summary = pipeline.profile(pipeline.load_raw())
    print(summary.model_dump_json(indent=2))


def check_command(pipeline: CleaningPipeline, args) -> None:
    report = pipeline.check(pipeline.load_raw())
    print(report.model_dump_json(indent=2))


def clean_command(pipeline: CleaningPipeline, args) -> None:
    count = pipeline.write(pipeline.clean(pipeline.load_raw()))
    logger.info(f"Cleaned table written: {count} rows")


def run_command(pipeline: CleaningPipeline, args) -> None:
    result = pipeline.run(parallel=not args.sequential, diagnose=not args.skip_diagnostics)

    logger.info("=" * 60)
    logger.info("PIPELINE RUN COMPLETE")
    logger.info("=" * 60)
    logger.info(f"Run id: {result.run_id}")
    logger.info(f"Window: {result.window_start} to {result.window_end} ({result.expected_day_count} days)")
    logger.info(f"Countries in catalog: {result.catalog_countries}")
    logger.info(f"Rows written: {result.rows_written} (expected {result.expected_rows})")
    logger.info(f"Observed rows: {result.observed_rows}, filler rows: {result.filler_rows}")
    if result.quality is not None:
        logger.info(f"Duplicate rows rejected upstream: {result.quality.duplicate_rows}")
    logger.info(f"Status: {result.status}")
    logger.info("=" * 60)

    if result.status != "success":
        sys.exit(2)


COMMANDS = {
    "profile": profile_command,
    "check": check_command,
    "clean": clean_command,
    "run": run_command,
}


def execute(args) -> None:
    """
    Execute a parsed command.

    Args:
        args: Command-line arguments
    """
    spark = None
    pool = None
    try:
        config = build_config(args)

        logger.info("Creating Spark session...")
        spark = create_spark_session(f"CovidCleaning-{args.command}")

        if args.command == "run" and (args.warehouse or config.warehouse.enabled):
            logger.info("Initializing warehouse connection...")
            pool = WarehouseConnectionPool()
            pool.open()

        pipeline = CleaningPipeline(spark, config, warehouse_pool=pool)
        COMMANDS[args.command](pipeline, args)
    except Exception as e:
        logger.error(f"Error during {args.command}: {e}", exc_info=True)
        sys.exit(1)
    finally:
        if args.metrics_file:
            metrics.write_metrics_file(args.metrics_file)
        if pool is not None:
            pool.close()
        if spark is not None:
            spark.stop()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="covid-cleaning",
        description="COVID-19 country-level cleaning pipeline",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Profile a raw CSV export
  covid-cleaning profile --input data/covid19_open_data.csv

  # Full run with the default window, written as parquet
  covid-cleaning run --config config/pipeline.yaml

  # Full run into PostgreSQL as well (credentials from .env / DB_* variables)
  covid-cleaning run --config config/pipeline.yaml --warehouse

  # Rebuild a shorter window
  covid-cleaning clean --input data/raw.parquet --format parquet \\
      --window-start 2021-01-01 --window-end 2021-12-31 --output data/cleaned_2021
        """
    )

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--config", default=None, help="Path to pipeline YAML configuration")
    common.add_argument("--input", default=None, help="Raw dataset path (overrides config)")
    common.add_argument(
        "--format",
        default=None,
        choices=["csv", "json", "parquet"],
        help="Raw dataset format (overrides config)",
    )
    common.add_argument("--table", default=None, help="Raw catalog table (overrides --input)")
    common.add_argument("--output", default=None, help="Cleaned output path (overrides config)")
    common.add_argument("--output-table", default=None, help="Cleaned output catalog table")
    common.add_argument("--window-start", type=date.fromisoformat, default=None, help="YYYY-MM-DD")
    common.add_argument("--window-end", type=date.fromisoformat, default=None, help="YYYY-MM-DD")
    common.add_argument("--metrics-file", default=None, help="Write Prometheus metrics to this file")
    common.add_argument("--log-level", default=None, help="DEBUG, INFO, WARNING, ERROR")
    common.add_argument("--log-format", default=None, choices=["json", "text"])

    subparsers = parser.add_subparsers(dest="command", help="Available commands")
    subparsers.add_parser("profile", parents=[common], help="Profile the raw dataset")
    subparsers.add_parser("check", parents=[common], help="Run the data-quality audits")
    subparsers.add_parser("clean", parents=[common], help="Build and write the cleaned table")

    run_parser = subparsers.add_parser("run", parents=[common], help="Run the full pipeline")
    run_parser.add_argument(
        "--sequential",
        action="store_true",
        help="Profile and check one after the other instead of concurrently",
    )
    run_parser.add_argument(
        "--skip-diagnostics",
        action="store_true",
        help="Only clean and write, without profiling or quality checks",
    )
    run_parser.add_argument(
        "--warehouse",
        action="store_true",
        help="Also replace the PostgreSQL warehouse table",
    )

    return parser


def main(argv: list[str] | None = None):
    """Main CLI entry point."""
    load_dotenv()

    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    configure_all(level=args.log_level, format_type=args.log_format)
    execute(args)


if __name__ == "__main__":
    main()
