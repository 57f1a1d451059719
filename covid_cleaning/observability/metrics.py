"""
Prometheus metrics collection for covid-cleaning

The pipeline is a batch job, so metrics are written to a file in the text
exposition format (for the node exporter textfile collector) rather than
served over HTTP.
"""
from prometheus_client import (
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
    write_to_textfile,
)

from covid_cleaning.core.models import PipelineRunResult, ProfileSummary, QualityReport

# Global registry for metrics
REGISTRY = CollectorRegistry()


# =======================
# PROFILE METRICS
# =======================

raw_rows = Gauge(
    name="covid_raw_rows",
    documentation="Raw rows inside the window by aggregation scope",
    labelnames=["scope"],  # scope: total, country, region
    registry=REGISTRY,
)

raw_location_keys = Gauge(
    name="covid_raw_location_keys",
    documentation="Distinct location keys inside the window",
    labelnames=["kind"],  # kind: approx_all, country
    registry=REGISTRY,
)

# =======================
# DATA QUALITY METRICS
# =======================

data_quality_defects = Gauge(
    name="covid_data_quality_defects",
    documentation="Defect counts measured by the quality checker",
    labelnames=["audit", "column"],  # audit: null, negative, duplicate, outlier, coverage_gap
    registry=REGISTRY,
)

average_missing_dates = Gauge(
    name="covid_average_missing_dates",
    documentation="Average number of window days a country has no observation for",
    registry=REGISTRY,
)

# =======================
# CLEANED OUTPUT METRICS
# =======================

cleaned_rows = Gauge(
    name="covid_cleaned_rows",
    documentation="Rows written to the cleaned table",
    labelnames=["kind"],  # kind: observed, filler
    registry=REGISTRY,
)

catalog_countries = Gauge(
    name="covid_catalog_countries",
    documentation="Countries in the resolved country catalog",
    registry=REGISTRY,
)

# =======================
# RUN METRICS
# =======================

stage_duration_seconds = Histogram(
    name="covid_stage_duration_seconds",
    documentation="Time spent in each pipeline stage in seconds",
    labelnames=["stage"],  # stage: read, profile, check, clean, write, warehouse
    buckets=[1.0, 5.0, 10.0, 30.0, 60.0, 120.0, 300.0, 600.0, 1800.0],
    registry=REGISTRY,
)

pipeline_runs_total = Counter(
    name="covid_pipeline_runs_total",
    documentation="Total number of pipeline runs",
    labelnames=["status"],  # status: success, density_violation, failure
    registry=REGISTRY,
)

last_run_timestamp = Gauge(
    name="covid_pipeline_last_run_timestamp_seconds",
    documentation="Unix time the last pipeline run finished",
    labelnames=["status"],
    registry=REGISTRY,
)


# =======================
# HELPER FUNCTIONS
# =======================

def generate_metrics() -> bytes:
    """
    Generate Prometheus metrics in text format

    Returns:
        Metrics in Prometheus text format
    """
    return generate_latest(REGISTRY)


def write_metrics_file(path: str) -> None:
    """
    Write all metrics to a file for the textfile collector.

    Args:
        path: Target file; written atomically by prometheus_client
    """
    write_to_textfile(path, REGISTRY)


class track_duration:
    """
    Context manager for tracking stage duration

    Usage:
        with track_duration("clean"):
            # do work
            pass
    """

    def __init__(self, stage: str):
        self.stage = stage
        self.timer = None

    def __enter__(self):
        self.timer = stage_duration_seconds.labels(stage=self.stage).time()
        self.timer.__enter__()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.timer.__exit__(exc_type, exc_val, exc_tb)
        return False


def record_profile(profile: ProfileSummary) -> None:
    """Publish profile volumes."""
    raw_rows.labels(scope="total").set(profile.total_rows)
    raw_rows.labels(scope="country").set(profile.country_level_rows)
    raw_rows.labels(scope="region").set(profile.region_level_rows)
    raw_location_keys.labels(kind="approx_all").set(profile.unique_location_keys_approx)
    raw_location_keys.labels(kind="country").set(profile.country_keys)


def record_quality(report: QualityReport) -> None:
    """Publish one gauge sample per countable defect."""
    for audit, columns in report.defect_counts().items():
        for column, count in columns.items():
            data_quality_defects.labels(audit=audit, column=column).set(count)

    if report.avg_missing_dates is not None:
        average_missing_dates.set(report.avg_missing_dates)


def record_run(result: PipelineRunResult) -> None:
    """Publish output volumes and the run outcome."""
    cleaned_rows.labels(kind="observed").set(result.observed_rows)
    cleaned_rows.labels(kind="filler").set(result.filler_rows)
    catalog_countries.set(result.catalog_countries)
    pipeline_runs_total.labels(status=result.status).inc()
    last_run_timestamp.labels(status=result.status).set_to_current_time()


def record_failure() -> None:
    pipeline_runs_total.labels(status="failure").inc()
    last_run_timestamp.labels(status="failure").set_to_current_time()
