"""
Pytest configuration and fixtures for covid-cleaning tests

This module provides shared fixtures for unit, integration, and E2E tests.
"""
import os
import tempfile
from datetime import date
from typing import Any, Callable, Generator

import pytest
from pyspark.sql import DataFrame, SparkSession

from covid_cleaning.core.config import PipelineConfig
from covid_cleaning.core.schema import RAW_OBSERVATION_SCHEMA


# =======================
# PYTEST CONFIGURATION
# =======================

def pytest_configure(config):
    """Configure pytest with custom markers"""
    config.addinivalue_line(
        "markers", "unit: Unit tests that don't require external services"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests that require Docker containers"
    )
    config.addinivalue_line(
        "markers", "e2e: End-to-end tests that test the full pipeline"
    )
    config.addinivalue_line(
        "markers", "slow: Tests that take more than 5 seconds to run"
    )


# =======================
# SPARK FIXTURES
# =======================

@pytest.fixture(scope="session")
def spark_session() -> Generator[SparkSession, None, None]:
    """
    Create a Spark session for testing with local mode

    Yields:
        SparkSession configured for local testing
    """
    spark = (
        SparkSession.builder
        .appName("covid-cleaning-test")
        .master("local[2]")
        .config("spark.sql.shuffle.partitions", "2")
        .config("spark.sql.adaptive.enabled", "true")
        .config("spark.driver.memory", "1g")
        .config("spark.ui.enabled", "false")  # Disable UI for tests
        .config("spark.sql.session.timeZone", "UTC")
        .config("spark.sql.warehouse.dir", tempfile.mkdtemp(prefix="covid-cleaning-warehouse-"))
        .getOrCreate()
    )

    # Set log level to WARN to reduce test output noise
    spark.sparkContext.setLogLevel("WARN")

    yield spark

    spark.stop()


@pytest.fixture(scope="function")
def spark(spark_session) -> SparkSession:
    """
    Function-scoped Spark session that clears cached tables between tests
    """
    spark_session.catalog.clearCache()
    return spark_session


# =======================
# DATA FIXTURES
# =======================

RAW_DEFAULTS = {field.name: None for field in RAW_OBSERVATION_SCHEMA.fields}


def raw_row(**values: Any) -> dict[str, Any]:
    """
    Build one raw observation, country-level by default.

    Unspecified metric columns are null.
    """
    row = {**RAW_DEFAULTS, "aggregation_level": 0}
    row.update(values)
    return row


@pytest.fixture(scope="function")
def make_raw(spark) -> Callable[..., DataFrame]:
    """
    Factory building raw observation frames from raw_row() dictionaries
    """
    def _make(rows: list[dict[str, Any]]) -> DataFrame:
        ordered = [
            tuple(row.get(field.name) for field in RAW_OBSERVATION_SCHEMA.fields)
            for row in rows
        ]
        return spark.createDataFrame(ordered, schema=RAW_OBSERVATION_SCHEMA)

    return _make


@pytest.fixture(scope="session")
def short_window_config() -> PipelineConfig:
    """
    Three-day window (2020-01-01 .. 2020-01-03) with the default caps
    """
    return PipelineConfig(window_start=date(2020, 1, 1), window_end=date(2020, 1, 3))


@pytest.fixture(scope="session")
def test_data_dir() -> str:
    """
    Get path to test data fixtures directory
    """
    return os.path.join(os.path.dirname(__file__), "fixtures")


@pytest.fixture(scope="session")
def sample_csv(test_data_dir) -> str:
    """
    Raw CSV sample covering duplicates, caps, negatives, nulls and gaps.

    Window 2020-01-01 .. 2020-01-04; US and DE have population, FR does not.
    """
    return os.path.join(test_data_dir, "covid_sample.csv")


@pytest.fixture(scope="session")
def sample_window_config(sample_csv) -> PipelineConfig:
    return PipelineConfig(
        window_start=date(2020, 1, 1),
        window_end=date(2020, 1, 4),
        source={"path": sample_csv, "format": "csv"},
    )


# =======================
# DATABASE FIXTURES (Testcontainers)
# =======================

@pytest.fixture(scope="session")
def postgres_container():
    """
    Start PostgreSQL container for warehouse integration tests

    Yields:
        PostgresContainer instance with initialized database
    """
    from testcontainers.postgres import PostgresContainer

    with PostgresContainer(
        image="postgres:16.2-alpine",
        username="test_pipeline",
        password="test_password",
        dbname="test_covid_warehouse",
    ) as postgres:
        yield postgres


@pytest.fixture(scope="function")
def warehouse_pool(postgres_container):
    """
    Open warehouse pool against the container, with tables reset per test
    """
    from covid_cleaning.warehouse.connection import WarehouseConnectionPool

    init_sql_path = os.path.join(
        os.path.dirname(os.path.dirname(__file__)), "docker", "init-db.sql"
    )

    pool = WarehouseConnectionPool(
        host=postgres_container.get_container_host_ip(),
        port=int(postgres_container.get_exposed_port(5432)),
        database="test_covid_warehouse",
        user="test_pipeline",
        password="test_password",
    )
    pool.open()

    with open(init_sql_path) as f:
        init_sql = f.read()
    with pool.transaction() as cur:
        cur.execute(init_sql)
        cur.execute("TRUNCATE TABLE cleaned_covid_data")
        cur.execute("TRUNCATE TABLE pipeline_run")

    yield pool

    pool.close()
