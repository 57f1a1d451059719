"""
Run audit operations.

Each pipeline run leaves one row in the run audit table with its profile
and quality report, so data-quality drift can be followed across runs.
"""

from typing import Any

import psycopg
from psycopg import sql
from psycopg.types.json import Jsonb

from covid_cleaning.core.models import PipelineRunResult
from covid_cleaning.observability.logger import get_logger

from .connection import WarehouseConnectionPool

logger = get_logger(__name__)


def create_run_table(pool: WarehouseConnectionPool, table: str = "pipeline_run") -> None:
    """Create the run audit table if it does not exist."""
    ddl = sql.SQL("""
        CREATE TABLE IF NOT EXISTS {table} (
            run_id TEXT PRIMARY KEY,
            started_at TIMESTAMP NOT NULL,
            finished_at TIMESTAMP,
            window_start DATE NOT NULL,
            window_end DATE NOT NULL,
            status TEXT NOT NULL,
            rows_written BIGINT NOT NULL,
            filler_rows BIGINT NOT NULL,
            profile JSONB,
            quality JSONB,
            result JSONB NOT NULL
        )
    """).format(table=sql.Identifier(table))

    with pool.transaction() as cur:
        cur.execute(ddl)


def insert_pipeline_run(
    pool: WarehouseConnectionPool,
    result: PipelineRunResult,
    table: str = "pipeline_run",
) -> str:
    """
    Insert the audit row of a run.

    Args:
        pool: Warehouse connection pool
        result: Finished run result
        table: Run audit table name

    Returns:
        run_id of the inserted row

    Raises:
        psycopg.DatabaseError: If insert fails
    """
    insert_sql = sql.SQL("""
        INSERT INTO {table} (
            run_id, started_at, finished_at, window_start, window_end,
            status, rows_written, filler_rows, profile, quality, result
        ) VALUES (
            %(run_id)s, %(started_at)s, %(finished_at)s, %(window_start)s, %(window_end)s,
            %(status)s, %(rows_written)s, %(filler_rows)s, %(profile)s, %(quality)s, %(result)s
        )
    """).format(table=sql.Identifier(table))

    payload = result.model_dump(mode="json")
    params = {
        "run_id": result.run_id,
        "started_at": result.started_at,
        "finished_at": result.finished_at,
        "window_start": result.window_start,
        "window_end": result.window_end,
        "status": result.status,
        "rows_written": result.rows_written,
        "filler_rows": result.filler_rows,
        "profile": Jsonb(payload["profile"]) if result.profile else None,
        "quality": Jsonb(payload["quality"]) if result.quality else None,
        "result": Jsonb(payload),
    }

    try:
        with pool.transaction() as cur:
            cur.execute(insert_sql, params)
    except psycopg.DatabaseError as e:
        logger.error(f"Failed to insert run audit row {result.run_id}: {e}")
        raise

    logger.debug(f"Inserted run audit row: run_id={result.run_id}, status={result.status}")
    return result.run_id


def get_recent_runs(
    pool: WarehouseConnectionPool,
    limit: int = 10,
    table: str = "pipeline_run",
) -> list[dict[str, Any]]:
    """
    Most recent run audit rows, newest first.
    """
    query = sql.SQL("""
        SELECT run_id, started_at, finished_at, window_start, window_end,
               status, rows_written, filler_rows, quality
        FROM {table}
        ORDER BY started_at DESC
        LIMIT %s
    """).format(table=sql.Identifier(table))

    return pool.execute_query(query, (limit,))
