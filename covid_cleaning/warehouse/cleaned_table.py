"""
Full-replace writes of the cleaned table into PostgreSQL.

TRUNCATE is transactional in PostgreSQL, so truncating and reloading in a
single transaction replaces the table atomically: readers see either the
previous run or the new one, never a partial load.
"""

from collections.abc import Iterable, Iterator
from itertools import islice
from typing import Any

from psycopg import sql

from covid_cleaning.core.schema import CLEANED_RECORD_SCHEMA
from covid_cleaning.observability.logger import get_logger

from .connection import WarehouseConnectionPool

logger = get_logger(__name__)

COLUMN_DDL = {
    "date": "DATE NOT NULL",
    "location_key": "TEXT NOT NULL",
    "aggregation_level": "INTEGER",
    "country_name": "TEXT",
    "new_confirmed": "BIGINT NOT NULL",
    "new_deceased": "BIGINT NOT NULL",
    "cumulative_confirmed": "BIGINT NOT NULL",
    "population": "BIGINT NOT NULL",
    "stringency_index": "DOUBLE PRECISION NOT NULL",
    "new_persons_vaccinated": "BIGINT NOT NULL",
    "record_exists": "SMALLINT NOT NULL",
}

COLUMNS = CLEANED_RECORD_SCHEMA.fieldNames()


def chunked(rows: Iterable[Any], size: int) -> Iterator[list[Any]]:
    iterator = iter(rows)
    while chunk := list(islice(iterator, size)):
        yield chunk


class CleanedTableReplacer:
    """
    Replaces a PostgreSQL table with a new set of cleaned records.
    """

    def __init__(self, pool: WarehouseConnectionPool, batch_size: int = 5000):
        """
        Initialize replacer.

        Args:
            pool: Warehouse connection pool
            batch_size: Rows per executemany call
        """
        self.pool = pool
        self.batch_size = batch_size

    def create_table_sql(self, table: str) -> sql.Composed:
        columns = sql.SQL(", ").join(
            sql.SQL("{} {}").format(sql.Identifier(name), sql.SQL(COLUMN_DDL[name]))
            for name in COLUMNS
        )
        return sql.SQL(
            "CREATE TABLE IF NOT EXISTS {table} ({columns}, PRIMARY KEY (date, location_key))"
        ).format(table=sql.Identifier(table), columns=columns)

    def insert_sql(self, table: str) -> sql.Composed:
        return sql.SQL("INSERT INTO {table} ({columns}) VALUES ({values})").format(
            table=sql.Identifier(table),
            columns=sql.SQL(", ").join(map(sql.Identifier, COLUMNS)),
            values=sql.SQL(", ").join(sql.Placeholder() * len(COLUMNS)),
        )

    def replace(self, table: str, rows: Iterable[tuple]) -> int:
        """
        Atomically replace table contents.

        Args:
            table: Target table name
            rows: Tuples in CLEANED_RECORD_SCHEMA column order

        Returns:
            Number of rows inserted

        Raises:
            psycopg.DatabaseError: If any statement fails (nothing is replaced)
        """
        inserted = 0
        with self.pool.transaction() as cur:
            cur.execute(self.create_table_sql(table))
            cur.execute(sql.SQL("TRUNCATE TABLE {}").format(sql.Identifier(table)))
            insert = self.insert_sql(table)
            for chunk in chunked(rows, self.batch_size):
                cur.executemany(insert, chunk)
                inserted += len(chunk)

        logger.info(f"Replaced warehouse table {table} with {inserted} rows")
        return inserted

    def count_rows(self, table: str) -> int:
        rows = self.pool.execute_query(
            sql.SQL("SELECT COUNT(*) AS count FROM {}").format(sql.Identifier(table))
        )
        return rows[0]["count"]
