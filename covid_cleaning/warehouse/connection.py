"""
PostgreSQL connection pool for the optional warehouse sink, using psycopg3.
"""
import os
import time
from contextlib import contextmanager

from psycopg import OperationalError
from psycopg.conninfo import make_conninfo
from psycopg.rows import dict_row
from psycopg_pool import ConnectionPool

from covid_cleaning.observability.logger import get_logger

logger = get_logger(__name__)


class WarehouseConnectionPool:
    """
    Pooled connections to the cleaned-table warehouse.

    Settings not passed explicitly come from DB_HOST, DB_PORT, DB_NAME,
    DB_USER and DB_PASSWORD. Rows are returned as dictionaries.
    """

    def __init__(
        self,
        host: str | None = None,
        port: int | None = None,
        database: str | None = None,
        user: str | None = None,
        password: str | None = None,
        max_size: int = 4,
        timeout: float = 30.0,
    ) -> None:
        """
        Args:
            host: Database host
            port: Database port
            database: Database name (default covid_warehouse)
            user: Database user
            password: Database password, required
            max_size: Maximum pool size; one connection is kept open
            timeout: Connect and checkout timeout in seconds

        Raises:
            ValueError: If no password is given or configured
        """
        password = password or os.getenv("DB_PASSWORD")
        if not password:
            raise ValueError("Warehouse password missing: set DB_PASSWORD or pass password=")

        self.database = database or os.getenv("DB_NAME", "covid_warehouse")
        self.conninfo = make_conninfo(
            host=host or os.getenv("DB_HOST", "localhost"),
            port=port or int(os.getenv("DB_PORT", "5432")),
            dbname=self.database,
            user=user or os.getenv("DB_USER", "pipeline"),
            password=password,
            connect_timeout=int(timeout),
        )
        self.max_size = max_size
        self.timeout = timeout
        self._pool: ConnectionPool | None = None

    def open(self, max_retries: int = 3, retry_delay: float = 2.0) -> None:
        """
        Open the pool, retrying while the server is unreachable.

        Raises:
            OperationalError: If the last attempt still fails
        """
        if self._pool is not None:
            return

        pool = ConnectionPool(
            conninfo=self.conninfo,
            min_size=1,
            max_size=self.max_size,
            timeout=self.timeout,
            kwargs={"row_factory": dict_row},
            open=False,
        )

        attempt = 1
        while True:
            try:
                pool.open(wait=True, timeout=self.timeout)
            except OperationalError as e:
                logger.warning(f"Warehouse {self.database} unreachable (attempt {attempt}/{max_retries}): {e}")
                if attempt >= max_retries:
                    pool.close()
                    raise OperationalError(
                        f"Could not reach warehouse {self.database} after {max_retries} attempts"
                    ) from e
                attempt += 1
                time.sleep(retry_delay)
            else:
                self._pool = pool
                logger.info(f"Warehouse pool open ({self.database}, max {self.max_size} connections)")
                return

    def close(self) -> None:
        if self._pool is not None:
            self._pool.close()
            self._pool = None

    @contextmanager
    def get_connection(self):
        """
        Borrow a connection from the pool.

        Raises:
            RuntimeError: If open() was not called
        """
        if self._pool is None:
            raise RuntimeError("Warehouse pool is not open; call open() first")
        with self._pool.connection() as conn:
            yield conn

    @contextmanager
    def transaction(self):
        """
        Yield a cursor inside one transaction.

        Commits when the block exits normally and rolls back when it raises.
        """
        with self.get_connection() as conn, conn.transaction(), conn.cursor() as cur:
            yield cur

    def execute_query(self, query, params: tuple | dict | None = None) -> list[dict]:
        """Run a SELECT and return its rows as dictionaries."""
        with self.get_connection() as conn, conn.cursor() as cur:
            cur.execute(query, params)
            return cur.fetchall()
