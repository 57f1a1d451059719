"""
Batch warehouse writer for the cleaned table.

Streams the cleaned Spark DataFrame into PostgreSQL with full-replace semantics.
"""

from pyspark.sql import DataFrame

from covid_cleaning.core.models import PipelineRunResult
from covid_cleaning.core.schema import CLEANED_RECORD_SCHEMA
from covid_cleaning.warehouse.audit import create_run_table, insert_pipeline_run
from covid_cleaning.warehouse.cleaned_table import CleanedTableReplacer
from covid_cleaning.warehouse.connection import WarehouseConnectionPool


class BatchWarehouseWriter:
    """
    Writes the cleaned table and run audit rows to the warehouse.
    """

    def __init__(
        self,
        pool: WarehouseConnectionPool,
        table: str = "cleaned_covid_data",
        run_table: str = "pipeline_run",
    ):
        """
        Initialize batch warehouse writer.

        Args:
            pool: Warehouse connection pool
            table: Cleaned table name
            run_table: Run audit table name
        """
        self.pool = pool
        self.table = table
        self.run_table = run_table
        self.replacer = CleanedTableReplacer(pool)

    def write_dataframe(self, df: DataFrame) -> int:
        """
        Replace the warehouse table with the DataFrame's rows.

        Rows are pulled partition by partition through toLocalIterator, so
        the driver never holds the whole table.

        Returns:
            Number of records written
        """
        columns = CLEANED_RECORD_SCHEMA.fieldNames()
        rows = (tuple(row[name] for name in columns) for row in df.select(*columns).toLocalIterator())
        return self.replacer.replace(self.table, rows)

    def record_run(self, result: PipelineRunResult) -> str:
        """Persist the run audit row, creating the audit table if needed."""
        create_run_table(self.pool, self.run_table)
        return insert_pipeline_run(self.pool, result, self.run_table)
