"""
Spark sink for the cleaned table.

The cleaned table is rebuilt on every run and replaces the previous one
as a whole; nothing is appended or upserted.
"""

import shutil
import uuid
from pathlib import Path

from pyspark.sql import DataFrame, SparkSession

from covid_cleaning.core.config import OutputConfig
from covid_cleaning.observability.logger import get_logger

logger = get_logger(__name__)


def is_local_path(path: str) -> bool:
    return "://" not in path or path.startswith("file://")


class CleanedTableWriter:
    """
    Replaces the cleaned table at a path or in the Spark catalog.
    """

    def __init__(self, spark: SparkSession):
        """
        Initialize cleaned table writer.

        Args:
            spark: Active Spark session
        """
        self.spark = spark

    def replace(self, df: DataFrame, output: OutputConfig) -> int:
        """
        Replace the configured target with the frame's contents.

        Args:
            df: Cleaned records, already sorted
            output: Output configuration naming a path or a table

        Returns:
            Number of rows in the replaced table

        Raises:
            ValueError: If neither a table nor a path is configured
        """
        # coalesce merges adjacent sorted partitions, so part files stay in key order
        df = df.coalesce(output.partitions)

        if output.table:
            return self.replace_table(df, output.table)
        if output.path:
            return self.replace_path(df, output.path, output.format)
        raise ValueError("Output configuration needs either 'table' or 'path'")

    def replace_table(self, df: DataFrame, table_name: str) -> int:
        """Overwrite a catalog table."""
        df.write.mode("overwrite").option("overwriteSchema", "true").saveAsTable(table_name)
        count = self.spark.table(table_name).count()
        logger.info(f"Replaced table {table_name} with {count} rows")
        return count

    def replace_path(self, df: DataFrame, path: str, file_format: str = "parquet") -> int:
        """
        Replace the directory at path.

        Local targets are written to a sibling staging directory first and
        swapped in only once the write succeeded, so a failed run leaves
        the previous table untouched.
        """
        if not is_local_path(path):
            logger.warning(f"Overwriting remote path {path} in place; replacement is not atomic")
            self._write(df, path, file_format)
            return self._count_written(df, path, file_format)

        target = Path(path.removeprefix("file://"))
        target.parent.mkdir(parents=True, exist_ok=True)
        token = uuid.uuid4().hex[:8]
        staging = target.with_name(f".{target.name}.staging-{token}")
        previous = target.with_name(f".{target.name}.previous-{token}")

        try:
            self._write(df, str(staging), file_format)
            count = self._count_written(df, str(staging), file_format)
        except Exception:
            shutil.rmtree(staging, ignore_errors=True)
            raise

        if target.exists():
            shutil.move(str(target), str(previous))
        shutil.move(str(staging), str(target))
        shutil.rmtree(previous, ignore_errors=True)

        logger.info(f"Replaced {target} with {count} rows", extra={"format": file_format})
        return count

    def _count_written(self, df: DataFrame, path: str, file_format: str) -> int:
        """
        Count rows read back from path with the frame's own schema.

        An empty frame leaves JSON and CSV output with nothing to infer a
        schema from.
        """
        return self.spark.read.format(file_format) \
            .schema(df.schema) \
            .options(**self._read_options(file_format)) \
            .load(path) \
            .count()

    @staticmethod
    def _read_options(file_format: str) -> dict[str, str]:
        return {"header": "true"} if file_format == "csv" else {}

    def _write(self, df: DataFrame, path: str, file_format: str) -> None:
        writer = df.write.mode("overwrite").format(file_format)
        if file_format == "csv":
            writer = writer.option("header", "true").option("dateFormat", "yyyy-MM-dd")
        writer.save(path)
