"""
Raw observation reader for multiple formats (CSV, JSON, Parquet) and catalog tables.
"""

from pyspark.sql import DataFrame, SparkSession

from covid_cleaning.core.config import SourceConfig
from covid_cleaning.core.schema import conform_to_raw_schema

from .csv_reader import CSVReader


class RawObservationReader:
    """
    Reads raw observations and conforms them to RAW_OBSERVATION_SCHEMA.
    """

    def __init__(self, spark: SparkSession):
        """
        Initialize raw observation reader.

        Args:
            spark: Active Spark session
        """
        self.spark = spark
        self.csv_reader = CSVReader(spark)

    def read(
        self,
        file_path: str,
        file_format: str = "csv",
        **options
    ) -> DataFrame:
        """
        Read a file into a conformed DataFrame.

        Args:
            file_path: Path to file
            file_format: Format (csv, json, parquet)
            **options: Format-specific options

        Returns:
            Spark DataFrame with the raw observation columns

        Raises:
            ValueError: If file format is unsupported
            SourceSchemaError: If a required column is missing
        """
        if file_format.lower() == "csv":
            df = self.csv_reader.read(file_path, **options)
        elif file_format.lower() == "json":
            df = self.spark.read.json(file_path)
        elif file_format.lower() == "parquet":
            df = self.spark.read.parquet(file_path)
        else:
            raise ValueError(f"Unsupported file format: {file_format}")

        return conform_to_raw_schema(df)

    def read_table(self, table_name: str) -> DataFrame:
        """Read a catalog table into a conformed DataFrame."""
        return conform_to_raw_schema(self.spark.table(table_name))

    def read_source(self, source: SourceConfig) -> DataFrame:
        """
        Read whatever the source configuration points at.

        Raises:
            ValueError: If neither a table nor a path is configured
        """
        if source.table:
            return self.read_table(source.table)
        if source.path:
            return self.read(source.path, file_format=source.format)
        raise ValueError("Source configuration needs either 'table' or 'path'")
