"""
CSV reader using Spark for raw observation exports.
"""

from pyspark.sql import DataFrame, SparkSession


class CSVReader:
    """
    Reads CSV exports as all-string columns.

    Typing happens afterwards by column name, since public exports carry
    hundreds of columns in no guaranteed order.
    """

    def __init__(self, spark: SparkSession):
        """
        Initialize CSV reader.

        Args:
            spark: Active Spark session
        """
        self.spark = spark

    def read(
        self,
        file_path: str,
        header: bool = True,
        delimiter: str = ",",
    ) -> DataFrame:
        """
        Read CSV file into Spark DataFrame.

        Args:
            file_path: Path to CSV file or directory of CSV files
            header: Whether CSV has header row
            delimiter: Field delimiter

        Returns:
            Spark DataFrame
        """
        df = self.spark.read \
            .option("header", str(header).lower()) \
            .option("delimiter", delimiter) \
            .option("inferSchema", "false") \
            .option("mode", "PERMISSIVE") \
            .csv(file_path)

        return df
