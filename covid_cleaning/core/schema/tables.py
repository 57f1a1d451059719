"""
Spark schemas of the raw observation input and the cleaned record output.

Raw sources usually carry far more columns than the pipeline reads, so raw
frames are conformed by column name rather than by position.
"""

from pyspark.sql import DataFrame
from pyspark.sql import functions as F
from pyspark.sql.types import (
    DateType,
    DoubleType,
    IntegerType,
    LongType,
    StringType,
    StructField,
    StructType,
)

METRIC_COLUMNS = [
    "new_confirmed",
    "new_deceased",
    "cumulative_confirmed",
    "new_persons_vaccinated",
]

RAW_OBSERVATION_SCHEMA = StructType([
    StructField("date", DateType(), True),
    StructField("location_key", StringType(), True),
    StructField("aggregation_level", IntegerType(), True),
    StructField("country_name", StringType(), True),
    StructField("population", LongType(), True),
    StructField("new_confirmed", LongType(), True),
    StructField("new_deceased", LongType(), True),
    StructField("cumulative_confirmed", LongType(), True),
    StructField("new_persons_vaccinated", LongType(), True),
    StructField("stringency_index", DoubleType(), True),
])

CLEANED_RECORD_SCHEMA = StructType([
    StructField("date", DateType(), False),
    StructField("location_key", StringType(), False),
    StructField("aggregation_level", IntegerType(), True),
    StructField("country_name", StringType(), True),
    StructField("new_confirmed", LongType(), False),
    StructField("new_deceased", LongType(), False),
    StructField("cumulative_confirmed", LongType(), False),
    StructField("population", LongType(), False),
    StructField("stringency_index", DoubleType(), False),
    StructField("new_persons_vaccinated", LongType(), False),
    StructField("record_exists", IntegerType(), False),
])


class SourceSchemaError(ValueError):
    """Raised when a raw source lacks columns the pipeline needs."""

    def __init__(self, missing_columns: list[str]):
        self.missing_columns = missing_columns
        super().__init__(
            f"Raw source is missing required columns: {', '.join(missing_columns)}"
        )


def conform_to_raw_schema(df: DataFrame) -> DataFrame:
    """
    Select the raw observation columns by name and cast them to their types.

    Values that cannot be cast become null and are then counted as
    missing-value defects downstream.

    Args:
        df: Frame read from any raw source

    Returns:
        DataFrame with exactly the RAW_OBSERVATION_SCHEMA columns

    Raises:
        SourceSchemaError: If a required column is absent
    """
    available = set(df.columns)
    missing = [field.name for field in RAW_OBSERVATION_SCHEMA.fields if field.name not in available]
    if missing:
        raise SourceSchemaError(missing)

    # try_cast yields null instead of failing the job when ANSI mode is on
    return df.select(*[
        F.expr(f"try_cast(`{field.name}` AS {field.dataType.simpleString()})").alias(field.name)
        for field in RAW_OBSERVATION_SCHEMA.fields
    ])
