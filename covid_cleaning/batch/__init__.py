"""
Spark batch processing module.
"""

from .pipeline import CleaningPipeline
from .readers import CSVReader, RawObservationReader
from .writers import BatchWarehouseWriter, CleanedTableWriter

__all__ = [
    "CleaningPipeline",
    "CSVReader",
    "RawObservationReader",
    "CleanedTableWriter",
    "BatchWarehouseWriter",
]
