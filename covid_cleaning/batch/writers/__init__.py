"""
Cleaned table sinks.
"""

from .table_writer import CleanedTableWriter
from .warehouse_writer import BatchWarehouseWriter

__all__ = [
    "CleanedTableWriter",
    "BatchWarehouseWriter",
]
