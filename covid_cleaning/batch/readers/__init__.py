"""
Raw observation readers.
"""

from .csv_reader import CSVReader
from .file_reader import RawObservationReader

__all__ = [
    "CSVReader",
    "RawObservationReader",
]
