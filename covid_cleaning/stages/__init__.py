"""
Pipeline stages: profiling, quality auditing and cleaning.
"""

from .cleaner import Cleaner
from .profiler import Profiler
from .quality_checker import QualityChecker

__all__ = [
    "Cleaner",
    "Profiler",
    "QualityChecker",
]
