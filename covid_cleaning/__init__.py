"""
COVID-19 country-level cleaning pipeline on Spark.
"""

__version__ = "0.1.0"
