"""
Row source readers.
"""

from .csv_reader import CSVOrderReader

__all__ = ["CSVOrderReader"]
