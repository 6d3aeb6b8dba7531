"""
Batch import: row readers and the chunked import engine.
"""

from .engine import DEFAULT_CHUNK_SIZE, MAX_REPORTED_ERRORS, BatchImportEngine, ImportOutcome, PreparedOrder
from .readers import CSVOrderReader

__all__ = [
    "BatchImportEngine",
    "ImportOutcome",
    "PreparedOrder",
    "CSVOrderReader",
    "DEFAULT_CHUNK_SIZE",
    "MAX_REPORTED_ERRORS",
]
