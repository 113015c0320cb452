# core/search/__init__.py
"""
Search Package
"""
from .partition_cache import PartitionCache, PartitionNotFoundError
from .query_engine import QueryEngine, QueryStrategy, SearchOutcome, ScanFailure, classify_query

__all__ = [
    'PartitionCache',
    'PartitionNotFoundError',
    'QueryEngine',
    'QueryStrategy',
    'SearchOutcome',
    'ScanFailure',
    'classify_query'
]
