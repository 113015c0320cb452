# core/indexing/__init__.py
"""
Indexing Package
"""
from .records import MunicipalRecord
from .fingerprint import derive_fingerprint
from .index_codec import (
    PartitionIndexHeader,
    IndexFormatError,
    TruncatedIndexError,
    encode,
    decode,
    read_partition_file,
    write_partition_file
)
from .partition_builder import PartitionIndexBuilder, DerivationAbort, BuildSummary

__all__ = [
    'MunicipalRecord',
    'derive_fingerprint',
    'PartitionIndexHeader',
    'IndexFormatError',
    'TruncatedIndexError',
    'encode',
    'decode',
    'read_partition_file',
    'write_partition_file',
    'PartitionIndexBuilder',
    'DerivationAbort',
    'BuildSummary'
]
