# core/search/partition_cache.py
"""
Lazy, load-once cache of decoded UF index files.
"""
import logging
import threading
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

from config import INDEX_FILE_PREFIX, INDEX_FILE_SUFFIX
from core.indexing.index_codec import (
    PartitionIndexHeader,
    partition_code_from_path,
    partition_file_name,
    read_partition_file,
)
from core.indexing.records import MunicipalRecord

logger = logging.getLogger(__name__)

PartitionLoader = Callable[[Path], Tuple[PartitionIndexHeader, List[MunicipalRecord]]]


class PartitionNotFoundError(LookupError):
    """Raised when a UF has no index file on disk."""

    def __init__(self, partition_code: str, path: Path):
        self.partition_code = partition_code
        self.path = path
        super().__init__(f"No index file for UF {partition_code}: {path}")


class PartitionCache:
    """
    Maps UF → decoded municipality list, reading each index file at most once.

    Entries are never evicted; the cache lives as long as its owner. Loads
    are serialized per UF: concurrent first requests for the same UF wait
    for a single decode, while different UFs load independently.
    """

    def __init__(self, index_dir: Path, loader: PartitionLoader = read_partition_file):
        """
        Args:
            index_dir: Directory containing municipios_hash_<UF>.dat files
            loader: Function decoding one index file into (header, records)
        """
        self.index_dir = Path(index_dir)
        self._loader = loader
        self._entries: Dict[str, List[MunicipalRecord]] = {}
        self._headers: Dict[str, PartitionIndexHeader] = {}
        self._key_locks: Dict[str, threading.Lock] = {}
        self._registry_lock = threading.Lock()

    def path_for(self, partition_code: str) -> Path:
        return self.index_dir / partition_file_name(partition_code)

    def available_codes(self) -> List[str]:
        """UFs that have an index file on disk (cached or not), sorted."""
        if not self.index_dir.is_dir():
            return []
        pattern = f"{INDEX_FILE_PREFIX}*{INDEX_FILE_SUFFIX}"
        return sorted(partition_code_from_path(p) for p in self.index_dir.glob(pattern))

    def _lock_for(self, code: str) -> threading.Lock:
        with self._registry_lock:
            lock = self._key_locks.get(code)
            if lock is None:
                lock = self._key_locks[code] = threading.Lock()
            return lock

    def load(self, partition_code: str) -> List[MunicipalRecord]:
        """
        Return the records of a UF, decoding its file on first access.

        Raises:
            PartitionNotFoundError: the UF has no index file
            IndexFormatError: the file is corrupt (nothing is cached)
            OSError: the file could not be read
        """
        code = partition_code.upper()
        records = self._entries.get(code)
        if records is not None:
            logger.debug(f"UF {code} served from cache")
            return records

        with self._lock_for(code):
            # Another thread may have finished loading while we waited
            records = self._entries.get(code)
            if records is not None:
                return records

            path = self.path_for(code)
            if not path.exists():
                raise PartitionNotFoundError(code, path)

            logger.info(f"Loading UF {code} from disk: {path}")
            header, records = self._loader(path)
            logger.info(
                f"UF {header.partition_code}: {header.record_count} municipalities, "
                f"generated {header.generated_label} (format v{header.version})"
            )
            self._headers[code] = header
            self._entries[code] = records
            return records

    def get(self, partition_code: str) -> Optional[List[MunicipalRecord]]:
        """Like load(), but a UF without an index file yields None."""
        try:
            return self.load(partition_code)
        except PartitionNotFoundError:
            return None

    def header(self, partition_code: str) -> Optional[PartitionIndexHeader]:
        """Header of a cached UF, None if it was never loaded."""
        return self._headers.get(partition_code.upper())

    def cached_codes(self) -> List[str]:
        return sorted(self._entries)

    def snapshot(self) -> Dict[str, int]:
        """UF → number of cached municipalities."""
        return {code: len(self._entries[code]) for code in self.cached_codes()}

    def __contains__(self, partition_code: str) -> bool:
        return partition_code.upper() in self._entries

    def __len__(self) -> int:
        return len(self._entries)
