# core/indexing/partition_builder.py
"""
Partition Index Builder
=======================
Fingerprints every municipality of a UF on a bounded thread pool, then
writes the UF's binary index file in a deterministic order.
UFs are built one after another; records within a UF in parallel.
"""
import logging
import queue
import time
from collections import defaultdict
from concurrent.futures import ThreadPoolExecutor, FIRST_EXCEPTION, wait
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import psutil
from tqdm import tqdm

from config import PBKDF2_ITERATIONS, HASH_BYTES, EXCLUDED_PARTITIONS
from core.indexing.fingerprint import derive_fingerprint
from core.indexing.index_codec import (
    PartitionIndexHeader,
    current_timestamp,
    partition_file_name,
    write_partition_file,
)
from core.indexing.records import MunicipalRecord

logger = logging.getLogger(__name__)


class DerivationAbort(RuntimeError):
    """Raised when fingerprinting fails; the UF's build is abandoned."""

    def __init__(self, partition_code: str, record: MunicipalRecord, cause: BaseException):
        self.partition_code = partition_code
        self.record = record
        super().__init__(
            f"Fingerprint derivation failed for UF {partition_code} "
            f"(IBGE {record.ibge_code or '?'}): {cause}"
        )


@dataclass
class PartitionBuildResult:
    partition_code: str
    path: Path
    record_count: int
    size_bytes: int
    elapsed_seconds: float


@dataclass
class BuildSummary:
    results: List[PartitionBuildResult] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    elapsed_seconds: float = 0.0

    @property
    def total_records(self) -> int:
        return sum(r.record_count for r in self.results)

    @property
    def partition_codes(self) -> List[str]:
        return [r.partition_code for r in self.results]


def default_worker_count() -> int:
    """Logical CPUs available to this process."""
    try:
        return len(psutil.Process().cpu_affinity())
    except (AttributeError, psutil.Error):
        return psutil.cpu_count(logical=True) or 1


def get_memory_usage() -> str:
    """Get current memory usage in human-readable format"""
    mem_info = psutil.Process().memory_info()
    return f"{mem_info.rss / (1024**2):.1f} MB"


def group_by_partition(records: Iterable[MunicipalRecord]) -> Dict[str, List[MunicipalRecord]]:
    """Group records by UF (case-insensitive), keeping input order inside each group."""
    groups = defaultdict(list)
    for record in records:
        groups[record.partition_code.upper()].append(record)
    return dict(groups)


def sort_for_output(pairs: Iterable[Tuple[int, MunicipalRecord]]) -> List[MunicipalRecord]:
    """Order (input_position, record) pairs by preferred name, ties by input position."""
    return [record for _, record in sorted(pairs, key=lambda p: (p[1].sort_key, p[0]))]


class PartitionIndexBuilder:
    """Builds one municipios_hash_<UF>.dat file per UF."""

    def __init__(self, iterations: int = PBKDF2_ITERATIONS, hash_bytes: int = HASH_BYTES,
                 max_workers: Optional[int] = None, show_progress: bool = True):
        """
        Args:
            iterations: PBKDF2 iteration count
            hash_bytes: Derived key length in bytes
            max_workers: Thread pool size (defaults to available CPUs)
            show_progress: Display a tqdm bar per UF
        """
        if max_workers is not None and max_workers < 1:
            raise ValueError(f"max_workers must be positive, got {max_workers}")
        self.iterations = iterations
        self.hash_bytes = hash_bytes
        self.max_workers = max_workers or default_worker_count()
        self.show_progress = show_progress

    def fingerprint_all(self, partition_code: str,
                        records: Sequence[MunicipalRecord]) -> List[Tuple[int, MunicipalRecord]]:
        """
        Fingerprint records in parallel.

        Returns (input_position, fingerprinted_record) pairs in completion
        order. Blocks until every worker is done; the first failure cancels
        whatever has not started and raises DerivationAbort.
        """
        accumulator = queue.SimpleQueue()

        def work(position: int, record: MunicipalRecord):
            try:
                fingerprint = derive_fingerprint(record, self.iterations, self.hash_bytes)
            except Exception as e:
                raise DerivationAbort(partition_code, record, e) from e
            accumulator.put((position, record.with_fingerprint(fingerprint)))

        progress = tqdm(
            total=len(records),
            unit="mun",
            desc=f"  UF {partition_code}",
            disable=not self.show_progress,
            leave=False,
        )
        try:
            with ThreadPoolExecutor(max_workers=self.max_workers,
                                    thread_name_prefix=f"fp-{partition_code}") as pool:
                futures = [pool.submit(work, i, r) for i, r in enumerate(records)]
                for future in futures:
                    future.add_done_callback(lambda _: progress.update(1))

                done, pending = wait(futures, return_when=FIRST_EXCEPTION)
                for future in pending:
                    future.cancel()
                for future in futures:
                    if future.done() and not future.cancelled() and future.exception():
                        raise future.exception()
        finally:
            progress.close()

        pairs = []
        while not accumulator.empty():
            pairs.append(accumulator.get_nowait())
        return pairs

    def build(self, partition_code: str, records: Sequence[MunicipalRecord],
              output_path: Path, generated_at: Optional[int] = None) -> PartitionIndexHeader:
        """
        Build and write the index file for one UF.

        Args:
            partition_code: UF being built (case-insensitive)
            records: Raw records, all belonging to partition_code
            output_path: Destination file (overwritten wholesale)
            generated_at: Header timestamp in epoch ms; defaults to now.
                          Pin it to get byte-identical rebuilds.

        Returns:
            The header that was written

        Raises:
            ValueError: a record belongs to another UF
            DerivationAbort: fingerprinting failed; no file is written
        """
        code = partition_code.upper()
        records = list(records)
        foreign = [r for r in records if r.partition_code.upper() != code]
        if foreign:
            raise ValueError(
                f"{len(foreign)} record(s) do not belong to UF {code} "
                f"(first: IBGE {foreign[0].ibge_code} in {foreign[0].partition_code!r})"
            )

        pairs = self.fingerprint_all(code, records)
        ordered = sort_for_output(pairs)

        header = PartitionIndexHeader(
            partition_code=code,
            generated_at=current_timestamp() if generated_at is None else generated_at,
            record_count=len(ordered),
        )
        write_partition_file(output_path, header, ordered)
        return header

    def build_all(self, records: Iterable[MunicipalRecord], output_dir: Path,
                  excluded_codes: Sequence[str] = EXCLUDED_PARTITIONS,
                  generated_at: Optional[int] = None) -> BuildSummary:
        """
        Build one index file per UF found in records, in alphabetical UF order.

        A DerivationAbort stops the whole run at the failing UF; files of
        UFs already built are kept.
        """
        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)
        excluded = {c.upper() for c in excluded_codes}

        groups = group_by_partition(records)
        summary = BuildSummary(skipped=sorted(c for c in groups if c in excluded))
        codes = sorted(c for c in groups if c not in excluded)

        logger.info(
            f"Building {len(codes)} UF index file(s) in {output_dir} "
            f"({self.max_workers} workers, {self.iterations:,} iterations)"
        )
        overall_start = time.perf_counter()

        for code in codes:
            uf_records = groups[code]
            logger.info(f"Processing UF {code} ({len(uf_records)} municipalities)")
            start = time.perf_counter()

            path = output_dir / partition_file_name(code)
            self.build(code, uf_records, path, generated_at=generated_at)

            result = PartitionBuildResult(
                partition_code=code,
                path=path,
                record_count=len(uf_records),
                size_bytes=path.stat().st_size,
                elapsed_seconds=time.perf_counter() - start,
            )
            summary.results.append(result)
            logger.info(
                f"UF {code} done: {result.size_bytes:,} bytes "
                f"({result.size_bytes / 1024:.1f} KB) in {result.elapsed_seconds:.2f}s "
                f"| Memory: {get_memory_usage()}"
            )

        summary.elapsed_seconds = time.perf_counter() - overall_start
        return summary
