# core/search/query_engine.py
"""
Municipality Query Engine
=========================
Classifies a free-text query and answers it from the partition cache.

Three strategies, tried in this order:
1. UF        - exactly two letters (eg. "sp")     → every municipality of that UF
2. Code      - all digits, at least four long     → exact IBGE or TOM code match
3. Name      - anything else                      → substring of either name spelling

UF and name results are capped at the display limit; the caller learns how
many rows were omitted. Code results are never capped.
"""
import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional

import unidecode

from config import DISPLAY_LIMIT, MIN_CODE_QUERY_LENGTH
from core.indexing.records import MunicipalRecord
from core.search.partition_cache import PartitionCache

logger = logging.getLogger(__name__)


class QueryStrategy(Enum):
    PARTITION = "UF"
    CODE = "IBGE/TOM code"
    NAME = "Name"


@dataclass(frozen=True)
class ScanFailure:
    """A UF file that could not be loaded during a multi-UF scan."""
    partition_code: str
    path: Path
    reason: str


@dataclass
class SearchOutcome:
    query: str
    strategy: QueryStrategy
    records: List[MunicipalRecord] = field(default_factory=list)
    total_matches: int = 0
    failures: List[ScanFailure] = field(default_factory=list)

    @property
    def omitted(self) -> int:
        return self.total_matches - len(self.records)

    @property
    def truncated(self) -> bool:
        return self.omitted > 0

    @property
    def is_empty(self) -> bool:
        return self.total_matches == 0


def classify_query(query: str) -> QueryStrategy:
    """Pick the search strategy for a query (first match wins)."""
    term = query.strip()
    if not term:
        raise ValueError("Empty query")

    if len(term) == 2 and term.isalpha():
        return QueryStrategy.PARTITION
    if term.isdecimal() and len(term) >= MIN_CODE_QUERY_LENGTH:
        return QueryStrategy.CODE
    return QueryStrategy.NAME


def fold_text(text: str, fold_accents: bool = False) -> str:
    """Lowercase text for comparison, optionally folding accents to ASCII."""
    if fold_accents:
        text = unidecode.unidecode(text)
    return text.casefold()


class QueryEngine:
    """Answers municipality queries against an injected PartitionCache."""

    def __init__(self, cache: PartitionCache, display_limit: int = DISPLAY_LIMIT,
                 fold_accents: bool = False):
        """
        Args:
            cache: Partition cache owned by the caller
            display_limit: Max rows returned by UF and name searches
            fold_accents: Match "sao" against "São" in name searches
        """
        if display_limit < 1:
            raise ValueError(f"display_limit must be positive, got {display_limit}")
        self.cache = cache
        self.display_limit = display_limit
        self.fold_accents = fold_accents

    def search(self, query: str) -> SearchOutcome:
        term = query.strip()
        strategy = classify_query(term)
        logger.debug(f"Query {term!r} classified as {strategy.name}")

        if strategy is QueryStrategy.PARTITION:
            return self.search_by_partition(term)
        if strategy is QueryStrategy.CODE:
            return self.search_by_code(term)
        return self.search_by_name(term)

    # =================== UF ===================
    def search_by_partition(self, partition_code: str) -> SearchOutcome:
        code = partition_code.strip().upper()
        records = self.cache.get(code)
        if not records:
            logger.info(f"No municipalities found for UF {code}")
            return SearchOutcome(query=code, strategy=QueryStrategy.PARTITION)
        return self._limited(code, QueryStrategy.PARTITION, records)

    # =================== Code ===================
    def search_by_code(self, code: str) -> SearchOutcome:
        wanted = code.strip().casefold()

        def matches(record: MunicipalRecord) -> bool:
            return (record.ibge_code.casefold() == wanted or
                    record.tom_code.casefold() == wanted)

        found, failures = self._scan(matches)
        return SearchOutcome(
            query=code,
            strategy=QueryStrategy.CODE,
            records=found,
            total_matches=len(found),
            failures=failures,
        )

    # =================== Name ===================
    def search_by_name(self, term: str) -> SearchOutcome:
        needle = fold_text(term.strip(), self.fold_accents)

        def matches(record: MunicipalRecord) -> bool:
            return (needle in fold_text(record.name_tom, self.fold_accents) or
                    needle in fold_text(record.name_ibge, self.fold_accents))

        found, failures = self._scan(matches)
        found.sort(key=lambda r: (r.partition_code, r.sort_key))
        outcome = self._limited(term, QueryStrategy.NAME, found)
        outcome.failures = failures
        return outcome

    # =================== Helpers ===================
    def _scan(self, predicate: Callable[[MunicipalRecord], bool]):
        """Run predicate over every UF on disk; failed UFs are reported, not raised."""
        found: List[MunicipalRecord] = []
        failures: List[ScanFailure] = []

        for code in self.cache.available_codes():
            try:
                records = self.cache.load(code)
            except Exception as e:
                path = self.cache.path_for(code)
                logger.warning(f"Skipping UF {code}: could not load {path}: {e}")
                failures.append(ScanFailure(code, path, str(e)))
                continue
            found.extend(r for r in records if predicate(r))

        return found, failures

    def _limited(self, query: str, strategy: QueryStrategy,
                 records: List[MunicipalRecord]) -> SearchOutcome:
        return SearchOutcome(
            query=query,
            strategy=strategy,
            records=list(records[:self.display_limit]),
            total_matches=len(records),
        )

    def partition_header(self, partition_code: str) -> Optional[str]:
        """One-line description of a cached UF file, for status displays."""
        header = self.cache.header(partition_code)
        if header is None:
            return None
        return (f"UF {header.partition_code}, {header.record_count} municipalities, "
                f"generated {header.generated_label}")
