"""Query classification and the three search strategies."""

import pytest

from core.indexing.index_codec import partition_file_name
from core.search.partition_cache import PartitionCache
from core.search.query_engine import (
    QueryEngine, QueryStrategy, classify_query, fold_text,
)
from tests.conftest import PINNED_TIMESTAMP, make_record


@pytest.fixture
def engine(index_dir):
    return QueryEngine(PartitionCache(index_dir))


@pytest.fixture
def crowded_dir(tmp_path, fast_builder):
    """25 'Campo' municipalities per UF in two UFs, all sharing one TOM code."""
    records = []
    for uf in ("PR", "GO"):
        for i in range(25):
            records.append(make_record(
                tom="9999", ibge=f"{uf}{i:05d}",
                name_tom=f"CAMPO {i:02d}", name_ibge=f"Campo {i:02d}", uf=uf,
            ))
    out = tmp_path / "crowded"
    fast_builder.build_all(records, out, generated_at=PINNED_TIMESTAMP)
    return out


class TestClassification:

    @pytest.mark.parametrize("query, expected", [
        ("sp", QueryStrategy.PARTITION),
        ("SP", QueryStrategy.PARTITION),
        ("  rj ", QueryStrategy.PARTITION),
        ("3550308", QueryStrategy.CODE),
        ("7107", QueryStrategy.CODE),
        ("710", QueryStrategy.NAME),
        ("12", QueryStrategy.NAME),
        ("cam", QueryStrategy.NAME),
        ("s1", QueryStrategy.NAME),
        ("São Paulo", QueryStrategy.NAME),
        ("35-50308", QueryStrategy.NAME),
    ])
    def test_table(self, query, expected):
        assert classify_query(query) is expected

    @pytest.mark.parametrize("query", ["", "   "])
    def test_empty_rejected(self, query):
        with pytest.raises(ValueError):
            classify_query(query)


class TestPartitionSearch:

    def test_case_insensitive(self, engine):
        lower = engine.search("sp")
        upper = engine.search("SP")
        assert lower.records == upper.records
        assert lower.strategy is QueryStrategy.PARTITION
        assert lower.total_matches == 4

    def test_stored_order(self, engine):
        outcome = engine.search("sp")
        assert [r.name_tom for r in outcome.records] == ["CAJAMAR", "CAMPINAS", "SANTOS", "SAO PAULO"]

    def test_missing_partition_is_empty(self, engine):
        outcome = engine.search("AM")
        assert outcome.is_empty
        assert outcome.records == []
        assert outcome.failures == []

    def test_capped_at_display_limit(self, crowded_dir):
        outcome = QueryEngine(PartitionCache(crowded_dir)).search("pr")
        assert len(outcome.records) == 20
        assert outcome.total_matches == 25
        assert outcome.omitted == 5
        assert outcome.truncated


class TestCodeSearch:

    def test_ibge_match(self, engine):
        outcome = engine.search("3550308")
        assert outcome.strategy is QueryStrategy.CODE
        assert [r.name_tom for r in outcome.records] == ["SAO PAULO"]

    def test_tom_match(self, engine):
        outcome = engine.search("5869")
        assert [r.name_tom for r in outcome.records] == ["RIO DE JANEIRO"]

    def test_no_match(self, engine):
        assert engine.search("0000000").is_empty

    def test_never_capped(self, crowded_dir):
        outcome = QueryEngine(PartitionCache(crowded_dir)).search("9999")
        assert len(outcome.records) == 50
        assert not outcome.truncated
        assert {r.partition_code for r in outcome.records} == {"GO", "PR"}

    def test_excluded_partition_not_searched(self, engine):
        assert engine.search("9701").is_empty


class TestNameSearch:

    def test_substring_across_partitions_sorted(self, engine):
        outcome = engine.search("cam")
        assert outcome.strategy is QueryStrategy.NAME
        assert [(r.partition_code, r.name_tom) for r in outcome.records] == [
            ("MG", "CAMBUI"),
            ("RJ", "CAMPOS DOS GOYTACAZES"),
            ("SP", "CAMPINAS"),
        ]

    def test_matches_ibge_spelling(self, engine):
        outcome = engine.search("são")
        assert [r.name_tom for r in outcome.records] == ["SAO PAULO"]

    def test_accents_significant_by_default(self, engine):
        assert [r.name_tom for r in engine.search("cambuí").records] == ["CAMBUI"]
        assert engine.search("saõ").is_empty

    def test_fold_accents(self, index_dir):
        engine = QueryEngine(PartitionCache(index_dir), fold_accents=True)
        names = {r.name_tom for r in engine.search("sao").records}
        assert names == {"SAO PAULO"}
        assert [r.name_tom for r in engine.search("cambuí").records] == ["CAMBUI"]

    def test_truncated_to_display_limit(self, crowded_dir):
        outcome = QueryEngine(PartitionCache(crowded_dir)).search("campo")
        assert len(outcome.records) == 20
        assert outcome.total_matches == 50
        assert outcome.omitted == 30
        # GO sorts before PR
        assert {r.partition_code for r in outcome.records} == {"GO"}
        assert outcome.records[0].name_tom == "CAMPO 00"

    def test_custom_display_limit(self, index_dir):
        engine = QueryEngine(PartitionCache(index_dir), display_limit=1)
        outcome = engine.search("cam")
        assert len(outcome.records) == 1
        assert outcome.omitted == 2

    def test_invalid_display_limit(self, index_dir):
        with pytest.raises(ValueError):
            QueryEngine(PartitionCache(index_dir), display_limit=0)


class TestScanFailures:

    def test_corrupt_partition_reported_and_skipped(self, index_dir):
        (index_dir / partition_file_name("RJ")).write_bytes(b"\x07MUNHASH")
        engine = QueryEngine(PartitionCache(index_dir))

        outcome = engine.search("cam")

        assert [r.partition_code for r in outcome.records] == ["MG", "SP"]
        assert len(outcome.failures) == 1
        failure = outcome.failures[0]
        assert failure.partition_code == "RJ"
        assert failure.path.name == "municipios_hash_RJ.dat"
        assert failure.reason

    def test_code_search_reports_failures(self, index_dir):
        (index_dir / partition_file_name("MG")).write_bytes(b"")
        outcome = QueryEngine(PartitionCache(index_dir)).search("3550308")
        assert [r.name_tom for r in outcome.records] == ["SAO PAULO"]
        assert [f.partition_code for f in outcome.failures] == ["MG"]


class TestHelpers:

    def test_fold_text(self):
        assert fold_text("São") == "são"
        assert fold_text("São", fold_accents=True) == "sao"

    def test_partition_header(self, index_dir):
        engine = QueryEngine(PartitionCache(index_dir))
        assert engine.partition_header("SP") is None
        engine.search("SP")
        assert engine.partition_header("SP").startswith("UF SP, 4 municipalities")


class TestNameOrdering:

    @pytest.fixture
    def mixed_dir(self, tmp_path, fast_builder):
        records = [
            make_record("1", "5200050", "Abadia de Goiás", "Abadia de Goiás", "GO"),
            make_record("2", "5222302", "ZORTEA", "Zortéa", "GO"),
            make_record("3", "5200100", "ÁGUA LIMPA", "Água Limpa", "GO"),
            make_record("4", "5200134", "", "Amaralina", "GO"),
            make_record("5", "1200013", "ACRELANDIA", "Acrelândia", "AC"),
        ]
        out = tmp_path / "mixed"
        fast_builder.build_all(records, out, generated_at=PINNED_TIMESTAMP)
        return out

    def test_case_and_accents_ignored(self, mixed_dir):
        outcome = QueryEngine(PartitionCache(mixed_dir)).search("a")
        assert [r.preferred_name for r in outcome.records] == [
            "ACRELANDIA", "Abadia de Goiás", "ÁGUA LIMPA", "Amaralina", "ZORTEA",
        ]

    def test_matches_partition_order(self, mixed_dir):
        engine = QueryEngine(PartitionCache(mixed_dir))
        by_name = [r for r in engine.search("a").records if r.partition_code == "GO"]
        assert by_name == engine.search("GO").records


class TestUnusualHeaders:

    def test_out_of_range_timestamp(self, tmp_path, fast_builder):
        fast_builder.build("SP", [make_record()], tmp_path / partition_file_name("SP"),
                           generated_at=2**63 - 1)
        engine = QueryEngine(PartitionCache(tmp_path))

        assert [r.name_tom for r in engine.search("SP").records] == ["SAO PAULO"]
        outcome = engine.search("paulo")
        assert outcome.failures == []
        assert outcome.total_matches == 1
        assert "unknown (raw timestamp" in engine.partition_header("SP")
