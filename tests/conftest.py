"""
Shared fixtures for the munhash test suite.
PBKDF2 runs with a handful of iterations here; the default 50,000 would
make every build test take seconds.
"""

import os
import sys

import pytest

# Ensure project root is on path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.indexing.records import MunicipalRecord
from core.indexing.partition_builder import PartitionIndexBuilder

FAST_ITERATIONS = 10
PINNED_TIMESTAMP = 1_700_000_000_000


def make_record(tom="7107", ibge="3550308", name_tom="SAO PAULO",
                name_ibge="São Paulo", uf="SP", fingerprint=None):
    return MunicipalRecord(tom, ibge, name_tom, name_ibge, uf, fingerprint)


@pytest.fixture
def fast_builder():
    return PartitionIndexBuilder(iterations=FAST_ITERATIONS, max_workers=4, show_progress=False)


@pytest.fixture
def sample_records():
    """A small multi-UF dataset, deliberately not in name order."""
    return [
        make_record("7107", "3550308", "SAO PAULO", "São Paulo", "SP"),
        make_record("6291", "3509502", "CAMPINAS", "Campinas", "SP"),
        make_record("7071", "3548500", "SANTOS", "Santos", "SP"),
        make_record("6213", "3509007", "CAJAMAR", "Cajamar", "SP"),
        make_record("5869", "3304557", "RIO DE JANEIRO", "Rio de Janeiro", "RJ"),
        make_record("5865", "3300936", "CAMPOS DOS GOYTACAZES", "Campos dos Goytacazes", "RJ"),
        make_record("4123", "3106200", "BELO HORIZONTE", "Belo Horizonte", "MG"),
        make_record("4305", "3110004", "CAMBUI", "Cambuí", "MG"),
        make_record("9701", "9999999", "EXTERIOR", "Exterior", "EX"),
    ]


@pytest.fixture
def index_dir(tmp_path, fast_builder, sample_records):
    """Index directory built from sample_records."""
    out = tmp_path / "mun_hash_por_uf"
    fast_builder.build_all(sample_records, out, generated_at=PINNED_TIMESTAMP)
    return out
