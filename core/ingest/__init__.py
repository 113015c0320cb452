# core/ingest/__init__.py
"""
Ingestion Package
"""
from .csv_loader import load_records, parse_lines
from .dataset_diff import ChangeType, MunicipalityChange, compare_datasets, write_diff_report

__all__ = [
    'load_records',
    'parse_lines',
    'ChangeType',
    'MunicipalityChange',
    'compare_datasets',
    'write_diff_report'
]
