# core/ingest/csv_loader.py
"""
Reads the Receita Federal municipality table (';'-separated CSV).

Columns: TOM;IBGE;NomeTOM;NomeIBGE;UF. The first line is treated as a
header when it mentions IBGE or UF.
"""
import logging
from pathlib import Path
from typing import Iterable, List, Optional, Union

from core.indexing.records import MunicipalRecord

logger = logging.getLogger(__name__)

FIELD_SEPARATOR = ";"
MIN_FIELDS = 5


def sanitize(value: Optional[str]) -> str:
    """Drop double quotes and surrounding whitespace."""
    return (value or "").replace('"', "").strip()


def is_header_line(line: str) -> bool:
    upper = line.upper()
    return "IBGE" in upper or "UF" in upper


def parse_line(line: str) -> Optional[MunicipalRecord]:
    """Parse one data line, None when it is blank or has too few fields."""
    line = (line or "").strip()
    if not line:
        return None

    parts = line.split(FIELD_SEPARATOR)
    if len(parts) < MIN_FIELDS:
        return None

    tom, ibge, name_tom, name_ibge, uf = (sanitize(p) for p in parts[:MIN_FIELDS])
    return MunicipalRecord.from_fields(tom, ibge, name_tom, name_ibge, uf)


def parse_lines(lines: Iterable[str]) -> List[MunicipalRecord]:
    records = []
    skipped = 0
    for i, line in enumerate(lines):
        if i == 0 and is_header_line(line):
            continue
        record = parse_line(line)
        if record is None:
            if line.strip():
                skipped += 1
            continue
        records.append(record)

    if skipped:
        logger.warning(f"Skipped {skipped} malformed line(s)")
    return records


def load_records(csv_path: Union[str, Path]) -> List[MunicipalRecord]:
    """
    Load and sanitize every municipality in a CSV file.

    Raises:
        FileNotFoundError: csv_path does not exist
    """
    csv_path = Path(csv_path)
    logger.info(f"Reading and parsing CSV {csv_path}...")
    # utf-8-sig tolerates the BOM some exports carry
    with open(csv_path, "r", encoding="utf-8-sig") as f:
        records = parse_lines(f)
    logger.info(f"Records read: {len(records)}")
    return records
