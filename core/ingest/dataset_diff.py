# core/ingest/dataset_diff.py
"""
Compare two downloads of the municipality table and report what changed.

Records are matched by IBGE code. The report is a ';'-separated CSV:
    TipoMudanca;IBGE;TOM;NomeTOM;NomeIBGE;UF;IBGE_Antigo;NomeTOM_Antigo;NomeIBGE_Antigo
"""
import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Union

from core.indexing.records import MunicipalRecord

logger = logging.getLogger(__name__)

REPORT_HEADER = ("TipoMudanca;IBGE;TOM;NomeTOM;NomeIBGE;UF;"
                 "IBGE_Antigo;NomeTOM_Antigo;NomeIBGE_Antigo")


class ChangeType(Enum):
    CHANGED = "ALTERADO"
    ADDED = "ADICIONADO"
    REMOVED = "REMOVIDO"


@dataclass(frozen=True)
class MunicipalityChange:
    change_type: ChangeType
    record: MunicipalRecord
    previous: Optional[MunicipalRecord] = None

    def to_csv_line(self) -> str:
        m = self.record
        fields = [self.change_type.value, m.ibge_code, m.tom_code,
                  m.name_tom, m.name_ibge, m.partition_code]
        if self.change_type is ChangeType.CHANGED and self.previous is not None:
            fields += [self.previous.ibge_code, self.previous.name_tom, self.previous.name_ibge]
        else:
            fields += ["", "", ""]
        return ";".join(fields)


def _by_ibge(records: Iterable[MunicipalRecord]) -> Dict[str, MunicipalRecord]:
    index = {}
    for record in records:
        if record.ibge_code in index:
            logger.warning(f"Duplicate IBGE code {record.ibge_code}; keeping the last occurrence")
        index[record.ibge_code] = record
    return index


def _same_source(a: MunicipalRecord, b: MunicipalRecord) -> bool:
    return a.identity_fields() == b.identity_fields()


def compare_datasets(old_records: Iterable[MunicipalRecord],
                     new_records: Iterable[MunicipalRecord]) -> List[MunicipalityChange]:
    """
    Changed and added entries come first, in new-dataset order,
    followed by removed entries in old-dataset order.
    """
    old_index = _by_ibge(old_records)
    new_index = _by_ibge(new_records)

    changes = []
    for ibge, record in new_index.items():
        previous = old_index.get(ibge)
        if previous is None:
            changes.append(MunicipalityChange(ChangeType.ADDED, record))
        elif not _same_source(previous, record):
            changes.append(MunicipalityChange(ChangeType.CHANGED, record, previous))

    for ibge, record in old_index.items():
        if ibge not in new_index:
            changes.append(MunicipalityChange(ChangeType.REMOVED, record))

    return changes


def write_diff_report(changes: List[MunicipalityChange],
                      report_path: Union[str, Path]) -> Optional[Path]:
    """Write the report; nothing is written when there are no changes."""
    if not changes:
        logger.info("No differences found")
        return None

    report_path = Path(report_path)
    report_path.parent.mkdir(parents=True, exist_ok=True)
    with open(report_path, "w", encoding="utf-8", newline="\n") as f:
        f.write(REPORT_HEADER + "\n")
        for change in changes:
            f.write(change.to_csv_line() + "\n")

    logger.info(f"{len(changes)} difference(s) saved to: {report_path}")
    return report_path
