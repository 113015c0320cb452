# core/indexing/records.py
"""
Municipality record model shared by the ingestion, indexing and search layers.
"""
from dataclasses import dataclass, replace
from typing import Optional, Tuple

import unidecode


@dataclass(frozen=True)
class MunicipalRecord:
    """One municipality as published in the Receita Federal table.

    ``fingerprint`` is only populated on records that went through the
    index builder (or were decoded from an index file).
    """
    tom_code: str
    ibge_code: str
    name_tom: str
    name_ibge: str
    partition_code: str
    fingerprint: Optional[str] = None

    @property
    def preferred_name(self) -> str:
        """TOM spelling when present, IBGE spelling otherwise."""
        return self.name_tom or self.name_ibge or ""

    @property
    def sort_key(self) -> Tuple[str, str]:
        """Alphabetical order ignoring case and accents ('ÁGUA' sorts with 'agua')."""
        name = self.preferred_name
        return unidecode.unidecode(name).casefold(), name.casefold()

    def identity_fields(self) -> Tuple[str, str, str, str, str]:
        """Source fields in the fixed order used to build the fingerprint password."""
        return (
            self.tom_code,
            self.ibge_code,
            self.name_tom,
            self.name_ibge,
            self.partition_code,
        )

    def with_fingerprint(self, fingerprint: str) -> "MunicipalRecord":
        return replace(self, fingerprint=fingerprint)

    @classmethod
    def from_fields(cls, tom_code: str, ibge_code: str, name_tom: str,
                    name_ibge: str, partition_code: str) -> "MunicipalRecord":
        """Build a raw record, normalizing the UF to uppercase."""
        return cls(
            tom_code=tom_code or "",
            ibge_code=ibge_code or "",
            name_tom=name_tom or "",
            name_ibge=name_ibge or "",
            partition_code=(partition_code or "").upper(),
        )
