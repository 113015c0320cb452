# ui/cli/result_table.py
"""Text-table rendering of search results."""
from typing import List
from core.indexing.records import MunicipalRecord
from core.search.query_engine import SearchOutcome

NAME_WIDTH = 38
HASH_PREVIEW = 8

def _fit(text: str, width: int) -> str:
    if len(text) > width:
        return text[:width - 3] + "..."
    return text

def format_row(record: MunicipalRecord) -> str:
    name = _fit(record.preferred_name or "N/A", NAME_WIDTH)
    fingerprint = record.fingerprint or "N/A"
    preview = fingerprint[:HASH_PREVIEW]
    return (f"│ {record.partition_code:<2} │ {record.ibge_code:<8} │ {record.tom_code:<7} │ "
            f"{name:<{NAME_WIDTH}} │ {preview:<8}...       │")

def render_table(records: List[MunicipalRecord]) -> List[str]:
    line = "─" * 93
    lines = [
        "┌" + line + "┐",
        f"│ UF │   IBGE   │   TOM   │ {'MUNICIPALITY NAME':^{NAME_WIDTH}} │    HASH (8 chars)    │",
        "├" + line + "┤",
    ]
    lines.extend(format_row(r) for r in records)
    lines.append("└" + line + "┘")
    return lines

def render_outcome(outcome: SearchOutcome) -> List[str]:
    """Lines describing a search outcome, table included."""
    lines = []
    for failure in outcome.failures:
        lines.append(f"  ⚠️  Skipped UF {failure.partition_code}: {failure.reason}")

    if outcome.is_empty:
        lines.append(f"  No municipalities found for '{outcome.query}' ({outcome.strategy.value} search).")
        return lines

    lines.append(f"  Found {outcome.total_matches} municipality(ies) "
                 f"for '{outcome.query}' ({outcome.strategy.value} search):\n")
    lines.extend(render_table(outcome.records))
    if outcome.truncated:
        lines.append(f"  ... and {outcome.omitted} more not shown. "
                     "Type a more specific term to refine the search.")
    return lines
