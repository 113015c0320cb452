# ui/cli/build_screen.py
import time
from pathlib import Path
from typing import Optional
from config import PathConfig
from core.indexing.partition_builder import PartitionIndexBuilder, BuildSummary
from core.ingest.csv_loader import load_records
from core.utilities.download_manager import refresh_dataset
from ui.cli.console_utils import print_header, format_elapsed_time, format_size

def screen_build(builder: PartitionIndexBuilder, output_dir: Path,
                 csv_path: Optional[Path] = None, download: bool = False) -> BuildSummary:
    """Load (optionally download) the CSV and build every UF index file."""
    print_header("🔨 Building UF Index Files")
    csv_path = Path(csv_path or PathConfig.get_csv_file())
    start = time.perf_counter()

    if download:
        print("  Downloading municipality CSV (Receita Federal)...")
        refresh = refresh_dataset(csv_path=csv_path)
        records = refresh.records
        if refresh.report_path:
            print(f"  {len(refresh.changes)} difference(s) saved to: {refresh.report_path}")
    else:
        records = load_records(csv_path)

    print(f"  Records read: {len(records):,}")
    print(f"  Computing fingerprints and writing files to {output_dir} ...\n")

    summary = builder.build_all(records, output_dir)
    for result in summary.results:
        print(f"  ✓ UF {result.partition_code}: {result.record_count} municipalities, "
              f"{format_size(result.size_bytes)}, {format_elapsed_time(result.elapsed_seconds)}")

    print_header("SUMMARY")
    print(f"  UFs generated: {len(summary.results)}")
    if summary.skipped:
        print(f"  UFs skipped: {', '.join(summary.skipped)}")
    print(f"  Output folder: {output_dir}")
    print(f"  Total time: {format_elapsed_time(time.perf_counter() - start)}")
    return summary
