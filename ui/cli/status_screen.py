# ui/cli/status_screen.py
from pathlib import Path
from core.indexing.index_codec import IndexFormatError, read_header
from core.search.partition_cache import PartitionCache
from ui.cli.console_utils import print_header, format_size

def screen_status(cache: PartitionCache) -> int:
    """List the UF index files on disk with their headers. Returns the file count."""
    print_header("📁 UF Index Files")
    codes = cache.available_codes()
    if not codes:
        print(f"  No index files found in {cache.index_dir}")
        print("  Run 'munhash build' first.")
        return 0

    for code in codes:
        path: Path = cache.path_for(code)
        try:
            header = read_header(path)
        except (IndexFormatError, OSError) as e:
            print(f"  ❗ {path.name}: unreadable ({e})")
            continue
        print(f"  {code}: {header.record_count:>4} municipalities | "
              f"v{header.version} | generated {header.generated_label} | "
              f"{format_size(path.stat().st_size)}")
    return len(codes)
