# main.py
import argparse
import logging
import sys
from pathlib import Path
from typing import Optional
from config import VERSION
from core.indexing.index_codec import IndexFormatError
from core.indexing.partition_builder import PartitionIndexBuilder, DerivationAbort
from core.search.partition_cache import PartitionCache
from core.search.query_engine import QueryEngine
from core.utilities.config_manager import ConfigManager, config_manager
from core.utilities.download_manager import DownloadError

def _on_off(value: str) -> bool:
    value = value.lower()
    if value not in ('on', 'off'):
        raise argparse.ArgumentTypeError("expected 'on' or 'off'")
    return value == 'on'

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="munhash",
        description="Per-UF municipality fingerprint index and search"
    )
    parser.add_argument('--version', action='version', version=f"munhash {VERSION}")
    parser.add_argument('-v', '--verbose', action='store_true', help='Enable debug logging')
    parser.add_argument('--index-dir', type=Path, help='Directory of municipios_hash_<UF>.dat files')
    sub = parser.add_subparsers(dest='command')

    build = sub.add_parser('build', help='Build the UF index files from the CSV')
    build.add_argument('--csv', type=Path, help='Municipality CSV (default: data/municipios.csv)')
    build.add_argument('--out', type=Path, help='Output directory (default: --index-dir)')
    build.add_argument('--download', action='store_true',
                       help='Download a fresh CSV first and report differences')
    build.add_argument('--iterations', type=int, help='PBKDF2 iteration count')
    build.add_argument('--workers', type=int, help='Parallel fingerprint workers')
    build.add_argument('--no-progress', action='store_true', help='Hide progress bars')
    build.add_argument('--search', action='store_true', help='Start the search prompt afterwards')

    search = sub.add_parser('search', help='Search municipalities (interactive by default)')
    search.add_argument('-q', '--query', help='Run a single query and exit')
    search.add_argument('--fold-accents', action='store_true',
                        help='Ignore accents in name searches')

    sub.add_parser('status', help='List UF index files and their headers')

    settings = sub.add_parser('config', help='Show or change saved settings')
    settings.add_argument('--iterations', type=int, help='PBKDF2 iteration count (>= 1000)')
    settings.add_argument('--hash-bytes', type=int, help='Fingerprint length in bytes (16-64)')
    settings.add_argument('--workers', type=int, help='Build workers (0 = one per CPU)')
    settings.add_argument('--display-limit', type=int, help='Rows shown for UF/name searches')
    settings.add_argument('--fold-accents', type=_on_off, metavar='on|off',
                          help='Accent-insensitive name search')
    settings.add_argument('--set-index-dir', metavar='PATH',
                          help="Default index directory ('' restores the built-in one)")
    return parser

def settings_changes(args) -> dict:
    """Settings given on the 'config' command line, keyed like ConfigManager settings."""
    changes = {}
    if args.iterations is not None:
        changes['iterations'] = args.iterations
    if args.hash_bytes is not None:
        changes['hash_bytes'] = args.hash_bytes
    if args.workers is not None:
        changes['max_workers'] = args.workers or None
    if args.display_limit is not None:
        changes['display_limit'] = args.display_limit
    if args.fold_accents is not None:
        changes['fold_accents'] = args.fold_accents
    if args.set_index_dir is not None:
        changes['index_dir'] = args.set_index_dir or None
    return changes

def make_engine(index_dir: Path, settings: ConfigManager, fold_accents: bool = False) -> QueryEngine:
    cache = PartitionCache(index_dir)
    return QueryEngine(
        cache,
        display_limit=settings.get_display_limit(),
        fold_accents=fold_accents or settings.get_fold_accents()
    )

def main(argv=None, settings: Optional[ConfigManager] = None) -> int:
    """Main entry point for munhash."""
    args = build_parser().parse_args(argv)
    settings = settings or config_manager
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )
    index_dir = args.index_dir or settings.get_index_dir()
    command = args.command or 'search'

    try:
        if command == 'config':
            from ui.cli.settings_screen import screen_settings
            screen_settings(settings, settings_changes(args))
            return 0

        if command == 'build':
            from ui.cli.build_screen import screen_build
            builder = PartitionIndexBuilder(
                iterations=args.iterations or settings.get_iterations(),
                hash_bytes=settings.get_hash_bytes(),
                max_workers=args.workers or settings.get_max_workers(),
                show_progress=not args.no_progress
            )
            index_dir = args.out or index_dir
            screen_build(builder, index_dir, csv_path=args.csv, download=args.download)
            if not args.search:
                return 0
            command = 'search'

        if command == 'status':
            from ui.cli.status_screen import screen_status
            screen_status(PartitionCache(index_dir))
            return 0

        engine = make_engine(index_dir, settings, fold_accents=getattr(args, 'fold_accents', False))
        query = getattr(args, 'query', None)
        if query:
            from ui.cli.search_loop import run_query
            run_query(engine, query)
        else:
            from ui.cli.search_loop import search_loop
            search_loop(engine)
        return 0

    except FileNotFoundError as e:
        print(f"\n  ❗ File not found: {e.filename or e}")
    except (DownloadError, DerivationAbort, IndexFormatError, ValueError) as e:
        print(f"\n  ❗ {e}")
    return 1

if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print("\n\nGoodbye!")
        sys.exit(0)
