from typing import Any, Dict
from core.utilities.config_manager import ConfigManager
from ui.cli.console_utils import print_header

SETTERS = {
    'iterations': 'set_iterations',
    'hash_bytes': 'set_hash_bytes',
    'max_workers': 'set_max_workers',
    'display_limit': 'set_display_limit',
    'fold_accents': 'set_fold_accents',
    'index_dir': 'set_index_dir',
}

def apply_settings(manager: ConfigManager, changes: Dict[str, Any]):
    """Persist each change through its validating setter. Raises ValueError on a bad value."""
    for key, value in changes.items():
        getattr(manager, SETTERS[key])(value)

def screen_settings(manager: ConfigManager, changes: Dict[str, Any]):
    print_header("⚙️  Settings", subtitle=str(manager.config_path))
    if changes:
        apply_settings(manager, changes)
        print(f"  Saved: {', '.join(sorted(changes))}\n")

    workers = manager.get_max_workers()
    print(f"  PBKDF2 iterations: {manager.get_iterations():,}")
    print(f"  Hash length:       {manager.get_hash_bytes()} bytes")
    print(f"  Build workers:     {workers if workers else 'auto (one per CPU)'}")
    print(f"  Display limit:     {manager.get_display_limit()} rows")
    print(f"  Accent folding:    {'on' if manager.get_fold_accents() else 'off'}")
    print(f"  Index directory:   {manager.get_index_dir()}")
    if changes.keys() & {'iterations', 'hash_bytes'}:
        print("\n  ⚠️  Fingerprints changed: rebuild the index with 'munhash build'.")
