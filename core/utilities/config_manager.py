# core/utilities/config_manager.py
import json
import logging
from pathlib import Path
from config import PathConfig, PBKDF2_ITERATIONS, HASH_BYTES, DISPLAY_LIMIT

logger = logging.getLogger(__name__)

class ConfigManager:
    DEFAULT_SETTINGS = {
        'iterations': PBKDF2_ITERATIONS,
        'hash_bytes': HASH_BYTES,
        'max_workers': None,     # None = one worker per available CPU
        'display_limit': DISPLAY_LIMIT,
        'fold_accents': False,   # Accent-insensitive name search
        'index_dir': None        # None = PathConfig.get_index_dir()
    }

    def __init__(self, config_path=None):
        self.config_path = Path(config_path) if config_path else PathConfig.get_config_path()
        self.load()

    def load(self):
        try:
            if self.config_path.exists():
                with open(self.config_path, 'r') as f:
                    self.settings = json.load(f)

                # Ensure new settings exist
                for key, default in self.DEFAULT_SETTINGS.items():
                    if key not in self.settings:
                        self.settings[key] = default
            else:
                self.settings = self.DEFAULT_SETTINGS.copy()
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Could not read {self.config_path}, using defaults: {e}")
            self.settings = self.DEFAULT_SETTINGS.copy()

    def save(self):
        self.config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.config_path, 'w') as f:
            json.dump(self.settings, f, indent=2)

    def get(self, key, default=None):
        return self.settings.get(key, default)

    def set(self, key, value):
        self.settings[key] = value
        self.save()

    def get_iterations(self) -> int:
        return self.get('iterations', PBKDF2_ITERATIONS)

    def set_iterations(self, value: int):
        """Set PBKDF2 iteration count (>= 1000). Changes every fingerprint."""
        value = int(value)
        if value < 1000:
            raise ValueError("Iterations must be at least 1000")
        self.set('iterations', value)

    def get_hash_bytes(self) -> int:
        return self.get('hash_bytes', HASH_BYTES)

    def set_hash_bytes(self, value: int):
        value = int(value)
        if not 16 <= value <= 64:
            raise ValueError("Hash length must be between 16 and 64 bytes")
        self.set('hash_bytes', value)

    def get_max_workers(self):
        return self.get('max_workers', None)

    def set_max_workers(self, value):
        if value is not None:
            value = int(value)
            if value < 1:
                raise ValueError("Worker count must be positive")
        self.set('max_workers', value)

    def get_display_limit(self) -> int:
        return self.get('display_limit', DISPLAY_LIMIT)

    def set_display_limit(self, value: int):
        """Set max rows shown for UF/name searches (1-1000)."""
        value = max(1, min(1000, int(value)))
        self.set('display_limit', value)

    def get_fold_accents(self) -> bool:
        return self.get('fold_accents', False)

    def set_fold_accents(self, value):
        self.set('fold_accents', bool(value))

    def get_index_dir(self) -> Path:
        custom = self.get('index_dir')
        return Path(custom) if custom else PathConfig.get_index_dir()

    def set_index_dir(self, value):
        self.set('index_dir', str(value) if value else None)

# Shared instance
config_manager = ConfigManager()
