# config.py
import os
import tomllib
from pathlib import Path

def _get_version():
    """Read munhash's version from pyproject.toml"""
    try:
        pyproject_path = Path(__file__).parent / "pyproject.toml"
        with open(pyproject_path, "rb") as f:
            data = tomllib.load(f)
        return data["project"]["version"]
    except (OSError, tomllib.TOMLDecodeError, KeyError):
        return "unknown"  # Fallback if pyproject.toml is missing

VERSION = _get_version()
PBKDF2_ITERATIONS = 50_000      # Deliberately slow; the build's only hot path
HASH_BYTES = 32                 # 32 = 256 bits
DISPLAY_LIMIT = 20              # Max rows shown for UF/name searches
MIN_CODE_QUERY_LENGTH = 4       # Shorter numeric queries fall back to name search
EXCLUDED_PARTITIONS = ("EX",)   # "EX" groups foreign entries, not a real UF
FRAME_WIDTH = 70                # For CLI UI headings

# Constants pertaining to the file naming of data/mun_hash_por_uf/*.dat
INDEX_FILE_PREFIX = "municipios_hash_"
INDEX_FILE_SUFFIX = ".dat"

class PathConfig:
    BASE_DIR = Path(os.environ.get("MUNHASH_HOME", Path(__file__).parent))
    DATA = BASE_DIR / "data"
    INDEX_DIR_NAME = "mun_hash_por_uf"

    @classmethod
    def get_index_dir(cls):
        """Directory holding one binary index file per UF"""
        return cls.DATA / cls.INDEX_DIR_NAME

    @classmethod
    def get_csv_file(cls):
        return cls.DATA / "municipios.csv"

    @classmethod
    def get_old_csv_file(cls):
        """Previous download, kept to diff against the fresh one"""
        return cls.DATA / "municipios_old.csv"

    @classmethod
    def get_diff_report_file(cls):
        return cls.DATA / "municipios_alt.csv"

    @classmethod
    def get_config_path(cls):
        return cls.BASE_DIR / "config.json"

class DownloadConfig:
    """Where the municipality table is published."""

    CSV_URL = "https://www.gov.br/receitafederal/dados/municipios.csv"
    USER_AGENT = "munhash/" + VERSION
    TIMEOUT_SECONDS = 60
