# core/utilities/download_manager.py
"""Download manager for the Receita Federal municipality table."""
import logging
import shutil
import urllib.error
import urllib.request
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from config import PathConfig, DownloadConfig
from core.indexing.records import MunicipalRecord
from core.ingest.csv_loader import load_records
from core.ingest.dataset_diff import MunicipalityChange, compare_datasets, write_diff_report

logger = logging.getLogger(__name__)


class DownloadError(Exception):
    """Raised when a download fails irrecoverably."""
    pass


@dataclass
class DatasetRefresh:
    records: List[MunicipalRecord]
    changes: List[MunicipalityChange]
    report_path: Optional[Path] = None


def download_file(url: str, destination: Path, timeout: float = DownloadConfig.TIMEOUT_SECONDS) -> int:
    """
    Fetch url into destination and return the number of bytes written.
    There is no retry; a failed attempt leaves no partial file behind.
    """
    destination = Path(destination)
    destination.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = destination.with_name(destination.name + ".part")

    request = urllib.request.Request(url, headers={"User-Agent": DownloadConfig.USER_AGENT})
    try:
        with urllib.request.urlopen(request, timeout=timeout) as response, \
             open(tmp_path, "wb") as out:
            shutil.copyfileobj(response, out)
        tmp_path.replace(destination)
    except (urllib.error.URLError, OSError) as e:
        raise DownloadError(f"Failed to download {url}: {e}") from e
    finally:
        if tmp_path.exists():
            tmp_path.unlink()

    size = destination.stat().st_size
    logger.info(f"Downloaded {url} → {destination} ({size:,} bytes)")
    return size


def refresh_dataset(csv_path: Optional[Path] = None,
                    old_csv_path: Optional[Path] = None,
                    report_path: Optional[Path] = None,
                    url: str = DownloadConfig.CSV_URL) -> DatasetRefresh:
    """
    Download the municipality table, diffing against the previous download.

    When csv_path already exists it is moved to old_csv_path first; after
    the fresh download both are parsed and the differences are written to
    report_path (no report when nothing changed).
    """
    csv_path = Path(csv_path or PathConfig.get_csv_file())
    old_csv_path = Path(old_csv_path or PathConfig.get_old_csv_file())
    report_path = Path(report_path or PathConfig.get_diff_report_file())

    if not csv_path.exists():
        logger.info("Downloading municipality CSV (Receita Federal)...")
        download_file(url, csv_path)
        return DatasetRefresh(records=load_records(csv_path), changes=[])

    logger.info(f"{csv_path.name} already exists, downloading a fresh copy to compare...")
    old_csv_path.parent.mkdir(parents=True, exist_ok=True)
    shutil.move(str(csv_path), str(old_csv_path))
    try:
        download_file(url, csv_path)
    except DownloadError:
        # Put the previous copy back so the next build still has data
        shutil.move(str(old_csv_path), str(csv_path))
        raise

    old_records = load_records(old_csv_path)
    records = load_records(csv_path)
    changes = compare_datasets(old_records, records)
    written = write_diff_report(changes, report_path)
    return DatasetRefresh(records=records, changes=changes, report_path=written)
