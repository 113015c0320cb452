# core/indexing/fingerprint.py
"""
Record Fingerprints
===================
Slow, salted PBKDF2-HMAC-SHA256 digest of a municipality record.

The password is the record's five source fields joined with ';'
(TOM;IBGE;NomeTOM;NomeIBGE;UF). The CSV those fields come from is itself
';'-separated, so no field can contain the separator. The salt is the IBGE
code plus a fixed pepper. Both formats are frozen: changing either one
changes every fingerprint ever written.
"""
import hashlib

from config import PBKDF2_ITERATIONS, HASH_BYTES
from core.indexing.records import MunicipalRecord

PASSWORD_SEPARATOR = ";"
PEPPER = "PBKDF2_DEMOSYNC_V1"


def build_password(record: MunicipalRecord) -> str:
    return PASSWORD_SEPARATOR.join(record.identity_fields())


def build_salt(ibge_code: str) -> bytes:
    """Deterministic salt: IBGE code plus the hard-coded pepper."""
    return f"{ibge_code}|{PEPPER}".encode("utf-8")


def derive_fingerprint(record: MunicipalRecord,
                       iterations: int = PBKDF2_ITERATIONS,
                       hash_bytes: int = HASH_BYTES) -> str:
    """
    Derive the lowercase hex fingerprint of a record.

    Pure and thread-safe; hashlib releases the GIL while iterating, so
    several calls can run in parallel on a thread pool.

    Args:
        record: Record to fingerprint (its own fingerprint field is ignored)
        iterations: PBKDF2 iteration count
        hash_bytes: Length of the derived key in bytes

    Returns:
        Hex string of length 2 * hash_bytes
    """
    if iterations < 1:
        raise ValueError(f"iterations must be positive, got {iterations}")
    if hash_bytes < 1:
        raise ValueError(f"hash_bytes must be positive, got {hash_bytes}")

    derived = hashlib.pbkdf2_hmac(
        "sha256",
        build_password(record).encode("utf-8"),
        build_salt(record.ibge_code),
        iterations,
        dklen=hash_bytes,
    )
    return derived.hex()
