# core/indexing/index_format.py
"""
Partition Index Format
======================

This module documents the binary format of the per-UF municipality index
files written by partition_builder.py and read by index_codec.py.

There is one file per UF in data/mun_hash_por_uf/:
    municipios_hash_<UF>.dat    (eg. municipios_hash_SP.dat)


String Encoding
---------------

Every string field, including the signature and the UF in the header, is
written as a length-prefixed UTF-8 byte sequence:

    [length: varint] [bytes: length]

The length is the UTF-8 byte count, stored as an unsigned varint in
7-bit chunks with a continuation bit (least significant group first).
For example, a 7-byte string has prefix 0x07; a 200-byte string has
prefix 0xC8 0x01. This is the same encoding .NET's BinaryWriter uses
for strings, so files stay readable by the .NET tooling that also reads them.


File Structure: municipios_hash_<UF>.dat
----------------------------------------

[Header: variable length]
    Type     Description
    string   Signature: "MUNHASH"
    int32    Format version (currently 1)
    string   UF (partition code, uppercase)
    int64    Generation timestamp (Unix epoch milliseconds, UTC)
    int32    Number of records that follow

[Records: record_count entries, all strings]
    string   TOM code
    string   IBGE code
    string   Name (TOM spelling)
    string   Name (IBGE spelling)
    string   UF
    string   Fingerprint (lowercase hex, empty if never fingerprinted)

Integer endianness: little.


Ordering
--------

Records are stored sorted by preferred name (TOM spelling, falling back to
the IBGE spelling), ignoring case and accents, with ties kept in input order.
Builds are therefore byte-identical for identical input and timestamp,
no matter in which order the parallel fingerprint workers finish.


Compatibility
-------------

Readers reject files whose signature is not "MUNHASH". The version is
read and exposed but only version 1 exists; readers do not branch on it.
A file shorter than its header's record count promises is reported as
truncated rather than silently returning fewer records.


Stats
-----

- UFs: 27 (the pseudo-UF "EX" for foreign entries is not indexed)
- Municipalities: ~5,570
- Typical file size: 10-100 KB per UF
- Fingerprint: PBKDF2-HMAC-SHA256, 50,000 iterations, 32 bytes (64 hex chars)
"""

SIGNATURE = "MUNHASH"
FORMAT_VERSION = 1
MAX_VARINT_BYTES = 5  # Enough for any 32-bit length
