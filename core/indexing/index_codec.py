# core/indexing/index_codec.py
"""
Partition Index Codec
=====================
Encode/decode one UF's municipality records to/from the versioned binary
layout documented in index_format.py.
"""
import os
import struct
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, List, Optional, Tuple, Union

from config import INDEX_FILE_PREFIX, INDEX_FILE_SUFFIX
from core.indexing.index_format import SIGNATURE, FORMAT_VERSION, MAX_VARINT_BYTES
from core.indexing.records import MunicipalRecord


class IndexFormatError(ValueError):
    """Raised when an index file is not a valid municipality index."""
    pass


class TruncatedIndexError(IndexFormatError, EOFError):
    """Raised when an index stream ends before the promised data."""
    pass


@dataclass(frozen=True)
class PartitionIndexHeader:
    partition_code: str
    generated_at: int  # Unix epoch milliseconds, UTC
    record_count: int
    version: int = FORMAT_VERSION
    signature: str = SIGNATURE

    @property
    def generated_datetime(self) -> Optional[datetime]:
        """UTC generation time, None when the stored value is not a representable date."""
        try:
            return datetime.fromtimestamp(self.generated_at / 1000, tz=timezone.utc)
        except (ValueError, OverflowError, OSError):
            return None

    @property
    def generated_label(self) -> str:
        generated = self.generated_datetime
        if generated is None:
            return f"unknown (raw timestamp {self.generated_at})"
        return f"{generated:%d/%m/%Y %H:%M:%S}"


def current_timestamp() -> int:
    """Epoch milliseconds for the header's generation timestamp."""
    return int(datetime.now(timezone.utc).timestamp() * 1000)


def partition_file_name(partition_code: str) -> str:
    return f"{INDEX_FILE_PREFIX}{partition_code.upper()}{INDEX_FILE_SUFFIX}"


def partition_code_from_path(path: Union[str, Path]) -> str:
    """Extract the UF from a municipios_hash_<UF>.dat file name."""
    name = Path(path).name
    if not (name.startswith(INDEX_FILE_PREFIX) and name.endswith(INDEX_FILE_SUFFIX)):
        raise ValueError(f"Not a partition index file name: {name}")
    return name[len(INDEX_FILE_PREFIX):-len(INDEX_FILE_SUFFIX)].upper()


# =================== Low-level writers ===================

def write_varint(buf: bytearray, value: int):
    """Append unsigned integer as varint"""
    if value < 0:
        raise ValueError(f"varint must be non-negative, got {value}")
    while value >= 0x80:
        buf.append(value & 0x7F | 0x80)
        value >>= 7
    buf.append(value)


def write_string(buf: bytearray, value: str):
    """Append a varint length prefix and the UTF-8 bytes of value"""
    data = (value or "").encode("utf-8")
    write_varint(buf, len(data))
    buf.extend(data)


# =================== Low-level reader ===================

class _Reader:
    """Cursor over an in-memory index buffer."""

    def __init__(self, data: bytes):
        self._view = memoryview(data)
        self.pos = 0

    def _take(self, size: int, what: str) -> memoryview:
        end = self.pos + size
        if end > len(self._view):
            raise TruncatedIndexError(
                f"Unexpected end of stream reading {what} at offset {self.pos} "
                f"(needed {size} bytes, {len(self._view) - self.pos} left)"
            )
        chunk = self._view[self.pos:end]
        self.pos = end
        return chunk

    def read_varint(self, what: str) -> int:
        result = 0
        shift = 0
        for _ in range(MAX_VARINT_BYTES):
            byte = self._take(1, what)[0]
            result |= (byte & 0x7F) << shift
            if not (byte & 0x80):
                return result
            shift += 7
        raise IndexFormatError(f"Malformed length prefix for {what} at offset {self.pos}")

    def read_string(self, what: str) -> str:
        length = self.read_varint(what)
        raw = self._take(length, what)
        try:
            return bytes(raw).decode("utf-8")
        except UnicodeDecodeError as e:
            raise IndexFormatError(f"Invalid UTF-8 in {what}: {e}") from e

    def read_struct(self, fmt: str, what: str):
        size = struct.calcsize(fmt)
        return struct.unpack(fmt, self._take(size, what))[0]


# =================== Encode / decode ===================

def encode_header(buf: bytearray, header: PartitionIndexHeader):
    write_string(buf, header.signature)
    buf.extend(struct.pack("<i", header.version))
    write_string(buf, header.partition_code)
    buf.extend(struct.pack("<q", header.generated_at))
    buf.extend(struct.pack("<i", header.record_count))


def encode(header: PartitionIndexHeader, records: Iterable[MunicipalRecord]) -> bytes:
    """
    Serialize a header and its records.

    The header's record_count must match the number of records given;
    a mismatch would produce a file that decodes as truncated or with
    trailing garbage, so it is rejected here.
    """
    records = list(records)
    if header.record_count != len(records):
        raise ValueError(
            f"Header declares {header.record_count} records, got {len(records)}"
        )

    buf = bytearray()
    encode_header(buf, header)
    for record in records:
        write_string(buf, record.tom_code)
        write_string(buf, record.ibge_code)
        write_string(buf, record.name_tom)
        write_string(buf, record.name_ibge)
        write_string(buf, record.partition_code)
        write_string(buf, record.fingerprint or "")
    return bytes(buf)


def _decode_header(reader: _Reader) -> PartitionIndexHeader:
    signature = reader.read_string("signature")
    if signature != SIGNATURE:
        raise IndexFormatError(
            f"Not a municipality index file (signature {signature!r}, expected {SIGNATURE!r})"
        )
    version = reader.read_struct("<i", "version")
    partition_code = reader.read_string("partition code")
    generated_at = reader.read_struct("<q", "generation timestamp")
    record_count = reader.read_struct("<i", "record count")
    if record_count < 0:
        raise IndexFormatError(f"Negative record count: {record_count}")

    return PartitionIndexHeader(
        partition_code=partition_code,
        generated_at=generated_at,
        record_count=record_count,
        version=version,
        signature=signature,
    )


def decode_header(data: bytes) -> PartitionIndexHeader:
    return _decode_header(_Reader(data))


def decode(data: bytes) -> Tuple[PartitionIndexHeader, List[MunicipalRecord]]:
    """
    Deserialize an index buffer.

    Returns:
        (header, records) with records in stored order

    Raises:
        IndexFormatError: bad signature or invalid contents
        TruncatedIndexError: buffer ends before record_count records
    """
    reader = _Reader(data)
    header = _decode_header(reader)

    records = []
    for i in range(header.record_count):
        what = f"record {i}"
        records.append(MunicipalRecord(
            tom_code=reader.read_string(what),
            ibge_code=reader.read_string(what),
            name_tom=reader.read_string(what),
            name_ibge=reader.read_string(what),
            partition_code=reader.read_string(what),
            fingerprint=reader.read_string(what) or None,
        ))
    return header, records


# =================== File helpers ===================

def write_partition_file(path: Union[str, Path], header: PartitionIndexHeader,
                         records: Iterable[MunicipalRecord]) -> int:
    """
    Write an index file atomically and return its size in bytes.

    Data goes to a temp file next to the target first and is moved into
    place only once fully written, so readers never see a partial file.
    """
    path = Path(path)
    data = encode(header, records)
    path.parent.mkdir(parents=True, exist_ok=True)

    tmp_path = path.with_name(path.name + ".tmp")
    try:
        with open(tmp_path, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, path)
    finally:
        if tmp_path.exists():
            tmp_path.unlink()
    return len(data)


def read_partition_file(path: Union[str, Path]) -> Tuple[PartitionIndexHeader, List[MunicipalRecord]]:
    with open(path, "rb") as f:
        data = f.read()
    return decode(data)


def read_header(path: Union[str, Path]) -> PartitionIndexHeader:
    """Read only the header of an index file."""
    with open(path, "rb") as f:
        data = f.read()
    return decode_header(data)
