"""
layout.py — fixed-size record layouts used by the APK container.

Every on-disk structure is described once as an ordered list of
(offset, struct code, name) fields instead of offset literals spread
through the reader and writer. All integers are little-endian.

Container header (16 bytes):
    0x00  8B  lead       magic + version, kept as opaque bytes
    0x08  4B  count      number of index records (int32)
    0x0C  4B  reserved

Index record (0x120 bytes each, directly after the header):
   0x000 256B  name         null-padded ASCII
   0x100   4B  stored_size  bytes of the entry's block in the archive
   0x104  20B  reserved_04 .. reserved_14
   0x118   4B  offset       absolute offset of the block
   0x11C   4B  reserved_1c

Block header (48 bytes, at the start of every stored block):
    0x00  4B  magic              "ZZZ0"
    0x04  4B  flags
    0x0C  4B  decompressed_size
    0x10  4B  total_size         header + padded payload
    0x20  4B  compressed_size    payload before padding
    0x24  4B  header_size        always 0x30
"""

from __future__ import annotations

import struct
from typing import NamedTuple

from apkpack.errors import TruncatedHeaderError

APK_MAGIC = 0x4B434150  # "PACK" little-endian
APK_VERSION = 0x10000
BLOCK_MAGIC = 0x305A5A5A  # "ZZZ0" little-endian
BLOCK_FLAGS = 0x010001
NAME_SIZE = 0x100
ALIGNMENT = 0x10


class Field(NamedTuple):
    offset: int
    fmt: str
    name: str


class RecordLayout:
    """Pack and unpack one fixed-size record from a list of fields."""

    def __init__(self, name: str, size: int, fields: list[Field]) -> None:
        self.name = name
        self.size = size
        self.fields = sorted(fields, key=lambda f: f.offset)
        self._structs = {f.name: struct.Struct("<" + f.fmt) for f in self.fields}
        end = 0
        for f in self.fields:
            width = self._structs[f.name].size
            if f.offset < end:
                raise ValueError(f"{name}: field {f.name} overlaps the previous field")
            end = f.offset + width
            if end > size:
                raise ValueError(f"{name}: field {f.name} runs past the record end")

    @property
    def field_names(self) -> list[str]:
        return [f.name for f in self.fields]

    def unpack(self, buf: bytes, base: int = 0) -> dict:
        if len(buf) - base < self.size:
            raise TruncatedHeaderError(
                f"{self.name}: need 0x{self.size:X} bytes at 0x{base:X}, "
                f"only {max(len(buf) - base, 0)} available"
            )
        return {
            f.name: self._structs[f.name].unpack_from(buf, base + f.offset)[0]
            for f in self.fields
        }

    def pack(self, values: dict) -> bytes:
        """Serialize values into a zero-filled record. Missing fields stay zero."""
        out = bytearray(self.size)
        for f in self.fields:
            if f.name in values:
                try:
                    self._structs[f.name].pack_into(out, f.offset, values[f.name])
                except struct.error as e:
                    raise ValueError(f"{self.name}.{f.name}: {e}") from e
        return bytes(out)


CONTAINER_HEADER = RecordLayout(
    "container header",
    0x10,
    [
        Field(0x00, "8s", "lead"),
        Field(0x08, "i", "count"),
        Field(0x0C, "i", "reserved"),
    ],
)

# Opaque index fields in on-disk order.
INDEX_RESERVED = (
    "reserved_04",
    "reserved_08",
    "reserved_0c",
    "reserved_10",
    "reserved_14",
    "reserved_1c",
)

INDEX_RECORD = RecordLayout(
    "index record",
    0x120,
    [
        Field(0x000, f"{NAME_SIZE}s", "name"),
        Field(0x100, "i", "stored_size"),
        Field(0x104, "i", "reserved_04"),
        Field(0x108, "i", "reserved_08"),
        Field(0x10C, "i", "reserved_0c"),
        Field(0x110, "i", "reserved_10"),
        Field(0x114, "i", "reserved_14"),
        Field(0x118, "i", "offset"),
        Field(0x11C, "i", "reserved_1c"),
    ],
)

BLOCK_HEADER = RecordLayout(
    "block header",
    0x30,
    [
        Field(0x00, "I", "magic"),
        Field(0x04, "I", "flags"),
        Field(0x0C, "i", "decompressed_size"),
        Field(0x10, "i", "total_size"),
        Field(0x20, "i", "compressed_size"),
        Field(0x24, "i", "header_size"),
    ],
)

HEADER_SIZE = CONTAINER_HEADER.size
INDEX_RECORD_SIZE = INDEX_RECORD.size
BLOCK_HEADER_SIZE = BLOCK_HEADER.size


def padding_for(length: int, alignment: int = ALIGNMENT) -> int:
    return (alignment - (length % alignment)) % alignment
