"""
apkpack — unpack and repack APK texture archives.

Format: 16-byte header (lead, entry count, reserved), then one 0x120-byte
index record per entry (256-byte name, stored size, offset, reserved
fields), then one LZ4-compressed block per entry, each behind a 48-byte
block header and padded to 16 bytes.
"""

from apkpack.block import CompressedBlock, decode_block, encode_block
from apkpack.errors import (
    ApkError,
    DecompressionError,
    MissingManifestEntryError,
    NameTooLongError,
    TruncatedBlockError,
    TruncatedHeaderError,
)
from apkpack.reader import ApkReader, ArchiveEntry, extract_apk, list_apk
from apkpack.writer import pack_apk, write_apk

__all__ = [
    "ApkError",
    "ApkReader",
    "ArchiveEntry",
    "CompressedBlock",
    "DecompressionError",
    "MissingManifestEntryError",
    "NameTooLongError",
    "TruncatedBlockError",
    "TruncatedHeaderError",
    "decode_block",
    "encode_block",
    "extract_apk",
    "list_apk",
    "pack_apk",
    "write_apk",
]
