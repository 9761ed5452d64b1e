"""
block.py — per-entry compressed block framing.

Every stored entry is a 48-byte header (see layout.BLOCK_HEADER) followed
by a raw LZ4 block, zero-padded to the next 16-byte boundary. The LZ4
stream carries no size prefix; the header's decompressed_size is the
only record of the output length.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import NamedTuple

import lz4.block as _lz4

from apkpack.errors import DecompressionError, TruncatedBlockError
from apkpack.layout import (
    BLOCK_FLAGS,
    BLOCK_HEADER,
    BLOCK_HEADER_SIZE,
    BLOCK_MAGIC,
    padding_for,
)

log = logging.getLogger(__name__)

DEFAULT_COMPRESSION_LEVEL = 9


class BlockHeader(NamedTuple):
    magic: int
    flags: int
    decompressed_size: int
    total_size: int
    compressed_size: int
    header_size: int


@dataclass
class CompressedBlock:
    """One entry on its way into (or out of) an archive.

    payload holds the raw file bytes until encode() runs, then the framed
    block. block_offset is filled in by the writer.
    """
    filename: str
    decompressed_size: int
    compressed_size: int = 0
    payload: bytes = b""
    block_offset: int | None = None
    encoded: bool = False

    @classmethod
    def from_bytes(cls, filename: str, data: bytes) -> CompressedBlock:
        return cls(filename=filename, decompressed_size=len(data), payload=data)

    def encode(self, level: int = DEFAULT_COMPRESSION_LEVEL, high_compression: bool = True) -> None:
        if self.encoded:
            return
        framed = encode_block(self.payload, level=level, high_compression=high_compression)
        self.compressed_size = parse_block_header(framed).compressed_size
        self.payload = framed
        self.encoded = True

    @property
    def stored_size(self) -> int:
        return len(self.payload)


def compress_payload(data: bytes, level: int = DEFAULT_COMPRESSION_LEVEL, high_compression: bool = True) -> bytes:
    """Raw LZ4 block without the size prefix python-lz4 adds by default."""
    if high_compression:
        return _lz4.compress(data, mode="high_compression", compression=level, store_size=False)
    return _lz4.compress(data, mode="default", store_size=False)


def encode_block(data: bytes, level: int = DEFAULT_COMPRESSION_LEVEL, high_compression: bool = True) -> bytes:
    """Compress data and wrap it in a block header. Result is header + padded payload."""
    compressed = compress_payload(data, level=level, high_compression=high_compression)
    padded = compressed + b"\x00" * padding_for(len(compressed))
    header = BLOCK_HEADER.pack({
        "magic": BLOCK_MAGIC,
        "flags": BLOCK_FLAGS,
        "decompressed_size": len(data),
        "total_size": BLOCK_HEADER_SIZE + len(padded),
        "compressed_size": len(compressed),
        "header_size": BLOCK_HEADER_SIZE,
    })
    return header + padded


def parse_block_header(block: bytes) -> BlockHeader:
    if len(block) < BLOCK_HEADER_SIZE:
        raise TruncatedBlockError(
            f"Block is {len(block)} bytes, shorter than its 0x{BLOCK_HEADER_SIZE:X}-byte header"
        )
    return BlockHeader(**BLOCK_HEADER.unpack(block))


def decode_block(block: bytes, name: str = "<block>") -> bytes:
    """Decompress one stored block back to the original file bytes."""
    header = parse_block_header(block)
    if header.magic != BLOCK_MAGIC:
        log.warning("%s: unexpected block magic 0x%08X", name, header.magic)
    if header.decompressed_size < 0 or header.compressed_size < 0:
        raise DecompressionError(
            f"{name}: negative size in block header "
            f"(decompressed={header.decompressed_size}, compressed={header.compressed_size})"
        )
    end = BLOCK_HEADER_SIZE + header.compressed_size
    if end > len(block):
        raise TruncatedBlockError(
            f"{name}: compressed size 0x{header.compressed_size:X} runs past "
            f"the end of the 0x{len(block):X}-byte block"
        )
    if header.decompressed_size == 0:
        return b""
    try:
        data = _lz4.decompress(block[BLOCK_HEADER_SIZE:end], uncompressed_size=header.decompressed_size)
    except _lz4.LZ4BlockError as e:
        raise DecompressionError(f"{name}: {e}") from e
    if len(data) != header.decompressed_size:
        raise DecompressionError(
            f"{name}: decompressed to {len(data)} bytes, header says {header.decompressed_size}"
        )
    return data
