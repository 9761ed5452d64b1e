from __future__ import annotations

import struct
from pathlib import Path

import lz4.block
import pytest


def make_block(data: bytes) -> bytes:
    """Frame data the way the game does: 48-byte header, raw LZ4, pad to 16."""
    comp = lz4.block.compress(data, store_size=False)
    pad = (16 - len(comp) % 16) % 16
    header = bytearray(0x30)
    struct.pack_into("<I", header, 0x00, 0x305A5A5A)
    struct.pack_into("<I", header, 0x04, 0x010001)
    struct.pack_into("<i", header, 0x0C, len(data))
    struct.pack_into("<i", header, 0x10, 0x30 + len(comp) + pad)
    struct.pack_into("<i", header, 0x20, len(comp))
    struct.pack_into("<i", header, 0x24, 0x30)
    return bytes(header) + comp + b"\x00" * pad


def make_apk(files: list[tuple[str, bytes]], reserved=None) -> bytes:
    """Build a complete archive in memory, independent of apkpack.writer."""
    out = bytearray(struct.pack("<IIii", 0x4B434150, 0x10000, len(files), 0))
    out += b"\x00" * (0x120 * len(files))
    for i, (name, data) in enumerate(files):
        block = make_block(data)
        offset = len(out)
        out += block
        fields = list(reserved[i]) if reserved else [0] * 6
        rec = name.encode("ascii").ljust(0x100, b"\x00") + struct.pack(
            "<8i", len(block), *fields[:5], offset, fields[5]
        )
        out[0x10 + i * 0x120 : 0x10 + (i + 1) * 0x120] = rec
    return bytes(out)


@pytest.fixture
def textures() -> list[tuple[str, bytes]]:
    return [
        ("tex0.dds", b"DDS " + bytes(range(256)) * 8),
        ("tex1.dds", b"DDS " + b"\x7f" * 1000 + b"tail"),
    ]


@pytest.fixture
def apk_file(tmp_path: Path, textures) -> Path:
    path = tmp_path / "textures.apk"
    path.write_bytes(make_apk(textures))
    return path


@pytest.fixture(autouse=True)
def _isolated_config(tmp_path_factory, monkeypatch):
    monkeypatch.setenv("APKPACK_CONFIG", str(tmp_path_factory.mktemp("cfg") / "config.json"))
