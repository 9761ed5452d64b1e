"""
reader.py — APK texture archive reader.

Layout (all integers little-endian int32):
  - 8 bytes: lead (magic "PACK" + version), not checked
  - 4 bytes: entry count
  - 4 bytes: reserved
  - count × 0x120-byte index records (name, stored size, offset, reserved)
  - Entry blocks at the offsets named by the index, each framed as in block.py
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import NamedTuple

from apkpack.block import decode_block
from apkpack.errors import ApkError, TruncatedBlockError, TruncatedHeaderError
from apkpack.layout import (
    CONTAINER_HEADER,
    HEADER_SIZE,
    INDEX_RECORD,
    INDEX_RECORD_SIZE,
    INDEX_RESERVED,
)
from apkpack.manifest import MANIFEST_NAME, write_manifest

log = logging.getLogger(__name__)


class ArchiveHeader(NamedTuple):
    lead: bytes
    count: int
    reserved: int


class ArchiveEntry(NamedTuple):
    """Single index record. reserved holds the six unknown fields verbatim."""
    name: str
    stored_size: int
    offset: int
    reserved: tuple[int, ...] = (0,) * len(INDEX_RESERVED)


def decode_name(raw: bytes) -> str:
    nul = raw.find(b"\x00")
    if nul >= 0:
        raw = raw[:nul]
    try:
        return raw.decode("ascii")
    except UnicodeDecodeError as e:
        raise ApkError(f"Entry name is not ASCII: {raw!r}") from e


def parse_index(data: bytes) -> tuple[ArchiveHeader, list[ArchiveEntry]]:
    """Parse the container header and index from the start of an archive."""
    if len(data) < HEADER_SIZE:
        raise TruncatedHeaderError(
            f"Archive is {len(data)} bytes, too small for the 0x{HEADER_SIZE:X}-byte header"
        )
    header = ArchiveHeader(**CONTAINER_HEADER.unpack(data))
    if header.count < 0:
        raise TruncatedHeaderError(f"Negative entry count {header.count}")
    index_end = HEADER_SIZE + header.count * INDEX_RECORD_SIZE
    if len(data) < index_end:
        raise TruncatedHeaderError(
            f"Index of {header.count} entries needs 0x{index_end:X} bytes, "
            f"archive has 0x{len(data):X}"
        )
    entries: list[ArchiveEntry] = []
    for i in range(header.count):
        rec = INDEX_RECORD.unpack(data, HEADER_SIZE + i * INDEX_RECORD_SIZE)
        entries.append(ArchiveEntry(
            name=decode_name(rec["name"]),
            stored_size=rec["stored_size"],
            offset=rec["offset"],
            reserved=tuple(rec[k] for k in INDEX_RESERVED),
        ))
    return header, entries


class ApkReader:
    """Read an APK archive: list entries and extract decompressed files."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)
        self.header: ArchiveHeader | None = None
        self._entries: list[ArchiveEntry] = []

    def open(self) -> None:
        """Parse header and index. Called automatically on first use."""
        with self.path.open("rb") as f:
            head = f.read(HEADER_SIZE)
            if len(head) < HEADER_SIZE:
                raise TruncatedHeaderError(
                    f"{self.path}: {len(head)} bytes, too small for the archive header"
                )
            count = CONTAINER_HEADER.unpack(head)["count"]
            index_end = HEADER_SIZE + max(count, 0) * INDEX_RECORD_SIZE
            file_size = os.fstat(f.fileno()).st_size
            if file_size < index_end:
                raise TruncatedHeaderError(
                    f"{self.path}: index of {count} entries needs 0x{index_end:X} bytes, "
                    f"file has 0x{file_size:X}"
                )
            index = f.read(index_end - HEADER_SIZE)
        self.header, self._entries = parse_index(head + index)
        for e in self._entries:
            log.debug("Name: %s, FileSize: 0x%08X, Offset: 0x%08X", e.name, e.stored_size, e.offset)

    def _ensure_open(self) -> None:
        if self.header is None:
            self.open()

    def list_entries(self) -> list[ArchiveEntry]:
        self._ensure_open()
        return list(self._entries)

    def read_block(self, index: int) -> bytes:
        """Return the stored (still compressed) block of entry index."""
        self._ensure_open()
        if index < 0 or index >= len(self._entries):
            raise IndexError(f"Entry index {index} out of range (0..{len(self._entries) - 1})")
        entry = self._entries[index]
        if entry.offset < 0 or entry.stored_size < 0:
            raise TruncatedBlockError(
                f"{entry.name}: invalid offset 0x{entry.offset:X} / size 0x{entry.stored_size:X}"
            )
        with self.path.open("rb") as f:
            f.seek(entry.offset)
            raw = f.read(entry.stored_size)
        if len(raw) != entry.stored_size:
            raise TruncatedBlockError(
                f"{entry.name}: expected 0x{entry.stored_size:X} bytes at offset "
                f"0x{entry.offset:X}, got 0x{len(raw):X}"
            )
        return raw

    def read_file(self, index: int) -> bytes:
        """Read and decompress one entry by index (0-based)."""
        raw = self.read_block(index)
        entry = self._entries[index]
        return decode_block(raw, name=f"{entry.name} @ 0x{entry.offset:X}")

    def extract_all(
        self,
        dest_dir: Path | str,
        manifest_name: str = MANIFEST_NAME,
        progress_fn=None,
    ) -> list[Path]:
        """Extract all entries into dest_dir and write the manifest there.

        Stops at the first failing entry; files already written are kept.
        progress_fn: optional callable(done: int, total: int) called after each file.
        """
        self._ensure_open()
        if any(e.name == manifest_name for e in self._entries):
            raise ApkError(f"Archive contains an entry named {manifest_name}, which would clash with the manifest")
        seen: set[str] = set()
        for e in self._entries:
            if e.name in seen:
                raise ApkError(f"Archive contains more than one entry named {e.name}")
            seen.add(e.name)
        dest = Path(dest_dir).resolve()
        dest.mkdir(parents=True, exist_ok=True)
        created: list[Path] = []
        names: list[str] = []
        total = len(self._entries)
        if progress_fn and total:
            progress_fn(0, total)
        for i, entry in enumerate(self._entries):
            out_path = _safe_join(dest, entry.name)
            data = self.read_file(i)
            out_path.parent.mkdir(parents=True, exist_ok=True)
            out_path.write_bytes(data)
            created.append(out_path)
            names.append(entry.name)
            log.info("Saved %s to %s", entry.name, out_path)
            if progress_fn:
                progress_fn(i + 1, total)
        write_manifest(dest / manifest_name, names)
        return created


def _safe_join(dest: Path, name: str) -> Path:
    """Resolve an entry name under dest, refusing names that point outside it."""
    if not name:
        raise ApkError("Entry with an empty name")
    out = (dest / name).resolve()
    if out == dest or dest not in out.parents:
        raise ApkError(f"Entry name escapes the output directory: {name!r}")
    return out


def list_apk(path: Path | str) -> list[ArchiveEntry]:
    """List entries in an APK file without extracting anything."""
    r = ApkReader(path)
    r.open()
    return r.list_entries()


def extract_apk(
    apk_path: Path | str,
    dest_dir: Path | str | None = None,
    manifest_name: str = MANIFEST_NAME,
    progress_fn=None,
) -> list[Path]:
    """Extract an APK archive. dest_dir defaults to a folder named after the archive, beside it."""
    apk_path = Path(apk_path)
    if dest_dir is None:
        dest_dir = apk_path.with_suffix("")
        if dest_dir == apk_path:
            dest_dir = apk_path.with_name(apk_path.name + "_files")
    r = ApkReader(apk_path)
    r.open()
    return r.extract_all(dest_dir, manifest_name=manifest_name, progress_fn=progress_fn)
