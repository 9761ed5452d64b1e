"""
writer.py — Pack a directory of textures into an APK archive.

Writes the layout reader.py expects: container header, a zero-filled
index, then every entry's framed block back to back. Block offsets are
only known once the blocks are written, so the index is filled in last.
Entry order comes from the manifest (FileList.txt) written by unpacking.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Iterator

from apkpack.block import DEFAULT_COMPRESSION_LEVEL, CompressedBlock
from apkpack.errors import ApkError, NameTooLongError
from apkpack.layout import (
    APK_MAGIC,
    APK_VERSION,
    CONTAINER_HEADER,
    HEADER_SIZE,
    INDEX_RECORD,
    INDEX_RECORD_SIZE,
    NAME_SIZE,
)
from apkpack.manifest import MANIFEST_NAME, order_by_manifest, read_manifest

log = logging.getLogger(__name__)

_INT32_MAX = 0x7FFFFFFF
DEFAULT_LEAD = APK_MAGIC.to_bytes(4, "little") + APK_VERSION.to_bytes(4, "little")


def _current_umask() -> int:
    mask = os.umask(0)
    os.umask(mask)
    return mask


def encode_name(name: str) -> bytes:
    """ASCII-encode an entry name, leaving room for at least one terminating NUL."""
    try:
        raw = name.encode("ascii")
    except UnicodeEncodeError as e:
        raise ApkError(f"Entry name is not ASCII: {name!r}") from e
    if len(raw) >= NAME_SIZE:
        raise NameTooLongError(
            f"Entry name is {len(raw)} bytes, limit is {NAME_SIZE - 1}: {name}"
        )
    return raw


def _iter_files(source_dir: Path, pattern: str = "*") -> Iterator[tuple[Path, str]]:
    """Yield (absolute path, archive name with forward slashes) for each file under source_dir."""
    source = source_dir.resolve()
    for f in sorted(source.rglob(pattern)):
        if f.is_file():
            yield f, f.relative_to(source).as_posix()


def collect_blocks(
    source_dir: Path | str,
    *,
    manifest_name: str = MANIFEST_NAME,
    pattern: str = "*",
) -> list[CompressedBlock]:
    """Load every file under source_dir in manifest order, not yet compressed.

    Raises MissingManifestEntryError when the directory and the manifest
    disagree, NameTooLongError when a name does not fit the index.
    """
    source = Path(source_dir).resolve()
    if not source.is_dir():
        raise NotADirectoryError(f"Source is not a directory: {source}")

    files = {name: path for path, name in _iter_files(source, pattern) if name != manifest_name}
    manifest = source / manifest_name
    if not files and not manifest.exists():
        log.info("No files and no %s in %s, packing an empty archive", manifest_name, source)
        return []
    order = order_by_manifest(list(files), read_manifest(manifest))
    for name in order:
        encode_name(name)
    return [CompressedBlock.from_bytes(name, files[name].read_bytes()) for name in order]


def write_apk(
    blocks: list[CompressedBlock],
    output_path: Path | str,
    *,
    lead: bytes = DEFAULT_LEAD,
    compression_level: int = DEFAULT_COMPRESSION_LEVEL,
    high_compression: bool = True,
    progress_fn=None,
) -> Path:
    """Compress blocks and write them as an APK archive at output_path.

    The archive is built in a temporary file beside output_path and moved
    into place only once complete.
    """
    output = Path(output_path).resolve()
    names = [encode_name(b.filename) for b in blocks]
    output.parent.mkdir(parents=True, exist_ok=True)
    total = len(blocks)
    if progress_fn:
        progress_fn(0, total)

    fd, tmp_name = tempfile.mkstemp(prefix=output.name + ".", dir=str(output.parent))
    try:
        with os.fdopen(fd, "wb") as out:
            out.write(CONTAINER_HEADER.pack({"lead": lead, "count": total, "reserved": 0}))
            out.write(b"\x00" * (INDEX_RECORD_SIZE * total))

            for done, block in enumerate(blocks, 1):
                log.info("Compressing file %s", block.filename)
                block.encode(level=compression_level, high_compression=high_compression)
                block.block_offset = out.tell()
                if block.block_offset + block.stored_size > _INT32_MAX:
                    raise ApkError(f"Archive exceeds 2 GiB at {block.filename}")
                out.write(block.payload)
                if progress_fn:
                    progress_fn(done, total)

            out.seek(HEADER_SIZE)
            for raw_name, block in zip(names, blocks):
                out.write(INDEX_RECORD.pack({
                    "name": raw_name,
                    "stored_size": block.stored_size,
                    "offset": block.block_offset,
                }))
        os.chmod(tmp_name, 0o666 & ~_current_umask())
        os.replace(tmp_name, output)
    finally:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
    log.info("APK created: %s", output)
    return output


def pack_apk(
    source_dir: Path | str,
    output_path: Path | str | None = None,
    *,
    manifest_name: str = MANIFEST_NAME,
    pattern: str = "*",
    compression_level: int = DEFAULT_COMPRESSION_LEVEL,
    high_compression: bool = True,
    progress_fn=None,
) -> int:
    """Pack a directory into an APK file.

    source_dir: directory holding the files and the manifest (walked recursively).
    output_path: archive to create; defaults to <source_dir>.apk beside the directory.
    progress_fn: optional callable(done: int, total: int) called after each file.

    Returns the number of entries written.
    """
    source = Path(source_dir).resolve()
    output = Path(output_path) if output_path is not None else source.with_name(source.name + ".apk")
    blocks = collect_blocks(source, manifest_name=manifest_name, pattern=pattern)
    write_apk(
        blocks,
        output,
        compression_level=compression_level,
        high_compression=high_compression,
        progress_fn=progress_fn,
    )
    return len(blocks)
