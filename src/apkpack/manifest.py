"""
manifest.py
Read and write FileList.txt, the entry order manifest.

Unpacking writes one entry name per line in archive order. Packing reads
it back and sorts the files found on disk into that order, since
directory listing order says nothing about the original archive.
"""

from __future__ import annotations

import logging
from pathlib import Path

from apkpack.errors import ApkError, MissingManifestEntryError

log = logging.getLogger(__name__)

MANIFEST_NAME = "FileList.txt"


def write_manifest(path: Path, names: list[str]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    text = "".join(f"{name}\n" for name in names)
    path.write_text(text, encoding="utf-8", newline="\n")


def read_manifest(path: Path) -> list[str]:
    """Return manifest names in order. Blank lines are skipped."""
    if not path.is_file():
        raise MissingManifestEntryError(f"Manifest not found: {path}")
    try:
        text = path.read_text(encoding="utf-8-sig")
    except UnicodeDecodeError as e:
        raise ApkError(f"Manifest is not valid UTF-8: {path}: {e}") from e
    names: list[str] = []
    for name in text.splitlines():
        if name.strip():
            names.append(name)
    return names


def build_rank(names: list[str]) -> dict[str, int]:
    """Map each name to its position. A repeated name keeps its first position."""
    rank: dict[str, int] = {}
    for i, name in enumerate(names):
        if name in rank:
            log.warning("Manifest lists %s more than once; keeping line %d", name, rank[name] + 1)
            continue
        rank[name] = i
    return rank


def order_by_manifest(candidates: list[str], names: list[str]) -> list[str]:
    """Sort candidate names into manifest order.

    Every candidate must be listed and every listed name must be present;
    otherwise MissingManifestEntryError reports both sides.
    """
    rank = build_rank(names)
    present = set(candidates)
    unlisted = sorted(c for c in present if c not in rank)
    missing = [n for n in rank if n not in present]
    if unlisted or missing:
        parts = []
        if unlisted:
            parts.append("not in manifest: " + ", ".join(unlisted))
        if missing:
            parts.append("listed but not found: " + ", ".join(missing))
        raise MissingManifestEntryError(
            "Directory and manifest disagree (" + "; ".join(parts) + ")",
            unlisted=unlisted,
            missing=missing,
        )
    return sorted(present, key=rank.__getitem__)
