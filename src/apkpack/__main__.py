"""
Run from project root:
  python -m apkpack path/to/textures.apk          # unpack next to the archive
  python -m apkpack path/to/textures              # pack folder into textures.apk
  python -m apkpack path/to/textures.apk --list   # list contents
  python -m apkpack path/to/textures -o out.apk   # pack to a chosen file
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from apkpack.config import load_config
from apkpack.errors import ApkError
from apkpack.reader import extract_apk, list_apk
from apkpack.writer import pack_apk

log = logging.getLogger("apkpack")


def _build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="apkpack",
        description="Unpack an .apk texture archive, or pack a folder of textures and FileList.txt into one.",
    )
    ap.add_argument("path", type=Path, nargs="?", help=".apk file to unpack, or folder to pack")
    ap.add_argument("-o", "--output", type=Path, help="Output folder (unpack) or .apk file (pack)")
    ap.add_argument("-l", "--list", action="store_true", help="List archive entries instead of unpacking")
    ap.add_argument("-c", "--config", type=Path, help="Config file (default: ~/.config/ApkPack/config.json)")
    ap.add_argument("-v", "--verbose", action="store_true", help="Show debug output")
    return ap


def main(argv: list[str] | None = None) -> int:
    ap = _build_parser()
    args = ap.parse_args(argv)

    if args.path is None:
        ap.print_usage(sys.stderr)
        print("Give an APK file or a folder full of .dds files and a FileList.txt.", file=sys.stderr)
        return 1

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(message)s",
    )

    try:
        config = load_config(args.config)
        path = args.path.resolve()
        if path.is_file():
            if args.list:
                entries = list_apk(path)
                print(f"{path}: {len(entries)} entr{'y' if len(entries) == 1 else 'ies'}")
                for e in entries:
                    print(f"  0x{e.offset:08X}  {e.stored_size:>10}  {e.name}")
                return 0
            dest = args.output.resolve() if args.output else None
            paths = extract_apk(path, dest, manifest_name=config.manifest_name)
            print(f"Extracted {len(paths)} file(s) from {path}")
        elif path.is_dir():
            output = args.output or path.with_name(path.name + config.extension)
            n = pack_apk(
                path,
                output,
                manifest_name=config.manifest_name,
                pattern=config.pattern,
                compression_level=config.compression_level,
                high_compression=config.high_compression,
            )
            print(f"Packed {n} file(s) into {output}")
        else:
            print(f"Not a file or folder: {path}", file=sys.stderr)
            return 1
    except (ApkError, OSError) as e:
        log.debug("Failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
