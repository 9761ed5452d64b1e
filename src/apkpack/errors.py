"""
errors.py — exception types raised by the APK reader and writer.

Everything format related derives from ApkError (a ValueError, like the
other format readers in this project). Filesystem failures are left as
OSError.
"""

from __future__ import annotations


class ApkError(ValueError):
    """Malformed container, block or input directory."""


class TruncatedHeaderError(ApkError):
    """Container is shorter than its header and index require."""


class TruncatedBlockError(ApkError):
    """An entry's stored block is shorter than its index or inner header claims."""


class DecompressionError(ApkError):
    """Compressed payload is malformed or does not decompress to the expected size."""


class NameTooLongError(ApkError):
    """Entry name does not fit in the 256-byte index slot."""


class MissingManifestEntryError(ApkError):
    """Files on disk and names in the manifest do not match up."""

    def __init__(self, message: str, unlisted=(), missing=()) -> None:
        super().__init__(message)
        self.unlisted = list(unlisted)
        self.missing = list(missing)
