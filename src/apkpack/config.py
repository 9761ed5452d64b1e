"""
config.py
Pack/unpack settings and where they are read from.

Follows the XDG Base Directory Specification:
  Config lives in $XDG_CONFIG_HOME/ApkPack/config.json  (default: ~/.config/ApkPack)

$APKPACK_CONFIG points at a different file. A missing file means defaults.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, fields, replace
from pathlib import Path

from apkpack.errors import ApkError
from apkpack.manifest import MANIFEST_NAME

log = logging.getLogger(__name__)

APP_NAME = "ApkPack"
CONFIG_ENV = "APKPACK_CONFIG"


@dataclass(frozen=True)
class PackConfig:
    manifest_name: str = MANIFEST_NAME
    pattern: str = "*"                 # glob applied to files when packing
    compression_level: int = 9         # LZ4 HC level, 1-12
    high_compression: bool = True
    extension: str = ".apk"


def get_config_dir() -> Path:
    """Return the app config directory. Respects $XDG_CONFIG_HOME; falls back to ~/.config/ApkPack."""
    xdg = os.environ.get("XDG_CONFIG_HOME")
    base = Path(xdg) if xdg else Path.home() / ".config"
    return base / APP_NAME


def get_config_path() -> Path:
    env = os.environ.get(CONFIG_ENV)
    if env:
        return Path(env)
    return get_config_dir() / "config.json"


def load_config(path: Path | str | None = None) -> PackConfig:
    """Load PackConfig from path (or the default location). Unknown keys are ignored."""
    path = Path(path) if path is not None else get_config_path()
    config = PackConfig()
    if not path.is_file():
        log.debug("No config at %s, using defaults", path)
        return config
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ApkError(f"Invalid config file {path}: {e}") from e
    if not isinstance(data, dict):
        raise ApkError(f"Invalid config file {path}: expected a JSON object")

    known = {f.name: f for f in fields(PackConfig)}
    values = {}
    for key, value in data.items():
        if key not in known:
            log.warning("Ignoring unknown config key %r in %s", key, path)
            continue
        expected = type(getattr(config, key))
        if type(value) is not expected:
            raise ApkError(
                f"Invalid config file {path}: {key} must be {expected.__name__}, got {type(value).__name__}"
            )
        values[key] = value
    config = replace(config, **values)
    if not 1 <= config.compression_level <= 12:
        raise ApkError(f"Invalid config file {path}: compression_level must be 1-12")
    if not config.manifest_name or "/" in config.manifest_name:
        raise ApkError(f"Invalid config file {path}: manifest_name must be a plain file name")
    log.debug("Loaded config from %s: %s", path, config)
    return config
