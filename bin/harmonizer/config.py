"""Read and write harmonizer TOML configuration files.

A configuration file looks like::

    [harmonic]
    path = "/data/harmonic"
    size = "10 GB"
    overwrite = false

    [logging]
    level = "INFO"

``size`` is either an integer number of bytes or a string with a unit
(``B``, ``KB``, ``MB``, ``GB``, ``TB`` in powers of 1000, or ``KiB``,
``MiB``, ``GiB``, ``TiB`` in powers of 1024).
"""

from __future__ import annotations

import logging
import re
import tomllib
from dataclasses import dataclass
from pathlib import Path

import tomli_w

from harmonizer import PRODUCER_NAME
from harmonizer.writer import HarmonicWriter


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ConfigError(Exception):
    """Raised when a harmonizer TOML file fails validation."""


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

DEFAULT_HARMONIC_SIZE = 10_000_000_000
_VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
_SIZE_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*([KMGT]i?B|B)?\s*$", re.IGNORECASE)
_UNITS = {
    "B": 1,
    "KB": 1000,
    "MB": 1000**2,
    "GB": 1000**3,
    "TB": 1000**4,
    "KIB": 1024,
    "MIB": 1024**2,
    "GIB": 1024**3,
    "TIB": 1024**4,
}


# ---------------------------------------------------------------------------
# Dataclasses
# ---------------------------------------------------------------------------


@dataclass
class HarmonizerConfig:
    """Validated harmonizer configuration."""

    harmonic_path: Path
    harmonic_size: int = DEFAULT_HARMONIC_SIZE
    overwrite: bool = False
    log_level: str = "INFO"

    def configure_logging(self) -> None:
        """Apply ``log_level`` to the harmonizer package loggers."""
        logging.getLogger(PRODUCER_NAME).setLevel(self.log_level)

    def make_writer(self) -> HarmonicWriter:
        """Create the output directory and open a writer on it."""
        self.configure_logging()
        self.harmonic_path.mkdir(parents=True, exist_ok=True)
        return HarmonicWriter(self.harmonic_path, self.harmonic_size, overwrite=self.overwrite)

    def to_dict(self) -> dict:
        return {
            "harmonic": {
                "path": str(self.harmonic_path),
                "size": self.harmonic_size,
                "overwrite": self.overwrite,
            },
            "logging": {"level": self.log_level},
        }


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


def parse_size(value: int | str) -> int:
    """Convert an integer or ``"<number> <unit>"`` string to bytes."""
    if isinstance(value, bool):
        raise ConfigError(f"Invalid size {value!r}")
    if isinstance(value, int):
        size = value
    elif isinstance(value, str):
        m = _SIZE_RE.match(value)
        if m is None:
            raise ConfigError(f"Invalid size {value!r}: expected e.g. '500 MB' or '2GiB'")
        unit = (m.group(2) or "B").upper()
        size = int(float(m.group(1)) * _UNITS[unit])
    else:
        raise ConfigError(f"Invalid size {value!r}: expected integer or string")

    if size <= 0:
        raise ConfigError(f"Size must be positive, got {value!r}")
    return size


def load_config(path: Path | str) -> HarmonizerConfig:
    """Parse and validate a harmonizer TOML file.

    Raises
    ------
    ConfigError
        If the [harmonic] section or its ``path`` is missing, or a value is
        invalid.
    """
    path = Path(path)
    try:
        with path.open("rb") as fh:
            data = tomllib.load(fh)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Invalid TOML in {path}: {exc}") from exc

    if "harmonic" not in data:
        raise ConfigError("Missing required [harmonic] section")
    harmonic = data["harmonic"]
    if not isinstance(harmonic, dict):
        raise ConfigError("[harmonic] must be a table")
    if "path" not in harmonic:
        raise ConfigError("Missing required field 'path' in [harmonic]")
    if not isinstance(harmonic["path"], str) or not harmonic["path"]:
        raise ConfigError("Field 'path' in [harmonic] must be a non-empty string")

    overwrite = harmonic.get("overwrite", False)
    if not isinstance(overwrite, bool):
        raise ConfigError("Field 'overwrite' in [harmonic] must be true or false")

    logging_section = data.get("logging", {})
    if not isinstance(logging_section, dict):
        raise ConfigError("[logging] must be a table")
    level = str(logging_section.get("level", "INFO")).upper()
    if level not in _VALID_LOG_LEVELS:
        raise ConfigError(
            f"Invalid log level '{level}': must be one of {sorted(_VALID_LOG_LEVELS)}"
        )

    harmonic_path = Path(harmonic["path"]).expanduser()
    if not harmonic_path.is_absolute():
        harmonic_path = path.parent / harmonic_path

    return HarmonizerConfig(
        harmonic_path=harmonic_path,
        harmonic_size=parse_size(harmonic.get("size", DEFAULT_HARMONIC_SIZE)),
        overwrite=overwrite,
        log_level=level,
    )


def write_config(config: HarmonizerConfig, path: Path | str) -> Path:
    """Write ``config`` as TOML to ``path`` and return the path."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(tomli_w.dumps(config.to_dict()).encode())
    return path
