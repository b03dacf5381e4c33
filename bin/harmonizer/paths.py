"""Run file naming for harmonic output."""
from __future__ import annotations

import re
from pathlib import Path

_RUN_FILE_RE = re.compile(r"^run_(\d{4,})\.h5$")


def construct_run_path(base_path: Path, run_index: int) -> Path:
    """Return the file path for ``run_index`` under ``base_path``.

    The index is zero-padded to four digits so that run files sort in run
    order, e.g. ``base_path / "run_0007.h5"``.
    """
    if run_index < 0:
        raise ValueError(f"run index must be non-negative, got {run_index}")
    return Path(base_path) / f"run_{run_index:04d}.h5"


def parse_run_index(path: Path) -> int | None:
    """Inverse of :func:`construct_run_path`; ``None`` for foreign names."""
    m = _RUN_FILE_RE.match(Path(path).name)
    if m is None:
        return None
    return int(m.group(1))


def discover_run_files(base_path: Path) -> list[Path]:
    """List run files directly under ``base_path``, ordered by run index."""
    found: list[tuple[int, Path]] = []
    for candidate in Path(base_path).glob("run_*.h5"):
        run = parse_run_index(candidate)
        if run is not None and candidate.is_file():
            found.append((run, candidate))
    return [p for _, p in sorted(found)]
