"""Data models for harmonizer."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

import numpy as np


@dataclass
class GetEvent:
    """GET electronics payload of a single merger event."""

    id: int
    timestamp: int
    timestamp_other: int
    traces: np.ndarray


@dataclass
class FribEvent:
    """FRIB DAQ payload of a single merger event."""

    event: int
    timestamp: int
    traces: np.ndarray
    coincidence: np.ndarray


@dataclass
class MergerEvent:
    """One event as produced by a merger-format reader.

    ``get`` and ``frib`` are independent; either, both or neither may be set.
    """

    run_number: int
    event: int
    get: GetEvent | None = None
    frib: FribEvent | None = None


@dataclass
class HarmonicFileSummary:
    """What was found when reading back a single harmonic file."""

    path: Path
    run: int | None
    version: str
    min_event: int
    max_event: int
    event_count: int
    file_size: int
    get_count: int = 0
    frib_count: int = 0
    event_names: list[str] = field(default_factory=list)

    @property
    def is_finalized(self) -> bool:
        return self.max_event == self.event_count
