"""Write merger events into size-bounded harmonic HDF5 files.

Harmonic files use a slightly modified version of the 0.2.0 merger layout::

    /events                       attrs: min_event, max_event, version
    /events/event_<n>             attrs: orig_run, orig_event
    /events/event_<n>/get_traces  attrs: id, timestamp, timestamp_other
    /events/event_<n>/frib_physics
                                  attrs: event, timestamp
                                  datasets: 1903 (traces), 977 (coincidence)

Events are numbered from zero within each file. After every event the file
size on disk is checked; once it reaches the configured budget the file is
finalized and the next run file is started, so a file can overshoot the
budget by at most one event.

Usage::

    from harmonizer.writer import HarmonicWriter

    with HarmonicWriter(Path("/data/harmonic"), 10_000_000_000) as writer:
        for event in events:
            writer.write(event)
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

import h5py
import numpy as np

from harmonizer import producer_version
from harmonizer.errors import (
    CreateError,
    EncodeError,
    FinalizeError,
    SizeQueryError,
    WriterClosedError,
)
from harmonizer.models import MergerEvent
from harmonizer.paths import construct_run_path

log = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

EVENTS_GROUP = "events"
EVENT_GROUP_FMT = "event_{}"
GET_TRACES = "get_traces"
FRIB_GROUP = "frib_physics"
FRIB_TRACES = "1903"
FRIB_COINCIDENCE = "977"

# Exceptions h5py and numpy raise for failed HDF5 operations and bad values.
_H5_ERRORS = (OSError, ValueError, KeyError, TypeError, RuntimeError, OverflowError)


@dataclass
class _RunFile:
    """The file currently being written; replaced as a whole on rollover."""

    path: Path
    file: h5py.File
    run: int
    event: int = 0


def _write_scalar(obj: h5py.Group | h5py.Dataset, name: str, value, dtype) -> None:
    obj.attrs.create(name, data=value, dtype=dtype)


class HarmonicWriter:
    """Writes MergerEvents to a sequence of harmonic run files.

    Parameters
    ----------
    harmonic_path : Path
        Directory that receives the run files (see ``construct_run_path``).
    harmonic_size : int
        Size budget of a single file in bytes. Must be positive.
    overwrite : bool
        Truncate run files that already exist instead of failing.

    The first file (run 0) is created and initialized on construction.
    ``close()`` must be called after the last ``write()``, otherwise the last
    file keeps its placeholder ``max_event``. The writer is not thread safe.
    """

    def __init__(
        self,
        harmonic_path: Path,
        harmonic_size: int,
        overwrite: bool = False,
    ) -> None:
        if harmonic_size <= 0:
            raise ValueError(f"harmonic_size must be positive, got {harmonic_size}")
        self._harmonic_path = Path(harmonic_path)
        self._harmonic_size = int(harmonic_size)
        self._overwrite = overwrite
        self._written: list[Path] = []
        self._closed = False
        self._current = self._open_run(0)

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def harmonic_path(self) -> Path:
        return self._harmonic_path

    @property
    def harmonic_size(self) -> int:
        return self._harmonic_size

    @property
    def current_path(self) -> Path:
        return self._current.path

    @property
    def current_run(self) -> int:
        return self._current.run

    @property
    def current_event(self) -> int:
        return self._current.event

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def written_paths(self) -> list[Path]:
        """Every run file created so far, in run order."""
        return list(self._written)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def write(self, event: MergerEvent) -> None:
        """Append one event to the current file, rolling over when full."""
        self._ensure_open()
        current = self._current

        try:
            self._encode(current.file, current.event, event)
        except _H5_ERRORS as exc:
            raise EncodeError(
                f"failed to write event: {exc}",
                path=current.path, run=current.run, event=current.event,
            ) from exc

        current.event += 1
        log.debug("Wrote event %d (orig_event=%d) to %s", current.event - 1, event.event, current.path)

        size = self._file_size()
        if size >= self._harmonic_size:
            log.info(
                "Run file %s reached %d bytes (budget %d), rolling over",
                current.path, size, self._harmonic_size,
            )
            self._finish_file()
            self._release()
            self._current = self._open_run(current.run + 1)

    def close(self) -> None:
        """Finalize the current file and release it."""
        self._ensure_open()
        self._finish_file()
        self._release()
        self._closed = True

    def __enter__(self) -> HarmonicWriter:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if self._closed:
            return
        if exc_type is None:
            self.close()
            return
        # Leave max_event at its placeholder so readers see an incomplete file.
        log.warning(
            "Releasing %s without finalizing after %d event(s)",
            self._current.path, self._current.event,
        )
        self._closed = True
        self._current.file.close()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _ensure_open(self) -> None:
        if self._closed:
            raise WriterClosedError(
                "writer is closed",
                path=self._current.path, run=self._current.run,
            )

    def _open_run(self, run: int) -> _RunFile:
        """Create and initialize the file for ``run``."""
        path = construct_run_path(self._harmonic_path, run)
        mode = "w" if self._overwrite else "w-"
        try:
            h5 = h5py.File(path, mode)
        except _H5_ERRORS as exc:
            raise CreateError(f"failed to create file: {exc}", path=path, run=run) from exc

        try:
            self._init_file(h5)
        except _H5_ERRORS as exc:
            h5.close()
            raise CreateError(f"failed to initialize file: {exc}", path=path, run=run) from exc

        self._written.append(path)
        log.info("Created run file %s (run %d)", path, run)
        return _RunFile(path=path, file=h5, run=run)

    @staticmethod
    def _init_file(h5: h5py.File) -> None:
        events = h5.create_group(EVENTS_GROUP)
        _write_scalar(events, "min_event", 0, np.uint64)
        # Placeholder until _finish_file writes the real count.
        _write_scalar(events, "max_event", 0, np.uint64)
        events.attrs.create(
            "version", data=producer_version(), dtype=h5py.string_dtype("utf-8"),
        )

    @staticmethod
    def _encode(h5: h5py.File, index: int, event: MergerEvent) -> None:
        group = h5[EVENTS_GROUP].create_group(EVENT_GROUP_FMT.format(index))
        _write_scalar(group, "orig_run", event.run_number, np.int32)
        _write_scalar(group, "orig_event", event.event, np.uint64)

        if event.get is not None:
            get = event.get
            traces = group.create_dataset(GET_TRACES, data=np.asarray(get.traces))
            _write_scalar(traces, "id", get.id, np.uint32)
            _write_scalar(traces, "timestamp", get.timestamp, np.uint64)
            _write_scalar(traces, "timestamp_other", get.timestamp_other, np.uint64)

        if event.frib is not None:
            frib = event.frib
            frib_group = group.create_group(FRIB_GROUP)
            _write_scalar(frib_group, "event", frib.event, np.uint32)
            _write_scalar(frib_group, "timestamp", frib.timestamp, np.uint32)
            frib_group.create_dataset(FRIB_TRACES, data=np.asarray(frib.traces))
            frib_group.create_dataset(FRIB_COINCIDENCE, data=np.asarray(frib.coincidence))

    def _file_size(self) -> int:
        """Flush the current file and return its size on disk in bytes."""
        current = self._current
        try:
            current.file.flush()
            return current.path.stat().st_size
        except _H5_ERRORS as exc:
            raise SizeQueryError(
                f"failed to query file size: {exc}",
                path=current.path, run=current.run, event=current.event,
            ) from exc

    def _finish_file(self) -> None:
        """Write the real event count to ``max_event``."""
        current = self._current
        try:
            current.file[EVENTS_GROUP].attrs.modify("max_event", np.uint64(current.event))
        except _H5_ERRORS as exc:
            raise FinalizeError(
                f"failed to write max_event: {exc}",
                path=current.path, run=current.run, event=current.event,
            ) from exc
        log.info("Finalized %s with %d event(s)", current.path, current.event)

    def _release(self) -> None:
        current = self._current
        try:
            current.file.close()
        except _H5_ERRORS as exc:
            raise FinalizeError(
                f"failed to close file: {exc}",
                path=current.path, run=current.run,
            ) from exc
