"""Exceptions raised while writing harmonic files."""
from __future__ import annotations

from pathlib import Path


class HarmonizerError(Exception):
    """Base class for harmonic writer failures.

    Carries the output path, run index and (where known) the event index
    within the file so callers can report where the stream broke.
    """

    def __init__(
        self,
        message: str,
        path: Path | None = None,
        run: int | None = None,
        event: int | None = None,
    ) -> None:
        self.message = message
        self.path = path
        self.run = run
        self.event = event
        super().__init__(self._describe())

    def _describe(self) -> str:
        context = []
        if self.path is not None:
            context.append(f"path={self.path}")
        if self.run is not None:
            context.append(f"run={self.run}")
        if self.event is not None:
            context.append(f"event={self.event}")
        if not context:
            return self.message
        return f"{self.message} ({', '.join(context)})"


class CreateError(HarmonizerError):
    """Raised when an output file cannot be created or initialized."""


class EncodeError(HarmonizerError):
    """Raised when a group, attribute or dataset of an event cannot be written."""


class FinalizeError(HarmonizerError):
    """Raised when the closing ``max_event`` metadata cannot be written."""


class SizeQueryError(HarmonizerError):
    """Raised when the size of the current output file cannot be read."""


class WriterClosedError(HarmonizerError):
    """Raised when a closed writer is used again."""


class FormatError(HarmonizerError):
    """Raised when a file read back does not follow the harmonic layout."""
