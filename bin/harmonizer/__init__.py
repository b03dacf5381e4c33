"""Harmonizer: re-encode merger events into size-bounded harmonic HDF5 files."""

PRODUCER_NAME = "harmonizer"
__version__ = "0.1.0"


def producer_version() -> str:
    """Return the ``version`` attribute written to every harmonic file."""
    return f"{PRODUCER_NAME}:{__version__}"


__all__ = [
    'PRODUCER_NAME',
    '__version__',
    'producer_version',
]
