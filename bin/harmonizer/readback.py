"""Read back harmonic files and check them against the harmonic layout."""
from __future__ import annotations

import re
from pathlib import Path

import h5py

from harmonizer import PRODUCER_NAME
from harmonizer.errors import FormatError
from harmonizer.models import HarmonicFileSummary
from harmonizer.paths import discover_run_files, parse_run_index
from harmonizer.writer import EVENTS_GROUP, FRIB_GROUP, GET_TRACES

_EVENT_NAME_RE = re.compile(r"^event_(\d+)$")
_VERSION_RE = re.compile(r"^[^:]+:\d+\.\d+\.\d+\S*$")


def _event_index(name: str) -> int | None:
    m = _EVENT_NAME_RE.match(name)
    return int(m.group(1)) if m else None


def summarize_file(path: Path) -> HarmonicFileSummary:
    """Read the metadata and event groups of a single harmonic file.

    The event count is taken from the ``event_<n>`` groups actually present,
    not from ``max_event``, so files that were never finalized still report
    what they contain.
    """
    path = Path(path)
    run = parse_run_index(path)
    try:
        h5 = h5py.File(path, "r")
    except OSError as exc:
        raise FormatError(f"cannot open as HDF5: {exc}", path=path, run=run) from exc

    with h5:
        if EVENTS_GROUP not in h5:
            raise FormatError(f"missing '{EVENTS_GROUP}' group", path=path, run=run)
        events = h5[EVENTS_GROUP]
        attrs = events.attrs
        missing = [k for k in ("min_event", "max_event", "version") if k not in attrs]
        if missing:
            raise FormatError(f"missing attribute(s): {', '.join(missing)}", path=path, run=run)

        version = attrs["version"]
        if isinstance(version, bytes):
            version = version.decode("utf-8")

        names = sorted(
            (n for n in events if _event_index(n) is not None),
            key=_event_index,
        )
        get_count = 0
        frib_count = 0
        for name in names:
            group = events[name]
            if GET_TRACES in group:
                get_count += 1
            if FRIB_GROUP in group:
                frib_count += 1

        return HarmonicFileSummary(
            path=path,
            run=run,
            version=str(version),
            min_event=int(attrs["min_event"]),
            max_event=int(attrs["max_event"]),
            event_count=len(names),
            file_size=path.stat().st_size,
            get_count=get_count,
            frib_count=frib_count,
            event_names=names,
        )


def summarize_path(path: Path) -> list[HarmonicFileSummary]:
    """Summarize one file, or every run file in a directory."""
    path = Path(path)
    if path.is_dir():
        return [summarize_file(p) for p in discover_run_files(path)]
    return [summarize_file(path)]


def check_file(summary: HarmonicFileSummary) -> list[str]:
    """Return the problems found in a summarized file; empty means OK."""
    issues: list[str] = []

    if summary.min_event != 0:
        issues.append(f"min_event is {summary.min_event}, expected 0")

    if not _VERSION_RE.match(summary.version):
        issues.append(f"Malformed version string: {summary.version!r}")
    elif not summary.version.startswith(f"{PRODUCER_NAME}:"):
        issues.append(f"Warning: written by another producer: {summary.version}")

    indices = [_event_index(n) for n in summary.event_names]
    if indices != list(range(len(indices))):
        issues.append("Event groups are not numbered contiguously from event_0")

    if not summary.is_finalized:
        issues.append(
            f"Not finalized: max_event={summary.max_event} but "
            f"{summary.event_count} event group(s) present"
        )

    return issues


def is_ok(issues: list[str]) -> bool:
    return not any(issue for issue in issues if not issue.startswith("Warning:"))


def format_summary_table(summaries: list[HarmonicFileSummary]) -> str:
    """Format file summaries as a human-readable table."""
    if not summaries:
        return "No harmonic files found."

    lines = [
        f"{'File':<16} {'Run':>5} {'Events':>8} {'max_event':>10} {'GET':>7} {'FRIB':>7} {'Size':>12}  Version",
        "-" * 90,
    ]
    for s in summaries:
        run = "-" if s.run is None else str(s.run)
        lines.append(
            f"{s.path.name:<16} {run:>5} {s.event_count:>8} {s.max_event:>10} "
            f"{s.get_count:>7} {s.frib_count:>7} {s.file_size:>12}  {s.version}"
        )
    total = sum(s.event_count for s in summaries)
    lines.append("-" * 90)
    lines.append(f"{len(summaries)} file(s), {total} event(s)")
    return "\n".join(lines)


def format_check(results: list[tuple[HarmonicFileSummary, list[str]]]) -> str:
    """Format check results for display."""
    lines: list[str] = []
    for summary, issues in results:
        status = "OK" if is_ok(issues) else "FAIL"
        lines.append(f"[{status}] {summary.path.name}: {summary.event_count} event(s)")
        for issue in issues:
            prefix = "  WARN:" if issue.startswith("Warning:") else "  ERROR:"
            lines.append(f"{prefix} {issue}")
    return "\n".join(lines)
