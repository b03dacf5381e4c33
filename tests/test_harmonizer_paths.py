"""Tests for run file naming."""
from __future__ import annotations

from pathlib import Path

import pytest


class TestConstructRunPath:

    def test_zero_padded_name(self):
        from harmonizer.paths import construct_run_path
        assert construct_run_path(Path("/data/harmonic"), 7) == Path("/data/harmonic/run_0007.h5")

    def test_distinct_per_run(self):
        from harmonizer.paths import construct_run_path
        paths = {construct_run_path(Path("/out"), i) for i in range(200)}
        assert len(paths) == 200

    def test_wide_run_index(self):
        from harmonizer.paths import construct_run_path
        assert construct_run_path(Path("/out"), 12345).name == "run_12345.h5"

    def test_negative_run_rejected(self):
        from harmonizer.paths import construct_run_path
        with pytest.raises(ValueError):
            construct_run_path(Path("/out"), -1)


class TestParseRunIndex:

    def test_inverts_construct(self):
        from harmonizer.paths import construct_run_path, parse_run_index
        for run in (0, 1, 42, 9999, 10000):
            assert parse_run_index(construct_run_path(Path("/out"), run)) == run

    def test_foreign_names(self):
        from harmonizer.paths import parse_run_index
        assert parse_run_index(Path("/out/merged.h5")) is None
        assert parse_run_index(Path("/out/run_12.h5")) is None
        assert parse_run_index(Path("/out/run_0001.h5.bak")) is None


class TestDiscoverRunFiles:

    def test_sorted_by_run_index(self, tmp_path):
        from harmonizer.paths import discover_run_files
        for name in ["run_0010.h5", "run_0002.h5", "run_10000.h5", "notes.txt", "run_x.h5"]:
            (tmp_path / name).touch()
        found = discover_run_files(tmp_path)
        assert [p.name for p in found] == ["run_0002.h5", "run_0010.h5", "run_10000.h5"]

    def test_empty_directory(self, tmp_path):
        from harmonizer.paths import discover_run_files
        assert discover_run_files(tmp_path) == []
