"""Tests for ``querygate.sinks`` — failure log sinks and fail channels."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from querygate.errors import DatabaseError
from querygate.sinks import FileFailureSink, RaisingFailChannel, StructlogFailureSink


class TestFileFailureSink:
    def test_path_for(self, tmp_path):
        sink = FileFailureSink(tmp_path)
        when = datetime(2026, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
        assert sink.path_for("shopabc", when) == tmp_path / "shopabc_2026-01-02.log"

    def test_write_appends(self, tmp_path):
        sink = FileFailureSink(tmp_path / "logs")
        sink.write("first", "shopabc")
        sink.write("second\nRaw SQL : SELECT 1", "shopabc")

        path = sink.path_for("shopabc")
        lines = path.read_text(encoding="utf-8").splitlines()
        assert lines[0].endswith("] first")
        assert lines[1].endswith("] second")
        assert lines[2] == "Raw SQL : SELECT 1"

    def test_keys_are_separate_files(self, tmp_path):
        sink = FileFailureSink(tmp_path)
        sink.write("a", "one")
        sink.write("b", "two")
        assert sink.path_for("one").exists()
        assert sink.path_for("two").exists()

    def test_unwritable_directory_does_not_raise(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        FileFailureSink(blocker / "logs").write("boom", "shopabc")  # No-op; should not raise


class TestStructlogFailureSink:
    def test_write(self):
        StructlogFailureSink().write("boom", "shopabc")  # Should not raise


class TestRaisingFailChannel:
    def test_report_fatal_raises(self):
        with pytest.raises(DatabaseError, match="boom"):
            RaisingFailChannel().report_fatal("boom")
