"""Tests for empty directory removal."""

import os

import pytest
from structlog.testing import capture_logs

from bundlesync.sync.reaper import prune_if_empty


class TestPruneIfEmpty:
    def test_missing_directory_is_noop(self, tmp_path):
        assert prune_if_empty(tmp_path / "missing") is False

    def test_removes_empty_directory(self, tmp_path):
        target = tmp_path / "dest"
        target.mkdir()
        assert prune_if_empty(target) is True
        assert not target.exists()

    def test_removes_nested_empty_directories(self, tmp_path):
        target = tmp_path / "dest"
        (target / "a" / "b" / "c").mkdir(parents=True)
        (target / "d").mkdir()
        assert prune_if_empty(target) is True
        assert not target.exists()

    def test_keeps_non_empty_and_prunes_empty_children(self, tmp_path):
        target = tmp_path / "dest"
        (target / "empty" / "deeper").mkdir(parents=True)
        (target / "data").mkdir()
        (target / "data" / "file.txt").write_text("x")

        assert prune_if_empty(target) is False

        assert (target / "data" / "file.txt").exists()
        assert not (target / "empty").exists()

    def test_lists_remaining_entries(self, tmp_path):
        target = tmp_path / "dest"
        target.mkdir()
        (target / "notes.txt").write_text("x")
        (target / "keep").mkdir()
        (target / "keep" / "f").write_text("y")

        with capture_logs() as logs:
            prune_if_empty(target)

        kept = [entry for entry in logs if entry["event"] == "Destination directory is not empty, keeping it"]
        assert len(kept) == 1
        assert kept[0]["entries"] == ["keep", "notes.txt"]

    @pytest.mark.skipif(not hasattr(os, "symlink"), reason="symlinks unsupported")
    def test_does_not_follow_directory_symlinks(self, tmp_path):
        outside = tmp_path / "outside"
        outside.mkdir()
        target = tmp_path / "dest"
        target.mkdir()
        os.symlink(outside, target / "link", target_is_directory=True)

        assert prune_if_empty(target) is False
        assert outside.is_dir()
        assert (target / "link").is_symlink()
