"""Sync domain types."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


class SyncError(Exception):
    """A file copy failed during a tree sync."""


@dataclass(frozen=True)
class SyncRequest:
    source_root: Path
    dest_root: Path
    force: bool = False
    copy_enabled: bool = False


@dataclass(frozen=True)
class CopyTask:
    source_file: Path
    dest_file: Path
    mode: int  # Permission bits only (stat.S_IMODE)


@dataclass
class SyncStats:
    files_copied: int = 0
    dirs_created: int = 0
    skipped: int = 0
