"""Barrel re-export of all domain types."""

from bundlesync.execution.types import (
    EntryContainmentError,
    EntryNotFoundError,
    EntryPlan,
    EntryResolutionError,
)
from bundlesync.sync.types import CopyTask, SyncError, SyncRequest, SyncStats

__all__ = [
    "CopyTask",
    "EntryContainmentError",
    "EntryNotFoundError",
    "EntryPlan",
    "EntryResolutionError",
    "SyncError",
    "SyncRequest",
    "SyncStats",
]
