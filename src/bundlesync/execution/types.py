"""Execution domain types."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


class EntryResolutionError(Exception):
    """The configured entry program cannot be launched."""


class EntryNotFoundError(EntryResolutionError):
    pass


class EntryContainmentError(EntryResolutionError):
    """The entry resolves outside of its containment base."""


@dataclass(frozen=True)
class EntryPlan:
    resolved_path: Path
    working_dir: Path
    containment_base: Path
