"""Entry program resolution with path containment validation."""

from __future__ import annotations

import os
from pathlib import Path

from bundlesync.execution.types import EntryContainmentError, EntryNotFoundError, EntryPlan
from bundlesync.infrastructure.logger import logger
from bundlesync.sync.types import SyncRequest


def _escapes_base(rel_path: str) -> bool:
    parts = rel_path.split(os.sep)
    return parts[0] == os.pardir


def resolve_entry(base_dir: Path, relative_entry: str, containment_base: Path | None = None) -> Path:
    """Resolve ``relative_entry`` against ``base_dir`` and confirm it stays inside the containment base.

    Raises EntryNotFoundError if the joined path does not exist, and
    EntryContainmentError if it resolves outside ``containment_base``
    (defaults to ``base_dir``).
    """
    entry_path = Path(base_dir) / relative_entry
    if not entry_path.exists():
        raise EntryNotFoundError(f"Entry program not found: {entry_path}")

    abs_entry = os.path.abspath(entry_path)
    base_abs = os.path.abspath(containment_base if containment_base is not None else base_dir)

    try:
        rel_path = os.path.relpath(abs_entry, base_abs)
    except ValueError as err:
        # Different drives on Windows
        raise EntryContainmentError(f"Entry program path cannot be verified: {abs_entry}") from err

    if _escapes_base(rel_path):
        raise EntryContainmentError(f"Entry program path is outside {base_abs}, refusing to execute: {abs_entry}")

    return Path(abs_entry)


def build_entry_plan(request: SyncRequest, relative_entry: str) -> EntryPlan:
    """Resolve the entry from the destination when copying, otherwise from the source bundle.

    The working directory is always the destination root.
    """
    base = request.dest_root if request.copy_enabled else request.source_root
    base_abs = Path(os.path.abspath(base))
    resolved = resolve_entry(base, relative_entry, containment_base=base_abs)
    plan = EntryPlan(
        resolved_path=resolved,
        working_dir=Path(os.path.abspath(request.dest_root)),
        containment_base=base_abs,
    )
    logger.debug("Resolved entry program", path=str(plan.resolved_path), base=str(plan.containment_base))
    return plan
