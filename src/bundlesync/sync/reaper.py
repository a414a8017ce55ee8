"""Removal of empty directories left behind under the destination."""

from __future__ import annotations

import os
from pathlib import Path

from bundlesync.infrastructure.logger import logger


def _prune(directory: Path, is_root: bool) -> bool:
    """Post-order prune. Returns True if ``directory`` was empty and has been removed."""
    remaining: list[str] = []
    with os.scandir(directory) as entries:
        children = list(entries)

    for entry in children:
        if entry.is_dir(follow_symlinks=False):
            try:
                if _prune(Path(entry.path), is_root=False):
                    continue
            except OSError as err:
                logger.warning("Failed to remove empty subdirectory", path=entry.path, error=str(err))
        remaining.append(entry.name)

    if remaining:
        if is_root:
            logger.info("Destination directory is not empty, keeping it", path=str(directory), entries=sorted(remaining))
        else:
            logger.debug("Directory is not empty, keeping it", path=str(directory), entries=sorted(remaining))
        return False

    logger.info("Removing empty directory", path=str(directory))
    directory.rmdir()
    return True


def prune_if_empty(directory: Path) -> bool:
    """Remove empty directories under ``directory``, then ``directory`` itself if empty.

    Returns True when ``directory`` was removed. A missing directory is a no-op.
    """
    directory = Path(directory)
    if not directory.exists():
        logger.debug("Directory does not exist", path=str(directory))
        return False
    return _prune(directory, is_root=True)
