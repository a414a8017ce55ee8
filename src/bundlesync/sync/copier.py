"""Concurrent mirror of a source tree into a destination directory."""

from __future__ import annotations

import asyncio
import os
import shutil
import stat
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

from bundlesync.infrastructure.logger import logger
from bundlesync.sync.types import CopyTask, SyncError, SyncStats
from bundlesync.sync.version import STAMP_FILE_NAME

VCS_DIR_NAMES = frozenset({".git"})


def copy_file(task: CopyTask) -> None:
    """Copy bytes from source to destination (truncating it), then apply the source mode.

    Not atomic: a failure mid-copy leaves a partially written destination file.
    """
    with open(task.source_file, "rb") as src, open(task.dest_file, "wb") as dst:
        shutil.copyfileobj(src, dst)
    os.chmod(task.dest_file, task.mode)


def is_within(path: str, base: str) -> bool:
    """Case-sensitive check that absolute ``path`` is ``base`` or lies under it."""
    base = base.rstrip(os.sep) or os.sep
    if path == base:
        return True
    prefix = base if base.endswith(os.sep) else base + os.sep
    return path.startswith(prefix)


def has_vcs_component(rel_path: str) -> bool:
    return any(part in VCS_DIR_NAMES for part in rel_path.split(os.sep))


class _FirstError:
    """Single-assignment slot for the first copy failure.

    Only touched from the event loop thread, so no locking is needed.
    """

    def __init__(self) -> None:
        self.failure: tuple[CopyTask, OSError] | None = None

    def offer(self, task: CopyTask, err: OSError) -> bool:
        if self.failure is not None:
            return False
        self.failure = (task, err)
        return True


def _raise_walk_error(err: OSError) -> None:
    raise err


class TreeCopier:
    """Mirrors a source tree into a destination with a bounded pool of copy workers.

    Directories are created synchronously in walk order, before any file
    beneath them is scheduled, so every copy finds its parent directory.
    """

    def __init__(self, max_workers: int = 16) -> None:
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self._max_workers = max_workers

    def _should_skip(self, rel_path: str, abs_path: str, dest_abs: str) -> bool:
        if rel_path == STAMP_FILE_NAME:
            return True
        if has_vcs_component(rel_path):
            return True
        if is_within(abs_path, dest_abs):
            logger.info("Skipping destination directory to avoid infinite recursion", path=abs_path)
            return True
        return False

    async def sync(self, source_root: Path, dest_root: Path) -> SyncStats:
        """Mirror source_root into dest_root.

        Raises SyncError for the first failed file copy once all copies have
        finished. Walk and mkdir errors are raised as OSError, also only after
        copies already dispatched have finished.
        """
        src = os.path.abspath(source_root)
        dest_abs = os.path.abspath(dest_root)
        stats = SyncStats()
        first_error = _FirstError()
        pending: list[asyncio.Task[None]] = []
        loop = asyncio.get_running_loop()

        logger.debug("Starting tree copy", source=src, dest=dest_abs, max_workers=self._max_workers)

        async def run_copy(executor: ThreadPoolExecutor, task: CopyTask) -> None:
            try:
                await loop.run_in_executor(executor, copy_file, task)
            except OSError as err:
                if first_error.offer(task, err):
                    logger.error("File copy failed", source=str(task.source_file), error=str(err))
                else:
                    logger.debug("Dropping subsequent copy failure", source=str(task.source_file), error=str(err))
                return
            stats.files_copied += 1

        with ThreadPoolExecutor(max_workers=self._max_workers, thread_name_prefix="bundlesync-copy") as executor:
            try:
                for root, dirnames, filenames in os.walk(src, onerror=_raise_walk_error):
                    rel_root = os.path.relpath(root, src)
                    # Subdirectories are filtered below, only the walk root needs checking here
                    if rel_root == "." and is_within(root, dest_abs):
                        logger.info("Skipping destination directory to avoid infinite recursion", path=root)
                        dirnames[:] = []
                        stats.skipped += 1
                        continue

                    dest_dir = dest_abs if rel_root == "." else os.path.join(dest_abs, rel_root)
                    if not os.path.isdir(dest_dir):
                        stats.dirs_created += 1
                    os.makedirs(dest_dir, mode=stat.S_IMODE(os.stat(root).st_mode), exist_ok=True)

                    # Prune subtrees before os.walk descends into them
                    kept: list[str] = []
                    for name in dirnames:
                        child = os.path.join(root, name)
                        if self._should_skip(os.path.relpath(child, src), child, dest_abs):
                            stats.skipped += 1
                        else:
                            kept.append(name)
                    dirnames[:] = kept

                    for name in filenames:
                        file_path = os.path.join(root, name)
                        rel_path = os.path.relpath(file_path, src)
                        if self._should_skip(rel_path, file_path, dest_abs):
                            stats.skipped += 1
                            continue
                        try:
                            st = os.stat(file_path)
                        except FileNotFoundError:
                            logger.debug("Skipping dangling link", path=file_path)
                            stats.skipped += 1
                            continue
                        if not stat.S_ISREG(st.st_mode):
                            logger.debug("Skipping non-regular file", path=file_path)
                            stats.skipped += 1
                            continue
                        task = CopyTask(
                            source_file=Path(file_path),
                            dest_file=Path(dest_dir) / name,
                            mode=stat.S_IMODE(st.st_mode),
                        )
                        pending.append(asyncio.create_task(run_copy(executor, task)))

                    # Let dispatched copies start while the walk continues
                    await asyncio.sleep(0)
            finally:
                if pending:
                    await asyncio.gather(*pending)

        if first_error.failure is not None:
            failed, err = first_error.failure
            raise SyncError(f"failed to copy {failed.source_file} -> {failed.dest_file}: {err}") from err

        logger.debug(
            "Tree copy finished",
            files_copied=stats.files_copied,
            dirs_created=stats.dirs_created,
            skipped=stats.skipped,
        )
        return stats
