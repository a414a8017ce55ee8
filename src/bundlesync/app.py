"""SyncWrapper: composes the sync, launch and cleanup steps of a run."""

from __future__ import annotations

import asyncio
import os

from bundlesync.execution.entry_security import build_entry_plan
from bundlesync.execution.launcher import EntryLauncher
from bundlesync.execution.types import EntryContainmentError, EntryNotFoundError
from bundlesync.infrastructure.config import EXIT_FAILURE, WrapperSettings
from bundlesync.infrastructure.logger import logger
from bundlesync.sync.copier import TreeCopier
from bundlesync.sync.reaper import prune_if_empty
from bundlesync.sync.types import SyncError, SyncStats
from bundlesync.sync.version import derive_version, needs_sync, write_stamp


class SyncWrapper:
    """Runs one wrapper invocation and returns the process exit code."""

    def __init__(
        self,
        settings: WrapperSettings,
        copier: TreeCopier | None = None,
        launcher: EntryLauncher | None = None,
    ) -> None:
        self._settings = settings
        self._request = settings.sync_request()
        self._copier = copier or TreeCopier(max_workers=settings.max_workers)
        self._launcher = launcher or EntryLauncher(mode=settings.launch_mode)
        self.last_stats: SyncStats | None = None

    async def run(self) -> int:
        request = self._request
        logger.info(
            "Starting bundle sync",
            source=str(request.source_root),
            dest=str(request.dest_root),
            force=request.force,
            copy=request.copy_enabled,
            log_level=self._settings.log_level,
        )

        version = derive_version(request.source_root)
        logger.info("Current version", version=version)

        try:
            os.makedirs(request.dest_root, mode=0o755, exist_ok=True)
        except OSError as err:
            logger.error("Failed to create destination directory", path=str(request.dest_root), error=str(err))
            return EXIT_FAILURE

        if request.copy_enabled:
            code = await self._sync(version)
            if code != 0:
                return code
        else:
            logger.info("Copy disabled, running directly from source directory")

        if self._settings.entry:
            code = await self._launch_entry()
            if code is not None:
                return code

        try:
            prune_if_empty(request.dest_root)
        except OSError as err:
            logger.warning("Failed to remove empty destination directory", path=str(request.dest_root), error=str(err))

        return 0

    async def _sync(self, version: str) -> int:
        request = self._request
        if not request.force and not needs_sync(request.dest_root, version):
            logger.info("No sync needed, versions match", version=version)
            return 0

        logger.info("Starting sync process")
        try:
            self.last_stats = await self._copier.sync(request.source_root, request.dest_root)
        except (SyncError, OSError) as err:
            logger.error("Sync failed", error=str(err))
            return EXIT_FAILURE

        try:
            write_stamp(request.dest_root, version)
        except OSError as err:
            logger.error("Failed to update version file", error=str(err))
            return EXIT_FAILURE

        logger.info(
            "Sync completed successfully",
            files_copied=self.last_stats.files_copied,
            dirs_created=self.last_stats.dirs_created,
            skipped=self.last_stats.skipped,
        )
        return 0

    async def _launch_entry(self) -> int | None:
        """Launch the entry program. Returns None when it was skipped."""
        entry = self._settings.entry
        logger.info("Executing entry program", entry=entry)

        try:
            plan = build_entry_plan(self._request, entry)
        except EntryNotFoundError as err:
            logger.warning("Entry program not found", error=str(err))
            return None
        except EntryContainmentError as err:
            logger.error("Refusing to execute entry program", error=str(err))
            return None

        # launch() blocks on the child in wait mode
        return await asyncio.to_thread(self._launcher.launch, plan)
