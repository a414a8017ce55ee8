"""EntryLauncher starts the entry program with the host's environment and stdio."""

from __future__ import annotations

import os
import subprocess
from typing import Callable

from bundlesync.execution.types import EntryPlan
from bundlesync.infrastructure.config import EXIT_FAILURE, LaunchMode
from bundlesync.infrastructure.logger import logger

PopenFactory = Callable[..., subprocess.Popen]


class EntryLauncher:
    """Launches the entry program and reports the exit code the host should use.

    ``detach`` starts the program and returns 0 without waiting for it;
    ``wait`` blocks and returns the program's own exit code. The two are not
    interchangeable: only ``wait`` propagates the program's exit status.
    """

    def __init__(self, mode: LaunchMode = "detach", popen: PopenFactory | None = None) -> None:
        if mode not in ("detach", "wait"):
            raise ValueError(f"Unknown launch mode: {mode}")
        self._mode = mode
        self._popen = popen or subprocess.Popen

    @property
    def mode(self) -> LaunchMode:
        return self._mode

    def launch(self, plan: EntryPlan) -> int:
        logger.info("Changing to directory", path=str(plan.working_dir))
        logger.info("Executing command", path=str(plan.resolved_path), mode=self._mode)

        try:
            # stdin/stdout/stderr left as None: the child inherits the host's streams
            proc = self._popen(
                [str(plan.resolved_path)],
                cwd=str(plan.working_dir),
                env=os.environ.copy(),
            )
        except OSError as err:
            logger.error("Failed to start entry program", path=str(plan.resolved_path), error=str(err))
            return EXIT_FAILURE

        if self._mode == "detach":
            logger.info("Started entry program, exiting wrapper", pid=proc.pid)
            return 0

        logger.info("Started entry program, waiting for it to exit", pid=proc.pid)
        return_code = proc.wait()
        if return_code < 0:
            logger.error("Entry program terminated abnormally", pid=proc.pid, signal=-return_code)
            return EXIT_FAILURE

        logger.info("Entry program exited", pid=proc.pid, code=return_code)
        return return_code
