"""Entry point: python -m bundlesync"""

from __future__ import annotations

import asyncio
import sys

from bundlesync.infrastructure.config import EXIT_FAILURE, ConfigError, load_settings
from bundlesync.infrastructure.logger import configure_logging, logger


def main(argv: list[str] | None = None) -> int:
    from bundlesync.app import SyncWrapper

    try:
        settings = load_settings(argv)
    except ConfigError as err:
        logger.error("Invalid configuration", error=str(err))
        return EXIT_FAILURE

    configure_logging(settings.log_level)
    return asyncio.run(SyncWrapper(settings).run())


def run() -> None:
    try:
        code = main()
    except KeyboardInterrupt:
        code = EXIT_FAILURE
    sys.exit(code)


if __name__ == "__main__":
    run()
