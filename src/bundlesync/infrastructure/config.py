"""Configuration constants, wrapper.config.json loading, and command-line flags.

Settings are resolved once at startup, in increasing order of precedence:
built-in defaults, the JSON config file found in the source directory, then
command-line flags. The result is an immutable ``WrapperSettings`` that is
passed explicitly to every component.
"""

from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from bundlesync.infrastructure.logger import logger
from bundlesync.sync.types import SyncRequest

CONFIG_FILE_NAME = "wrapper.config.json"
DEFAULT_DEST_DIR_NAME = "Aiwb_Application"
EXIT_FAILURE = 1

LOG_LEVELS = ("debug", "info", "warn", "warning", "error")
LAUNCH_MODES = ("detach", "wait")

DEFAULT_MAX_COPY_WORKERS: int = max(1, int(os.environ.get("BUNDLESYNC_MAX_COPY_WORKERS", "16")))

LaunchMode = Literal["detach", "wait"]


class ConfigError(Exception):
    """Raised when the run cannot be configured (e.g. no destination)."""


class FileConfig(BaseModel):
    """Contents of wrapper.config.json. Every key is optional."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    dest: str = ""
    name: str = ""
    force: bool = False
    log_level: str = Field(default="info", alias="log-level")
    entry: str = ""
    copy_enabled: bool = Field(default=False, alias="copy")
    launch_mode: LaunchMode = Field(default="detach", alias="launch-mode")
    max_workers: int = Field(default=DEFAULT_MAX_COPY_WORKERS, alias="max-workers", ge=1)


class WrapperSettings(BaseModel):
    """Resolved, immutable settings for a single run."""

    model_config = ConfigDict(frozen=True)

    source_root: Path
    dest_root: Path
    force: bool = False
    log_level: str = "info"
    entry: str = ""
    copy_enabled: bool = False
    launch_mode: LaunchMode = "detach"
    max_workers: int = Field(default=DEFAULT_MAX_COPY_WORKERS, ge=1)

    def sync_request(self) -> SyncRequest:
        return SyncRequest(
            source_root=self.source_root,
            dest_root=self.dest_root,
            force=self.force,
            copy_enabled=self.copy_enabled,
        )


def default_source_dir() -> Path:
    """Directory holding the bundle: next to a frozen executable, else the cwd."""
    if getattr(sys, "frozen", False):
        return Path(sys.executable).resolve().parent
    return Path.cwd()


def default_dest_dir() -> str:
    """~/Aiwb_Application, or "" when the home directory cannot be determined."""
    try:
        return str(Path.home() / DEFAULT_DEST_DIR_NAME)
    except RuntimeError as err:
        logger.warning("Failed to get current user home directory", error=str(err))
        return ""


def load_config_file(config_path: Path) -> FileConfig | None:
    """Load wrapper.config.json. Returns None if missing or unusable."""
    logger.debug("Looking for config file", path=str(config_path))
    if not config_path.exists():
        return None
    try:
        content = config_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as err:
        logger.warning("Failed to read config file", path=str(config_path), error=str(err))
        return None
    try:
        return FileConfig.model_validate_json(content)
    except ValidationError as err:
        logger.warning("Failed to parse config file", path=str(config_path), error=str(err))
        return None


_EPILOG = """\
examples:
  # Basic usage (default dest: ~/Aiwb_Application)
  bundlesync

  # With custom destination and subdirectory name
  bundlesync --dest /path/to/writable/dir --name myapp

  # Force sync, ignoring the version stamp
  bundlesync --copy --force

  # Mirror the bundle, then run an entry program from the copy
  bundlesync --copy --entry bin/app

  # Run the entry program straight from the source bundle
  bundlesync --no-copy --entry bin/app
"""


def build_parser(defaults: FileConfig) -> argparse.ArgumentParser:
    """Build the CLI parser with defaults taken from the config file."""
    parser = argparse.ArgumentParser(
        prog="bundlesync",
        description="Mirror a read-only application bundle into a writable directory and launch it.",
        epilog=_EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--source", type=str, help="Bundle directory to mirror (default: executable dir or cwd)")
    parser.add_argument("--dest", type=str, default=defaults.dest, help="Target writable directory")
    parser.add_argument("--name", type=str, default=defaults.name, help="Subdirectory name under destination")
    parser.add_argument(
        "--force",
        action=argparse.BooleanOptionalAction,
        default=defaults.force,
        help="Force sync, ignore version check",
    )
    parser.add_argument(
        "--log-level",
        type=str.lower,
        choices=LOG_LEVELS,
        default=defaults.log_level.lower(),
        help="Log level",
    )
    parser.add_argument("--entry", type=str, default=defaults.entry, help="Relative path to entry program")
    parser.add_argument(
        "--copy",
        action=argparse.BooleanOptionalAction,
        default=defaults.copy_enabled,
        help="Enable file copy (default: run directly from the source directory)",
    )
    parser.add_argument(
        "--launch-mode",
        choices=LAUNCH_MODES,
        default=defaults.launch_mode,
        help="detach: start entry and exit 0; wait: exit with the entry's exit code",
    )
    parser.add_argument(
        "--max-workers",
        type=int,
        default=defaults.max_workers,
        help="Number of concurrent file copies",
    )
    return parser


def load_settings(argv: list[str] | None = None) -> WrapperSettings:
    """Resolve settings from defaults, the config file and command-line flags."""
    pre_parser = argparse.ArgumentParser(add_help=False)
    pre_parser.add_argument("--source", type=str)
    known, _ = pre_parser.parse_known_args(argv)

    source_root = Path(known.source).absolute() if known.source else default_source_dir()
    file_config = load_config_file(source_root / CONFIG_FILE_NAME) or FileConfig()

    args = build_parser(file_config).parse_args(argv)

    dest = args.dest or default_dest_dir()
    if not dest:
        raise ConfigError("Destination directory not set and failed to get user home directory")

    dest_root = Path(dest).expanduser()
    if args.name:
        dest_root = dest_root / args.name

    if args.max_workers < 1:
        raise ConfigError(f"--max-workers must be at least 1, got {args.max_workers}")

    return WrapperSettings(
        source_root=source_root,
        dest_root=dest_root,
        force=args.force,
        log_level=args.log_level,
        entry=args.entry,
        copy_enabled=args.copy,
        launch_mode=args.launch_mode,
        max_workers=args.max_workers,
    )
