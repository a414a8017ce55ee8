"""Version stamp handling.

The version of a bundle is the name of its directory. Bundles are expected to
live in content-addressed directories (``sha256new_<hash>``), so the name
already identifies the content and no hashing pass over the tree is needed.
"""

from __future__ import annotations

from pathlib import Path

from bundlesync.infrastructure.logger import logger

STAMP_FILE_NAME = ".version"
CONTENT_HASH_PREFIX = "sha256new_"


def stamp_path(dest_root: Path) -> Path:
    return Path(dest_root) / STAMP_FILE_NAME


def is_content_addressed(version: str) -> bool:
    return version.startswith(CONTENT_HASH_PREFIX)


def derive_version(source_root: Path) -> str:
    """Return the last path component of source_root, unchanged."""
    version = Path(source_root).name or str(source_root)
    if not is_content_addressed(version):
        logger.debug("Source directory name is not content-addressed", version=version)
    return version


def needs_sync(dest_root: Path, current_version: str) -> bool:
    """True unless the stamp in dest_root matches current_version.

    A missing or unreadable stamp means the destination must be synced.
    """
    path = stamp_path(dest_root)
    try:
        stored = path.read_text(encoding="utf-8").strip()
    except FileNotFoundError:
        logger.info("Version file not found, need sync", path=str(path))
        return True
    except (OSError, UnicodeDecodeError) as err:
        logger.info("Failed to read version file, need sync", path=str(path), error=str(err))
        return True

    if stored != current_version:
        logger.info("Version mismatch, need sync", stored=stored, current=current_version)
        return True

    return False


def write_stamp(dest_root: Path, version: str) -> None:
    """Overwrite the stamp file with exactly ``version``."""
    stamp_path(dest_root).write_text(version, encoding="utf-8")
