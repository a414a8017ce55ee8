"""Shared fixtures: a content-addressed bundle and a destination directory."""

from __future__ import annotations

import os
from typing import TYPE_CHECKING, Callable

import pytest

from bundlesync.infrastructure.logger import configure_logging

if TYPE_CHECKING:
    from pathlib import Path

BUNDLE_NAME = "sha256new_abc123"


def _write_file(path: Path, content: str, mode: int = 0o644) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    os.chmod(path, mode)
    return path


@pytest.fixture()
def write_file() -> Callable[..., Path]:
    """Write a file (creating parents) and set its mode."""
    return _write_file


@pytest.fixture()
def bundle(tmp_path: Path) -> Path:
    """A small source tree in a content-addressed directory."""
    root = tmp_path / "cache" / BUNDLE_NAME
    _write_file(root / "README.txt", "hello")
    _write_file(root / "bin" / "app", "#!/bin/sh\nexit 0\n", mode=0o755)
    _write_file(root / "lib" / "core" / "data.bin", "x" * 4096, mode=0o600)
    _write_file(root / ".git" / "HEAD", "ref: refs/heads/main\n")
    _write_file(root / "vendor" / ".git" / "config", "[core]\n")
    _write_file(root / ".version", "stale-from-source")
    return root


@pytest.fixture()
def dest(tmp_path: Path) -> Path:
    return tmp_path / "writable" / "app"


@pytest.fixture(autouse=True)
def _reset_log_level():
    """Tests that run main() change the global level; restore it afterwards."""
    yield
    configure_logging("info")
