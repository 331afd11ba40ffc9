"""Local :class:`~sermonbrowser.core.protocols.FileSystem` implementation."""

from __future__ import annotations

import os
from pathlib import Path


class LocalFileSystem:
    """``os``/``pathlib`` backed filesystem.  Every method may raise ``OSError``."""

    def mkdir(self, path: str, mode: int = 0o755, recursive: bool = True) -> None:
        Path(path).mkdir(mode=mode, parents=recursive, exist_ok=True)

    def is_dir(self, path: str) -> bool:
        return os.path.isdir(path)

    def exists(self, path: str) -> bool:
        # lexists: a dangling symlink is still an entry
        return os.path.lexists(path)

    def listdir(self, path: str) -> list[str]:
        return sorted(os.listdir(path))

    def rename(self, src: str, dst: str) -> None:
        os.rename(src, dst)

    def unlink(self, path: str) -> None:
        os.unlink(path)

    def chmod(self, path: str, mode: int) -> None:
        os.chmod(path, mode)

    def realpath(self, path: str) -> str:
        return os.path.realpath(path)


def is_within(base: str, candidate: str) -> bool:
    """True when canonical *candidate* is *base* or lies below it.

    Both arguments must already be canonical (symlinks resolved).
    """
    base = base.rstrip(os.sep) or os.sep
    if candidate == base:
        return True
    prefix = base if base.endswith(os.sep) else base + os.sep
    return candidate.startswith(prefix)


__all__ = ["LocalFileSystem", "is_within"]
