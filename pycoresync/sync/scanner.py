"""Directory scanning utilities for core updates."""

import logging
import os
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from ..exceptions import CoreSyncIOError

logger = logging.getLogger(__name__)

# Directory names never descended into
DEFAULT_SKIP_DIRS: frozenset[str] = frozenset({".git"})


def _list_dir(directory: Path) -> list[os.DirEntry]:
    """List a directory sorted by entry name."""
    try:
        with os.scandir(directory) as it:
            return sorted(it, key=lambda e: e.name)
    except OSError as e:
        raise CoreSyncIOError(f"Cannot read directory {directory}: {e}") from e


@dataclass
class LocalFile:
    """Represents a file inside a scanned tree."""

    path: Path
    """Absolute path to the file"""

    relative_path: str
    """Relative path (using forward slashes for cross-platform compatibility)"""

    size: int
    """File size in bytes"""

    mtime: float
    """Last modification time (Unix timestamp)"""

    @classmethod
    def from_path(cls, file_path: Path, base_path: Path) -> "LocalFile":
        """Create LocalFile from a path.

        Args:
            file_path: Absolute path to the file
            base_path: Base path for calculating relative paths

        Returns:
            LocalFile instance
        """
        # stat() follows symlinks, so a link reports its target's metadata
        stat = file_path.stat()
        # Use as_posix() to ensure forward slashes on all platforms
        relative_path = file_path.relative_to(base_path).as_posix()

        return cls(
            path=file_path,
            relative_path=relative_path,
            size=stat.st_size,
            mtime=stat.st_mtime,
        )


class DirectoryScanner:
    """Walks a directory tree and yields its regular files.

    Symbolic links that resolve to regular files are reported as files.
    Symbolic links to directories are not followed, which keeps the walk
    finite. Entries are visited in name order, so two walks over an
    unchanged tree produce the same sequence.

    Examples:
        >>> scanner = DirectoryScanner()
        >>> for f in scanner.iter_files(Path("/project")):
        ...     print(f.relative_path)
    """

    def __init__(self, skip_dirs: Optional[set[str]] = None):
        """Initialize directory scanner.

        Args:
            skip_dirs: Directory names to skip anywhere in the tree
                (defaults to {".git"})
        """
        self.skip_dirs = (
            frozenset(skip_dirs) if skip_dirs is not None else DEFAULT_SKIP_DIRS
        )

    def iter_files(self, root: Path) -> Iterator[LocalFile]:
        """Lazily yield every regular file below root.

        Each call starts a fresh walk, so the returned iterator can be
        recreated as often as needed.

        Args:
            root: Directory to walk

        Yields:
            LocalFile objects with paths relative to root

        Raises:
            CoreSyncIOError: If root is missing, not a directory or unreadable
        """
        if not root.exists():
            raise CoreSyncIOError(f"Directory does not exist: {root}")
        if not root.is_dir():
            raise CoreSyncIOError(f"Path is not a directory: {root}")

        yield from self._walk(root, _list_dir(root))

    def _walk(self, root: Path, entries: list[os.DirEntry]) -> Iterator[LocalFile]:
        """Recursively yield files from already listed directory entries."""
        for entry in entries:
            entry_path = Path(entry.path)

            if entry.is_dir(follow_symlinks=False):
                if entry.name in self.skip_dirs:
                    logger.debug(f"Skipping directory: {entry_path}")
                    continue
                yield from self._walk(root, _list_dir(entry_path))

            elif entry.is_file(follow_symlinks=True):
                try:
                    local_file = LocalFile.from_path(entry_path, root)
                except OSError as e:
                    # Dangling or vanished entry
                    logger.debug(f"Skipping unreadable file {entry_path}: {e}")
                    continue
                yield local_file

    def scan_local(self, root: Path) -> list[LocalFile]:
        """Scan a directory tree into a list.

        Args:
            root: Directory to scan

        Returns:
            List of LocalFile objects in walk order
        """
        return list(self.iter_files(root))
