"""Tests for the DirectoryScanner class."""

import os
import sys

import pytest

from pycoresync.exceptions import CoreSyncIOError
from pycoresync.sync.scanner import DirectoryScanner, LocalFile


class TestDirectoryScanner:
    """Tests for walking directory trees."""

    def test_yields_files_with_relative_posix_paths(self, temp_dir, write_tree):
        """Nested files are reported relative to the root, sorted by name."""
        write_tree(
            temp_dir,
            {"b.txt": "b", "a/z.txt": "z", "a/b/c.txt": "c", "a/a.txt": "a"},
        )

        paths = [f.relative_path for f in DirectoryScanner().iter_files(temp_dir)]

        assert paths == ["a/a.txt", "a/b/c.txt", "a/z.txt", "b.txt"]

    def test_walk_is_repeatable(self, temp_dir, write_tree):
        """Two walks over an unchanged tree give the same sequence."""
        write_tree(temp_dir, {"x/1": "1", "x/2": "2", "y": "3"})
        scanner = DirectoryScanner()

        first = [f.relative_path for f in scanner.iter_files(temp_dir)]
        second = [f.relative_path for f in scanner.iter_files(temp_dir)]

        assert first == second

    def test_skips_git_directory(self, temp_dir, write_tree):
        """The .git directory is never descended into."""
        write_tree(temp_dir, {".git/HEAD": "ref", "src/index.ts": "x"})

        paths = [f.relative_path for f in DirectoryScanner().scan_local(temp_dir)]

        assert paths == ["src/index.ts"]

    def test_custom_skip_dirs(self, temp_dir, write_tree):
        """Custom skip names replace the default."""
        write_tree(temp_dir, {"node_modules/pkg/index.js": "x", ".git/HEAD": "y"})

        scanner = DirectoryScanner(skip_dirs={"node_modules"})
        paths = [f.relative_path for f in scanner.scan_local(temp_dir)]

        assert paths == [".git/HEAD"]

    def test_records_size(self, temp_dir, write_tree):
        """LocalFile carries the file size."""
        write_tree(temp_dir, {"file.txt": "12345"})

        (local_file,) = DirectoryScanner().scan_local(temp_dir)

        assert isinstance(local_file, LocalFile)
        assert local_file.size == 5
        assert local_file.path == temp_dir / "file.txt"

    def test_empty_directory(self, temp_dir):
        """An empty tree yields nothing."""
        assert DirectoryScanner().scan_local(temp_dir) == []

    def test_missing_root_raises(self, temp_dir):
        """A missing root is an I/O error."""
        with pytest.raises(CoreSyncIOError, match="does not exist"):
            DirectoryScanner().scan_local(temp_dir / "nope")

    def test_file_root_raises(self, temp_dir):
        """A file is not a valid root."""
        path = temp_dir / "file.txt"
        path.write_text("x")

        with pytest.raises(CoreSyncIOError, match="not a directory"):
            DirectoryScanner().scan_local(path)

    @pytest.mark.skipif(sys.platform == "win32", reason="symlinks need privileges")
    def test_file_symlink_is_reported(self, temp_dir, write_tree):
        """A link to a regular file is treated as a file."""
        write_tree(temp_dir, {"real.txt": "data"})
        os.symlink(temp_dir / "real.txt", temp_dir / "link.txt")

        paths = [f.relative_path for f in DirectoryScanner().scan_local(temp_dir)]

        assert paths == ["link.txt", "real.txt"]

    @pytest.mark.skipif(sys.platform == "win32", reason="symlinks need privileges")
    def test_directory_symlink_not_followed(self, temp_dir, write_tree):
        """Links to directories are not followed, so cycles terminate."""
        write_tree(temp_dir, {"dir/file.txt": "data"})
        os.symlink(temp_dir, temp_dir / "dir" / "loop")

        paths = [f.relative_path for f in DirectoryScanner().scan_local(temp_dir)]

        assert paths == ["dir/file.txt"]

    @pytest.mark.skipif(sys.platform == "win32", reason="symlinks need privileges")
    def test_dangling_symlink_skipped(self, temp_dir, write_tree):
        """Links pointing nowhere are not reported."""
        write_tree(temp_dir, {"file.txt": "data"})
        os.symlink(temp_dir / "missing", temp_dir / "broken")

        paths = [f.relative_path for f in DirectoryScanner().scan_local(temp_dir)]

        assert paths == ["file.txt"]
