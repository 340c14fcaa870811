"""Tests for utility functions."""

import hashlib
import os

from pycoresync.utils import (
    HASH_CHUNK_SIZE,
    hash_file,
    normalize_relative_path,
    short_revision,
)


class TestHashFile:
    """Tests for hash_file."""

    def test_matches_sha256_of_content(self, temp_dir):
        """Digest should equal hashlib's SHA-256 of the bytes."""
        path = temp_dir / "file.txt"
        path.write_bytes(b"hello world")

        assert hash_file(path) == hashlib.sha256(b"hello world").hexdigest()

    def test_empty_file(self, temp_dir):
        """Empty files hash to the SHA-256 of no bytes."""
        path = temp_dir / "empty"
        path.write_bytes(b"")

        assert hash_file(path) == hashlib.sha256(b"").hexdigest()

    def test_content_larger_than_chunk(self, temp_dir):
        """Files spanning several read chunks hash correctly."""
        data = b"x" * (HASH_CHUNK_SIZE * 2 + 17)
        path = temp_dir / "big.bin"
        path.write_bytes(data)

        assert hash_file(path) == hashlib.sha256(data).hexdigest()

    def test_timestamps_do_not_matter(self, temp_dir):
        """Two files with identical bytes but different mtimes hash the same."""
        first = temp_dir / "a"
        second = temp_dir / "b"
        first.write_bytes(b"same")
        second.write_bytes(b"same")
        os.utime(first, (1_000_000, 1_000_000))

        assert hash_file(first) == hash_file(second)

    def test_different_content_differs(self, temp_dir):
        """Different bytes give different digests."""
        first = temp_dir / "a"
        second = temp_dir / "b"
        first.write_bytes(b"one")
        second.write_bytes(b"two")

        assert hash_file(first) != hash_file(second)


class TestShortRevision:
    """Tests for short_revision."""

    def test_default_length(self):
        assert short_revision("0123456789abcdef") == "0123456"

    def test_custom_length(self):
        assert short_revision("0123456789abcdef", 4) == "0123"

    def test_short_input_unchanged(self):
        assert short_revision("abc") == "abc"


class TestNormalizeRelativePath:
    """Tests for normalize_relative_path."""

    def test_backslashes(self):
        """Windows separators are converted to forward slashes."""
        assert normalize_relative_path("src\\app\\page.tsx") == "src/app/page.tsx"

    def test_dot_and_empty_segments(self):
        """Leading ./, doubled and trailing slashes are dropped."""
        assert normalize_relative_path("./src//lib/") == "src/lib"

    def test_already_normalized(self):
        assert normalize_relative_path("a/b/c.ts") == "a/b/c.ts"
