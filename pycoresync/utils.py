"""Utility functions and constants for pycoresync."""

import hashlib
from pathlib import Path

# =============================================================================
# Constants for project layout
# =============================================================================

# Project file holding the tracked upstream revision
DEFAULT_CONFIG_FILE: str = "src/supacharger/supacharger-config.ts"

# Staging directory (relative to the project root) for upstream snapshots
DEFAULT_STAGING_DIR: str = ".sc-core-update"

# Files never compared or overwritten during an update
DEFAULT_IGNORED_FILES: tuple[str, ...] = (DEFAULT_CONFIG_FILE,)

# Parallel workers used for hashing during the drift scan
DEFAULT_WORKERS: int = 8

# Read size used when hashing files (1 MB)
HASH_CHUNK_SIZE: int = 1024 * 1024


# =============================================================================
# Hash calculation utilities
# =============================================================================


def hash_file(path: Path) -> str:
    """Calculate the SHA-256 digest of a file's content.

    Only the bytes are hashed, so timestamps and permissions never
    influence the result.

    Args:
        path: File to hash

    Returns:
        Hex encoded SHA-256 digest

    Raises:
        OSError: If the file cannot be read
    """
    digest = hashlib.sha256()
    with open(path, "rb") as f:
        while True:
            chunk = f.read(HASH_CHUNK_SIZE)
            if not chunk:
                break
            digest.update(chunk)
    return digest.hexdigest()


def short_revision(revision: str, length: int = 7) -> str:
    """Shorten a revision identifier for display.

    Examples:
        >>> short_revision("0123456789abcdef")
        '0123456'
    """
    return revision[:length]


# =============================================================================
# Path utilities
# =============================================================================


def normalize_relative_path(path: str) -> str:
    """Normalize a user supplied relative path to forward-slash form.

    Examples:
        >>> normalize_relative_path("src\\\\app\\\\page.tsx")
        'src/app/page.tsx'
        >>> normalize_relative_path("./src//lib/")
        'src/lib'
    """
    parts = [p for p in path.replace("\\", "/").split("/") if p not in ("", ".")]
    return "/".join(parts)
