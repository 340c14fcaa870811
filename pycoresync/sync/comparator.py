"""Drift detection between a project tree and an upstream snapshot."""

import logging
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Iterable, Optional

from ..exceptions import CoreSyncIOError
from ..utils import DEFAULT_WORKERS, hash_file, normalize_relative_path
from .progress import ProgressPhase, ProgressTracker
from .scanner import DirectoryScanner
from .snapshot import Snapshot

logger = logging.getLogger(__name__)


class FileStatus(str, Enum):
    """Classification of a single snapshot file against the project tree."""

    UNCHANGED = "unchanged"
    """Project file has the same content as the snapshot"""

    MODIFIED = "modified"
    """Project file exists but its content differs"""

    MISSING = "missing"
    """Project file does not exist"""

    IGNORED = "ignored"
    """File is on the ignore list and was not compared"""


@dataclass
class DriftReport:
    """Result of comparing a project tree against its baseline snapshot.

    All lists hold relative paths, sorted. ``missing`` and ``modified``
    are disjoint, and ignored paths never appear in either of them.
    Files that exist only in the project tree are not reported at all.
    """

    missing: list[str] = field(default_factory=list)
    """Present in the snapshot but absent from the project"""

    modified: list[str] = field(default_factory=list)
    """Present in both with different content"""

    unchanged: list[str] = field(default_factory=list)
    """Present in both with identical content"""

    ignored: list[str] = field(default_factory=list)
    """Snapshot files skipped because of the ignore list"""

    @property
    def has_drift(self) -> bool:
        """Check if any file is missing or modified."""
        return bool(self.missing or self.modified)

    @property
    def conflicts(self) -> set[str]:
        """Paths that a skip-conflicts update must leave alone."""
        return set(self.modified)

    @property
    def total_checked(self) -> int:
        return len(self.missing) + len(self.modified) + len(self.unchanged)

    def status_of(self, relative_path: str) -> Optional[FileStatus]:
        """Look up the classification of a path (None if not in the snapshot)."""
        if relative_path in self.missing:
            return FileStatus.MISSING
        if relative_path in self.modified:
            return FileStatus.MODIFIED
        if relative_path in self.unchanged:
            return FileStatus.UNCHANGED
        if relative_path in self.ignored:
            return FileStatus.IGNORED
        return None

    def to_dict(self) -> dict:
        """Convert report to dictionary for JSON output."""
        return {
            "missing": list(self.missing),
            "modified": list(self.modified),
            "unchanged": len(self.unchanged),
            "ignored": list(self.ignored),
        }


class DriftClassifier:
    """Classifies the files of a baseline snapshot against the project tree.

    Only files of the baseline snapshot are examined: a file the project
    never received cannot have drifted. Content is compared by SHA-256
    digest, with hashing spread over a thread pool.
    """

    def __init__(
        self,
        max_workers: int = DEFAULT_WORKERS,
        progress: Optional[ProgressTracker] = None,
        scanner: Optional[DirectoryScanner] = None,
    ):
        """Initialize drift classifier.

        Args:
            max_workers: Maximum number of files hashed concurrently
            progress: Receives per-file progress events
            scanner: Scanner used to walk the snapshot
        """
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self.max_workers = max_workers
        self.progress = progress or ProgressTracker()
        self.scanner = scanner or DirectoryScanner()

    def classify(
        self,
        live_root: Path,
        prior_snapshot: Snapshot,
        ignore: Iterable[str] = (),
    ) -> DriftReport:
        """Compare the project tree against the baseline snapshot.

        Args:
            live_root: Project root directory
            prior_snapshot: Snapshot of the revision the project was synced to
            ignore: Relative paths excluded from the comparison

        Returns:
            DriftReport for every snapshot file

        Raises:
            CoreSyncIOError: If the snapshot cannot be walked or a file
                cannot be hashed
        """
        start_time = time.time()
        ignored_paths = {normalize_relative_path(p) for p in ignore}

        snapshot_files = self.scanner.scan_local(prior_snapshot.root)
        total = len(snapshot_files)
        logger.debug(
            f"Classifying {total} snapshot file(s) of {prior_snapshot.revision} "
            f"with {self.max_workers} worker(s)"
        )

        statuses: dict[str, FileStatus] = {}

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures = {}
            for snapshot_file in snapshot_files:
                path = snapshot_file.relative_path
                if path in ignored_paths:
                    statuses[path] = FileStatus.IGNORED
                    continue
                future = executor.submit(
                    self._compare_single_file,
                    snapshot_file.path,
                    live_root / path,
                )
                futures[future] = path

            for completed, future in enumerate(as_completed(futures), start=1):
                path = futures[future]
                try:
                    statuses[path] = future.result()
                except OSError as e:
                    for pending in futures:
                        pending.cancel()
                    raise CoreSyncIOError(f"Failed to hash {path}: {e}") from e
                self.progress.emit(
                    ProgressPhase.CLASSIFY_FILE, path, current=completed, total=total
                )

        report = self._build_report(statuses)

        elapsed = time.time() - start_time
        logger.debug(
            f"Classification took {elapsed:.2f}s: {len(report.missing)} missing, "
            f"{len(report.modified)} modified, {len(report.unchanged)} unchanged, "
            f"{len(report.ignored)} ignored"
        )
        return report

    def _compare_single_file(self, snapshot_path: Path, live_path: Path) -> FileStatus:
        """Classify one snapshot file.

        Args:
            snapshot_path: File inside the snapshot
            live_path: Corresponding path in the project tree

        Returns:
            FileStatus of the project file
        """
        if not live_path.is_file():
            return FileStatus.MISSING

        snapshot_digest = hash_file(snapshot_path)
        try:
            live_digest = hash_file(live_path)
        except FileNotFoundError:
            # Deleted between the existence check and hashing
            return FileStatus.MISSING

        if snapshot_digest == live_digest:
            return FileStatus.UNCHANGED
        return FileStatus.MODIFIED

    def _build_report(self, statuses: dict[str, FileStatus]) -> DriftReport:
        """Merge per-file statuses into a report ordered by path."""
        report = DriftReport()
        buckets = {
            FileStatus.MISSING: report.missing,
            FileStatus.MODIFIED: report.modified,
            FileStatus.UNCHANGED: report.unchanged,
            FileStatus.IGNORED: report.ignored,
        }
        for path in sorted(statuses):
            buckets[statuses[path]].append(path)
        return report
