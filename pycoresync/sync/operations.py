"""Transplanting upstream snapshot files into the project tree."""

import logging
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Optional

from ..exceptions import CoreSyncConfigWriteError, CoreSyncTransplantError
from ..utils import normalize_relative_path
from .modes import ReconciliationPolicy
from .progress import ProgressPhase, ProgressTracker
from .scanner import DirectoryScanner
from .snapshot import Snapshot
from .state import RevisionTracker

logger = logging.getLogger(__name__)


@dataclass
class ReconcileResult:
    """Outcome of applying a snapshot to the project tree."""

    policy: ReconciliationPolicy
    """Policy that was applied"""

    revision: str
    """Revision of the applied snapshot"""

    written: list[str] = field(default_factory=list)
    """Paths copied into the project"""

    skipped: list[str] = field(default_factory=list)
    """Snapshot paths deliberately left untouched"""

    failed: dict[str, str] = field(default_factory=dict)
    """Paths that could not be copied, with the error message"""

    revision_saved: bool = False
    """Whether the tracked revision was advanced"""

    warning: Optional[str] = None
    """Non-fatal problem encountered after the transplant"""

    @property
    def success(self) -> bool:
        return not self.failed

    def to_dict(self) -> dict:
        """Convert result to dictionary for JSON output."""
        return {
            "policy": self.policy.value,
            "revision": self.revision,
            "written": list(self.written),
            "skipped": list(self.skipped),
            "failed": dict(self.failed),
            "revision_saved": self.revision_saved,
            "warning": self.warning,
        }


class TransplantOperations:
    """File operations used while transplanting."""

    def copy_file(self, source: Path, dest: Path) -> None:
        """Copy a snapshot file over the project file.

        Args:
            source: File inside the snapshot
            dest: Destination in the project tree (replaced if present)

        Raises:
            IsADirectoryError: If dest is a real directory
            OSError: If the copy fails
        """
        # Ensure parent directory exists
        dest.parent.mkdir(parents=True, exist_ok=True)

        # Replace a symlink itself rather than writing through it
        if dest.is_symlink():
            dest.unlink()
        elif dest.is_dir():
            # shutil.copy would nest the file inside the directory
            raise IsADirectoryError(f"Destination is a directory: {dest}")

        shutil.copy(source, dest)


class Reconciler:
    """Applies an upstream snapshot to the project tree under a policy."""

    def __init__(
        self,
        tracker: RevisionTracker,
        operations: Optional[TransplantOperations] = None,
        progress: Optional[ProgressTracker] = None,
        scanner: Optional[DirectoryScanner] = None,
    ):
        """Initialize reconciler.

        Args:
            tracker: Tracker advanced after a complete transplant
            operations: File operations (replaceable in tests)
            progress: Receives transplant progress events
            scanner: Scanner used to walk the snapshot
        """
        self.tracker = tracker
        self.operations = operations or TransplantOperations()
        self.progress = progress or ProgressTracker()
        self.scanner = scanner or DirectoryScanner()

    def reconcile(
        self,
        live_root: Path,
        new_snapshot: Snapshot,
        policy: ReconciliationPolicy,
        conflicts: Iterable[str] = (),
        ignore: Iterable[str] = (),
    ) -> ReconcileResult:
        """Transplant snapshot files into the project tree.

        OVERWRITE_ALL copies every snapshot file. SKIP_CONFLICTS copies
        every snapshot file except the conflicting ones. ABORT changes
        nothing. Ignored paths that already exist in the project are never
        overwritten. Files that exist only in the project are left alone
        by every policy.

        The tracked revision is advanced only when every planned copy
        succeeded.

        Args:
            live_root: Project root directory
            new_snapshot: Snapshot of the revision to update to
            policy: Reconciliation policy chosen by the operator
            conflicts: Paths classified as modified
            ignore: Relative paths excluded from the update

        Returns:
            ReconcileResult describing what was written

        Raises:
            CoreSyncTransplantError: If any file could not be copied; the
                tracked revision is left unchanged
        """
        result = ReconcileResult(policy=policy, revision=new_snapshot.revision)

        if not policy.changes_files:
            logger.debug("Policy is abort, leaving project untouched")
            return result

        planned = self._plan(live_root, new_snapshot, policy, conflicts, ignore, result)
        total = len(planned)
        self.progress.emit(
            ProgressPhase.TRANSPLANT,
            f"{total} file(s) from {new_snapshot.revision}",
            current=0,
            total=total,
        )

        for index, relative_path in enumerate(planned, start=1):
            try:
                self.operations.copy_file(
                    new_snapshot.root / relative_path, live_root / relative_path
                )
                result.written.append(relative_path)
            except OSError as e:
                logger.debug(f"Failed to copy {relative_path}: {e}")
                result.failed[relative_path] = str(e)
            self.progress.emit(
                ProgressPhase.TRANSPLANT_FILE,
                relative_path,
                current=index,
                total=total,
            )

        if result.failed:
            raise CoreSyncTransplantError(
                f"{len(result.failed)} of {total} file(s) could not be updated",
                result,
            )

        self.progress.emit(ProgressPhase.SAVE_REVISION, new_snapshot.revision)
        try:
            self.tracker.write(new_snapshot.revision)
            result.revision_saved = True
        except CoreSyncConfigWriteError as e:
            logger.warning(f"Tracked revision not saved: {e}")
            result.warning = str(e)

        return result

    def _plan(
        self,
        live_root: Path,
        new_snapshot: Snapshot,
        policy: ReconciliationPolicy,
        conflicts: Iterable[str],
        ignore: Iterable[str],
        result: ReconcileResult,
    ) -> list[str]:
        """Decide which snapshot files to copy; record the skipped ones."""
        conflict_paths = {normalize_relative_path(p) for p in conflicts}
        ignored_paths = {normalize_relative_path(p) for p in ignore}

        planned: list[str] = []
        for snapshot_file in self.scanner.iter_files(new_snapshot.root):
            path = snapshot_file.relative_path
            if path in ignored_paths and (live_root / path).exists():
                result.skipped.append(path)
            elif (
                policy == ReconciliationPolicy.SKIP_CONFLICTS and path in conflict_paths
            ):
                result.skipped.append(path)
            else:
                planned.append(path)

        logger.debug(
            f"Planned {len(planned)} copies, skipping {len(result.skipped)} file(s)"
        )
        return planned
