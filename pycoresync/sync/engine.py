"""Core update engine: drift detection and reconciliation."""

import logging
import time
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Iterable, Optional, Protocol

from ..exceptions import CoreSyncConfigReadError, CoreSyncVcsError
from ..utils import (
    DEFAULT_CONFIG_FILE,
    DEFAULT_IGNORED_FILES,
    DEFAULT_STAGING_DIR,
    DEFAULT_WORKERS,
)
from ..vcs import GitClient
from .comparator import DriftClassifier, DriftReport
from .modes import ReconciliationPolicy
from .operations import Reconciler, ReconcileResult
from .progress import ProgressPhase, ProgressTracker
from .snapshot import SnapshotMaterializer
from .state import RevisionTracker

logger = logging.getLogger(__name__)


class RevisionResolver(Protocol):
    """Anything that can name the newest upstream revision."""

    def get_latest_revision(self, branch: Optional[str] = None) -> str: ...


PolicyChooser = Callable[[DriftReport], ReconciliationPolicy]


class UpdateOutcome(str, Enum):
    """Terminal states of an update run."""

    UP_TO_DATE = "up_to_date"
    """Tracked revision already is the newest one"""

    FAST_FORWARD = "fast_forward"
    """No drift; the newest revision was applied wholesale"""

    ABORTED = "aborted"
    """Drift found and the operator chose to exit"""

    APPLIED = "applied"
    """Drift found and the chosen policy was applied"""

    DRY_RUN = "dry_run"
    """Drift was reported without changing anything"""


@dataclass
class UpdateResult:
    """Summary of an update run."""

    outcome: UpdateOutcome
    local_revision: str
    remote_revision: str
    report: Optional[DriftReport] = None
    policy: Optional[ReconciliationPolicy] = None
    reconcile: Optional[ReconcileResult] = None

    @property
    def changed_files(self) -> bool:
        return self.reconcile is not None and bool(self.reconcile.written)

    def to_dict(self) -> dict:
        """Convert result to dictionary for JSON output."""
        return {
            "outcome": self.outcome.value,
            "local_revision": self.local_revision,
            "remote_revision": self.remote_revision,
            "policy": self.policy.value if self.policy else None,
            "drift": self.report.to_dict() if self.report else None,
            "reconcile": self.reconcile.to_dict() if self.reconcile else None,
        }


class CoreUpdateEngine:
    """Brings a customized project tree forward to the newest upstream revision.

    A run reads the tracked revision, asks the resolver for the newest
    one, and stops if they match. Otherwise the tracked revision is
    checked out into the staging directory and compared with the project
    tree. Without drift the newest revision is applied wholesale; with
    drift the operator picks a policy first.

    The engine reports progress through a ProgressTracker and signals
    failure by raising CoreSyncError subclasses. It never prints and
    never exits the process.
    """

    def __init__(
        self,
        live_root: Path,
        tracker: RevisionTracker,
        resolver: RevisionResolver,
        materializer: SnapshotMaterializer,
        classifier: Optional[DriftClassifier] = None,
        reconciler: Optional[Reconciler] = None,
        progress: Optional[ProgressTracker] = None,
        ignore: Iterable[str] = DEFAULT_IGNORED_FILES,
        branch: Optional[str] = None,
    ):
        """Initialize update engine.

        Args:
            live_root: Project root directory
            tracker: Reads and advances the tracked revision
            resolver: Resolves the newest upstream revision
            materializer: Checks out revisions into the staging directory
            classifier: Drift classifier (default: DriftClassifier())
            reconciler: Reconciler (default: Reconciler(tracker))
            progress: Receives progress events
            ignore: Relative paths excluded from comparison and overwrite
            branch: Upstream branch passed to the resolver
        """
        self.live_root = live_root
        self.tracker = tracker
        self.resolver = resolver
        self.materializer = materializer
        self.progress = progress or ProgressTracker()
        self.classifier = classifier or DriftClassifier(progress=self.progress)
        self.reconciler = reconciler or Reconciler(tracker, progress=self.progress)
        self.ignore = list(ignore)
        self.branch = branch

    @classmethod
    def for_project(
        cls,
        live_root: Path,
        resolver: RevisionResolver,
        repo_url: str,
        branch: str,
        git: Optional[GitClient] = None,
        config_file: str = DEFAULT_CONFIG_FILE,
        staging_dir: str = DEFAULT_STAGING_DIR,
        ignore: Iterable[str] = DEFAULT_IGNORED_FILES,
        max_workers: Optional[int] = None,
        progress: Optional[ProgressTracker] = None,
    ) -> "CoreUpdateEngine":
        """Build an engine with the standard project layout.

        Args:
            live_root: Project root directory
            resolver: Resolves the newest upstream revision
            repo_url: Upstream repository URL for git
            branch: Upstream branch
            git: Git client (default: GitClient())
            config_file: Config file holding the tracked revision, relative
                to live_root
            staging_dir: Staging directory, relative to live_root
            ignore: Relative paths excluded from comparison and overwrite
            max_workers: Hashing parallelism
            progress: Receives progress events

        Returns:
            Configured CoreUpdateEngine
        """
        progress = progress or ProgressTracker()
        tracker = RevisionTracker(live_root / config_file)
        materializer = SnapshotMaterializer(
            git=git or GitClient(),
            repo_url=repo_url,
            branch=branch,
            staging_dir=live_root / staging_dir,
            live_root=live_root,
        )
        classifier = DriftClassifier(
            max_workers=max_workers or DEFAULT_WORKERS, progress=progress
        )
        return cls(
            live_root=live_root,
            tracker=tracker,
            resolver=resolver,
            materializer=materializer,
            classifier=classifier,
            progress=progress,
            ignore=ignore,
            branch=branch,
        )

    def resolve_revisions(self) -> tuple[str, str]:
        """Read the tracked revision and resolve the newest one.

        Returns:
            Tuple of (tracked revision, newest revision)

        Raises:
            CoreSyncConfigReadError: If the project has no tracked revision
            CoreSyncNetworkError: If the newest revision cannot be resolved
        """
        self.progress.emit(
            ProgressPhase.RESOLVE_LOCAL_REV, str(self.tracker.config_path)
        )
        local_revision = self.tracker.read()
        if not local_revision:
            raise CoreSyncConfigReadError(
                f"No tracked revision found in {self.tracker.config_path}. "
                "The project has never been synced with upstream."
            )
        logger.debug(f"Tracked revision: {local_revision}")

        self.progress.emit(ProgressPhase.RESOLVE_REMOTE_REV, self.branch or "")
        remote_revision = self.resolver.get_latest_revision(self.branch)
        logger.debug(f"Newest revision: {remote_revision}")
        return local_revision, remote_revision

    def run(
        self,
        choose_policy: PolicyChooser,
        dry_run: bool = False,
    ) -> UpdateResult:
        """Run one update.

        Args:
            choose_policy: Called with the drift report when drift exists;
                returns the policy to apply
            dry_run: Stop after classification and report the drift

        Returns:
            UpdateResult describing the terminal state

        Raises:
            CoreSyncConfigReadError: If the project has no tracked revision
            CoreSyncNetworkError: If the newest revision cannot be resolved
            CoreSyncVcsError: If a snapshot cannot be checked out (the
                staging directory is kept for inspection)
            CoreSyncIOError: If hashing fails or the transplant is partial
        """
        start_time = time.time()
        local_revision, remote_revision = self.resolve_revisions()

        if local_revision == remote_revision:
            self.progress.emit(ProgressPhase.DONE, "already up to date")
            return UpdateResult(
                outcome=UpdateOutcome.UP_TO_DATE,
                local_revision=local_revision,
                remote_revision=remote_revision,
            )

        keep_staging = False
        try:
            self.progress.emit(ProgressPhase.MATERIALIZE, local_revision)
            prior = self.materializer.materialize(local_revision)

            self.progress.emit(ProgressPhase.CLASSIFY, local_revision)
            report = self.classifier.classify(self.live_root, prior, self.ignore)

            result = UpdateResult(
                outcome=UpdateOutcome.DRY_RUN,
                local_revision=local_revision,
                remote_revision=remote_revision,
                report=report,
            )
            if dry_run:
                return result

            if report.has_drift:
                self.progress.emit(
                    ProgressPhase.AWAIT_POLICY,
                    f"{len(report.missing)} missing, {len(report.modified)} modified",
                )
                policy = ReconciliationPolicy(choose_policy(report))
                result.policy = policy
                if policy == ReconciliationPolicy.ABORT:
                    result.outcome = UpdateOutcome.ABORTED
                    return result
                result.outcome = UpdateOutcome.APPLIED
            else:
                result.policy = ReconciliationPolicy.OVERWRITE_ALL
                result.outcome = UpdateOutcome.FAST_FORWARD

            self.progress.emit(ProgressPhase.MATERIALIZE, remote_revision)
            newest = self.materializer.materialize(remote_revision)

            result.reconcile = self.reconciler.reconcile(
                self.live_root,
                newest,
                result.policy,
                conflicts=report.conflicts,
                ignore=self.ignore,
            )
            return result

        except CoreSyncVcsError:
            keep_staging = True
            raise

        finally:
            if not keep_staging:
                self._cleanup()
            logger.debug(f"Update run took {time.time() - start_time:.2f}s")

    def _cleanup(self) -> None:
        """Remove the staging directory."""
        self.progress.emit(ProgressPhase.CLEANUP, str(self.materializer.staging_dir))
        try:
            self.materializer.teardown()
        except OSError as e:
            logger.warning(
                f"Could not remove staging directory "
                f"{self.materializer.staging_dir}: {e}"
            )
