"""Materialization of upstream revisions into a staging directory."""

import logging
import shutil
from dataclasses import dataclass
from pathlib import Path

from ..exceptions import CoreSyncIOError
from ..vcs import GitClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Snapshot:
    """A plain file tree of the upstream repository at one revision."""

    revision: str
    """Revision the tree was checked out at"""

    root: Path
    """Staging directory holding the tree"""


class SnapshotMaterializer:
    """Checks out upstream revisions into a dedicated staging directory.

    Only one snapshot exists at a time: materializing a revision first
    destroys whatever the staging directory holds.
    """

    def __init__(
        self,
        git: GitClient,
        repo_url: str,
        branch: str,
        staging_dir: Path,
        live_root: Path,
    ):
        """Initialize materializer.

        Args:
            git: Git client used for clone/checkout
            repo_url: Upstream repository URL
            branch: Upstream branch the revisions belong to
            staging_dir: Directory reserved for snapshots
            live_root: Project root, which must never be used as staging

        Raises:
            ValueError: If staging_dir is the project root or one of its parents
        """
        staging = staging_dir.resolve()
        live = live_root.resolve()
        if staging == live or staging in live.parents:
            raise ValueError(
                f"Staging directory {staging_dir} must not contain the project root"
            )

        self.git = git
        self.repo_url = repo_url
        self.branch = branch
        self.staging_dir = staging_dir
        self.live_root = live_root

    def prepare(self) -> None:
        """Make the staging directory exist and be empty."""
        try:
            self.teardown()
            self.staging_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise CoreSyncIOError(
                f"Cannot prepare staging directory {self.staging_dir}: {e}"
            ) from e
        logger.debug(f"Prepared staging directory {self.staging_dir}")

    def materialize(self, revision: str) -> Snapshot:
        """Check out the upstream tree at exactly one revision.

        Args:
            revision: Commit identifier to materialize

        Returns:
            Snapshot rooted at the staging directory

        Raises:
            CoreSyncVcsError: If cloning, checkout or metadata removal fails
            CoreSyncIOError: If the staging directory cannot be reset
        """
        self.prepare()
        self.git.clone_branch(
            self.repo_url, self.branch, self.staging_dir, no_checkout=True
        )
        self.git.checkout_revision(self.staging_dir, revision)
        self.git.strip_vcs_metadata(self.staging_dir)
        logger.debug(f"Materialized {revision} at {self.staging_dir}")
        return Snapshot(revision=revision, root=self.staging_dir)

    def teardown(self) -> None:
        """Delete the staging directory and any snapshot inside it."""
        if self.staging_dir.exists():
            shutil.rmtree(self.staging_dir)
            logger.debug(f"Removed staging directory {self.staging_dir}")
