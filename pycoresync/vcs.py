"""Git client: upstream checkouts via the git CLI."""

from __future__ import annotations

import logging
import shutil
import subprocess
import sys
from typing import TYPE_CHECKING, Optional, TextIO, cast

from .exceptions import CoreSyncVcsError

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)


class GitClient:
    """Wraps the git operations needed to materialize upstream snapshots.

    Git's standard output is passed straight through to the terminal.
    Standard error is streamed through as well and captured, so a failing
    command can report its diagnostics in the raised error.
    """

    def __init__(
        self,
        executable: str = "git",
        stderr_stream: Optional[TextIO] = None,
    ) -> None:
        """Initialize git client.

        Args:
            executable: Name or path of the git executable
            stderr_stream: Where git's stderr is echoed (defaults to sys.stderr)
        """
        self.executable = executable
        self.stderr_stream = stderr_stream

    def _run(self, *args: str) -> None:
        """Run a git command, waiting for it to finish.

        Raises:
            CoreSyncVcsError: If git cannot be started or exits non-zero
        """
        command = [self.executable, *args]
        logger.debug(f"Running: {' '.join(command)}")
        stream = self.stderr_stream or sys.stderr

        try:
            process = subprocess.Popen(
                command,
                stdout=None,
                stderr=subprocess.PIPE,
                text=True,
                errors="replace",
            )
        except OSError as e:
            raise CoreSyncVcsError(
                f"Failed to run {self.executable}: {e}. Ensure 'git' is installed."
            ) from e

        captured: list[str] = []
        # Never None: stderr=PIPE
        stderr_pipe = cast(TextIO, process.stderr)
        with stderr_pipe:
            for line in stderr_pipe:
                captured.append(line)
                stream.write(line)
                stream.flush()
        returncode = process.wait()

        if returncode != 0:
            raise CoreSyncVcsError(
                f"git {args[0]} failed (exit {returncode})",
                returncode=returncode,
                stderr="".join(captured),
            )

    def clone_branch(
        self,
        url: str,
        ref: str,
        dest: Path,
        no_checkout: bool = True,
        depth: Optional[int] = None,
    ) -> None:
        """Clone a single branch of a repository.

        Args:
            url: Repository URL
            ref: Branch to clone
            dest: Target directory (must be empty or absent)
            no_checkout: Skip populating the working tree
            depth: Create a shallow clone with this many commits
        """
        args = ["clone"]
        if no_checkout:
            args.append("--no-checkout")
        if depth is not None:
            args.extend(["--depth", str(depth)])
        args.extend(["--branch", ref, url, str(dest)])
        self._run(*args)
        logger.info(f"Cloned {url} ({ref}) into {dest}")

    def checkout_revision(self, dest: Path, revision: str) -> None:
        """Check out an explicit revision in an existing clone.

        Args:
            dest: Clone directory
            revision: Commit identifier
        """
        self._run("-C", str(dest), "checkout", "--quiet", revision)
        logger.info(f"Checked out {revision} in {dest}")

    def strip_vcs_metadata(self, dest: Path) -> None:
        """Remove the .git directory so dest becomes a plain file tree.

        Raises:
            CoreSyncVcsError: If the metadata directory cannot be removed
        """
        git_dir = dest / ".git"
        if not git_dir.exists():
            return
        try:
            if git_dir.is_dir():
                shutil.rmtree(git_dir)
            else:
                # Worktrees and submodules use a .git file
                git_dir.unlink()
        except OSError as e:
            raise CoreSyncVcsError(f"Failed to remove {git_dir}: {e}") from e
        logger.debug(f"Removed {git_dir}")
