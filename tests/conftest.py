"""Shared fixtures for pycoresync tests."""

import shutil
import tempfile
from pathlib import Path
from unittest.mock import Mock

import pytest

from pycoresync.exceptions import CoreSyncVcsError
from pycoresync.vcs import GitClient

CONFIG_FILE = "src/supacharger/supacharger-config.ts"


def project_config(revision: str, site_name: str = "Demo") -> str:
    """Render a project configuration file tracking a revision."""
    return (
        "export const supachargerConfig = {\n"
        "  // pycoresync: tracked upstream revision - do not edit\n"
        f"  CLI_INSTALL_HASH: '{revision}',\n"
        f"  siteName: '{site_name}',\n"
        "};\n"
    )


@pytest.fixture
def temp_dir():
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def write_tree():
    """Return a helper that writes {relative path: text} into a directory."""

    def _write(root: Path, files: dict) -> None:
        for relative_path, content in files.items():
            path = root / relative_path
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content)

    return _write


@pytest.fixture
def read_tree():
    """Return a helper that reads a directory into {relative path: text}."""

    def _read(root: Path, skip=(".sc-core-update",)) -> dict:
        files = {}
        for path in sorted(root.rglob("*")):
            relative_path = path.relative_to(root).as_posix()
            if relative_path.split("/")[0] in skip or not path.is_file():
                continue
            files[relative_path] = path.read_text()
        return files

    return _read


@pytest.fixture
def fake_git(write_tree):
    """Return a factory for git clients serving fixed revision trees.

    The returned mock behaves like GitClient: cloning creates the
    destination with a .git directory, checking out writes the tree of
    the requested revision, and unknown revisions fail like git does.
    """

    def _factory(revisions: dict) -> Mock:
        git = Mock(spec=GitClient)

        def clone_branch(url, ref, dest, no_checkout=True, depth=None):
            dest.mkdir(parents=True, exist_ok=True)
            (dest / ".git").mkdir()

        def checkout_revision(dest, revision):
            if revision not in revisions:
                raise CoreSyncVcsError(
                    "git checkout failed (exit 1)",
                    returncode=1,
                    stderr=f"error: pathspec '{revision}' did not match\n",
                )
            write_tree(dest, revisions[revision])

        def strip_vcs_metadata(dest):
            shutil.rmtree(dest / ".git", ignore_errors=True)

        git.clone_branch.side_effect = clone_branch
        git.checkout_revision.side_effect = checkout_revision
        git.strip_vcs_metadata.side_effect = strip_vcs_metadata
        return git

    return _factory
