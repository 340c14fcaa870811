"""Tests for snapshot materialization."""

import pytest

from pycoresync.exceptions import CoreSyncVcsError
from pycoresync.sync.snapshot import Snapshot, SnapshotMaterializer


@pytest.fixture
def materializer_factory(temp_dir):
    def _factory(git):
        return SnapshotMaterializer(
            git=git,
            repo_url="https://example.com/upstream.git",
            branch="main",
            staging_dir=temp_dir / ".sc-core-update",
            live_root=temp_dir,
        )

    return _factory


class TestSnapshotMaterializer:
    """Tests for SnapshotMaterializer."""

    def test_materialize_produces_plain_tree(self, materializer_factory, fake_git):
        git = fake_git({"aaa111": {"a.txt": "1", "dir/b.txt": "2"}})
        materializer = materializer_factory(git)

        snapshot = materializer.materialize("aaa111")

        assert snapshot == Snapshot("aaa111", materializer.staging_dir)
        assert (snapshot.root / "a.txt").read_text() == "1"
        assert (snapshot.root / "dir" / "b.txt").read_text() == "2"
        assert not (snapshot.root / ".git").exists()
        git.clone_branch.assert_called_once_with(
            "https://example.com/upstream.git",
            "main",
            materializer.staging_dir,
            no_checkout=True,
        )

    def test_second_materialize_replaces_first(self, materializer_factory, fake_git):
        """Files of a previous snapshot do not leak into the next one."""
        git = fake_git({"aaa111": {"old.txt": "x"}, "bbb222": {"new.txt": "y"}})
        materializer = materializer_factory(git)

        materializer.materialize("aaa111")
        snapshot = materializer.materialize("bbb222")

        assert (snapshot.root / "new.txt").exists()
        assert not (snapshot.root / "old.txt").exists()

    def test_teardown_removes_staging(self, materializer_factory, fake_git):
        materializer = materializer_factory(fake_git({"aaa111": {"a": "1"}}))
        materializer.materialize("aaa111")

        materializer.teardown()

        assert not materializer.staging_dir.exists()

    def test_teardown_without_staging(self, materializer_factory, fake_git):
        materializer = materializer_factory(fake_git({}))
        materializer.teardown()

    def test_unknown_revision_raises(self, materializer_factory, fake_git):
        materializer = materializer_factory(fake_git({}))

        with pytest.raises(CoreSyncVcsError, match="did not match"):
            materializer.materialize("ccc333")

    def test_rejects_project_root_as_staging(self, temp_dir, fake_git):
        with pytest.raises(ValueError, match="must not contain"):
            SnapshotMaterializer(
                git=fake_git({}),
                repo_url="https://example.com/upstream.git",
                branch="main",
                staging_dir=temp_dir,
                live_root=temp_dir,
            )
