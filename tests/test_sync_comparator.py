"""Tests for the DriftClassifier class."""

from unittest.mock import patch

import pytest

from pycoresync.exceptions import CoreSyncIOError
from pycoresync.sync.comparator import DriftClassifier, DriftReport, FileStatus
from pycoresync.sync.progress import ProgressPhase, ProgressTracker
from pycoresync.sync.snapshot import Snapshot


@pytest.fixture
def trees(temp_dir):
    """Create an empty snapshot directory and project directory."""
    snapshot_root = temp_dir / "snapshot"
    live_root = temp_dir / "live"
    snapshot_root.mkdir()
    live_root.mkdir()
    return Snapshot(revision="aaa111", root=snapshot_root), live_root


class TestDriftReport:
    """Tests for DriftReport properties."""

    def test_no_drift(self):
        report = DriftReport(unchanged=["a"], ignored=["b"])
        assert not report.has_drift
        assert report.conflicts == set()

    def test_drift_from_missing_or_modified(self):
        assert DriftReport(missing=["a"]).has_drift
        assert DriftReport(modified=["a"]).has_drift

    def test_conflicts_are_modified_files(self):
        report = DriftReport(missing=["a"], modified=["b", "c"])
        assert report.conflicts == {"b", "c"}

    def test_status_of(self):
        report = DriftReport(
            missing=["m"], modified=["d"], unchanged=["u"], ignored=["i"]
        )
        assert report.status_of("m") == FileStatus.MISSING
        assert report.status_of("d") == FileStatus.MODIFIED
        assert report.status_of("u") == FileStatus.UNCHANGED
        assert report.status_of("i") == FileStatus.IGNORED
        assert report.status_of("other") is None

    def test_to_dict(self):
        report = DriftReport(missing=["m"], modified=["d"], unchanged=["u", "v"])
        assert report.to_dict() == {
            "missing": ["m"],
            "modified": ["d"],
            "unchanged": 2,
            "ignored": [],
        }


class TestDriftClassifier:
    """Tests for classifying a project tree against a snapshot."""

    def test_invalid_worker_count(self):
        with pytest.raises(ValueError):
            DriftClassifier(max_workers=0)

    def test_classifies_each_snapshot_file(self, trees, write_tree):
        """Missing, modified and unchanged files are told apart."""
        snapshot, live_root = trees
        write_tree(snapshot.root, {"a.txt": "1", "b.txt": "2", "dir/c.txt": "3"})
        write_tree(live_root, {"a.txt": "1", "b.txt": "2 changed"})

        report = DriftClassifier(max_workers=2).classify(live_root, snapshot)

        assert report.unchanged == ["a.txt"]
        assert report.modified == ["b.txt"]
        assert report.missing == ["dir/c.txt"]
        assert report.ignored == []

    def test_identical_trees_have_no_drift(self, trees, write_tree):
        snapshot, live_root = trees
        files = {"a": "1", "b/c": "2", "b/d/e": "3"}
        write_tree(snapshot.root, files)
        write_tree(live_root, files)

        report = DriftClassifier().classify(live_root, snapshot)

        assert not report.has_drift
        assert report.unchanged == ["a", "b/c", "b/d/e"]

    def test_local_only_files_are_not_reported(self, trees, write_tree):
        """Files the snapshot does not contain never appear in the report."""
        snapshot, live_root = trees
        write_tree(snapshot.root, {"a": "1"})
        write_tree(live_root, {"a": "1", "custom/page.tsx": "mine"})

        report = DriftClassifier().classify(live_root, snapshot)

        assert report.status_of("custom/page.tsx") is None
        assert not report.has_drift

    def test_ignored_paths_are_not_compared(self, trees, write_tree):
        snapshot, live_root = trees
        write_tree(snapshot.root, {"config.ts": "upstream", "a": "1"})
        write_tree(live_root, {"config.ts": "customized", "a": "1"})

        report = DriftClassifier().classify(
            live_root, snapshot, ignore=["./config.ts"]
        )

        assert report.ignored == ["config.ts"]
        assert not report.has_drift

    def test_directory_in_place_of_file_is_missing(self, trees, write_tree):
        snapshot, live_root = trees
        write_tree(snapshot.root, {"a": "1"})
        (live_root / "a").mkdir()

        report = DriftClassifier().classify(live_root, snapshot)

        assert report.missing == ["a"]

    def test_result_independent_of_worker_count(self, trees, write_tree):
        """The report is the same for any parallelism."""
        snapshot, live_root = trees
        snapshot_files = {f"d{i % 5}/f{i}.txt": str(i) for i in range(60)}
        live_files = {
            path: content + ("x" if int(content) % 3 == 0 else "")
            for path, content in snapshot_files.items()
            if int(content) % 7 != 0
        }
        write_tree(snapshot.root, snapshot_files)
        write_tree(live_root, live_files)

        serial = DriftClassifier(max_workers=1).classify(live_root, snapshot)
        parallel = DriftClassifier(max_workers=8).classify(live_root, snapshot)

        assert serial == parallel
        assert serial.missing == sorted(serial.missing)
        assert set(serial.missing).isdisjoint(serial.modified)
        assert serial.total_checked == 60

    def test_emits_file_progress(self, trees, write_tree):
        snapshot, live_root = trees
        write_tree(snapshot.root, {"a": "1", "b": "2", "c": "3"})
        events = []

        DriftClassifier(progress=ProgressTracker(events.append)).classify(
            live_root, snapshot, ignore=["c"]
        )

        file_events = [e for e in events if e.phase == ProgressPhase.CLASSIFY_FILE]
        assert [e.current for e in file_events] == [1, 2]
        assert all(e.total == 3 for e in file_events)

    def test_hash_failure_raises_io_error(self, trees, write_tree):
        snapshot, live_root = trees
        write_tree(snapshot.root, {"a": "1"})
        write_tree(live_root, {"a": "1"})

        with patch(
            "pycoresync.sync.comparator.hash_file",
            side_effect=PermissionError("denied"),
        ):
            with pytest.raises(CoreSyncIOError, match="Failed to hash a"):
                DriftClassifier().classify(live_root, snapshot)
