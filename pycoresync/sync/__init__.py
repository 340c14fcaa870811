"""Core update engine for pycoresync - drift detection and reconciliation."""

from .comparator import DriftClassifier, DriftReport, FileStatus
from .engine import CoreUpdateEngine, UpdateOutcome, UpdateResult
from .modes import ReconciliationPolicy
from .operations import Reconciler, ReconcileResult, TransplantOperations
from .progress import ProgressEvent, ProgressPhase, ProgressTracker
from .scanner import DirectoryScanner, LocalFile
from .snapshot import Snapshot, SnapshotMaterializer
from .state import RevisionBlock, RevisionTracker, is_valid_revision

__all__ = [
    "CoreUpdateEngine",
    "UpdateOutcome",
    "UpdateResult",
    "ReconciliationPolicy",
    "DriftClassifier",
    "DriftReport",
    "FileStatus",
    "Reconciler",
    "ReconcileResult",
    "TransplantOperations",
    "ProgressEvent",
    "ProgressPhase",
    "ProgressTracker",
    "DirectoryScanner",
    "LocalFile",
    "Snapshot",
    "SnapshotMaterializer",
    "RevisionBlock",
    "RevisionTracker",
    "is_valid_revision",
]
