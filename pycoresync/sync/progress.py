"""Progress events emitted by the core update engine.

The engine never writes to the terminal. It reports what it is doing as
a stream of ``ProgressEvent`` objects, and a presentation layer (see
``pycoresync.cli_progress``) decides how to show them.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class ProgressPhase(str, Enum):
    """Phases of a core update run."""

    RESOLVE_LOCAL_REV = "resolve_local_rev"
    RESOLVE_REMOTE_REV = "resolve_remote_rev"
    MATERIALIZE = "materialize"
    CLASSIFY = "classify"
    CLASSIFY_FILE = "classify_file"
    AWAIT_POLICY = "await_policy"
    TRANSPLANT = "transplant"
    TRANSPLANT_FILE = "transplant_file"
    SAVE_REVISION = "save_revision"
    CLEANUP = "cleanup"
    DONE = "done"


@dataclass(frozen=True)
class ProgressEvent:
    """A single progress notification."""

    phase: ProgressPhase
    """Phase the engine is in"""

    detail: str = ""
    """Human-readable detail (a revision, a path, a count)"""

    current: Optional[int] = None
    """Items processed so far within the phase, if countable"""

    total: Optional[int] = None
    """Total items in the phase, if known"""


ProgressCallback = Callable[[ProgressEvent], None]


class ProgressTracker:
    """Forwards progress events to an optional callback.

    Examples:
        >>> events = []
        >>> tracker = ProgressTracker(callback=events.append)
        >>> tracker.emit(ProgressPhase.CLASSIFY, "12 file(s)")
        >>> events[0].phase
        <ProgressPhase.CLASSIFY: 'classify'>
    """

    def __init__(self, callback: Optional[ProgressCallback] = None):
        """Initialize tracker.

        Args:
            callback: Called with each event; events are dropped when None
        """
        self.callback = callback

    def emit(
        self,
        phase: ProgressPhase,
        detail: str = "",
        current: Optional[int] = None,
        total: Optional[int] = None,
    ) -> None:
        """Emit a progress event."""
        logger.debug(f"[{phase.value}] {detail}")
        if self.callback is not None:
            self.callback(
                ProgressEvent(phase=phase, detail=detail, current=current, total=total)
            )
