"""CLI progress display for core updates.

This module renders the ProgressEvent stream of the update engine with
rich. It is the only place that draws progress on the terminal.
"""

from typing import Optional

from rich.console import Console
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
)

from .sync.progress import ProgressEvent, ProgressPhase, ProgressTracker
from .utils import short_revision

# Phases during which other processes or the operator use the terminal
_PAUSE_PHASES = {ProgressPhase.MATERIALIZE, ProgressPhase.AWAIT_POLICY}

_PHASE_DESCRIPTIONS = {
    ProgressPhase.RESOLVE_LOCAL_REV: "Reading tracked revision...",
    ProgressPhase.RESOLVE_REMOTE_REV: "Resolving latest upstream revision...",
    ProgressPhase.CLASSIFY: "Checking core integrity...",
    ProgressPhase.TRANSPLANT: "Updating core files...",
    ProgressPhase.SAVE_REVISION: "Saving tracked revision...",
    ProgressPhase.CLEANUP: "Cleaning up...",
    ProgressPhase.DONE: "Done",
}


class UpdateProgressDisplay:
    """Rich-based progress display for core updates.

    The live display is suspended while git runs (its output is passed
    through to the terminal) and while the policy prompt waits for input.
    """

    def __init__(self, console: Optional[Console] = None) -> None:
        """Initialize the progress display.

        Args:
            console: Console to draw on (defaults to a stderr console)
        """
        self.console = console or Console(stderr=True)
        self._progress: Optional[Progress] = None
        self._task: Optional[TaskID] = None
        self._paused = False

    def create_tracker(self) -> ProgressTracker:
        """Create a ProgressTracker that updates this display.

        Returns:
            A configured ProgressTracker
        """
        return ProgressTracker(callback=self.handle_event)

    def handle_event(self, event: ProgressEvent) -> None:
        """Handle a progress event from the engine.

        Args:
            event: Progress event
        """
        if self._progress is None or self._task is None:
            return

        if event.phase in _PAUSE_PHASES:
            self._pause()
            if event.phase == ProgressPhase.MATERIALIZE:
                self.console.print(
                    f"Checking out upstream revision {short_revision(event.detail)}..."
                )
            return

        self._resume()

        if event.phase in (ProgressPhase.CLASSIFY_FILE, ProgressPhase.TRANSPLANT_FILE):
            self._progress.update(
                self._task,
                completed=event.current or 0,
                total=event.total,
                detail=event.detail,
            )
            return

        description = _PHASE_DESCRIPTIONS.get(event.phase, event.phase.value)
        self._progress.update(
            self._task,
            description=description,
            completed=event.current or 0,
            total=event.total,
            detail="",
        )

    def _pause(self) -> None:
        if self._progress is not None and not self._paused:
            self._progress.stop()
            self._paused = True

    def _resume(self) -> None:
        if self._progress is not None and self._paused:
            self._progress.start()
            self._paused = False

    def __enter__(self) -> "UpdateProgressDisplay":
        """Enter context manager - start progress display."""
        self._progress = Progress(
            SpinnerColumn(),
            TextColumn("[bold blue]{task.description}"),
            BarColumn(),
            MofNCompleteColumn(),
            TimeElapsedColumn(),
            TextColumn("[cyan]{task.fields[detail]}"),
            console=self.console,
            transient=True,
            refresh_per_second=10,
        )
        self._progress.__enter__()
        self._task = self._progress.add_task("Starting...", total=None, detail="")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Exit context manager - stop progress display."""
        if self._progress is not None:
            self._resume()
            self._progress.__exit__(exc_type, exc_val, exc_tb)
            self._progress = None
            self._task = None
