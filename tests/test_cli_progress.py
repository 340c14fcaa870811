"""Tests for the progress display."""

import io

from rich.console import Console

from pycoresync.cli_progress import UpdateProgressDisplay
from pycoresync.sync.progress import ProgressEvent, ProgressPhase


def make_display():
    output = io.StringIO()
    console = Console(file=output, force_terminal=False, width=120)
    return UpdateProgressDisplay(console=console), output


class TestUpdateProgressDisplay:
    """Tests for UpdateProgressDisplay."""

    def test_events_before_start_are_ignored(self):
        display, _ = make_display()
        display.handle_event(ProgressEvent(ProgressPhase.CLASSIFY))

    def test_file_events_update_task(self):
        display, _ = make_display()
        tracker = display.create_tracker()

        with display:
            tracker.emit(ProgressPhase.CLASSIFY, "aaa111")
            tracker.emit(ProgressPhase.CLASSIFY_FILE, "a.txt", current=2, total=5)
            task = display._progress.tasks[0]
            assert task.completed == 2
            assert task.total == 5
            assert task.fields["detail"] == "a.txt"
            assert task.description == "Checking core integrity..."

    def test_materialize_pauses_and_announces(self):
        display, output = make_display()
        tracker = display.create_tracker()

        with display:
            tracker.emit(ProgressPhase.MATERIALIZE, "0123456789abcdef")
            assert display._paused
            tracker.emit(ProgressPhase.CLASSIFY, "0123456789abcdef")
            assert not display._paused

        assert "Checking out upstream revision 0123456..." in output.getvalue()

    def test_exit_while_paused(self):
        display, _ = make_display()
        tracker = display.create_tracker()

        with display:
            tracker.emit(ProgressPhase.AWAIT_POLICY, "1 missing, 0 modified")

        assert display._progress is None
