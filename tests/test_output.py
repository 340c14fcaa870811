"""Tests for the output formatter."""

import io
import json

from rich.console import Console

from pycoresync.output import OutputFormatter


def make_formatter(**kwargs):
    out = io.StringIO()
    err = io.StringIO()
    formatter = OutputFormatter(
        console=Console(file=out, width=120),
        error_console=Console(file=err, width=120),
        **kwargs,
    )
    return formatter, out, err


class TestOutputFormatter:
    """Tests for OutputFormatter."""

    def test_info_and_error_streams(self):
        formatter, out, err = make_formatter()

        formatter.info("hello [bold]world[/bold]")
        formatter.error("broken")

        assert "hello [bold]world[/bold]" in out.getvalue()
        assert "broken" in err.getvalue()

    def test_quiet_keeps_warnings_and_errors(self):
        formatter, out, err = make_formatter(quiet=True)

        formatter.info("info")
        formatter.success("done")
        formatter.warning("careful")
        formatter.error("broken")

        assert out.getvalue() == ""
        assert "careful" in err.getvalue()
        assert "broken" in err.getvalue()

    def test_json_mode_silences_text(self, capsys):
        formatter, out, err = make_formatter(json_output=True)

        formatter.info("info")
        formatter.warning("careful")
        formatter.print_summary("Title", [("a", "b")])
        formatter.output_json({"outcome": "applied"})

        assert out.getvalue() == ""
        assert err.getvalue() == ""
        assert json.loads(capsys.readouterr().out) == {"outcome": "applied"}

    def test_print_summary(self):
        formatter, out, _ = make_formatter()

        formatter.print_summary("Core Status", [("Branch", "main")])

        text = out.getvalue()
        assert "Core Status" in text
        assert "Branch" in text
        assert "main" in text
