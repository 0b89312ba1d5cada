"""Tests for terminal formatter."""

from io import StringIO

from rich.console import Console

from license_attributor.models.report import Verbosity
from license_attributor.output.terminal import TerminalFormatter


def _render(result, verbosity: Verbosity = Verbosity.NORMAL) -> str:
    string_io = StringIO()
    console = Console(file=string_io, width=120)
    TerminalFormatter(console=console, verbosity=verbosity).format_run_result(result)
    return string_io.getvalue()


class TestTerminalFormatter:
    """Tests for TerminalFormatter."""

    def test_overview_table(self, make_run_result) -> None:
        """Test that licenses are listed with their usage counts."""
        result = make_run_result(
            [
                ("serde", "MIT OR Apache-2.0", ["MIT"]),
                ("rand", "MIT OR Apache-2.0", ["MIT"]),
                ("ring", "ISC", ["ISC"]),
            ]
        )

        output = _render(result)

        assert "License Overview" in output
        assert "MIT License" in output
        assert "ISC License" in output
        assert "Total Crates: 3" in output
        assert "PASS" in output
        assert "NOT LEGAL ADVICE" in output

    def test_issues_status_and_diagnostics(self, make_run_result) -> None:
        """Test that issues are summarized and listed."""
        result = make_run_result(
            [
                ("serde", "MIT", ["MIT"]),
                ("mystery", None, []),
                ("gpl-thing", "GPL-3.0-only", []),
            ],
            accepted=["MIT"],
        )

        output = _render(result)

        assert "ISSUES FOUND" in output
        assert "Unresolved: 1" in output
        assert "Unsatisfiable: 1" in output
        assert "Diagnostics (2)" in output
        assert "mystery 1.0.0" in output
        assert "no license evidence found" in output
        assert "GPL-3.0-only" in output

    def test_verbose_lists_crates(self, make_run_result) -> None:
        """Test that verbose mode adds the per-crate table."""
        result = make_run_result([("serde", "MIT", ["MIT"]), ("mystery", None, [])])

        output = _render(result, Verbosity.VERBOSE)

        assert "Crates" in output
        assert "manifest" in output
        assert "Unknown" in output

    def test_normal_omits_crates(self, make_run_result) -> None:
        """Test that normal mode does not list every crate."""
        result = make_run_result([("serde", "MIT", ["MIT"])])

        output = _render(result)

        assert "manifest" not in output

    def test_quiet_pass(self, make_run_result) -> None:
        """Test quiet output when everything resolved."""
        result = make_run_result([("serde", "MIT", ["MIT"]), ("rand", "MIT", ["MIT"])])

        output = _render(result, Verbosity.QUIET)

        assert "PASS - All 2 crates resolved" in output
        assert "License Overview" not in output

    def test_quiet_issues(self, make_run_result) -> None:
        """Test quiet output lists only the errors."""
        result = make_run_result([("serde", "MIT", ["MIT"]), ("mystery", None, [])])

        output = _render(result, Verbosity.QUIET)

        assert "ISSUES FOUND - 1 crate(s) require attention" in output
        assert "mystery 1.0.0" in output
        assert "serde" not in output

    def test_empty_result(self, make_run_result) -> None:
        """Test the message for an empty graph."""
        output = _render(make_run_result([]))

        assert "No crates found" in output

    def test_default_console(self) -> None:
        """Test that a console is created when not given."""
        formatter = TerminalFormatter()

        assert formatter._console is not None
