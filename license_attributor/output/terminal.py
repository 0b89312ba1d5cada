"""Terminal output formatter using Rich."""
from typing import Optional

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from license_attributor.constants import LEGAL_DISCLAIMER_SHORT
from license_attributor.engine import RunResult
from license_attributor.models.report import Severity, Verbosity


class TerminalFormatter:
    """Format attribution results for terminal display using Rich.

    Shows a summary panel, the license overview table and the diagnostics.
    Verbose mode adds one line per crate with the evidence source used.
    """

    def __init__(
        self,
        console: Optional[Console] = None,
        verbosity: Verbosity = Verbosity.NORMAL,
    ) -> None:
        """Initialize the formatter with a Rich console.

        Args:
            console: Optional Rich Console instance. If not provided,
                a new Console will be created.
            verbosity: Output verbosity level.
        """
        self._console = console if console is not None else Console()
        self._verbosity = verbosity

    def format_run_result(self, result: RunResult) -> None:
        """Format and display a run result.

        Args:
            result: The run result to display.
        """
        if self._verbosity == Verbosity.QUIET:
            self._print_quiet_output(result)
            return

        if not result.resolutions:
            self._print_disclaimer()
            self._console.print("[yellow]No crates found[/yellow]")
            return

        self._print_summary(result)
        self._print_disclaimer()

        table = Table(title="License Overview")
        table.add_column("License", style="green", no_wrap=True)
        table.add_column("Name")
        table.add_column("Crates", style="cyan", justify="right")
        for entry in result.report.overview:
            table.add_row(entry.id, entry.name, str(entry.count))
        self._console.print(table)

        if self._verbosity == Verbosity.VERBOSE:
            self._print_crates(result)

        if result.diagnostics:
            self._print_diagnostics(result)

    def _print_quiet_output(self, result: RunResult) -> None:
        """Print only the status line and the errors."""
        if not result.has_issues:
            self._console.print(
                f"[green]PASS[/green] - All {len(result.resolutions)} crates resolved"
            )
            return

        errors = [d for d in result.diagnostics if d.severity == Severity.ERROR]
        self._console.print(
            f"[red]ISSUES FOUND[/red] - {len(errors)} crate(s) require attention"
        )
        for diagnostic in errors:
            self._console.print(
                f"  - {diagnostic.crate}: [red]{escape(diagnostic.message)}[/red]"
            )

    def _print_disclaimer(self) -> None:
        panel = Panel(
            LEGAL_DISCLAIMER_SHORT,
            title="[bold yellow]NOT LEGAL ADVICE[/bold yellow]",
            border_style="yellow",
        )
        self._console.print(panel)
        self._console.print("")

    def _print_summary(self, result: RunResult) -> None:
        """Print summary panel.

        Args:
            result: The run result to summarize.
        """
        if result.has_issues:
            status, status_color = "ISSUES FOUND", "red"
        else:
            status, status_color = "PASS", "green"

        summary_lines = [
            f"Total Crates: {len(result.resolutions)}",
            f"Licenses: {len(result.report.licenses)}",
            f"Unresolved: {len(result.unresolved)}",
            f"Unsatisfiable: {len(result.unsatisfiable)}",
            "",
            f"Status: [{status_color}]{status}[/{status_color}]",
        ]
        panel = Panel(
            "\n".join(summary_lines),
            title="[bold]SUMMARY[/bold]",
            border_style=status_color,
        )
        self._console.print(panel)
        self._console.print("")

    def _print_crates(self, result: RunResult) -> None:
        table = Table(title="Crates")
        table.add_column("Crate", style="cyan", no_wrap=True)
        table.add_column("Version", style="magenta")
        table.add_column("License", style="green")
        table.add_column("Source")
        for crate in result.report.crates:
            table.add_row(
                crate.name,
                crate.version,
                crate.license or "[yellow]Unknown[/yellow]",
                crate.source or "-",
            )
        self._console.print(table)

    def _print_diagnostics(self, result: RunResult) -> None:
        self._console.print("")
        self._console.print(f"[bold]Diagnostics ({len(result.diagnostics)})[/bold]")
        for diagnostic in result.diagnostics:
            color = "red" if diagnostic.severity == Severity.ERROR else "yellow"
            self._console.print(
                f"  [{color}]{diagnostic.kind.value}[/{color}] "
                f"{diagnostic.crate}: {escape(diagnostic.message)}"
            )
