"""CLI entry point for license-attributor."""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path
from typing import Optional

import click
import yaml
from rich.console import Console

from license_attributor import __version__
from license_attributor.analysis.clarification import SnipError, sha256_hex, snip
from license_attributor.analysis.similarity import TemplateScorer
from license_attributor.config import load_config
from license_attributor.constants import (
    DEFAULT_CONFIDENCE_THRESHOLD,
    EXIT_ERROR,
    EXIT_ISSUES,
    EXIT_SUCCESS,
)
from license_attributor.engine import Engine, RunResult, load_graph
from license_attributor.exceptions import AttributorError, ConfigurationError
from license_attributor.logging import configure_logging
from license_attributor.models.report import Verbosity
from license_attributor.output.report_json import ReportJsonFormatter
from license_attributor.output.terminal import TerminalFormatter

# Module-level console for consistent output
_console = Console()
# Separate console for error output (writes to stderr)
_error_console = Console(stderr=True)

SUBSECTION_SEPARATOR = "!!"


@click.group()
@click.version_option(version=__version__)
def main() -> None:
    """License Attributor - Build license attribution reports for crate graphs.

    Gathers license evidence for every crate in a resolved dependency graph,
    checks it against your accepted licenses and groups the crates by the
    license they are used under.

    \b
    Examples:
        license-attributor generate graph.json
        license-attributor generate graph.json --format json -o about.json
        license-attributor generate graph.json --offline --fail
        license-attributor clarify vendor/ring/LICENSE --subsection "BoringSSL!!SUCH DAMAGE."
    """
    pass


@main.command()
@click.argument("graph_path", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["terminal", "json"], case_sensitive=False),
    default="terminal",
    help="Output format for the report (default: terminal).",
)
@click.option(
    "--output",
    "-o",
    "output_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Write the JSON report to file instead of stdout.",
)
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="Path to configuration file.",
)
@click.option(
    "--threshold",
    type=click.FloatRange(0.0, 1.0),
    default=None,
    help="Minimum confidence for locally detected license texts.",
)
@click.option(
    "--fail",
    "fail_on_issues",
    is_flag=True,
    default=False,
    help="Exit with status 1 if any crate is unresolved or unsatisfiable.",
)
@click.option(
    "--offline",
    is_flag=True,
    default=False,
    help="Do not make any network requests.",
)
@click.option(
    "--no-clearly-defined",
    is_flag=True,
    default=False,
    help="Skip the remote harvest service.",
)
@click.option(
    "--timeout",
    type=click.FloatRange(min=0.0, min_open=True),
    default=None,
    help="Abort the run after this many seconds.",
)
@click.option(
    "--verbose",
    "-v",
    "verbose_flag",
    is_flag=True,
    default=False,
    help="Show per-crate evidence and debug logging.",
)
@click.option(
    "--quiet",
    "-q",
    "quiet_flag",
    is_flag=True,
    default=False,
    help="Suppress non-essential output.",
)
@click.option(
    "--json-log",
    is_flag=True,
    default=False,
    help="Emit log records as JSON lines on stderr.",
)
def generate(
    graph_path: str,
    output_format: str,
    output_path: Optional[str],
    config_path: Optional[str],
    threshold: Optional[float],
    fail_on_issues: bool,
    offline: bool,
    no_clearly_defined: bool,
    timeout: Optional[float],
    verbose_flag: bool,
    quiet_flag: bool,
    json_log: bool,
) -> None:
    """Generate a license attribution report for a dependency graph.

    GRAPH_PATH is a JSON file with the resolved crate graph: a list of
    nodes and a list of parent/child edges.

    \b
    Examples:
        license-attributor generate graph.json
        license-attributor generate graph.json --format json --output about.json
        license-attributor generate graph.json --fail --threshold 0.9
    """
    if verbose_flag and quiet_flag:
        raise click.UsageError("--verbose and --quiet are mutually exclusive.")

    if quiet_flag:
        verbosity = Verbosity.QUIET
    elif verbose_flag:
        verbosity = Verbosity.VERBOSE
    else:
        verbosity = Verbosity.NORMAL

    configure_logging(verbose=verbose_flag, quiet=quiet_flag, json_log=json_log)
    format_value = output_format.lower()

    try:
        config = load_config(config_path)
        overrides: dict[str, object] = {}
        if threshold is not None:
            overrides["confidence_threshold"] = threshold
        if no_clearly_defined:
            overrides["no_clearly_defined"] = True
        if overrides:
            config = config.model_copy(update=overrides)

        graph = load_graph(Path(graph_path))
        engine = Engine(config, offline=offline)
        result = asyncio.run(engine.run(graph, timeout=timeout))
        _display_result(result, format_value, verbosity, output_path)

        if fail_on_issues and result.has_issues:
            sys.exit(EXIT_ISSUES)
        sys.exit(EXIT_SUCCESS)

    except AttributorError as e:
        _display_error(e, format_value)
        sys.exit(EXIT_ERROR)


@main.command()
@click.argument("file_path", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--subsection",
    "-s",
    "subsections",
    multiple=True,
    help="Claim only part of the file, given as 'START!!END'. "
    "END may be omitted to claim through the end of the file.",
)
@click.option(
    "--threshold",
    type=click.FloatRange(0.0, 1.0),
    default=DEFAULT_CONFIDENCE_THRESHOLD,
    show_default=True,
    help="Minimum confidence for the detected license.",
)
def clarify(file_path: str, subsections: tuple[str, ...], threshold: float) -> None:
    """Print a clarification entry for a license file.

    Computes the checksum of FILE_PATH, or of each subsection of it, and
    prints a YAML snippet ready to paste under 'crates.<name>.clarify'.
    Paths are printed as given, relative to the crate root.

    \b
    Examples:
        license-attributor clarify LICENSE
        license-attributor clarify LICENSE -s "Copyright!!SUCH DAMAGE."
    """
    try:
        content = Path(file_path).read_bytes()
    except OSError as e:
        _display_error(ConfigurationError(f"Cannot read '{file_path}': {e}"), "terminal")
        sys.exit(EXIT_ERROR)

    scorer = TemplateScorer()
    claims: list[dict[str, str]] = []
    licenses: list[str] = []

    sections = subsections or ("",)
    for section in sections:
        start, _, end = section.partition(SUBSECTION_SEPARATOR)
        try:
            text = snip(content, start.encode() or None, end.encode() or None)
        except SnipError as e:
            _display_error(ConfigurationError(str(e)), "terminal")
            sys.exit(EXIT_ERROR)

        match = scorer.score(text, threshold)
        claim: dict[str, str] = {"path": Path(file_path).as_posix()}
        if match is not None:
            claim["license"] = match.license_id
            if match.license_id not in licenses:
                licenses.append(match.license_id)
        claim["checksum"] = sha256_hex(text)
        if start:
            claim["start"] = start
        if end:
            claim["end"] = end
        claims.append(claim)

    if not licenses:
        _error_console.print(
            "[yellow]Warning: no known license text detected, "
            "fill in 'license' by hand[/yellow]"
        )

    snippet = {
        "license": " AND ".join(licenses) if licenses else "",
        "files": claims,
    }
    click.echo(yaml.safe_dump(snippet, sort_keys=False).rstrip())


def _write_output_to_file(content: str, path: str) -> None:
    """Write report content to file.

    Args:
        content: The report content to write.
        path: The file path to write to.

    Raises:
        ConfigurationError: If file cannot be written.
    """
    file_path = Path(path)

    try:
        if file_path.exists():
            _error_console.print(
                f"[yellow]Warning: Overwriting existing file: {path}[/yellow]"
            )

        file_path.write_text(content, encoding="utf-8")
        file_path.chmod(0o644)
    except (OSError, PermissionError) as e:
        raise ConfigurationError(f"Cannot write to file '{path}': {e}") from e

    _error_console.print(f"[green]Report written to {path}[/green]")


def _display_result(
    result: RunResult,
    format_type: str,
    verbosity: Verbosity,
    output_path: Optional[str] = None,
) -> None:
    """Display the run result in the specified format.

    Args:
        result: The run result to display.
        format_type: Output format (terminal, json).
        verbosity: Output verbosity level.
        output_path: Optional file path to write output to.
    """
    if format_type == "terminal" and not output_path:
        TerminalFormatter(console=_console, verbosity=verbosity).format_run_result(result)
        return

    # Files always receive the JSON report
    content = ReportJsonFormatter().format_run_result(result)
    if output_path:
        _write_output_to_file(content, output_path)
        if format_type == "terminal":
            TerminalFormatter(
                console=_console, verbosity=verbosity
            ).format_run_result(result)
    else:
        click.echo(content)


def _display_error(error: AttributorError, format_type: str) -> None:
    """Display error message to user.

    All errors are written to stderr for consistent CI/CD behavior.

    Args:
        error: The exception that occurred.
        format_type: Output format type for styling.
    """
    error_type = type(error).__name__
    message = f"Error: {error_type}: {error}"

    if format_type == "terminal":
        _error_console.print(f"[red bold]{message}[/red bold]")
    else:
        click.echo(message, err=True)


if __name__ == "__main__":
    main()
