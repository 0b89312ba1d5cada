"""Output formatters for license-attributor."""

from license_attributor.output.report_json import ReportJsonFormatter
from license_attributor.output.terminal import TerminalFormatter

__all__ = [
    "ReportJsonFormatter",
    "TerminalFormatter",
]
