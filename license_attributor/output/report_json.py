"""JSON output formatter for attribution reports."""
import json
from typing import Any

from license_attributor import __version__
from license_attributor.constants import LEGAL_DISCLAIMER
from license_attributor.engine import RunResult


class ReportJsonFormatter:
    """Format a run result as JSON output.

    The report itself is dumped as-is so templating tools can consume it.
    No timestamp is included: the same graph and configuration always
    produce the same document.
    """

    def format_run_result(self, result: RunResult) -> str:
        """Format run result as JSON string.

        Args:
            result: The run result to format.

        Returns:
            JSON string representation of the report and its diagnostics.
        """
        output = self._build_output(result)
        return json.dumps(output, indent=2)

    def _build_output(self, result: RunResult) -> dict[str, Any]:
        report = result.report.model_dump(mode="json")
        return {
            "metadata": {
                "tool_version": __version__,
                "disclaimer": LEGAL_DISCLAIMER,
            },
            "summary": self._build_summary(result),
            "overview": report["overview"],
            "licenses": report["licenses"],
            "crates": report["crates"],
            "diagnostics": [d.model_dump(mode="json") for d in result.diagnostics],
        }

    def _build_summary(self, result: RunResult) -> dict[str, Any]:
        """Build summary section.

        Args:
            result: The run result.

        Returns:
            Dictionary with crate counts and the overall status.
        """
        return {
            "total_crates": len(result.resolutions),
            "licenses": len(result.report.licenses),
            "unresolved": len(result.unresolved),
            "unsatisfiable": len(result.unsatisfiable),
            "has_issues": result.has_issues,
            "overall_status": "ISSUES_FOUND" if result.has_issues else "PASS",
        }
