"""Resolution and report models for license-attributor."""

from __future__ import annotations

from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, Field, computed_field

from license_attributor.models.evidence import GatheredLicense


class Satisfaction(BaseModel):
    """A license expression satisfied by the accept list.

    Attributes:
        chosen: Minimal set of license ids the crate is used under, in
            first-appearance order without duplicates.
    """

    model_config = {"extra": "forbid"}

    expression: str
    chosen: list[str] = Field(default_factory=list)

    @property
    def satisfied(self) -> bool:
        return True


class Unsatisfiable(BaseModel):
    """A license expression no combination of accepted licenses satisfies."""

    model_config = {"extra": "forbid"}

    expression: str = Field(description="The full expression that was evaluated")
    accepted: list[str] = Field(
        default_factory=list,
        description="The accept list in priority order",
    )
    unmet: list[str] = Field(
        default_factory=list,
        description="Leaf requirements that are not accepted",
    )

    @property
    def satisfied(self) -> bool:
        return False

    def describe(self) -> str:
        """Human-readable one-line description."""
        accepted = ", ".join(self.accepted) or "<none>"
        return (
            f"'{self.expression}' is not satisfied; unmet: "
            f"[{', '.join(self.unmet)}], accepted: [{accepted}]"
        )


ResolutionOutcome = Union[Satisfaction, Unsatisfiable]


class NodeResolution(BaseModel):
    """Everything decided for one crate during a run."""

    model_config = {"extra": "forbid"}

    gathered: GatheredLicense
    outcome: Optional[ResolutionOutcome] = Field(
        default=None,
        description="None when no evidence was found for the crate",
    )
    paths: list[list[str]] = Field(default_factory=list)

    @property
    def is_satisfied(self) -> bool:
        return isinstance(self.outcome, Satisfaction)

    @property
    def is_unresolved(self) -> bool:
        return self.outcome is None

    @property
    def is_unsatisfiable(self) -> bool:
        return isinstance(self.outcome, Unsatisfiable)


class DiagnosticKind(str, Enum):
    """Category of a run diagnostic."""

    DRIFT = "drift"
    UNRESOLVED = "unresolved"
    UNSATISFIABLE = "unsatisfiable"
    HARVEST_FAILURE = "harvest_failure"
    INVALID_EXPRESSION = "invalid_expression"


class Severity(str, Enum):
    """Diagnostic severity."""

    WARNING = "warning"
    ERROR = "error"


class Diagnostic(BaseModel):
    """A problem found while building the report."""

    model_config = {"extra": "forbid"}

    severity: Severity
    kind: DiagnosticKind
    crate: str = Field(description="'<name> <version>' of the affected crate")
    message: str


class UsedBy(BaseModel):
    """A crate that uses a license."""

    model_config = {"extra": "forbid"}

    name: str = Field(description="Crate name")
    version: str = Field(description="Crate version")
    paths: list[list[str]] = Field(
        default_factory=list,
        description="Dependency paths from a workspace member to the crate",
    )


class LicenseEntry(BaseModel):
    """A license and every crate that uses it."""

    model_config = {"extra": "forbid"}

    id: str = Field(description="SPDX license id, possibly 'ID WITH EXCEPTION'")
    name: str = Field(description="Full license name")
    text: str = Field(default="", description="License text")
    source_path: Optional[str] = Field(
        default=None,
        description="Where the text came from, None for canonical corpus text",
    )
    used_by: list[UsedBy] = Field(default_factory=list)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def count(self) -> int:
        """Number of distinct crates using the license."""
        return len(self.used_by)


class OverviewEntry(BaseModel):
    """License usage summary line."""

    model_config = {"extra": "forbid"}

    id: str
    name: str
    count: int = Field(ge=0)


class CrateEntry(BaseModel):
    """Per-crate summary included in the report."""

    model_config = {"extra": "forbid"}

    name: str
    version: str
    license: Optional[str] = Field(
        default=None,
        description="Effective expression, None if unresolved",
    )
    source: Optional[str] = Field(
        default=None,
        description="Evidence source that supplied the expression",
    )


class Report(BaseModel):
    """The attribution report handed to renderers."""

    model_config = {"extra": "forbid"}

    overview: list[OverviewEntry] = Field(default_factory=list)
    licenses: list[LicenseEntry] = Field(default_factory=list)
    crates: list[CrateEntry] = Field(default_factory=list)


class Verbosity(Enum):
    """Output verbosity levels."""

    QUIET = "quiet"
    NORMAL = "normal"
    VERBOSE = "verbose"
