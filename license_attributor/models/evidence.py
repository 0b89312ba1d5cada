"""Evidence models: what each license source found for a package."""

from __future__ import annotations

from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, Field

from license_attributor.models.graph import PackageNode


class EvidenceSource(str, Enum):
    """Origin of license evidence, in precedence order."""

    CLARIFICATION = "clarification"
    WORKAROUND = "workaround"
    REMOTE = "remote"
    MANIFEST = "manifest"
    LOCAL_SCAN = "local_scan"


class FileClaim(BaseModel):
    """A checksum-bound claim about the license of (part of) a file."""

    model_config = {"extra": "forbid"}

    path: str = Field(description="Path relative to the package or repository root")
    license: Optional[str] = Field(
        default=None,
        description="License of this file, defaults to the clarification license",
    )
    checksum: str = Field(description="SHA-256 hex digest of the claimed content")
    start: Optional[str] = Field(
        default=None,
        description="Text marking the start of the claimed subsection",
    )
    end: Optional[str] = Field(
        default=None,
        description="Text marking the end of the claimed subsection",
    )


class Clarification(BaseModel):
    """A license override bound to file contents through checksums."""

    model_config = {"extra": "forbid"}

    license: str = Field(description="SPDX expression that applies to the package")
    override_git_commit: Optional[str] = Field(
        default=None,
        description="Commit to fetch git claims from instead of the packaged commit",
    )
    files: list[FileClaim] = Field(
        default_factory=list,
        description="Claims about files in the package source tree",
    )
    git: list[FileClaim] = Field(
        default_factory=list,
        description="Claims about files only present in the source repository",
    )


class LicenseFile(BaseModel):
    """A file that supplied license information."""

    model_config = {"extra": "forbid"}

    license: str = Field(description="SPDX expression detected for the file")
    path: str = Field(description="Provenance path of the file")
    confidence: float = Field(default=1.0, ge=0.0, le=1.0)
    text: Optional[str] = Field(
        default=None,
        description="License text taken from the file",
    )


class Evidence(BaseModel):
    """The license evidence one source produced for a package."""

    model_config = {"extra": "forbid"}

    source: EvidenceSource
    expression: str = Field(description="Normalized SPDX expression")
    files: list[LicenseFile] = Field(default_factory=list)
    confidence: float = Field(default=1.0, ge=0.0, le=1.0)


class VerifiedClarification(BaseModel):
    """A clarification whose every file claim matched its checksum."""

    model_config = {"extra": "forbid"}

    license: str = Field(description="Normalized SPDX expression")
    files: list[LicenseFile] = Field(default_factory=list)


class Drift(BaseModel):
    """A clarification file whose contents no longer match its checksum."""

    model_config = {"extra": "forbid"}

    path: str = Field(description="The file that failed verification")
    expected: str = Field(description="Configured checksum")
    actual: Optional[str] = Field(
        default=None,
        description="Digest of the current content, None if it could not be read",
    )
    reason: str = Field(description="Why verification failed")

    def describe(self) -> str:
        """Human-readable one-line description."""
        actual = self.actual or "<unavailable>"
        return (
            f"{self.path}: {self.reason} (expected {self.expected}, found {actual})"
        )


class SourceMiss(BaseModel):
    """A source that produced no evidence for a package."""

    model_config = {"extra": "forbid"}

    source: EvidenceSource
    reason: str
    drift: Optional[Drift] = None
    failed: bool = Field(
        default=False,
        description="True when the source errored rather than simply had no data",
    )


SourceOutcome = Union[Evidence, SourceMiss]


class GatheredLicense(BaseModel):
    """The winning evidence for a package along with the misses before it."""

    model_config = {"extra": "forbid"}

    node: PackageNode
    evidence: Optional[Evidence] = None
    misses: list[SourceMiss] = Field(default_factory=list)

    @property
    def is_resolved(self) -> bool:
        """True if some source produced evidence."""
        return self.evidence is not None
