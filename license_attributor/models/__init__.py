"""Pydantic data models for license-attributor."""

from license_attributor.models.config import (
    AttributorConfig,
    ClarificationConfig,
    ClarificationFile,
    CrateConfig,
    PrivateConfig,
)
from license_attributor.models.evidence import (
    Clarification,
    Drift,
    Evidence,
    EvidenceSource,
    FileClaim,
    GatheredLicense,
    LicenseFile,
    SourceMiss,
    VerifiedClarification,
)
from license_attributor.models.graph import (
    DependencyEdge,
    DependencyGraph,
    DependencyKind,
    PackageNode,
    WorkingGraph,
)
from license_attributor.models.report import (
    CrateEntry,
    Diagnostic,
    DiagnosticKind,
    LicenseEntry,
    NodeResolution,
    OverviewEntry,
    Report,
    Satisfaction,
    Severity,
    Unsatisfiable,
    UsedBy,
    Verbosity,
)

__all__ = [
    "AttributorConfig",
    "Clarification",
    "ClarificationConfig",
    "ClarificationFile",
    "CrateConfig",
    "CrateEntry",
    "DependencyEdge",
    "DependencyGraph",
    "DependencyKind",
    "Diagnostic",
    "DiagnosticKind",
    "Drift",
    "Evidence",
    "EvidenceSource",
    "FileClaim",
    "GatheredLicense",
    "LicenseEntry",
    "LicenseFile",
    "NodeResolution",
    "OverviewEntry",
    "PackageNode",
    "PrivateConfig",
    "Report",
    "Satisfaction",
    "Severity",
    "SourceMiss",
    "Unsatisfiable",
    "UsedBy",
    "Verbosity",
    "VerifiedClarification",
    "WorkingGraph",
]
