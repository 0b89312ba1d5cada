"""Configuration Pydantic models for license-attributor."""
from __future__ import annotations

import re
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from license_attributor.constants import (
    DEFAULT_CONFIDENCE_THRESHOLD,
    DEFAULT_HARVEST_TIMEOUT_SECS,
    DEFAULT_MAX_CONCURRENT_REQUESTS,
)
from license_attributor.models.evidence import Clarification, FileClaim

_SHA256_HEX = re.compile(r"^[0-9a-fA-F]{64}$")


class ClarificationFile(FileClaim):
    """A file claim as written in configuration.

    Checksums must be 64 hex characters and are normalized to lowercase.
    """

    @field_validator("checksum")
    @classmethod
    def _check_checksum(cls, value: str) -> str:
        if not _SHA256_HEX.match(value):
            raise ValueError(f"'{value}' is not a SHA-256 hex digest")
        return value.lower()


class ClarificationConfig(Clarification):
    """A per-crate license clarification as written in configuration."""

    files: List[ClarificationFile] = Field(default_factory=list)
    git: List[ClarificationFile] = Field(default_factory=list)


class PrivateConfig(BaseModel):
    """Handling of private workspace members."""

    model_config = {"extra": "forbid"}

    ignore: bool = Field(
        default=False,
        description="Drop workspace members that are never published publicly",
    )
    registries: List[str] = Field(
        default_factory=list,
        description="Registries considered private when listed in 'publish'",
    )


class CrateConfig(BaseModel):
    """Per-crate configuration."""

    model_config = {"extra": "forbid"}

    accepted: List[str] = Field(
        default_factory=list,
        description="Additional licenses accepted for this crate only, "
        "tried after the global list.",
    )
    clarify: Optional[ClarificationConfig] = Field(
        default=None,
        description="Checksum-bound license override for this crate",
    )


class AttributorConfig(BaseModel):
    """Configuration for license-attributor."""

    model_config = {"extra": "forbid"}

    accepted: List[str] = Field(
        default_factory=list,
        description="Accepted SPDX license ids, most preferred first.",
    )
    targets: List[str] = Field(
        default_factory=list,
        description="Target triples to keep target-specific dependencies for. "
        "Empty keeps every dependency.",
    )
    ignore_build_dependencies: bool = False
    ignore_dev_dependencies: bool = False
    ignore_transitive_dependencies: bool = False
    private: PrivateConfig = Field(default_factory=PrivateConfig)
    no_clearly_defined: bool = Field(
        default=False,
        description="Disable the remote harvest source",
    )
    clearly_defined_timeout_secs: float = Field(
        default=DEFAULT_HARVEST_TIMEOUT_SECS,
        gt=0,
        description="Timeout for a single remote harvest call",
    )
    max_concurrent_requests: int = Field(
        default=DEFAULT_MAX_CONCURRENT_REQUESTS,
        ge=1,
        description="Upper bound on concurrent remote calls",
    )
    filter_noassertion: bool = Field(
        default=False,
        description="Rescan files the harvest service reports as NOASSERTION "
        "instead of keeping the NOASSERTION id.",
    )
    max_depth: Optional[int] = Field(
        default=None,
        ge=0,
        description="Maximum directory depth for local scans, None is unbounded",
    )
    confidence_threshold: float = Field(
        default=DEFAULT_CONFIDENCE_THRESHOLD,
        description="Minimum score for a local text match. Clamped to [0, 1].",
    )
    scan_exclude: List[str] = Field(
        default_factory=list,
        description="Glob patterns of paths excluded from local scans",
    )
    workarounds: List[str] = Field(
        default_factory=list,
        description="Names of built-in clarifications to enable",
    )
    crates: Dict[str, CrateConfig] = Field(
        default_factory=dict,
        description="Per-crate configuration keyed by crate name",
    )

    @field_validator("confidence_threshold")
    @classmethod
    def _clamp_threshold(cls, value: float) -> float:
        return min(1.0, max(0.0, value))

    def accepted_for(self, crate_name: str) -> list[str]:
        """Accept list for a crate: global ids followed by per-crate ids."""
        priority = list(self.accepted)
        crate = self.crates.get(crate_name)
        if crate is not None:
            priority.extend(lic for lic in crate.accepted if lic not in priority)
        return priority

    def clarification_for(self, crate_name: str) -> Optional[ClarificationConfig]:
        """Return the configured clarification for a crate, if any."""
        crate = self.crates.get(crate_name)
        if crate is None:
            return None
        return crate.clarify
