"""Verification of checksum-bound license clarifications."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Optional, Union

from pydantic import BaseModel, ValidationError

from license_attributor.analysis.clarification import check_claim
from license_attributor.analysis.expression import normalize_expression
from license_attributor.constants import VCS_INFO_FILE
from license_attributor.exceptions import NetworkError
from license_attributor.logging import get_logger
from license_attributor.models.config import AttributorConfig
from license_attributor.models.evidence import (
    Clarification,
    Drift,
    Evidence,
    EvidenceSource,
    FileClaim,
    LicenseFile,
    SourceMiss,
    SourceOutcome,
    VerifiedClarification,
)
from license_attributor.models.graph import PackageNode
from license_attributor.resolvers.base import EvidenceProvider
from license_attributor.resolvers.git import GitBlobCache
from license_attributor.resolvers.workarounds import find_workaround

log = get_logger(__name__)


class GitInfo(BaseModel):
    """The commit a package was published from."""

    sha1: str


class VcsInfo(BaseModel):
    """Contents of the VCS info file written into packaged crates."""

    git: GitInfo


def read_vcs_commit(source_root: Path) -> str:
    """Read the commit recorded in a packaged crate.

    Raises:
        OSError: If the VCS info file cannot be read.
        ValueError: If it is not valid VCS info.
    """
    raw = (source_root / VCS_INFO_FILE).read_bytes()
    try:
        return VcsInfo.model_validate_json(raw).git.sha1
    except ValidationError as e:
        raise ValueError(f"invalid {VCS_INFO_FILE}: {e}") from e


def find_repository_root(source_root: Path) -> Path:
    """Find the checkout a locally sourced crate lives in.

    Walks up from the crate directory to the first directory holding a
    ``.git`` entry, falling back to the crate directory itself.
    """
    for candidate in (source_root, *source_root.parents):
        if (candidate / ".git").exists():
            return candidate
    return source_root


class ClarificationVerifier:
    """Checks every file claim of a clarification against its checksum.

    Verification is all or nothing: the first claim that does not match
    rejects the whole clarification.
    """

    def __init__(self, blobs: Optional[GitBlobCache] = None) -> None:
        """Initialize the verifier.

        Args:
            blobs: Cache used to fetch files from remote repositories.
                None disables remote git claims (offline mode).
        """
        self._blobs = blobs

    async def verify(
        self, node: PackageNode, clarification: Clarification
    ) -> Union[VerifiedClarification, Drift]:
        """Verify a clarification for a package.

        Returns:
            VerifiedClarification carrying the claimed texts, or the Drift
            describing the first claim that failed.
        """
        if not clarification.files and not clarification.git:
            return Drift(
                path="",
                expected="",
                reason="clarification does not list any files to checksum",
            )

        verified: list[LicenseFile] = []
        claims = [(claim, False) for claim in clarification.files] + [
            (claim, True) for claim in clarification.git
        ]
        for claim, from_git in claims:
            if from_git:
                content, reason = await self._load_git(node, clarification, claim)
            else:
                content, reason = await self._load_local(node, claim)

            text, drift = check_claim(claim, content, reason)
            if drift is not None:
                log.warning(
                    "clarification drift",
                    crate=str(node),
                    path=drift.path,
                    reason=drift.reason,
                    expected=drift.expected,
                    actual=drift.actual,
                )
                return drift

            verified.append(
                LicenseFile(
                    license=normalize_expression(claim.license or clarification.license),
                    path=claim.path,
                    confidence=1.0,
                    text=(text or b"").decode("utf-8", errors="replace"),
                )
            )

        return VerifiedClarification(
            license=normalize_expression(clarification.license),
            files=verified,
        )

    async def _load_local(
        self, node: PackageNode, claim: FileClaim
    ) -> tuple[Optional[bytes], str]:
        if node.source_root is None:
            return None, "crate has no source directory"
        path = node.source_root / claim.path
        try:
            return await asyncio.to_thread(path.read_bytes), ""
        except OSError as e:
            return None, f"unable to read '{path}': {e.strerror or e}"

    async def _load_git(
        self, node: PackageNode, clarification: Clarification, claim: FileClaim
    ) -> tuple[Optional[bytes], str]:
        source = node.source or ""
        if not source or source.startswith("git+"):
            # The crate sources are a checkout already
            if node.source_root is None:
                return None, "crate has no source directory"
            path = find_repository_root(node.source_root) / claim.path
            try:
                return await asyncio.to_thread(path.read_bytes), ""
            except OSError as e:
                return None, f"unable to read '{path}': {e.strerror or e}"

        if not node.repository:
            return None, f"crate with source '{source}' does not declare a repository"
        if self._blobs is None:
            return None, "git files cannot be fetched in offline mode"

        commit = clarification.override_git_commit
        if commit:
            log.debug("using commit override", crate=str(node), commit=commit)
        else:
            if node.source_root is None:
                return None, "crate has no source directory to read the commit from"
            try:
                commit = await asyncio.to_thread(read_vcs_commit, node.source_root)
            except (OSError, ValueError) as e:
                return None, f"unable to determine packaged commit: {e}"

        try:
            return await self._blobs.retrieve(node.repository, commit, claim.path), ""
        except NetworkError as e:
            return None, str(e)


def _evidence(source: EvidenceSource, verified: VerifiedClarification) -> Evidence:
    return Evidence(
        source=source,
        expression=verified.license,
        files=verified.files,
        confidence=1.0,
    )


class ClarificationProvider(EvidenceProvider):
    """Evidence from a clarification configured for the crate."""

    source = EvidenceSource.CLARIFICATION

    def __init__(self, config: AttributorConfig, verifier: ClarificationVerifier) -> None:
        self._config = config
        self._verifier = verifier

    async def gather(self, node: PackageNode) -> SourceOutcome:
        clarification = self._config.clarification_for(node.name)
        if clarification is None:
            return SourceMiss(source=self.source, reason="no clarification configured")

        result = await self._verifier.verify(node, clarification)
        if isinstance(result, Drift):
            return SourceMiss(source=self.source, reason=result.describe(), drift=result)
        return _evidence(self.source, result)


class WorkaroundProvider(EvidenceProvider):
    """Evidence from the built-in clarification enabled for the crate."""

    source = EvidenceSource.WORKAROUND

    def __init__(self, enabled: list[str], verifier: ClarificationVerifier) -> None:
        self._enabled = list(enabled)
        self._verifier = verifier

    async def gather(self, node: PackageNode) -> SourceOutcome:
        workaround = find_workaround(node, self._enabled)
        if workaround is None:
            return SourceMiss(source=self.source, reason="no workaround applies")

        result = await self._verifier.verify(node, workaround.build(node))
        if isinstance(result, Drift):
            return SourceMiss(source=self.source, reason=result.describe(), drift=result)
        log.debug("applying workaround", crate=str(node), workaround=workaround.name)
        return _evidence(self.source, result)
