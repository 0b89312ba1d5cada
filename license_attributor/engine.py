"""Report generation pipeline for dependency graphs."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Optional, Sequence

import httpx
from pydantic import BaseModel, Field, ValidationError

from license_attributor.analysis.aggregate import aggregate
from license_attributor.analysis.expression import normalize_expression
from license_attributor.analysis.filtering import filter_graph
from license_attributor.analysis.resolution import resolve
from license_attributor.analysis.similarity import (
    LicenseCorpus,
    LocalTextScorer,
    TemplateCorpus,
    TemplateScorer,
)
from license_attributor.exceptions import AttributorError, GraphFilterError
from license_attributor.logging import get_logger
from license_attributor.models.config import AttributorConfig
from license_attributor.models.evidence import EvidenceSource, GatheredLicense
from license_attributor.models.graph import DependencyGraph, PackageNode
from license_attributor.models.report import (
    Diagnostic,
    DiagnosticKind,
    NodeResolution,
    Report,
    Severity,
    Unsatisfiable,
)
from license_attributor.resolvers.base import EvidenceProvider
from license_attributor.resolvers.clarification import (
    ClarificationProvider,
    ClarificationVerifier,
    WorkaroundProvider,
)
from license_attributor.resolvers.gatherer import EvidenceGatherer
from license_attributor.resolvers.git import BlobFetcher, GitBlobCache, GitHackFetcher
from license_attributor.resolvers.harvest import ClearlyDefinedClient, RemoteHarvestClient
from license_attributor.resolvers.local_scan import LocalScanner, LocalScanProvider
from license_attributor.resolvers.manifest import ManifestProvider
from license_attributor.resolvers.remote import HarvestCache, RemoteProvider

log = get_logger(__name__)

# Diagnostic raised when a source errored instead of simply finding nothing
_FAILURE_KINDS = {
    EvidenceSource.REMOTE: DiagnosticKind.HARVEST_FAILURE,
    EvidenceSource.MANIFEST: DiagnosticKind.INVALID_EXPRESSION,
}


class RunResult(BaseModel):
    """Outcome of a report generation run."""

    model_config = {"extra": "forbid"}

    report: Report
    resolutions: list[NodeResolution] = Field(default_factory=list)
    diagnostics: list[Diagnostic] = Field(default_factory=list)

    @property
    def unresolved(self) -> list[NodeResolution]:
        return [r for r in self.resolutions if r.is_unresolved]

    @property
    def unsatisfiable(self) -> list[NodeResolution]:
        return [r for r in self.resolutions if r.is_unsatisfiable]

    @property
    def has_issues(self) -> bool:
        """True if any crate is unresolved or unsatisfiable."""
        return any(not r.is_satisfied for r in self.resolutions)


def load_graph(path: Path) -> DependencyGraph:
    """Load a dependency graph from a JSON file.

    Raises:
        GraphFilterError: If the file cannot be read or is not a valid graph.
    """
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as e:
        raise GraphFilterError(f"Cannot read dependency graph '{path}': {e}") from e

    try:
        return DependencyGraph.model_validate_json(content)
    except ValidationError as e:
        raise GraphFilterError(
            f"Invalid dependency graph in '{path}': {e.error_count()} error(s), "
            f"first: {e.errors()[0]['msg']}"
        ) from e


def build_providers(
    config: AttributorConfig,
    scanner: LocalScanner,
    blobs: Optional[GitBlobCache] = None,
    harvest: Optional[HarvestCache] = None,
) -> list[EvidenceProvider]:
    """Build the evidence providers in precedence order.

    Args:
        config: Run configuration.
        scanner: Local license text scanner shared by the scanning sources.
        blobs: Git blob cache, None to reject remote git claims.
        harvest: Harvest cache, None to skip the remote source.
    """
    verifier = ClarificationVerifier(blobs)
    providers: list[EvidenceProvider] = [
        ClarificationProvider(config, verifier),
        WorkaroundProvider(config.workarounds, verifier),
    ]
    if harvest is not None:
        providers.append(
            RemoteProvider(harvest, scanner, filter_noassertion=config.filter_noassertion)
        )
    providers.append(ManifestProvider(scanner))
    providers.append(LocalScanProvider(scanner))
    return providers


def diagnose(resolution: NodeResolution) -> list[Diagnostic]:
    """List the problems found for one crate."""
    crate = str(resolution.gathered.node)
    diagnostics: list[Diagnostic] = []

    for miss in resolution.gathered.misses:
        if miss.drift is not None:
            diagnostics.append(
                Diagnostic(
                    severity=Severity.WARNING,
                    kind=DiagnosticKind.DRIFT,
                    crate=crate,
                    message=f"{miss.source.value} rejected: {miss.drift.describe()}",
                )
            )
        elif miss.failed:
            diagnostics.append(
                Diagnostic(
                    severity=Severity.WARNING,
                    kind=_FAILURE_KINDS.get(miss.source, DiagnosticKind.HARVEST_FAILURE),
                    crate=crate,
                    message=miss.reason,
                )
            )

    if resolution.is_unresolved:
        diagnostics.append(
            Diagnostic(
                severity=Severity.ERROR,
                kind=DiagnosticKind.UNRESOLVED,
                crate=crate,
                message="no license evidence found in any source",
            )
        )
    elif isinstance(resolution.outcome, Unsatisfiable):
        diagnostics.append(
            Diagnostic(
                severity=Severity.ERROR,
                kind=DiagnosticKind.UNSATISFIABLE,
                crate=crate,
                message=resolution.outcome.describe(),
            )
        )
    return diagnostics


class Engine:
    """Runs filtering, evidence gathering, resolution and aggregation.

    Collaborators may be injected; defaults are the template scorer and
    corpus, the ClearlyDefined client and the githack blob fetcher.
    """

    def __init__(
        self,
        config: AttributorConfig,
        *,
        offline: bool = False,
        scorer: Optional[LocalTextScorer] = None,
        corpus: Optional[LicenseCorpus] = None,
        harvest_client: Optional[RemoteHarvestClient] = None,
        blob_fetcher: Optional[BlobFetcher] = None,
    ) -> None:
        self._config = config
        self._offline = offline
        template_corpus = TemplateCorpus()
        self._scorer = scorer or TemplateScorer(template_corpus)
        self._corpus = corpus or template_corpus
        self._harvest_client = harvest_client
        self._blob_fetcher = blob_fetcher
        self._accepted: dict[str, list[str]] = {}

    @property
    def remote_enabled(self) -> bool:
        return not (self._offline or self._config.no_clearly_defined)

    def accepted_for(self, crate_name: str) -> list[str]:
        """Normalized accept list for a crate, global ids first."""
        accepted = self._accepted.get(crate_name)
        if accepted is None:
            accepted = [
                normalize_expression(license_id)
                for license_id in self._config.accepted_for(crate_name)
            ]
            self._accepted[crate_name] = accepted
        return accepted

    def resolve_one(self, gathered: GatheredLicense, paths: list[list[str]]) -> NodeResolution:
        if gathered.evidence is None:
            return NodeResolution(gathered=gathered, paths=paths)
        outcome = resolve(gathered.evidence.expression, self.accepted_for(gathered.node.name))
        return NodeResolution(gathered=gathered, outcome=outcome, paths=paths)

    async def run(self, graph: DependencyGraph, timeout: Optional[float] = None) -> RunResult:
        """Generate the report for a dependency graph.

        Args:
            graph: The raw dependency graph.
            timeout: Optional limit in seconds for the whole run.

        Raises:
            GraphFilterError: If the graph is malformed.
            AttributorError: If the run timed out. No partial report is kept.
        """
        if timeout is None:
            return await self._run(graph)
        try:
            return await asyncio.wait_for(self._run(graph), timeout=timeout)
        except asyncio.TimeoutError as e:
            raise AttributorError(f"Report generation timed out after {timeout}s") from e

    async def _run(self, graph: DependencyGraph) -> RunResult:
        working = filter_graph(graph, self._config)
        log.info("filtered dependency graph", crates=len(working.nodes))

        scanner = LocalScanner(
            self._scorer,
            self._config.confidence_threshold,
            max_depth=self._config.max_depth,
            exclude=self._config.scan_exclude,
        )

        if self._offline:
            gathered = await self._gather(working.nodes, scanner, None, None)
        else:
            async with httpx.AsyncClient() as client:
                fetcher = self._blob_fetcher or GitHackFetcher(
                    client, timeout=self._config.clearly_defined_timeout_secs
                )
                blobs = GitBlobCache(fetcher)
                harvest = None
                if self.remote_enabled:
                    harvest = HarvestCache(
                        self._harvest_client or ClearlyDefinedClient(client),
                        timeout=self._config.clearly_defined_timeout_secs,
                        max_concurrent=self._config.max_concurrent_requests,
                    )
                try:
                    gathered = await self._gather(working.nodes, scanner, blobs, harvest)
                finally:
                    # Calls outlive their waiters when the run is cancelled
                    await blobs.aclose()
                    if harvest is not None:
                        await harvest.aclose()

        resolutions = [
            self.resolve_one(g, working.paths.get(g.node.id, [])) for g in gathered
        ]
        diagnostics = [d for r in resolutions for d in diagnose(r)]
        report = aggregate(resolutions, self._corpus)
        log.info(
            "generated report",
            licenses=len(report.licenses),
            unresolved=sum(1 for r in resolutions if r.is_unresolved),
            unsatisfiable=sum(1 for r in resolutions if r.is_unsatisfiable),
        )
        return RunResult(report=report, resolutions=resolutions, diagnostics=diagnostics)

    async def _gather(
        self,
        nodes: Sequence[PackageNode],
        scanner: LocalScanner,
        blobs: Optional[GitBlobCache],
        harvest: Optional[HarvestCache],
    ) -> list[GatheredLicense]:
        gatherer = EvidenceGatherer(build_providers(self._config, scanner, blobs, harvest))
        return await gatherer.gather_all(nodes)


def generate(
    graph: DependencyGraph,
    config: AttributorConfig,
    *,
    offline: bool = False,
    timeout: Optional[float] = None,
) -> RunResult:
    """Synchronous entry point: run the engine with default collaborators."""
    return asyncio.run(Engine(config, offline=offline).run(graph, timeout=timeout))
