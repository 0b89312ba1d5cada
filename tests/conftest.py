"""Shared fixtures for license-attributor tests."""

import asyncio
from typing import Callable, Optional, Union

import pytest
from click.testing import CliRunner

from license_attributor.analysis.aggregate import aggregate
from license_attributor.analysis.similarity import TemplateCorpus, TextMatch
from license_attributor.engine import RunResult, diagnose
from license_attributor.exceptions import NetworkError
from license_attributor.models.evidence import Evidence, EvidenceSource, GatheredLicense
from license_attributor.models.graph import PackageNode
from license_attributor.models.report import NodeResolution, Satisfaction, Unsatisfiable
from license_attributor.resolvers.harvest import HarvestedFile

HarvestData = Union[list[HarvestedFile], None, Exception]


class FakeScorer:
    """LocalTextScorer that recognizes texts whose first line is 'SPDX: <id>'."""

    def __init__(self, confidence: float = 0.95) -> None:
        self.confidence = confidence
        self.calls = 0

    def score(self, content: bytes, threshold: float) -> Optional[TextMatch]:
        self.calls += 1
        first = content.split(b"\n", 1)[0].decode("utf-8", errors="replace")
        if not first.startswith("SPDX:"):
            return None
        if self.confidence < threshold:
            return None
        return TextMatch(first[len("SPDX:"):].strip(), self.confidence)


class FakeHarvestClient:
    """RemoteHarvestClient serving canned data keyed by (name, version)."""

    def __init__(
        self,
        data: Optional[dict[tuple[str, str], HarvestData]] = None,
        delay: float = 0.0,
    ) -> None:
        self.data = data or {}
        self.delay = delay
        self.calls: list[tuple[str, str]] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def fetch(
        self, name: str, version: str, timeout: float
    ) -> Optional[list[HarvestedFile]]:
        self.calls.append((name, version))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            value = self.data.get((name, version))
            if isinstance(value, Exception):
                raise value
            return value
        finally:
            self.in_flight -= 1


class FakeBlobFetcher:
    """BlobFetcher serving canned blobs keyed by (repository, rev, path)."""

    def __init__(self, blobs: Optional[dict[tuple[str, str, str], bytes]] = None) -> None:
        self.blobs = blobs or {}
        self.calls: list[tuple[str, str, str]] = []

    async def fetch(self, repository: str, rev: str, path: str) -> bytes:
        self.calls.append((repository, rev, path))
        await asyncio.sleep(0)
        try:
            return self.blobs[(repository, rev, path)]
        except KeyError:
            raise NetworkError(f"Failed to fetch '{path}' from '{repository}': HTTP 404")


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def fake_scorer() -> FakeScorer:
    """Scorer that matches 'SPDX: <id>' headers with 0.95 confidence."""
    return FakeScorer()


@pytest.fixture
def make_scorer() -> Callable[..., FakeScorer]:
    """Factory for scorers with a custom confidence."""
    return FakeScorer


@pytest.fixture
def make_harvest_client() -> Callable[..., FakeHarvestClient]:
    """Factory for fake harvest clients."""
    return FakeHarvestClient


@pytest.fixture
def make_blob_fetcher() -> Callable[..., FakeBlobFetcher]:
    """Factory for fake git blob fetchers."""
    return FakeBlobFetcher


def build_run_result(
    crates: list[tuple[str, Optional[str], list[str]]],
    accepted: Optional[list[str]] = None,
) -> RunResult:
    """Build a RunResult from (name, expression, chosen) triples.

    A None expression makes the crate unresolved; an empty chosen list
    makes it unsatisfiable.
    """
    resolutions: list[NodeResolution] = []
    for name, expression, chosen in crates:
        node = PackageNode(name=name, version="1.0.0")
        if expression is None:
            resolutions.append(NodeResolution(gathered=GatheredLicense(node=node)))
            continue
        evidence = Evidence(source=EvidenceSource.MANIFEST, expression=expression)
        if chosen:
            outcome: Union[Satisfaction, Unsatisfiable] = Satisfaction(
                expression=expression, chosen=chosen
            )
        else:
            outcome = Unsatisfiable(
                expression=expression, accepted=accepted or [], unmet=[expression]
            )
        resolutions.append(
            NodeResolution(
                gathered=GatheredLicense(node=node, evidence=evidence),
                outcome=outcome,
                paths=[["app 0.1.0", f"{name} 1.0.0"]],
            )
        )
    diagnostics = [d for r in resolutions for d in diagnose(r)]
    return RunResult(
        report=aggregate(resolutions, TemplateCorpus()),
        resolutions=resolutions,
        diagnostics=diagnostics,
    )


@pytest.fixture
def make_run_result() -> Callable[..., RunResult]:
    """Factory for run results built from (name, expression, chosen) triples."""
    return build_run_result
