"""Evidence gathering across the ordered chain of license sources."""

from __future__ import annotations

import asyncio
from typing import Sequence

from license_attributor.logging import get_logger
from license_attributor.models.evidence import Evidence, GatheredLicense, SourceMiss
from license_attributor.models.graph import PackageNode
from license_attributor.resolvers.base import EvidenceProvider

log = get_logger(__name__)


class EvidenceGatherer:
    """Asks each provider in turn until one produces evidence.

    Providers are consulted in the order given, which is the precedence
    order of their sources. Every provider that comes up empty is recorded
    as a miss on the result.
    """

    def __init__(self, providers: Sequence[EvidenceProvider]) -> None:
        self._providers = tuple(providers)

    async def gather(self, node: PackageNode) -> GatheredLicense:
        """Find the winning evidence for a package.

        Args:
            node: The package to gather evidence for.

        Returns:
            GatheredLicense with the first evidence found, or with no
            evidence when every source missed.
        """
        misses: list[SourceMiss] = []
        for provider in self._providers:
            outcome = await provider.gather(node)
            if isinstance(outcome, Evidence):
                log.debug(
                    "gathered evidence",
                    crate=str(node),
                    source=outcome.source.value,
                    expression=outcome.expression,
                )
                return GatheredLicense(node=node, evidence=outcome, misses=misses)
            misses.append(outcome)

        log.warning("no license evidence found", crate=str(node))
        return GatheredLicense(node=node, misses=misses)

    async def gather_all(self, nodes: Sequence[PackageNode]) -> list[GatheredLicense]:
        """Gather evidence for many packages concurrently, preserving order."""
        return list(await asyncio.gather(*(self.gather(node) for node in nodes)))
