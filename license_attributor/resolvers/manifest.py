"""License evidence from the expression declared in a package manifest."""

from __future__ import annotations

import asyncio

from license_attributor.analysis.expression import (
    leaves,
    legacy_to_spdx,
    license_ids,
    parse_expression,
    render,
)
from license_attributor.exceptions import ExpressionParseError
from license_attributor.logging import get_logger
from license_attributor.models.evidence import (
    Evidence,
    EvidenceSource,
    LicenseFile,
    SourceMiss,
    SourceOutcome,
)
from license_attributor.models.graph import PackageNode
from license_attributor.resolvers.base import EvidenceProvider
from license_attributor.resolvers.local_scan import LocalScanner

log = get_logger(__name__)


class ManifestProvider(EvidenceProvider):
    """Evidence from the manifest ``license`` field.

    The declared expression decides the license. License texts found in the
    package sources are attached for provenance only, they never change the
    expression.
    """

    source = EvidenceSource.MANIFEST

    def __init__(self, scanner: LocalScanner) -> None:
        self._scanner = scanner

    async def gather(self, node: PackageNode) -> SourceOutcome:
        declared = (node.license or "").strip()
        if not declared:
            return SourceMiss(source=self.source, reason="manifest declares no license")

        try:
            tree = parse_expression(legacy_to_spdx(declared))
        except ExpressionParseError as e:
            log.error(
                "unable to parse manifest license expression",
                crate=str(node),
                expression=declared,
                error=e.detail,
            )
            return SourceMiss(source=self.source, reason=str(e), failed=True)

        files: list[LicenseFile] = []
        if node.source_root is not None:
            wanted = set(license_ids(tree))
            wanted.update(leaf.license_id for leaf in leaves(tree))
            scanned = await asyncio.to_thread(self._scanner.scan, node.source_root)
            files = [f for f in scanned if f.license in wanted]

        return Evidence(
            source=self.source,
            expression=render(tree),
            files=files,
            confidence=1.0,
        )
