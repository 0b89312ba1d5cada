"""License evidence from a remote harvesting service."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Optional

from license_attributor.analysis.expression import (
    combine_all,
    leaves,
    parse_expression,
    render,
)
from license_attributor.constants import NOASSERTION
from license_attributor.exceptions import (
    ExpressionParseError,
    HarvestTimeoutError,
    NetworkError,
)
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
from license_attributor.resolvers.harvest import HarvestedFile, RemoteHarvestClient
from license_attributor.resolvers.local_scan import LocalScanner

log = get_logger(__name__)


class HarvestCache:
    """Run-scoped, single-flight cache in front of a harvest client.

    Identical (name, version) requests share one call. At most
    ``max_concurrent`` calls are in flight, each bounded by ``timeout``.
    """

    def __init__(
        self,
        client: RemoteHarvestClient,
        timeout: float,
        max_concurrent: int,
    ) -> None:
        self._client = client
        self._timeout = timeout
        self._semaphore = asyncio.Semaphore(max_concurrent)
        self._tasks: dict[
            tuple[str, str], asyncio.Task[Optional[list[HarvestedFile]]]
        ] = {}

    async def _fetch(self, name: str, version: str) -> Optional[list[HarvestedFile]]:
        async with self._semaphore:
            log.debug("querying harvest service", crate=f"{name} {version}")
            try:
                return await asyncio.wait_for(
                    self._client.fetch(name, version, self._timeout),
                    timeout=self._timeout,
                )
            except asyncio.TimeoutError as e:
                raise HarvestTimeoutError(
                    f"Timed out after {self._timeout}s fetching harvest data "
                    f"for {name} {version}"
                ) from e

    async def fetch(self, name: str, version: str) -> Optional[list[HarvestedFile]]:
        """Return harvested files for a package.

        Raises:
            NetworkError: If the call failed or timed out.
        """
        key = (name, version)
        task = self._tasks.get(key)
        if task is None:
            task = asyncio.ensure_future(self._fetch(name, version))
            self._tasks[key] = task
        return await asyncio.shield(task)

    async def aclose(self) -> None:
        """Cancel harvest calls still in flight and wait for them to stop."""
        pending = [task for task in self._tasks.values() if not task.done()]
        for task in pending:
            task.cancel()
        if pending:
            log.debug("cancelled pending harvest calls", count=len(pending))
            await asyncio.gather(*pending, return_exceptions=True)


def _read_text(path: Path) -> Optional[bytes]:
    try:
        return path.read_bytes() if path.is_file() else None
    except OSError:
        return None


class RemoteProvider(EvidenceProvider):
    """Evidence from per-file licenses reported by the harvest service.

    The distinct per-file expressions are merged into one AND expression.
    Texts are read from the local sources when the files exist there.
    """

    source = EvidenceSource.REMOTE

    def __init__(
        self,
        harvest: HarvestCache,
        scanner: LocalScanner,
        filter_noassertion: bool = False,
    ) -> None:
        self._harvest = harvest
        self._scanner = scanner
        self._filter_noassertion = filter_noassertion

    async def gather(self, node: PackageNode) -> SourceOutcome:
        try:
            harvested = await self._harvest.fetch(node.name, node.version)
        except NetworkError as e:
            log.warning("harvest failed", crate=str(node), error=str(e))
            return SourceMiss(source=self.source, reason=str(e), failed=True)

        if not harvested:
            return SourceMiss(source=self.source, reason="no harvested license data")

        files: list[LicenseFile] = []
        for entry in harvested:
            license_file = await self._convert(node, entry)
            if license_file is not None:
                files.append(license_file)

        if not files:
            return SourceMiss(
                source=self.source, reason="harvested files carry no usable license"
            )

        return Evidence(
            source=self.source,
            expression=combine_all(f.license for f in files),
            files=files,
            confidence=1.0,
        )

    async def _convert(
        self, node: PackageNode, entry: HarvestedFile
    ) -> Optional[LicenseFile]:
        try:
            tree = parse_expression(entry.license)
        except ExpressionParseError as e:
            log.warning(
                "ignoring harvested file with invalid expression",
                crate=str(node),
                path=entry.path,
                error=e.detail,
            )
            return None

        content: Optional[bytes] = None
        if node.source_root is not None:
            content = await asyncio.to_thread(_read_text, node.source_root / entry.path)

        expression = render(tree)
        no_assertion = any(
            leaf.license_id.upper() == NOASSERTION for leaf in leaves(tree)
        )
        if no_assertion and self._filter_noassertion:
            rescanned = (
                await asyncio.to_thread(self._scanner.score_bytes, content)
                if content
                else None
            )
            if rescanned is None:
                log.debug(
                    "dropping NOASSERTION file", crate=str(node), path=entry.path
                )
                return None
            log.debug(
                "rescanned NOASSERTION file",
                crate=str(node),
                path=entry.path,
                license=rescanned,
            )
            expression = rescanned

        return LicenseFile(
            license=expression,
            path=entry.path,
            confidence=1.0,
            text=content.decode("utf-8", errors="replace") if content else None,
        )
