"""License detection by scanning a package's source tree."""

from __future__ import annotations

import asyncio
import fnmatch
import os
from pathlib import Path
from typing import Optional, Sequence

from license_attributor.analysis.expression import combine_all
from license_attributor.analysis.similarity import LocalTextScorer
from license_attributor.constants import BINARY_EXTENSIONS
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

log = get_logger(__name__)

# Files larger than this are never license texts
MAX_FILE_SIZE = 1024 * 1024

_SNIFF_BYTES = 8192


def is_binary(path: Path, head: bytes) -> bool:
    """Check if a file looks binary by extension or content."""
    if path.suffix.lower().lstrip(".") in BINARY_EXTENSIONS:
        return True
    return b"\0" in head[:_SNIFF_BYTES]


class LocalScanner:
    """Finds license texts in a directory tree.

    Symlinks, non-regular files, hidden directories, binary files and paths
    matching an exclude pattern are skipped. Every other file is scored with
    the text scorer, source files included, and kept when it reaches the
    threshold.
    """

    def __init__(
        self,
        scorer: LocalTextScorer,
        threshold: float,
        max_depth: Optional[int] = None,
        exclude: Sequence[str] = (),
    ) -> None:
        self._scorer = scorer
        self._threshold = threshold
        self._max_depth = max_depth
        self._exclude = list(exclude)

    def _excluded(self, relative: str) -> bool:
        name = relative.rsplit("/", 1)[-1]
        return any(
            fnmatch.fnmatch(relative, pattern) or fnmatch.fnmatch(name, pattern)
            for pattern in self._exclude
        )

    def candidates(self, root: Path) -> list[Path]:
        """List the regular files under root that are scanned."""
        found: list[Path] = []
        stack: list[tuple[Path, int]] = [(root, 0)]
        while stack:
            directory, depth = stack.pop()
            try:
                entries = list(os.scandir(directory))
            except OSError as e:
                log.debug("cannot list directory", path=str(directory), error=str(e))
                continue
            for entry in entries:
                path = Path(entry.path)
                relative = path.relative_to(root).as_posix()
                if entry.is_symlink() or self._excluded(relative):
                    continue
                if entry.is_dir(follow_symlinks=False):
                    if entry.name.startswith("."):
                        continue
                    if self._max_depth is None or depth < self._max_depth:
                        stack.append((path, depth + 1))
                elif entry.is_file(follow_symlinks=False):
                    found.append(path)
        return sorted(found)

    def score_file(self, root: Path, path: Path) -> Optional[LicenseFile]:
        """Score one file, None if it is not a license text."""
        try:
            if path.stat().st_size > MAX_FILE_SIZE:
                return None
            content = path.read_bytes()
        except OSError as e:
            log.debug("cannot read file", path=str(path), error=str(e))
            return None
        if not content or is_binary(path, content):
            return None

        match = self._scorer.score(content, self._threshold)
        if match is None or match.confidence < self._threshold:
            return None
        return LicenseFile(
            license=match.license_id,
            path=path.relative_to(root).as_posix(),
            confidence=match.confidence,
            text=content.decode("utf-8", errors="replace"),
        )

    def scan(self, root: Path) -> list[LicenseFile]:
        """Scan a tree and return the license files found, sorted by path."""
        if not root.is_dir():
            return []
        results: list[LicenseFile] = []
        for path in self.candidates(root):
            scored = self.score_file(root, path)
            if scored is not None:
                results.append(scored)
        return results

    def score_bytes(self, content: bytes) -> Optional[str]:
        """Return the license id a piece of text matches, if any."""
        match = self._scorer.score(content, self._threshold)
        if match is None or match.confidence < self._threshold:
            return None
        return match.license_id


class LocalScanProvider(EvidenceProvider):
    """Evidence from license texts found in the package sources."""

    source = EvidenceSource.LOCAL_SCAN

    def __init__(self, scanner: LocalScanner) -> None:
        self._scanner = scanner

    async def gather(self, node: PackageNode) -> SourceOutcome:
        if node.source_root is None:
            return SourceMiss(source=self.source, reason="crate has no source directory")

        files = await asyncio.to_thread(self._scanner.scan, node.source_root)
        if not files:
            return SourceMiss(
                source=self.source, reason="no license text found in the sources"
            )

        return Evidence(
            source=self.source,
            expression=combine_all(f.license for f in files),
            files=files,
            confidence=min(f.confidence for f in files),
        )
