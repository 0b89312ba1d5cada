"""Base evidence provider interface."""

from abc import ABC, abstractmethod

from license_attributor.models.evidence import EvidenceSource, SourceOutcome
from license_attributor.models.graph import PackageNode


class EvidenceProvider(ABC):
    """Abstract base class for license evidence sources.

    All providers must inherit from this class and implement the async
    gather() method. Providers report the absence of evidence, including
    recoverable failures, as a SourceMiss rather than raising.
    """

    source: EvidenceSource

    @abstractmethod
    async def gather(self, node: PackageNode) -> SourceOutcome:
        """Look for license evidence for a package.

        Args:
            node: The package to gather evidence for.

        Returns:
            Evidence when the source can tell the license, SourceMiss otherwise.
        """
