"""License evidence providers."""

from license_attributor.resolvers.base import EvidenceProvider
from license_attributor.resolvers.clarification import (
    ClarificationProvider,
    ClarificationVerifier,
    WorkaroundProvider,
)
from license_attributor.resolvers.gatherer import EvidenceGatherer
from license_attributor.resolvers.git import GitBlobCache, GitHackFetcher
from license_attributor.resolvers.harvest import ClearlyDefinedClient
from license_attributor.resolvers.local_scan import LocalScanner, LocalScanProvider
from license_attributor.resolvers.manifest import ManifestProvider
from license_attributor.resolvers.remote import HarvestCache, RemoteProvider

__all__ = [
    "ClarificationProvider",
    "ClarificationVerifier",
    "ClearlyDefinedClient",
    "EvidenceGatherer",
    "EvidenceProvider",
    "GitBlobCache",
    "GitHackFetcher",
    "HarvestCache",
    "LocalScanProvider",
    "LocalScanner",
    "ManifestProvider",
    "RemoteProvider",
    "WorkaroundProvider",
]
