"""Retrieval of single files from public git hosts.

Files are fetched through the githack raw-file CDN, which serves blobs from
GitHub, GitLab and Bitbucket without API tokens or a clone.
"""

from __future__ import annotations

import asyncio
from typing import Optional, Protocol
from urllib.parse import urlparse

import httpx

from license_attributor.exceptions import NetworkError
from license_attributor.logging import get_logger

log = get_logger(__name__)

GIT_HOSTS: dict[str, str] = {
    "github.com": "https://rawcdn.githack.com/{project}/{rev}/{path}",
    "gitlab.com": "https://glcdn.githack.com/{project}/-/raw/{rev}/{path}",
    "bitbucket.org": "https://bbcdn.githack.com/{project}/raw/{rev}/{path}",
}


class BlobFetcher(Protocol):
    """Fetches a file from a git repository at a given revision."""

    async def fetch(self, repository: str, rev: str, path: str) -> bytes:
        """Return the file contents.

        Raises:
            NetworkError: If the file cannot be retrieved.
        """
        ...


def raw_file_url(repository: str, rev: str, path: str) -> str:
    """Build the raw-file URL for a path in a repository.

    Repository URLs that point into a subdirectory of the repository are
    trimmed to their ``<org>/<repo>`` part.

    Raises:
        NetworkError: If the host is not supported or the URL is malformed.
    """
    parsed = urlparse(repository)
    host = (parsed.hostname or "").lower()
    if host.startswith("www."):
        host = host[4:]
    template = GIT_HOSTS.get(host)
    if template is None:
        if not host:
            raise NetworkError(f"repository url '{repository}' does not contain a host")
        raise NetworkError(f"the git host '{host}' is not supported")

    segments = [s for s in parsed.path.split("/") if s]
    if len(segments) < 2:
        raise NetworkError(f"expected an <org>/<repo> path in '{repository}'")
    repo = segments[1]
    if repo.endswith(".git"):
        repo = repo[:-4]
    project = f"{segments[0]}/{repo}"
    return template.format(project=project, rev=rev, path=path.lstrip("/"))


class GitHackFetcher:
    """BlobFetcher backed by the githack CDN."""

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 30.0,
    ) -> None:
        """Initialize with an optional shared HTTP client.

        Args:
            client: Optional shared httpx.AsyncClient for connection reuse.
            timeout: Per-request timeout in seconds.
        """
        self._client = client
        self._timeout = timeout

    async def fetch(self, repository: str, rev: str, path: str) -> bytes:
        url = raw_file_url(repository, rev, path)

        async def do_fetch(c: httpx.AsyncClient) -> bytes:
            try:
                response = await c.get(url, timeout=httpx.Timeout(self._timeout))
                response.raise_for_status()
                return response.content
            except httpx.HTTPStatusError as e:
                raise NetworkError(
                    f"Failed to fetch '{path}' from '{repository}': "
                    f"HTTP {e.response.status_code}"
                ) from e
            except httpx.RequestError as e:
                raise NetworkError(
                    f"Failed to fetch '{path}' from '{repository}': {e}"
                ) from e

        if self._client:
            return await do_fetch(self._client)

        async with httpx.AsyncClient() as new_client:
            return await do_fetch(new_client)


class GitBlobCache:
    """Run-scoped cache of git blobs keyed by (repository, revision, path).

    Concurrent requests for the same blob share one fetch.
    """

    def __init__(self, fetcher: BlobFetcher) -> None:
        self._fetcher = fetcher
        self._tasks: dict[tuple[str, str, str], asyncio.Task[bytes]] = {}

    async def retrieve(self, repository: str, rev: str, path: str) -> bytes:
        """Return a blob, fetching it on first use.

        Raises:
            NetworkError: If the blob cannot be fetched.
        """
        key = (repository, rev, path)
        task = self._tasks.get(key)
        if task is None:
            log.debug("fetching git blob", repository=repository, rev=rev, path=path)
            task = asyncio.ensure_future(self._fetcher.fetch(repository, rev, path))
            self._tasks[key] = task
        return await asyncio.shield(task)

    async def aclose(self) -> None:
        """Cancel blob fetches still in flight and wait for them to stop."""
        pending = [task for task in self._tasks.values() if not task.done()]
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)
