"""ClearlyDefined harvest client.

ClearlyDefined harvests license information for published packages and
reports a license expression per file. Only files the service classifies as
license files are used.
"""

from __future__ import annotations

from typing import Any, Optional, Protocol

import httpx
from pydantic import BaseModel, Field, ValidationError

from license_attributor.exceptions import HarvestTimeoutError, NetworkError

CLEARLY_DEFINED_BASE_URL = "https://api.clearlydefined.io"

# Names that mark a file as a license file even without a "license" nature
LICENSE_FILE_PREFIXES = ("LICENSE", "LICENCE", "COPYING", "UNLICENSE", "COPYRIGHT")


class HarvestedFile(BaseModel):
    """A file the harvesting service found a license in."""

    model_config = {"extra": "forbid"}

    path: str = Field(description="Path relative to the package root")
    license: str = Field(description="SPDX expression reported for the file")


class RemoteHarvestClient(Protocol):
    """Queries a remote service for harvested per-file license data."""

    async def fetch(
        self, name: str, version: str, timeout: float
    ) -> Optional[list[HarvestedFile]]:
        """Return harvested license files, None if the package is unknown.

        Raises:
            NetworkError: If the request fails.
            HarvestTimeoutError: If the request times out.
        """
        ...


class DefinitionFile(BaseModel):
    """One entry of the ``files`` list of a ClearlyDefined definition."""

    path: Optional[str] = None
    license: Optional[str] = None
    natures: Optional[list[str]] = None

    @property
    def is_license_file(self) -> bool:
        if "license" in (self.natures or []):
            return True
        name = (self.path or "").rsplit("/", 1)[-1].upper()
        return name.startswith(LICENSE_FILE_PREFIXES)


class Definition(BaseModel):
    """The parts of a ClearlyDefined definition that carry license data."""

    files: Optional[list[DefinitionFile]] = None


def extract_license_files(definition: Any) -> list[HarvestedFile]:
    """Extract license files from a ClearlyDefined definition.

    Args:
        definition: ClearlyDefined definitions API response, as decoded JSON.

    Returns:
        License files with a reported expression, sorted by path.

    Raises:
        pydantic.ValidationError: If the response does not have the shape of
            a definition.
    """
    if not definition:
        return []

    files: list[HarvestedFile] = []
    for entry in Definition.model_validate(definition).files or []:
        if not entry.license or not entry.path:
            continue
        if not entry.is_license_file:
            continue
        files.append(HarvestedFile(path=entry.path, license=entry.license))
    return sorted(files, key=lambda f: f.path)


class ClearlyDefinedClient:
    """RemoteHarvestClient for the ClearlyDefined definitions API."""

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        base_url: str = CLEARLY_DEFINED_BASE_URL,
    ) -> None:
        """Initialize with an optional shared HTTP client.

        Args:
            client: Optional shared httpx.AsyncClient for connection reuse.
            base_url: API root, overridable for mirrors.
        """
        self._client = client
        self._base_url = base_url.rstrip("/")

    async def fetch(
        self, name: str, version: str, timeout: float
    ) -> Optional[list[HarvestedFile]]:
        url = f"{self._base_url}/definitions/crate/cratesio/-/{name}/{version}"

        async def do_fetch(c: httpx.AsyncClient) -> Optional[list[HarvestedFile]]:
            try:
                response = await c.get(url, timeout=httpx.Timeout(timeout))
                if response.status_code == 404:
                    return None
                response.raise_for_status()
                return extract_license_files(response.json())
            except httpx.TimeoutException as e:
                raise HarvestTimeoutError(
                    f"Timed out fetching harvest data for {name} {version}"
                ) from e
            except httpx.HTTPStatusError as e:
                raise NetworkError(
                    f"Failed to fetch harvest data for {name} {version}: "
                    f"HTTP {e.response.status_code}"
                ) from e
            except httpx.RequestError as e:
                raise NetworkError(
                    f"Failed to fetch harvest data for {name} {version}: {e}"
                ) from e
            except (ValidationError, ValueError) as e:
                raise NetworkError(
                    f"Invalid harvest data for {name} {version}: {e}"
                ) from e

        if self._client:
            return await do_fetch(self._client)

        async with httpx.AsyncClient() as new_client:
            return await do_fetch(new_client)
