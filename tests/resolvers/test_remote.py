"""Tests for the remote harvest provider and its cache."""
import asyncio
from pathlib import Path

import pytest

from license_attributor.exceptions import HarvestTimeoutError, NetworkError
from license_attributor.models.evidence import Evidence, EvidenceSource, SourceMiss
from license_attributor.models.graph import PackageNode
from license_attributor.resolvers.harvest import HarvestedFile
from license_attributor.resolvers.local_scan import LocalScanner
from license_attributor.resolvers.remote import HarvestCache, RemoteProvider


def _provider(client, scorer, filter_noassertion: bool = False) -> RemoteProvider:
    cache = HarvestCache(client, timeout=1.0, max_concurrent=4)
    return RemoteProvider(cache, LocalScanner(scorer, 0.8), filter_noassertion)


class TestHarvestCache:
    """Tests for HarvestCache."""

    @pytest.mark.asyncio
    async def test_single_flight(self, make_harvest_client) -> None:
        """Test that concurrent identical requests share one call."""
        files = [HarvestedFile(path="LICENSE", license="MIT")]
        client = make_harvest_client({("a", "1.0.0"): files}, delay=0.01)
        cache = HarvestCache(client, timeout=1.0, max_concurrent=4)

        results = await asyncio.gather(*(cache.fetch("a", "1.0.0") for _ in range(10)))

        assert all(result == files for result in results)
        assert client.calls == [("a", "1.0.0")]

    @pytest.mark.asyncio
    async def test_bounded_concurrency(self, make_harvest_client) -> None:
        """Test that no more than max_concurrent calls run at once."""
        client = make_harvest_client(delay=0.01)
        cache = HarvestCache(client, timeout=1.0, max_concurrent=2)

        await asyncio.gather(*(cache.fetch(f"c{i}", "1.0.0") for i in range(8)))

        assert len(client.calls) == 8
        assert client.max_in_flight == 2

    @pytest.mark.asyncio
    async def test_timeout(self, make_harvest_client) -> None:
        """Test that slow calls time out."""
        client = make_harvest_client(delay=1.0)
        cache = HarvestCache(client, timeout=0.01, max_concurrent=1)

        with pytest.raises(HarvestTimeoutError):
            await cache.fetch("a", "1.0.0")

    @pytest.mark.asyncio
    async def test_error_propagates(self, make_harvest_client) -> None:
        """Test that client errors reach every waiter."""
        client = make_harvest_client({("a", "1.0.0"): NetworkError("boom")})
        cache = HarvestCache(client, timeout=1.0, max_concurrent=1)

        results = await asyncio.gather(
            cache.fetch("a", "1.0.0"), cache.fetch("a", "1.0.0"), return_exceptions=True
        )

        assert all(isinstance(r, NetworkError) for r in results)
        assert len(client.calls) == 1

    @pytest.mark.asyncio
    async def test_aclose_cancels_in_flight(self, make_harvest_client) -> None:
        """Test that aclose stops calls whose waiters were cancelled."""
        client = make_harvest_client(delay=5.0)
        cache = HarvestCache(client, timeout=10.0, max_concurrent=4)
        waiter = asyncio.ensure_future(cache.fetch("a", "1.0.0"))
        await asyncio.sleep(0.01)

        waiter.cancel()
        with pytest.raises(asyncio.CancelledError):
            await waiter
        assert client.in_flight == 1

        await cache.aclose()

        assert client.in_flight == 0

    @pytest.mark.asyncio
    async def test_aclose_after_completion(self, make_harvest_client) -> None:
        """Test that aclose keeps completed results."""
        files = [HarvestedFile(path="LICENSE", license="MIT")]
        client = make_harvest_client({("a", "1.0.0"): files})
        cache = HarvestCache(client, timeout=1.0, max_concurrent=1)
        await cache.fetch("a", "1.0.0")

        await cache.aclose()

        assert await cache.fetch("a", "1.0.0") == files
        assert len(client.calls) == 1


class TestRemoteProvider:
    """Tests for RemoteProvider."""

    @pytest.mark.asyncio
    async def test_combines_file_expressions(
        self, tmp_path: Path, make_harvest_client, fake_scorer
    ) -> None:
        """Test that per-file expressions are joined with AND."""
        (tmp_path / "LICENSE-MIT").write_text("SPDX: MIT\ntext\n")
        client = make_harvest_client(
            {
                ("a", "1.0.0"): [
                    HarvestedFile(path="LICENSE-MIT", license="MIT"),
                    HarvestedFile(path="LICENSE-APACHE", license="Apache-2.0"),
                    HarvestedFile(path="COPYING", license="MIT"),
                ]
            }
        )
        node = PackageNode(name="a", version="1.0.0", source_root=tmp_path)

        outcome = await _provider(client, fake_scorer).gather(node)

        assert isinstance(outcome, Evidence)
        assert outcome.source == EvidenceSource.REMOTE
        assert outcome.expression == "Apache-2.0 AND MIT"
        texts = {f.path: f.text for f in outcome.files}
        assert texts["LICENSE-MIT"] == "SPDX: MIT\ntext\n"
        assert texts["LICENSE-APACHE"] is None

    @pytest.mark.asyncio
    async def test_unknown_package(self, make_harvest_client, fake_scorer) -> None:
        """Test that packages without harvest data miss."""
        outcome = await _provider(make_harvest_client(), fake_scorer).gather(
            PackageNode(name="a", version="1.0.0")
        )

        assert isinstance(outcome, SourceMiss)
        assert outcome.failed is False

    @pytest.mark.asyncio
    async def test_failure_is_a_failed_miss(self, make_harvest_client, fake_scorer) -> None:
        """Test that network failures become failed misses."""
        client = make_harvest_client({("a", "1.0.0"): NetworkError("HTTP 503")})

        outcome = await _provider(client, fake_scorer).gather(
            PackageNode(name="a", version="1.0.0")
        )

        assert isinstance(outcome, SourceMiss)
        assert outcome.failed is True
        assert "HTTP 503" in outcome.reason

    @pytest.mark.asyncio
    async def test_invalid_file_expression_skipped(
        self, make_harvest_client, fake_scorer
    ) -> None:
        """Test that unparseable per-file expressions are ignored."""
        client = make_harvest_client(
            {
                ("a", "1.0.0"): [
                    HarvestedFile(path="LICENSE", license="MIT AND"),
                    HarvestedFile(path="LICENSE-MIT", license="MIT"),
                ]
            }
        )

        outcome = await _provider(client, fake_scorer).gather(
            PackageNode(name="a", version="1.0.0")
        )

        assert isinstance(outcome, Evidence)
        assert outcome.expression == "MIT"
        assert [f.path for f in outcome.files] == ["LICENSE-MIT"]

    @pytest.mark.asyncio
    async def test_noassertion_kept_by_default(
        self, make_harvest_client, fake_scorer
    ) -> None:
        """Test that NOASSERTION is kept unless filtering is enabled."""
        client = make_harvest_client(
            {("a", "1.0.0"): [HarvestedFile(path="LICENSE", license="NOASSERTION")]}
        )

        outcome = await _provider(client, fake_scorer).gather(
            PackageNode(name="a", version="1.0.0")
        )

        assert isinstance(outcome, Evidence)
        assert outcome.expression == "NOASSERTION"

    @pytest.mark.asyncio
    async def test_noassertion_rescanned(
        self, tmp_path: Path, make_harvest_client, fake_scorer
    ) -> None:
        """Test that NOASSERTION files are rescanned when filtering."""
        (tmp_path / "LICENSE").write_text("SPDX: ISC\ntext\n")
        client = make_harvest_client(
            {("a", "1.0.0"): [HarvestedFile(path="LICENSE", license="NOASSERTION")]}
        )
        node = PackageNode(name="a", version="1.0.0", source_root=tmp_path)

        outcome = await _provider(client, fake_scorer, filter_noassertion=True).gather(node)

        assert isinstance(outcome, Evidence)
        assert outcome.expression == "ISC"

    @pytest.mark.asyncio
    async def test_noassertion_dropped(self, make_harvest_client, fake_scorer) -> None:
        """Test that unrecognized NOASSERTION files are dropped when filtering."""
        client = make_harvest_client(
            {("a", "1.0.0"): [HarvestedFile(path="LICENSE", license="NOASSERTION")]}
        )

        outcome = await _provider(client, fake_scorer, filter_noassertion=True).gather(
            PackageNode(name="a", version="1.0.0")
        )

        assert isinstance(outcome, SourceMiss)
        assert outcome.failed is False
