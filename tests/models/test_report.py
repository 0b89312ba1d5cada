"""Tests for evidence and report models."""

from license_attributor.models.evidence import (
    Drift,
    Evidence,
    EvidenceSource,
    GatheredLicense,
)
from license_attributor.models.graph import PackageNode
from license_attributor.models.report import (
    LicenseEntry,
    NodeResolution,
    Satisfaction,
    Unsatisfiable,
    UsedBy,
)


class TestDrift:
    """Tests for Drift."""

    def test_describe_with_actual(self) -> None:
        """Test that both digests are described."""
        drift = Drift(path="LICENSE", expected="aa", actual="bb", reason="checksum mismatch")

        text = drift.describe()

        assert "LICENSE" in text
        assert "aa" in text
        assert "bb" in text

    def test_describe_unreadable(self) -> None:
        """Test the description when the file could not be read."""
        drift = Drift(path="LICENSE", expected="aa", reason="missing")

        assert "<unavailable>" in drift.describe()


class TestGatheredLicense:
    """Tests for GatheredLicense."""

    def test_is_resolved(self) -> None:
        """Test that evidence makes a crate resolved."""
        node = PackageNode(name="a", version="1.0.0")
        evidence = Evidence(source=EvidenceSource.MANIFEST, expression="MIT")

        assert GatheredLicense(node=node, evidence=evidence).is_resolved
        assert not GatheredLicense(node=node).is_resolved


class TestNodeResolution:
    """Tests for NodeResolution."""

    def _gathered(self) -> GatheredLicense:
        return GatheredLicense(node=PackageNode(name="a", version="1.0.0"))

    def test_states(self) -> None:
        """Test the three resolution states."""
        unresolved = NodeResolution(gathered=self._gathered())
        satisfied = NodeResolution(
            gathered=self._gathered(),
            outcome=Satisfaction(expression="MIT", chosen=["MIT"]),
        )
        unsatisfiable = NodeResolution(
            gathered=self._gathered(),
            outcome=Unsatisfiable(expression="MIT", accepted=[], unmet=["MIT"]),
        )

        assert unresolved.is_unresolved and not unresolved.is_satisfied
        assert satisfied.is_satisfied and not satisfied.is_unsatisfiable
        assert unsatisfiable.is_unsatisfiable and not unsatisfiable.is_unresolved


class TestUnsatisfiable:
    """Tests for Unsatisfiable."""

    def test_describe(self) -> None:
        """Test the one-line description."""
        outcome = Unsatisfiable(
            expression="Unlicense OR MIT", accepted=["Apache-2.0"], unmet=["Unlicense", "MIT"]
        )

        assert outcome.describe() == (
            "'Unlicense OR MIT' is not satisfied; unmet: [Unlicense, MIT], "
            "accepted: [Apache-2.0]"
        )
        assert outcome.satisfied is False

    def test_describe_conjunction(self) -> None:
        """Test that an unmet AND is not described as a choice."""
        outcome = Unsatisfiable(
            expression="MIT AND OpenSSL", accepted=["MIT"], unmet=["OpenSSL"]
        )

        assert "one of" not in outcome.describe()
        assert outcome.describe().endswith("unmet: [OpenSSL], accepted: [MIT]")


class TestLicenseEntry:
    """Tests for LicenseEntry."""

    def test_count_is_serialized(self) -> None:
        """Test that count is computed from users and dumped."""
        entry = LicenseEntry(
            id="MIT",
            name="MIT License",
            used_by=[UsedBy(name="a", version="1"), UsedBy(name="b", version="1")],
        )

        assert entry.count == 2
        assert entry.model_dump()["count"] == 2
