"""Tests for local source scanning."""
import os
from pathlib import Path

import pytest

from license_attributor.models.evidence import Evidence, EvidenceSource, SourceMiss
from license_attributor.models.graph import PackageNode
from license_attributor.resolvers.local_scan import (
    LocalScanner,
    LocalScanProvider,
    is_binary,
)


def _tree(root: Path, files: dict[str, bytes]) -> Path:
    for name, content in files.items():
        path = root / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
    return root


class TestLocalScanner:
    """Tests for LocalScanner."""

    def test_scores_every_text_file(self, tmp_path: Path, fake_scorer) -> None:
        """Test that every text file is scored, not only license file names."""
        _tree(
            tmp_path,
            {
                "LICENSE-MIT": b"SPDX: MIT\n",
                "COPYING": b"SPDX: GPL-2.0-only\n",
                "src/lib.rs": b"SPDX: Apache-2.0\n",
                "NOTICE": b"no header here\n",
            },
        )

        files = LocalScanner(fake_scorer, 0.8).scan(tmp_path)

        assert [(f.path, f.license) for f in files] == [
            ("COPYING", "GPL-2.0-only"),
            ("LICENSE-MIT", "MIT"),
            ("src/lib.rs", "Apache-2.0"),
        ]
        assert files[0].confidence == 0.95

    def test_below_threshold(self, tmp_path: Path, make_scorer) -> None:
        """Test that weak matches are not evidence."""
        _tree(tmp_path, {"LICENSE": b"SPDX: MIT\n"})

        assert LocalScanner(make_scorer(0.5), 0.8).scan(tmp_path) == []

    def test_skips_hidden_and_excluded(self, tmp_path: Path, fake_scorer) -> None:
        """Test that hidden directories and excluded paths are skipped."""
        _tree(
            tmp_path,
            {
                ".git/LICENSE": b"SPDX: MIT\n",
                "vendor/LICENSE": b"SPDX: ISC\n",
                "sub/LICENSE": b"SPDX: Zlib\n",
            },
        )

        files = LocalScanner(fake_scorer, 0.8, exclude=["vendor/*"]).scan(tmp_path)

        assert [f.path for f in files] == ["sub/LICENSE"]

    def test_max_depth(self, tmp_path: Path, fake_scorer) -> None:
        """Test that the depth limit is honored."""
        _tree(
            tmp_path,
            {"LICENSE": b"SPDX: MIT\n", "a/b/LICENSE": b"SPDX: ISC\n"},
        )

        shallow = LocalScanner(fake_scorer, 0.8, max_depth=0).scan(tmp_path)
        deep = LocalScanner(fake_scorer, 0.8).scan(tmp_path)

        assert [f.path for f in shallow] == ["LICENSE"]
        assert [f.path for f in deep] == ["LICENSE", "a/b/LICENSE"]

    def test_skips_binary(self, tmp_path: Path, fake_scorer) -> None:
        """Test that binary files are never scored."""
        _tree(
            tmp_path,
            {"LICENSE.png": b"SPDX: MIT\n", "LICENSE.bin.txt": b"SPDX: MIT\n\0\0"},
        )

        assert LocalScanner(fake_scorer, 0.8).scan(tmp_path) == []

    @pytest.mark.skipif(not hasattr(os, "symlink"), reason="symlinks unsupported")
    def test_skips_symlinks(self, tmp_path: Path, fake_scorer) -> None:
        """Test that symlinked files are not followed."""
        target = tmp_path.parent / f"{tmp_path.name}-target"
        target.write_bytes(b"SPDX: MIT\n")
        scan_root = tmp_path / "crate"
        scan_root.mkdir()
        (scan_root / "LICENSE").symlink_to(target)

        assert LocalScanner(fake_scorer, 0.8).scan(scan_root) == []

    def test_missing_root(self, tmp_path: Path, fake_scorer) -> None:
        """Test that a missing directory scans to nothing."""
        assert LocalScanner(fake_scorer, 0.8).scan(tmp_path / "nope") == []

    def test_score_bytes(self, fake_scorer) -> None:
        """Test scoring raw content."""
        scanner = LocalScanner(fake_scorer, 0.8)

        assert scanner.score_bytes(b"SPDX: MIT\n") == "MIT"
        assert scanner.score_bytes(b"hello") is None


class TestIsBinary:
    """Tests for is_binary."""

    def test_extension(self) -> None:
        """Test that binary extensions are detected."""
        assert is_binary(Path("a.DLL"), b"text")

    def test_nul_byte(self) -> None:
        """Test that NUL bytes mark content as binary."""
        assert is_binary(Path("LICENSE"), b"ab\0cd")
        assert not is_binary(Path("LICENSE"), b"abcd")


class TestLocalScanProvider:
    """Tests for LocalScanProvider."""

    @pytest.mark.asyncio
    async def test_evidence(self, tmp_path: Path, make_scorer) -> None:
        """Test that found texts are combined with AND."""
        _tree(tmp_path, {"LICENSE-MIT": b"SPDX: MIT\n", "LICENSE-APACHE": b"SPDX: Apache-2.0\n"})
        provider = LocalScanProvider(LocalScanner(make_scorer(0.9), 0.8))

        outcome = await provider.gather(
            PackageNode(name="a", version="1.0.0", source_root=tmp_path)
        )

        assert isinstance(outcome, Evidence)
        assert outcome.source == EvidenceSource.LOCAL_SCAN
        assert outcome.expression == "Apache-2.0 AND MIT"
        assert outcome.confidence == 0.9

    @pytest.mark.asyncio
    async def test_nothing_found(self, tmp_path: Path, fake_scorer) -> None:
        """Test that a tree without license texts misses."""
        provider = LocalScanProvider(LocalScanner(fake_scorer, 0.8))

        outcome = await provider.gather(
            PackageNode(name="a", version="1.0.0", source_root=tmp_path)
        )

        assert isinstance(outcome, SourceMiss)

    @pytest.mark.asyncio
    async def test_no_source_root(self, fake_scorer) -> None:
        """Test that crates without sources miss."""
        provider = LocalScanProvider(LocalScanner(fake_scorer, 0.8))

        outcome = await provider.gather(PackageNode(name="a", version="1.0.0"))

        assert isinstance(outcome, SourceMiss)
        assert outcome.reason == "crate has no source directory"
