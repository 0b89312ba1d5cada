"""Checksum checks for license clarifications.

A clarification states which license applies to a crate and pins that
statement to the exact bytes of one or more files. When any pinned file
changes the clarification no longer applies.
"""

from __future__ import annotations

import hashlib
from typing import NamedTuple, Optional

from license_attributor.models.evidence import Drift, FileClaim


class SnipError(ValueError):
    """Raised when a subsection marker cannot be found in a file."""

    pass


def sha256_hex(content: bytes) -> str:
    """Return the lowercase SHA-256 hex digest of some bytes."""
    return hashlib.sha256(content).hexdigest()


def snip(content: bytes, start: Optional[bytes], end: Optional[bytes]) -> bytes:
    """Cut a subsection out of a file.

    The subsection begins at the first occurrence of ``start`` (or the
    beginning of the file) and runs through the end of the first occurrence
    of ``end`` after that point (or the end of the file).

    Raises:
        SnipError: If a marker is given but not present.
    """
    begin = 0
    if start:
        begin = content.find(start)
        if begin < 0:
            marker = start.decode("utf-8", errors="replace")
            raise SnipError(f"failed to find subsection starting with '{marker}'")
    finish = len(content)
    if end:
        found = content.find(end, begin)
        if found < 0:
            marker = end.decode("utf-8", errors="replace")
            raise SnipError(f"failed to find subsection ending with '{marker}'")
        finish = found + len(end)
    return content[begin:finish]


class ClaimCheck(NamedTuple):
    """Outcome of checking one file claim.

    Attributes:
        text: The claimed bytes when the checksum matched.
        drift: Why the claim failed, None on success.
    """

    text: Optional[bytes]
    drift: Optional[Drift]


def check_claim(claim: FileClaim, content: Optional[bytes], reason: str = "") -> ClaimCheck:
    """Verify the claimed part of a file against its checksum.

    Args:
        claim: The file claim.
        content: File bytes, None if the file could not be loaded.
        reason: Why the content is missing, used when ``content`` is None.

    Returns:
        ClaimCheck with either the matched text or a Drift.
    """
    if content is None:
        return ClaimCheck(
            None,
            Drift(
                path=claim.path,
                expected=claim.checksum,
                reason=reason or "file could not be read",
            ),
        )
    if not content:
        return ClaimCheck(
            None,
            Drift(path=claim.path, expected=claim.checksum, reason="file is empty"),
        )

    try:
        text = snip(
            content,
            claim.start.encode("utf-8") if claim.start else None,
            claim.end.encode("utf-8") if claim.end else None,
        )
    except SnipError as e:
        return ClaimCheck(
            None,
            Drift(path=claim.path, expected=claim.checksum, reason=str(e)),
        )

    actual = sha256_hex(text)
    if actual != claim.checksum.lower():
        return ClaimCheck(
            None,
            Drift(
                path=claim.path,
                expected=claim.checksum,
                actual=actual,
                reason="checksum mismatch",
            ),
        )
    return ClaimCheck(text, None)
