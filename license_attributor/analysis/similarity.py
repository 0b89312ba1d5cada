"""License text scoring and the license corpus.

The engine only depends on the ``LocalTextScorer`` and ``LicenseCorpus``
protocols. The template-based implementations here compare normalized text
against a small set of canonical license templates with
difflib.SequenceMatcher; they are good enough for the common permissive
licenses and can be swapped for a full license database.
"""

from __future__ import annotations

import re
from difflib import SequenceMatcher
from typing import Mapping, NamedTuple, Optional, Protocol

from license_attributor.analysis.templates import LICENSE_NAMES, LICENSE_TEMPLATES


class TextMatch(NamedTuple):
    """Best matching license for a piece of text.

    Attributes:
        license_id: SPDX id of the match.
        confidence: Similarity between 0.0 and 1.0.
    """

    license_id: str
    confidence: float


class CorpusLicense(NamedTuple):
    """A license known to the corpus."""

    id: str
    name: str
    text: str


class LocalTextScorer(Protocol):
    """Scores file contents against known license texts."""

    def score(self, content: bytes, threshold: float) -> Optional[TextMatch]:
        """Return the best match at or above ``threshold``, if any."""
        ...


class LicenseCorpus(Protocol):
    """Looks up full names and canonical texts of licenses."""

    def get(self, license_id: str) -> Optional[CorpusLicense]:
        """Return the corpus entry for an id, None if unknown."""
        ...


def _normalize_license_text(text: str) -> str:
    """Normalize license text for comparison.

    - Remove copyright holder names and years
    - Normalize whitespace
    - Convert to lowercase
    """
    # Replace year patterns: 2024, 2020-2024, (c) 2024, etc.
    text = re.sub(r"\d{4}(-\d{4})?", "[YEAR]", text)
    text = re.sub(r"\[year\]", "[YEAR]", text, flags=re.IGNORECASE)
    text = re.sub(r"\[fullname\]", "[HOLDER]", text, flags=re.IGNORECASE)
    text = re.sub(r"<[^>]+@[^>]+>", "[EMAIL]", text)
    text = re.sub(r"https?://[^\s]+", "[URL]", text)
    # "Copyright (c) 2024 John Doe" -> "Copyright (c) [YEAR] [HOLDER]"
    text = re.sub(
        r"(copyright\s*(?:\(c\))?\s*\[YEAR\])[,\s]+[^\n]+",
        r"\1 [HOLDER]",
        text,
        flags=re.IGNORECASE,
    )
    text = " ".join(text.split())
    return text.lower()


class TemplateCorpus:
    """License corpus backed by the embedded templates."""

    def __init__(
        self,
        templates: Optional[Mapping[str, str]] = None,
        names: Optional[Mapping[str, str]] = None,
    ) -> None:
        self._templates = dict(LICENSE_TEMPLATES if templates is None else templates)
        self._names = dict(LICENSE_NAMES if names is None else names)

    def ids(self) -> list[str]:
        """Ids that have a canonical text."""
        return sorted(self._templates)

    def template(self, license_id: str) -> Optional[str]:
        return self._templates.get(license_id)

    def get(self, license_id: str) -> Optional[CorpusLicense]:
        base, _, exception = license_id.partition(" WITH ")
        text = self._templates.get(base)
        name = self._names.get(base)
        if text is None and name is None:
            return None
        name = name or base
        if exception:
            name = f"{name} WITH {exception}"
        return CorpusLicense(id=license_id, name=name, text=text or "")


class TemplateScorer:
    """Scores text against corpus templates with difflib.

    The content is compared against each template over a window slightly
    longer than the template, so license files that carry the full text
    still match the shortened templates.
    """

    def __init__(self, corpus: Optional[TemplateCorpus] = None) -> None:
        corpus = corpus or TemplateCorpus()
        self._templates: dict[str, str] = {}
        for license_id in corpus.ids():
            template = corpus.template(license_id)
            if template:
                self._templates[license_id] = _normalize_license_text(template)

    def score(self, content: bytes, threshold: float) -> Optional[TextMatch]:
        text = content.decode("utf-8", errors="replace")
        if not text.strip():
            return None
        normalized = _normalize_license_text(text)

        best: Optional[TextMatch] = None
        for license_id, template in self._templates.items():
            window = normalized[: int(len(template) * 1.1)]
            matcher = SequenceMatcher(None, window, template, autojunk=False)
            # quick_ratio() is an upper bound on ratio()
            if matcher.quick_ratio() < threshold:
                continue
            ratio = matcher.ratio()
            if ratio < threshold:
                continue
            if best is None or ratio > best.confidence:
                best = TextMatch(license_id, ratio)
        return best
