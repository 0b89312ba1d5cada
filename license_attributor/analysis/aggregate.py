"""Inversion of per-crate results into the license report."""

from __future__ import annotations

from typing import Iterable, Optional

from license_attributor.analysis.expression import license_ids, parse_expression
from license_attributor.analysis.similarity import LicenseCorpus
from license_attributor.exceptions import ExpressionParseError
from license_attributor.models.evidence import Evidence, LicenseFile
from license_attributor.models.report import (
    CrateEntry,
    LicenseEntry,
    NodeResolution,
    OverviewEntry,
    Report,
    Satisfaction,
    UsedBy,
)


def _file_covers(license_file: LicenseFile, license_id: str) -> bool:
    # a text for the base license also serves "ID WITH EXCEPTION"
    wanted = {license_id, license_id.partition(" WITH ")[0]}
    if license_file.license in wanted:
        return True
    try:
        found = license_ids(parse_expression(license_file.license))
        return license_id in found
    except ExpressionParseError:
        return False


def _find_text(evidence: Optional[Evidence], license_id: str) -> Optional[LicenseFile]:
    if evidence is None:
        return None
    for license_file in evidence.files:
        if license_file.text and _file_covers(license_file, license_id):
            return license_file
    return None


def aggregate(resolutions: Iterable[NodeResolution], corpus: LicenseCorpus) -> Report:
    """Build the report from the resolution of every crate.

    Each satisfied crate is listed under every license it was chosen for,
    once per license no matter how many branches of its expression led
    there. The text of a license is taken from the first crate, in
    (name, version) order, whose evidence carried a file for it; otherwise
    the corpus text is used.

    Args:
        resolutions: Per-crate results in any order.
        corpus: License names and canonical texts.

    Returns:
        Report with licenses sorted by id, users sorted by (name, version)
        and the overview sorted by usage.
    """
    ordered = sorted(resolutions, key=lambda r: r.gathered.node.sort_key)

    users: dict[str, dict[tuple[str, str], UsedBy]] = {}
    texts: dict[str, LicenseFile] = {}
    crates: list[CrateEntry] = []

    for resolution in ordered:
        node = resolution.gathered.node
        evidence = resolution.gathered.evidence
        crates.append(
            CrateEntry(
                name=node.name,
                version=node.version,
                license=evidence.expression if evidence else None,
                source=evidence.source.value if evidence else None,
            )
        )
        if not isinstance(resolution.outcome, Satisfaction):
            continue

        for license_id in resolution.outcome.chosen:
            by_crate = users.setdefault(license_id, {})
            if node.sort_key not in by_crate:
                by_crate[node.sort_key] = UsedBy(
                    name=node.name,
                    version=node.version,
                    paths=resolution.paths,
                )
            if license_id not in texts:
                found = _find_text(evidence, license_id)
                if found is not None:
                    texts[license_id] = found

    licenses: list[LicenseEntry] = []
    for license_id in sorted(users):
        known = corpus.get(license_id)
        found = texts.get(license_id)
        if found is not None:
            text, source_path = found.text or "", found.path
        else:
            text, source_path = (known.text if known else ""), None
        licenses.append(
            LicenseEntry(
                id=license_id,
                name=known.name if known else license_id,
                text=text,
                source_path=source_path,
                used_by=[users[license_id][key] for key in sorted(users[license_id])],
            )
        )

    overview = [
        OverviewEntry(id=entry.id, name=entry.name, count=entry.count)
        for entry in sorted(licenses, key=lambda e: (-e.count, e.id))
    ]

    return Report(overview=overview, licenses=licenses, crates=crates)
