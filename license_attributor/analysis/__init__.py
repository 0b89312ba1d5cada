"""License analysis logic for license-attributor."""
from license_attributor.analysis.aggregate import aggregate
from license_attributor.analysis.cfg import CfgPredicate, TargetInfo, parse_cfg
from license_attributor.analysis.clarification import check_claim, sha256_hex, snip
from license_attributor.analysis.expression import (
    ExprNode,
    NodeKind,
    combine_all,
    normalize_expression,
    parse_expression,
    render,
)
from license_attributor.analysis.filtering import filter_graph, is_private
from license_attributor.analysis.resolution import resolve
from license_attributor.analysis.similarity import (
    LicenseCorpus,
    LocalTextScorer,
    TemplateCorpus,
    TemplateScorer,
    TextMatch,
)

__all__ = [
    "CfgPredicate",
    "ExprNode",
    "LicenseCorpus",
    "LocalTextScorer",
    "NodeKind",
    "TargetInfo",
    "TemplateCorpus",
    "TemplateScorer",
    "TextMatch",
    "aggregate",
    "check_claim",
    "combine_all",
    "filter_graph",
    "is_private",
    "normalize_expression",
    "parse_cfg",
    "parse_expression",
    "render",
    "resolve",
    "sha256_hex",
    "snip",
]
