"""Tests for license expression satisfaction."""

from itertools import combinations

import pytest

from license_attributor.analysis.expression import NodeKind, parse_expression
from license_attributor.analysis.resolution import resolve
from license_attributor.exceptions import ExpressionParseError
from license_attributor.models.report import Satisfaction, Unsatisfiable


def _evaluate(node, accepted: set[str]) -> bool:
    if node.kind == NodeKind.LEAF:
        return node.license_id in accepted or node.label in accepted
    results = [_evaluate(child, accepted) for child in node.children]
    return all(results) if node.kind == NodeKind.AND else any(results)


class TestResolvePreference:
    """Tests for picking among OR alternatives."""

    def test_prefers_first_accepted(self) -> None:
        """Test that the id listed first in the accept list wins."""
        outcome = resolve("Apache-2.0 OR MIT", ["MIT", "Apache-2.0"])

        assert isinstance(outcome, Satisfaction)
        assert outcome.chosen == ["MIT"]

    def test_reversed_accept_list(self) -> None:
        """Test that reversing priorities flips the choice."""
        outcome = resolve("Apache-2.0 OR MIT", ["Apache-2.0", "MIT"])

        assert isinstance(outcome, Satisfaction)
        assert outcome.chosen == ["Apache-2.0"]

    def test_cheapest_conjunction(self) -> None:
        """Test that an AND branch costs as much as its worst license."""
        outcome = resolve(
            "(Apache-2.0 AND ISC) OR (MIT AND ISC)", ["ISC", "MIT", "Apache-2.0"]
        )

        assert outcome.chosen == ["MIT", "ISC"]

    def test_ties_go_left(self) -> None:
        """Test that equally cheap branches resolve to the leftmost one."""
        outcome = resolve("(ISC AND MIT) OR (MIT AND ISC)", ["MIT", "ISC"])

        assert outcome.chosen == ["ISC", "MIT"]

    def test_only_accepted_branch_is_chosen(self) -> None:
        """Test that unaccepted alternatives are skipped."""
        outcome = resolve("GPL-3.0-only OR MIT", ["MIT"])

        assert isinstance(outcome, Satisfaction)
        assert outcome.chosen == ["MIT"]


class TestResolveConjunction:
    """Tests for AND expressions."""

    def test_all_licenses_chosen(self) -> None:
        """Test that every conjunct is chosen."""
        outcome = resolve("MIT AND Apache-2.0", ["Apache-2.0", "MIT"])

        assert isinstance(outcome, Satisfaction)
        assert outcome.chosen == ["MIT", "Apache-2.0"]

    def test_missing_conjunct(self) -> None:
        """Test that one unaccepted conjunct fails the whole AND."""
        outcome = resolve("MIT AND Apache-2.0", ["MIT"])

        assert isinstance(outcome, Unsatisfiable)
        assert outcome.unmet == ["Apache-2.0"]

    def test_chosen_is_deduplicated(self) -> None:
        """Test that a license chosen twice is listed once."""
        outcome = resolve("MIT AND (MIT OR Apache-2.0)", ["MIT"])

        assert outcome.chosen == ["MIT"]


class TestResolveUnsatisfiable:
    """Tests for expressions nothing accepted satisfies."""

    def test_reports_every_alternative(self) -> None:
        """Test that an unsatisfiable OR lists all of its requirements."""
        outcome = resolve("Unlicense OR MIT", ["Apache-2.0"])

        assert isinstance(outcome, Unsatisfiable)
        assert set(outcome.unmet) == {"Unlicense", "MIT"}
        assert outcome.accepted == ["Apache-2.0"]
        assert outcome.expression == "Unlicense OR MIT"

    def test_empty_accept_list(self) -> None:
        """Test that nothing is satisfied with no accepted licenses."""
        outcome = resolve("MIT", [])

        assert isinstance(outcome, Unsatisfiable)
        assert outcome.unmet == ["MIT"]
        assert "<none>" in outcome.describe()


class TestResolveExceptions:
    """Tests for WITH exception leaves."""

    def test_base_id_satisfies_exception(self) -> None:
        """Test that accepting the base license accepts the WITH form."""
        outcome = resolve("Apache-2.0 WITH LLVM-exception", ["Apache-2.0"])

        assert isinstance(outcome, Satisfaction)
        assert outcome.chosen == ["Apache-2.0 WITH LLVM-exception"]

    def test_exact_qualified_id(self) -> None:
        """Test that the exact 'ID WITH EXC' form is accepted."""
        outcome = resolve(
            "Apache-2.0 WITH LLVM-exception", ["Apache-2.0 WITH LLVM-exception"]
        )

        assert isinstance(outcome, Satisfaction)

    def test_exception_alone_is_not_enough(self) -> None:
        """Test that accepting only the exception does not satisfy the leaf."""
        outcome = resolve("Apache-2.0 WITH LLVM-exception", ["LLVM-exception"])

        assert isinstance(outcome, Unsatisfiable)
        assert outcome.unmet == ["Apache-2.0 WITH LLVM-exception"]


class TestResolveAliases:
    """Tests for accepted ids written in non-canonical form."""

    def test_deprecated_alias(self) -> None:
        """Test that a deprecated SPDX alias accepts its canonical id."""
        outcome = resolve("GPL-2.0 OR MIT", ["GPL-2.0"])

        assert isinstance(outcome, Satisfaction)
        assert outcome.chosen == ["GPL-2.0-only"]

    def test_lowercase_id(self) -> None:
        """Test that accepted ids are matched case-insensitively."""
        outcome = resolve("Apache-2.0 OR MIT", ["mit", "apache-2.0"])

        assert isinstance(outcome, Satisfaction)
        assert outcome.chosen == ["MIT"]

    def test_unsatisfiable_keeps_callers_list(self) -> None:
        """Test that the accept list is reported as given."""
        outcome = resolve("ISC", ["mit"])

        assert isinstance(outcome, Unsatisfiable)
        assert outcome.accepted == ["mit"]

    def test_malformed_accepted_entry_raises(self) -> None:
        """Test that an unparseable accepted entry raises."""
        with pytest.raises(ExpressionParseError):
            resolve("MIT", ["MIT AND"])


class TestResolveProperties:
    """Tests for general properties of resolve."""

    def test_accepts_parsed_tree(self) -> None:
        """Test that a parsed tree and its text resolve the same way."""
        text = "MIT OR Apache-2.0"
        accepted = ["Apache-2.0"]

        assert resolve(parse_expression(text), accepted) == resolve(text, accepted)

    def test_deterministic(self) -> None:
        """Test that repeated calls give identical outcomes."""
        args = ("(MIT OR Apache-2.0) AND (ISC OR Zlib)", ["Zlib", "MIT", "ISC"])

        assert resolve(*args) == resolve(*args)

    def test_matches_boolean_evaluation(self) -> None:
        """Test that satisfaction agrees with plain boolean evaluation."""
        text = "(MIT OR Apache-2.0) AND (ISC OR Zlib) OR BSD-3-Clause"
        node = parse_expression(text)
        ids = ["MIT", "Apache-2.0", "ISC", "Zlib", "BSD-3-Clause"]

        for size in range(len(ids) + 1):
            for accepted in combinations(ids, size):
                outcome = resolve(node, list(accepted))
                assert isinstance(outcome, Satisfaction) == _evaluate(
                    node, set(accepted)
                ), accepted

    def test_chosen_satisfies_expression(self) -> None:
        """Test that the chosen set alone satisfies the expression."""
        node = parse_expression("(MIT OR Apache-2.0) AND (ISC OR Zlib)")
        outcome = resolve(node, ["Zlib", "Apache-2.0", "ISC", "MIT"])

        assert isinstance(outcome, Satisfaction)
        assert _evaluate(node, set(outcome.chosen))
        assert outcome.chosen == ["Apache-2.0", "Zlib"]

    def test_malformed_text_raises(self) -> None:
        """Test that malformed text raises ExpressionParseError."""
        with pytest.raises(ExpressionParseError):
            resolve("MIT AND", ["MIT"])
