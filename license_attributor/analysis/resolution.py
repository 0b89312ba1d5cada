"""License expression satisfaction against a prioritized accept list.

Evaluation is a plain recursive walk over the expression tree:

- a leaf is satisfied when its id is accepted; its cost is the position of
  that id in the accept list;
- an AND is satisfied when every child is, costs as much as its most
  expensive child and chooses the union of its children's licenses;
- an OR is satisfied when any child is and chooses the cheapest satisfied
  child, the leftmost one on ties.

For an OR of plain ids this picks the id listed first in the accept list.
"""

from __future__ import annotations

from typing import NamedTuple, Optional, Sequence, Union

from license_attributor.analysis.expression import (
    ExprNode,
    NodeKind,
    normalize_expression,
    parse_expression,
    render,
)
from license_attributor.models.report import (
    ResolutionOutcome,
    Satisfaction,
    Unsatisfiable,
)


class _Evaluation(NamedTuple):
    satisfied: bool
    cost: int
    chosen: tuple[str, ...]
    unmet: tuple[str, ...]


def _unique(items: Sequence[str]) -> list[str]:
    result: list[str] = []
    for item in items:
        if item not in result:
            result.append(item)
    return result


def _leaf_cost(node: ExprNode, priority: dict[str, int]) -> Optional[int]:
    candidates = [node.license_id]
    if node.exception:
        candidates.append(node.label)
    costs = [priority[c] for c in candidates if c in priority]
    return min(costs) if costs else None


def _evaluate(node: ExprNode, priority: dict[str, int]) -> _Evaluation:
    if node.kind == NodeKind.LEAF:
        cost = _leaf_cost(node, priority)
        if cost is None:
            return _Evaluation(False, 0, (), (node.label,))
        return _Evaluation(True, cost, (node.label,), ())

    results = [_evaluate(child, priority) for child in node.children]

    if node.kind == NodeKind.AND:
        unmet = tuple(u for r in results if not r.satisfied for u in r.unmet)
        if unmet:
            return _Evaluation(False, 0, (), unmet)
        return _Evaluation(
            True,
            max(r.cost for r in results),
            tuple(c for r in results for c in r.chosen),
            (),
        )

    satisfied = [r for r in results if r.satisfied]
    if not satisfied:
        return _Evaluation(False, 0, (), tuple(u for r in results for u in r.unmet))
    # min() keeps the first of equally cheap children
    best = min(satisfied, key=lambda r: r.cost)
    return _Evaluation(True, best.cost, best.chosen, ())


def resolve(
    expression: Union[ExprNode, str], accepted: Sequence[str]
) -> ResolutionOutcome:
    """Decide whether an expression can be satisfied by the accept list.

    Args:
        expression: Parsed tree or SPDX text.
        accepted: Accepted license ids, most preferred first. Entries may be
            plain ids or exact 'ID WITH EXCEPTION' forms.

    Returns:
        Satisfaction with the minimal chosen license set, or Unsatisfiable
        carrying the requirements that are not accepted.

    Raises:
        ExpressionParseError: If a textual expression or an accepted entry
            is malformed.
    """
    node = parse_expression(expression) if isinstance(expression, str) else expression

    # Accepted ids go through the same canonicalization as the expression,
    # so aliases and case variants compare equal.
    priority: dict[str, int] = {}
    for index, license_id in enumerate(accepted):
        priority.setdefault(normalize_expression(license_id), index)

    result = _evaluate(node, priority)
    text = render(node)
    if result.satisfied:
        return Satisfaction(expression=text, chosen=_unique(result.chosen))
    return Unsatisfiable(
        expression=text,
        accepted=list(accepted),
        unmet=_unique(result.unmet),
    )
