"""SPDX license expression trees for license-attributor.

Expressions are parsed with the license-expression library and converted
into a small closed tree of ``ExprNode`` values. The tree is what the
resolver evaluates and what gets rendered back into normalized SPDX text.
"""

from __future__ import annotations

from enum import Enum
from typing import Iterable, NamedTuple, Optional

from license_expression import (
    ExpressionError,
    LicenseSymbol,
    LicenseWithExceptionSymbol,
    get_spdx_licensing,
)

from license_attributor.exceptions import ExpressionParseError

# Initialize SPDX licensing for parsing
_licensing = get_spdx_licensing()


class NodeKind(str, Enum):
    """Kind of an expression tree node."""

    LEAF = "leaf"
    AND = "and"
    OR = "or"


class ExprNode(NamedTuple):
    """A node of a license expression tree.

    Leaves carry a license id and an optional exception. AND and OR nodes
    carry two or more children.
    """

    kind: NodeKind
    license_id: str = ""
    exception: Optional[str] = None
    children: tuple[ExprNode, ...] = ()

    @property
    def label(self) -> str:
        """Leaf text as it appears in reports, e.g. 'GPL-2.0 WITH X'."""
        if self.exception:
            return f"{self.license_id} WITH {self.exception}"
        return self.license_id

    def __str__(self) -> str:
        return render(self)


def leaf(license_id: str, exception: Optional[str] = None) -> ExprNode:
    """Build a leaf node."""
    return ExprNode(NodeKind.LEAF, license_id=license_id, exception=exception)


def all_of(*children: ExprNode) -> ExprNode:
    """Build an AND node, flattening nested ANDs."""
    return _compound(NodeKind.AND, children)


def any_of(*children: ExprNode) -> ExprNode:
    """Build an OR node, flattening nested ORs."""
    return _compound(NodeKind.OR, children)


def _compound(kind: NodeKind, children: Iterable[ExprNode]) -> ExprNode:
    flat: list[ExprNode] = []
    for child in children:
        if child.kind == kind:
            flat.extend(child.children)
        else:
            flat.append(child)
    if len(flat) == 1:
        return flat[0]
    return ExprNode(kind, children=tuple(flat))


def parse_expression(expression: str) -> ExprNode:
    """Parse an SPDX license expression into a tree.

    Unknown license ids are kept as-is; only the syntax is validated.

    Args:
        expression: SPDX expression text, e.g. "MIT OR Apache-2.0".

    Returns:
        The root node of the parsed tree.

    Raises:
        ExpressionParseError: If the expression is empty or malformed.
    """
    if expression is None or not expression.strip():
        raise ExpressionParseError(str(expression), "empty expression")

    try:
        parsed = _licensing.parse(expression)
    except ExpressionError as e:
        raise ExpressionParseError(expression, str(e)) from e

    if parsed is None:
        raise ExpressionParseError(expression, "empty expression")
    return _convert(expression, parsed)


def _convert(expression: str, parsed: object) -> ExprNode:
    if isinstance(parsed, LicenseWithExceptionSymbol):
        return leaf(
            str(parsed.license_symbol.key),
            str(parsed.exception_symbol.key),
        )
    if isinstance(parsed, LicenseSymbol):
        return leaf(str(parsed.key))
    if isinstance(parsed, _licensing.AND):
        return all_of(*(_convert(expression, arg) for arg in parsed.args))
    if isinstance(parsed, _licensing.OR):
        return any_of(*(_convert(expression, arg) for arg in parsed.args))
    raise ExpressionParseError(
        expression, f"unsupported expression element {parsed!r}"
    )


def render(node: ExprNode) -> str:
    """Render a tree back into SPDX text with minimal parentheses."""
    if node.kind == NodeKind.LEAF:
        return node.label
    if node.kind == NodeKind.AND:
        parts = []
        for child in node.children:
            text = render(child)
            parts.append(f"({text})" if child.kind == NodeKind.OR else text)
        return " AND ".join(parts)
    return " OR ".join(render(child) for child in node.children)


def normalize_expression(expression: str) -> str:
    """Parse and re-render an expression.

    Raises:
        ExpressionParseError: If the expression is empty or malformed.
    """
    return render(parse_expression(expression))


def leaves(node: ExprNode) -> list[ExprNode]:
    """Return the leaves of a tree, left to right."""
    if node.kind == NodeKind.LEAF:
        return [node]
    result: list[ExprNode] = []
    for child in node.children:
        result.extend(leaves(child))
    return result


def license_ids(node: ExprNode) -> list[str]:
    """Return the distinct leaf labels of a tree in first-appearance order."""
    seen: list[str] = []
    for item in leaves(node):
        if item.label not in seen:
            seen.append(item.label)
    return seen


def combine_all(expressions: Iterable[str]) -> str:
    """Merge per-file expressions into a single AND expression.

    Duplicates are dropped and the remaining expressions are sorted, so the
    result does not depend on the order files were found in.

    Raises:
        ExpressionParseError: If any expression is malformed or none are given.
    """
    unique = sorted({expr.strip() for expr in expressions if expr and expr.strip()})
    if not unique:
        raise ExpressionParseError("", "no expressions to combine")
    if len(unique) == 1:
        return normalize_expression(unique[0])
    return normalize_expression(" AND ".join(f"({expr})" for expr in unique))


def legacy_to_spdx(expression: str) -> str:
    """Translate the legacy '/' separator used by old manifests into OR."""
    return " OR ".join(part.strip() for part in expression.split("/"))
