"""Dependency graph filtering.

Reduces the raw graph handed over by the manifest resolver to the set of
crates a report is generated for.
"""

from __future__ import annotations

from collections import defaultdict, deque
from typing import Iterable, NamedTuple

from license_attributor.analysis.cfg import CfgPredicate, TargetInfo
from license_attributor.constants import MAX_PATHS_PER_NODE
from license_attributor.exceptions import GraphFilterError
from license_attributor.logging import get_logger
from license_attributor.models.config import AttributorConfig, PrivateConfig
from license_attributor.models.graph import (
    DependencyEdge,
    DependencyGraph,
    DependencyKind,
    PackageNode,
    WorkingGraph,
)

log = get_logger(__name__)


class EdgeFilterResult(NamedTuple):
    """Edges that survived filtering.

    Attributes:
        edges: Retained edges in graph order.
        dropped: Number of edges that were removed.
    """

    edges: list[DependencyEdge]
    dropped: int


def is_private(node: PackageNode, private: PrivateConfig) -> bool:
    """Check if a workspace member only ever publishes to private registries.

    A member is private when ``publish`` is set and is either empty (never
    published) or lists only registries configured as private.
    """
    if node.publish is None:
        return False
    return all(registry in private.registries for registry in node.publish)


def _check_edges(graph: DependencyGraph) -> None:
    ids: set[str] = set()
    for node in graph.nodes:
        if node.id in ids:
            raise GraphFilterError(f"duplicate node id '{node.id}' in dependency graph")
        ids.add(node.id)
    for edge in graph.edges:
        for end in (edge.parent, edge.child):
            if end not in ids:
                raise GraphFilterError(
                    f"edge {edge.parent} -> {edge.child} references unknown node '{end}'"
                )


def filter_edges(graph: DependencyGraph, config: AttributorConfig) -> EdgeFilterResult:
    """Apply dependency-kind, target and transitivity rules to the edges.

    Target predicates are evaluated per edge: an edge is kept when it has no
    predicate or its predicate matches any configured target.

    Raises:
        GraphFilterError: If a cfg predicate is malformed.
    """
    members = {node.id for node in graph.roots}
    targets = [TargetInfo.from_triple(triple) for triple in config.targets]
    predicates: dict[str, CfgPredicate] = {}

    kept: list[DependencyEdge] = []
    for edge in graph.edges:
        if edge.kind == DependencyKind.BUILD and config.ignore_build_dependencies:
            continue
        if edge.kind == DependencyKind.DEV and config.ignore_dev_dependencies:
            continue
        if targets and edge.cfg:
            predicate = predicates.get(edge.cfg)
            if predicate is None:
                predicate = predicates[edge.cfg] = CfgPredicate(edge.cfg)
            if not predicate.matches_any(targets):
                continue
        if config.ignore_transitive_dependencies and edge.parent not in members:
            continue
        kept.append(edge)

    return EdgeFilterResult(edges=kept, dropped=len(graph.edges) - len(kept))


def _children_by_parent(edges: Iterable[DependencyEdge]) -> dict[str, list[str]]:
    children: dict[str, set[str]] = defaultdict(set)
    for edge in edges:
        children[edge.parent].add(edge.child)
    return {parent: sorted(kids) for parent, kids in children.items()}


def _reachable(roots: list[str], children: dict[str, list[str]]) -> set[str]:
    seen = set(roots)
    queue = deque(roots)
    while queue:
        current = queue.popleft()
        for child in children.get(current, []):
            if child not in seen:
                seen.add(child)
                queue.append(child)
    return seen


def dependency_paths(
    roots: list[str],
    children: dict[str, list[str]],
    limit: int = MAX_PATHS_PER_NODE,
) -> dict[str, list[list[str]]]:
    """Collect simple paths from the roots down to every reachable node.

    Paths are explored breadth-first so the shortest ones are found first;
    at most ``limit`` paths are kept per node. Each node's paths are sorted
    by length, then lexicographically.
    """
    paths: dict[str, list[list[str]]] = defaultdict(list)
    queue: deque[list[str]] = deque([root] for root in sorted(roots))
    while queue:
        path = queue.popleft()
        current = path[-1]
        if len(paths[current]) >= limit:
            continue
        paths[current].append(path)
        for child in children.get(current, []):
            if child not in path:
                queue.append(path + [child])
    return {
        node_id: sorted(node_paths, key=lambda p: (len(p), p))
        for node_id, node_paths in paths.items()
    }


def filter_graph(graph: DependencyGraph, config: AttributorConfig) -> WorkingGraph:
    """Reduce a dependency graph to the crates a report covers.

    Steps, in order: drop build/dev edges when configured, drop edges whose
    target predicate matches none of the configured targets, drop edges not
    rooted at a workspace member when transitive dependencies are ignored,
    keep nodes reachable from the workspace members, and finally drop
    private workspace members when configured.

    Args:
        graph: The raw dependency graph.
        config: Run configuration.

    Returns:
        WorkingGraph with nodes sorted by (name, version) and their
        dependency paths.

    Raises:
        GraphFilterError: If an edge references an unknown node or a cfg
            predicate is malformed.
    """
    _check_edges(graph)
    edge_result = filter_edges(graph, config)
    children = _children_by_parent(edge_result.edges)

    roots = [node.id for node in graph.roots]
    reachable = _reachable(roots, children)
    paths = dependency_paths(roots, children)

    nodes: list[PackageNode] = []
    dropped_private: list[str] = []
    for node in graph.nodes:
        if node.id not in reachable:
            continue
        if node.workspace_member and config.private.ignore and is_private(
            node, config.private
        ):
            dropped_private.append(node.id)
            continue
        nodes.append(node)
    nodes.sort(key=lambda n: n.sort_key)

    log.debug(
        "filtered dependency graph",
        nodes=len(graph.nodes),
        kept=len(nodes),
        edges_dropped=edge_result.dropped,
        private_dropped=dropped_private,
    )

    return WorkingGraph(
        nodes=nodes,
        paths={node.id: paths.get(node.id, []) for node in nodes},
    )
