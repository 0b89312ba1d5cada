"""Tests for dependency graph models."""
import json

import pytest
from pydantic import ValidationError

from license_attributor.models.graph import (
    DependencyEdge,
    DependencyGraph,
    DependencyKind,
    PackageNode,
    WorkingGraph,
)


class TestPackageNode:
    """Tests for PackageNode."""

    def test_default_id(self) -> None:
        """Test that the id defaults to '<name> <version>'."""
        node = PackageNode(name="serde", version="1.0.200")

        assert node.id == "serde 1.0.200"
        assert str(node) == "serde 1.0.200"

    def test_explicit_id_kept(self) -> None:
        """Test that a given id is not replaced."""
        node = PackageNode(id="serde 1.0.200 (registry)", name="serde", version="1.0.200")

        assert node.id == "serde 1.0.200 (registry)"

    def test_sort_key(self) -> None:
        """Test ordering by (name, version)."""
        nodes = [
            PackageNode(name="b", version="1.0.0"),
            PackageNode(name="a", version="2.0.0"),
            PackageNode(name="a", version="1.0.0"),
        ]

        ordered = sorted(nodes, key=lambda n: n.sort_key)

        assert [str(n) for n in ordered] == ["a 1.0.0", "a 2.0.0", "b 1.0.0"]

    def test_rejects_extra_fields(self) -> None:
        """Test that unknown fields are rejected."""
        with pytest.raises(ValidationError):
            PackageNode.model_validate({"name": "a", "version": "1", "authors": []})


class TestDependencyGraph:
    """Tests for DependencyGraph."""

    def test_roots(self) -> None:
        """Test that workspace members are the roots."""
        graph = DependencyGraph(
            nodes=[
                PackageNode(name="app", version="0.1.0", workspace_member=True),
                PackageNode(name="serde", version="1.0.0"),
            ]
        )

        assert [n.name for n in graph.roots] == ["app"]

    def test_loads_from_json(self) -> None:
        """Test validation from the JSON graph format."""
        data = {
            "nodes": [
                {
                    "name": "app",
                    "version": "0.1.0",
                    "workspace_member": True,
                    "source_root": "/src/app",
                },
                {"name": "winapi", "version": "0.3.9", "license": "MIT/Apache-2.0"},
            ],
            "edges": [
                {
                    "parent": "app 0.1.0",
                    "child": "winapi 0.3.9",
                    "kind": "build",
                    "cfg": "cfg(windows)",
                }
            ],
        }

        graph = DependencyGraph.model_validate_json(json.dumps(data))

        assert graph.nodes[0].source_root is not None
        assert graph.nodes[0].source_root.name == "app"
        assert graph.edges[0].kind == DependencyKind.BUILD
        assert graph.edges[0].cfg == "cfg(windows)"

    def test_edge_kind_default(self) -> None:
        """Test that edges are normal unless stated."""
        edge = DependencyEdge(parent="a 1", child="b 1")

        assert edge.kind == DependencyKind.NORMAL

    def test_invalid_kind(self) -> None:
        """Test that unknown edge kinds are rejected."""
        with pytest.raises(ValidationError):
            DependencyEdge(parent="a 1", child="b 1", kind="optional")


class TestWorkingGraph:
    """Tests for WorkingGraph."""

    def test_defaults(self) -> None:
        """Test that an empty working graph has no nodes and no paths."""
        working = WorkingGraph()

        assert working.nodes == []
        assert working.paths == {}

    def test_rejects_unknown_fields(self) -> None:
        """Test that extra fields are rejected."""
        with pytest.raises(ValidationError):
            WorkingGraph(roots=["a 1.0.0"])
