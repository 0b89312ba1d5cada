"""Dependency graph models for license-attributor.

The graph is produced by an external manifest/feature resolver and consumed
here as plain nodes and edges. GraphFilter reduces it to a WorkingGraph.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, model_validator


class DependencyKind(str, Enum):
    """Kind of a dependency edge."""

    NORMAL = "normal"
    BUILD = "build"
    DEV = "dev"


class PackageNode(BaseModel):
    """A single package (crate) in the dependency graph."""

    model_config = {"extra": "forbid"}

    id: str = Field(
        default="",
        description="Unique node id, defaults to '<name> <version>'",
    )
    name: str = Field(description="Package name")
    version: str = Field(description="Package version")
    source: Optional[str] = Field(
        default=None,
        description="Package source, e.g. 'registry+https://...' or 'git+https://...'. "
        "None for path dependencies.",
    )
    license: Optional[str] = Field(
        default=None,
        description="License expression declared in the package manifest",
    )
    publish: Optional[list[str]] = Field(
        default=None,
        description="Registries the package may be published to. None means public, "
        "an empty list means it is never published.",
    )
    workspace_member: bool = Field(
        default=False,
        description="True if the package is a member of the root workspace",
    )
    source_root: Optional[Path] = Field(
        default=None,
        description="Directory holding the package sources on disk",
    )
    repository: Optional[str] = Field(
        default=None,
        description="Repository URL declared in the manifest",
    )
    cfg: Optional[str] = Field(
        default=None,
        description="Aggregate cfg predicate under which the package is activated",
    )

    @model_validator(mode="after")
    def _default_id(self) -> PackageNode:
        if not self.id:
            self.id = f"{self.name} {self.version}"
        return self

    @property
    def sort_key(self) -> tuple[str, str]:
        """Lexicographic (name, version) ordering key."""
        return (self.name, self.version)

    def __str__(self) -> str:
        return f"{self.name} {self.version}"


class DependencyEdge(BaseModel):
    """A dependency edge from a parent package to a child package."""

    model_config = {"extra": "forbid"}

    parent: str = Field(description="Id of the depending package")
    child: str = Field(description="Id of the dependency")
    kind: DependencyKind = Field(
        default=DependencyKind.NORMAL,
        description="Dependency kind",
    )
    cfg: Optional[str] = Field(
        default=None,
        description="Target predicate, e.g. 'cfg(windows)' or a target triple",
    )


class DependencyGraph(BaseModel):
    """The raw dependency graph handed over by the manifest resolver."""

    model_config = {"extra": "forbid"}

    nodes: list[PackageNode] = Field(default_factory=list)
    edges: list[DependencyEdge] = Field(default_factory=list)

    @property
    def roots(self) -> list[PackageNode]:
        """Workspace members, the roots of every dependency path."""
        return [node for node in self.nodes if node.workspace_member]


class WorkingGraph(BaseModel):
    """The filtered set of packages a report is generated for.

    Attributes:
        nodes: Retained packages sorted by (name, version).
        paths: Per node id, dependency paths from a workspace root down to
            the node, each path being a list of node ids.
    """

    model_config = {"extra": "forbid"}

    nodes: list[PackageNode] = Field(default_factory=list)
    paths: dict[str, list[list[str]]] = Field(default_factory=dict)
