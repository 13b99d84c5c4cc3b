"""In-memory tree structures used to display dependencies."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

from .models import Dependency, DiagnosticKind, Diagnostics


@dataclass
class DependencyTree:
    """Tree node; children are the resources that require this one."""

    name: str
    parent: DependencyTree | None = None
    dependency: Dependency | None = None
    children: dict[str, DependencyTree] = field(default_factory=dict)

    def path(self) -> str:
        if self.parent is None:
            return "/"
        base = self.parent.path().rstrip("/")
        return f"{base}/{self.name}"

    def ancestors(self) -> list[str]:
        names = []
        node = self.parent
        while node is not None and node.dependency is not None:
            names.append(node.name)
            node = node.parent
        return names

    def render(self, indent: str = "") -> list[str]:
        lines = []
        children = list(self.children.values())
        for index, child in enumerate(children):
            is_last = index == len(children) - 1
            lines.append(f"{indent}{'└' if is_last else '├'} {child.name}")
            lines.extend(child.render(indent + ("  " if is_last else "│ ")))
        return lines


def build_dependency_tree(dependencies: Sequence[Dependency], root_name: str = "All Resources") -> DependencyTree:
    """
    Arrange ``dependencies`` as a tree.

    Top level entries are the resources without requirements; below each entry
    are the resources that require it. A resource is never nested under itself,
    so cyclic input still produces a finite tree.
    """
    root = DependencyTree(name=root_name)
    for dep in dependencies:
        if not dep.requires:
            _attach(root, dep, dependencies)
    return root


def _attach(parent: DependencyTree, dep: Dependency, dependencies: Sequence[Dependency]) -> None:
    node = DependencyTree(name=dep.resource, parent=parent, dependency=dep)
    parent.children[dep.resource] = node
    seen = set(node.ancestors()) | {dep.resource}
    for other in dependencies:
        if other.resource not in seen and other.is_dependency_of(dep):
            _attach(node, other, dependencies)


def find_unresolved_requirements(
    dependencies: Sequence[Dependency], diagnostics: Diagnostics | None = None
) -> list[tuple[str, str]]:
    """Return (resource, requirement) pairs that nothing in ``dependencies`` satisfies."""
    available = {name for dep in dependencies for name in (dep.resource, dep.provides)}
    unresolved = []
    for dep in dependencies:
        for requirement in dep.requires:
            if requirement in available:
                continue
            unresolved.append((dep.resource, requirement))
            if diagnostics is not None:
                diagnostics.add(
                    DiagnosticKind.UNRESOLVED_REQUIREMENT,
                    f'Resource "{dep.resource}" requires "{requirement}", but it is not in any of the given resources',
                    resource=dep.resource,
                    details={"requirement": requirement},
                )
    return unresolved


__all__ = ["DependencyTree", "build_dependency_tree", "find_unresolved_requirements"]
