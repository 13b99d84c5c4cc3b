"""Vertex type of the resource graph."""

from __future__ import annotations

from dataclasses import dataclass, field

from .models import Dependency, DiagnosticKind, Diagnostics


@dataclass(eq=False)
class ResourceNode:
    """
    One resource in a ResourceGraph.

    ``handle`` is the node's position in the graph's node order and is the only
    thing used for edge membership. Nodes never own each other; the graph owns
    all of them.
    """

    source: Dependency
    handle: int
    _dependencies: dict[int, ResourceNode] = field(default_factory=dict, repr=False)

    @classmethod
    def from_dependency(cls, dependency: Dependency, handle: int) -> ResourceNode:
        return cls(source=dependency, handle=handle)

    @property
    def name(self) -> str:
        return self.source.resource

    @property
    def provides(self) -> str:
        return self.source.provides

    @property
    def requires(self) -> list[str]:
        return list(self.source.requires)

    @property
    def dependencies(self) -> tuple[ResourceNode, ...]:
        """Resolved dependency nodes, in the order their edges were added."""
        return tuple(self._dependencies.values())

    @property
    def dependency_count(self) -> int:
        return len(self._dependencies)

    @property
    def has_dependencies(self) -> bool:
        return self.dependency_count > 0

    @property
    def missing_dependencies(self) -> list[str]:
        """Required names that no resolved edge satisfies."""
        available = set()
        for node in self._dependencies.values():
            available.update((node.provides, node.name))
        return [name for name in self.requires if name not in available]

    def depends_on(self, other: ResourceNode) -> bool:
        return other.handle in self._dependencies

    def add_dependency(self, other: ResourceNode) -> None:
        """Record an edge to ``other``. Only the graph calls this, while it is being built."""
        self._dependencies.setdefault(other.handle, other)

    def resolve_dependencies(
        self,
        resolved: dict[int, ResourceNode] | None = None,
        diagnostics: Diagnostics | None = None,
        walked: set[int] | None = None,
    ) -> dict[int, ResourceNode]:
        """
        Depth-first post-order walk from this node.

        Dependencies are appended to ``resolved`` before the nodes that need
        them; a node already in ``resolved`` is not appended again, but its
        dependencies are still walked. The graph guarantees there is no cycle
        before calling this.
        """
        if resolved is None:
            resolved = {}
        self._walk(resolved, set() if walked is None else walked, diagnostics)
        return resolved

    def _walk(self, resolved: dict[int, ResourceNode], walked: set[int], diagnostics: Diagnostics | None) -> None:
        # a walked node's whole subtree is already in resolved
        if self.handle in walked:
            return
        self._enter(walked, diagnostics)
        stack = [(self, iter(self._dependencies.values()))]
        while stack:
            node, pending = stack[-1]
            for child in pending:
                if child.handle not in walked:
                    child._enter(walked, diagnostics)
                    stack.append((child, iter(child._dependencies.values())))
                    break
            else:
                stack.pop()
                resolved.setdefault(node.handle, node)

    def _enter(self, walked: set[int], diagnostics: Diagnostics | None) -> None:
        walked.add(self.handle)
        missing = self.missing_dependencies
        if missing and diagnostics is not None:
            diagnostics.add(
                DiagnosticKind.MISSING_DEPENDENCIES,
                f'Resource "{self.name}" has missing dependencies: {", ".join(missing)}',
                resource=self.name,
                details={"missing": missing},
            )

    def __repr__(self) -> str:
        return f"ResourceNode(name={self.name!r}, provides={self.provides!r}, handle={self.handle})"


__all__ = ["ResourceNode"]
