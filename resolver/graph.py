"""Validated dependency graph and deterministic load order."""

from __future__ import annotations

import logging
from typing import Iterable, Iterator

from .errors import AmbiguousProviderError, CycleError, MissingProviderError
from .models import Dependency, Diagnostics
from .node import ResourceNode

logger = logging.getLogger(__name__)

WHITE, GREY, BLACK = 0, 1, 2


class ResourceGraph:
    """
    Directed graph of resources, built from the complete set of Dependency records.

    Construction fails unless every requirement is provided by exactly one other
    resource and the graph is acyclic, so an existing graph is always valid.
    """

    def __init__(self, nodes: list[ResourceNode], diagnostics: Diagnostics | None = None):
        self._nodes = nodes
        self.diagnostics = diagnostics
        for node in self._nodes:
            self._link(node)
        self._check_cycles()

    @classmethod
    def build(cls, dependencies: Iterable[Dependency] | None = None, diagnostics: Diagnostics | None = None) -> ResourceGraph:
        nodes = [ResourceNode.from_dependency(dep, handle) for handle, dep in enumerate(dependencies or ())]
        logger.debug("Building resource graph from %d dependencies", len(nodes))
        return cls(nodes, diagnostics)

    @property
    def nodes(self) -> list[ResourceNode]:
        return list(self._nodes)

    def __len__(self) -> int:
        return len(self._nodes)

    def __iter__(self) -> Iterator[ResourceNode]:
        return iter(self._nodes)

    def get(self, name: str) -> ResourceNode | None:
        """First node whose resource name is ``name``."""
        return next((node for node in self._nodes if node.name == name), None)

    def providers_of(self, requirement: str, exclude: ResourceNode | None = None) -> list[ResourceNode]:
        """Nodes providing ``requirement``; resource names are only matched when no node provides it."""
        candidates = [node for node in self._nodes if exclude is None or node.handle != exclude.handle]
        providers = [node for node in candidates if node.provides == requirement]
        if not providers:
            providers = [node for node in candidates if node.name == requirement]
        return providers

    def dependents_of(self, node: ResourceNode) -> list[ResourceNode]:
        return [other for other in self._nodes if other.depends_on(node)]

    def _link(self, node: ResourceNode) -> None:
        for requirement in node.requires:
            providers = self.providers_of(requirement, exclude=node)
            if not providers:
                raise MissingProviderError(node.name, requirement)
            if len(providers) > 1:
                raise AmbiguousProviderError(node.name, requirement, [p.name for p in providers])
            node.add_dependency(providers[0])

    def _check_cycles(self) -> None:
        colour = [WHITE] * len(self._nodes)
        for root in self._nodes:
            if colour[root.handle] != WHITE:
                continue
            colour[root.handle] = GREY
            path = [root]
            stack = [iter(root.dependencies)]
            while stack:
                for child in stack[-1]:
                    if colour[child.handle] == GREY:
                        start = next(i for i, n in enumerate(path) if n.handle == child.handle)
                        raise CycleError([n.name for n in path[start:]] + [child.name])
                    if colour[child.handle] == WHITE:
                        colour[child.handle] = GREY
                        path.append(child)
                        stack.append(iter(child.dependencies))
                        break
                else:
                    stack.pop()
                    colour[path.pop().handle] = BLACK

    @property
    def load_order(self) -> list[ResourceNode]:
        """
        Every node exactly once, each after all of its dependencies.

        Dependency-free nodes come first in node order. The rest follow from a
        post-order walk of each entrypoint (a node with dependencies that nothing
        depends on), entrypoints in node order and edges in declaration order.
        """
        nodes = self._nodes
        depended_on = {dep.handle for node in nodes for dep in node.dependencies}
        entrypoints = [node for node in nodes if node.has_dependencies and node.handle not in depended_on]

        resolved: dict[int, ResourceNode] = {node.handle: node for node in nodes if not node.has_dependencies}
        walked: set[int] = set()
        for node in entrypoints:
            node.resolve_dependencies(resolved, self.diagnostics, walked)
        return list(resolved.values())

    @property
    def load_order_names(self) -> list[str]:
        return [node.name for node in self.load_order]


__all__ = ["ResourceGraph"]
