"""Core resolver package: dependency extraction, graph validation and load order."""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable, Mapping

from .errors import (
    AmbiguousProviderError,
    CycleError,
    DuplicateResourceError,
    KurumaError,
    ManifestNotFoundError,
    ManifestSyntaxError,
    MissingProviderError,
    SettingsError,
)
from .extractor import DependencyExtractor, ScriptPathInference
from .graph import ResourceGraph
from .models import Dependency, Diagnostic, DiagnosticKind, Diagnostics, PropertyMap, ResolutionResult
from .node import ResourceNode
from .tree import DependencyTree, build_dependency_tree, find_unresolved_requirements

if TYPE_CHECKING:
    from interpreters.interpreter_interface import ManifestInterpreter


def resolve_dependencies(
    dependencies: Iterable[Dependency],
    diagnostics: Diagnostics | None = None,
) -> ResolutionResult:
    """Build the graph for ``dependencies`` and return its load order."""
    diagnostics = diagnostics if diagnostics is not None else Diagnostics()
    dependencies = list(dependencies)
    graph = ResourceGraph.build(dependencies, diagnostics)
    return ResolutionResult(
        load_order=graph.load_order_names,
        dependencies=dependencies,
        diagnostics=diagnostics.items,
    )


def resolve_manifests(
    manifests: Mapping[str, str],
    *,
    interpreter: ManifestInterpreter | None = None,
    extractor: DependencyExtractor | None = None,
    diagnostics: Diagnostics | None = None,
) -> ResolutionResult:
    """
    Resolve the load order of resources given as ``identity -> manifest source``.

    Mapping order is the node order used for tie-breaking. Without an
    ``interpreter`` the fxmanifest.lua one is used.
    """
    if interpreter is None:
        from interpreters.interpreter_manager import get_interpreter

        interpreter = get_interpreter("fxmanifest.lua")
    diagnostics = diagnostics if diagnostics is not None else Diagnostics()
    extractor = extractor or DependencyExtractor()
    properties = {
        resource: interpreter.interpret(source, resource=resource, diagnostics=diagnostics)
        for resource, source in manifests.items()
    }
    return resolve_dependencies(extractor.extract_all(properties, diagnostics), diagnostics)


__all__ = [
    "AmbiguousProviderError",
    "CycleError",
    "Dependency",
    "DependencyExtractor",
    "DependencyTree",
    "Diagnostic",
    "DiagnosticKind",
    "Diagnostics",
    "DuplicateResourceError",
    "KurumaError",
    "ManifestNotFoundError",
    "ManifestSyntaxError",
    "MissingProviderError",
    "PropertyMap",
    "ResolutionResult",
    "ResourceGraph",
    "ResourceNode",
    "ScriptPathInference",
    "SettingsError",
    "build_dependency_tree",
    "find_unresolved_requirements",
    "resolve_dependencies",
    "resolve_manifests",
]
