"""Derive Dependency records from interpreted manifest properties."""

from __future__ import annotations

import re
from typing import Iterable, Mapping

from .models import Dependency, DiagnosticKind, Diagnostics, PropertyMap, PropertyValue

NAME_PATTERN = re.compile(r"^[a-zA-Z0-9_-]+$")

DEFAULT_SCRIPT_PROPERTIES = (
    "client_script",
    "client_scripts",
    "shared_script",
    "shared_scripts",
    "server_script",
    "server_scripts",
)


def _as_list(value: PropertyValue | None) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    return list(value)


def _scalar(value: PropertyValue | None) -> str | None:
    return value if isinstance(value, str) and value else None


def _unique(names: Iterable[str]) -> list[str]:
    return list(dict.fromkeys(name for name in names if name))


class ScriptPathInference:
    """Infers requirements from script paths such as ``@mysql-async/lib/MySQL.lua``."""

    def __init__(self, script_properties: Iterable[str] = DEFAULT_SCRIPT_PROPERTIES):
        self.script_properties = tuple(script_properties)

    def infer(self, properties: PropertyMap) -> list[str]:
        inferred = []
        for key in self.script_properties:
            for script in _as_list(properties.get(key)):
                if script.startswith("@"):
                    name = script[1:].split("/")[0]
                    if name:
                        inferred.append(name)
        return _unique(inferred)


class DependencyExtractor:
    """
    Builds the Dependency record of one resource from its PropertyMap.

    ``provides`` comes from ``provide``, then from a ``name`` that looks like an
    identifier, then from the resource identity. ``requires`` comes from
    ``dependency`` or else ``dependencies``, optionally followed by names
    inferred from ``@resource/...`` script paths.
    """

    def __init__(
        self,
        infer_script_dependencies: bool = False,
        script_properties: Iterable[str] = DEFAULT_SCRIPT_PROPERTIES,
    ):
        self.inference = ScriptPathInference(script_properties) if infer_script_dependencies else None

    def extract(
        self,
        properties: PropertyMap,
        resource: str,
        diagnostics: Diagnostics | None = None,
    ) -> Dependency:
        provides, source = self._provides(properties, resource, diagnostics)
        if provides != resource and diagnostics is not None:
            diagnostics.add(
                DiagnosticKind.PROVIDES_OVERRIDE,
                f'Resource "{resource}" overrides its name as "{provides}" '
                f'using the "{source}" property in its manifest file',
                resource=resource,
                details={"provides": provides, "property": source},
            )
        return Dependency(resource=resource, requires=self._requires(properties), provides=provides)

    def extract_all(
        self,
        manifests: Mapping[str, PropertyMap],
        diagnostics: Diagnostics | None = None,
    ) -> list[Dependency]:
        return [self.extract(properties, resource, diagnostics) for resource, properties in manifests.items()]

    @staticmethod
    def _provides(
        properties: PropertyMap, resource: str, diagnostics: Diagnostics | None
    ) -> tuple[str, str | None]:
        provide = _scalar(properties.get("provide"))
        if provide:
            return provide, "provide"
        name = properties.get("name")
        if name is not None:
            if isinstance(name, str) and NAME_PATTERN.fullmatch(name):
                return name, "name"
            if diagnostics is not None:
                diagnostics.add(
                    DiagnosticKind.IGNORED_NAME,
                    f'Resource "{resource}" declares name {name!r}, which is not a valid resource name; ignoring it',
                    resource=resource,
                    details={"name": name},
                )
        return resource, None

    def _requires(self, properties: PropertyMap) -> list[str]:
        dependency = properties.get("dependency")
        if dependency:
            explicit = _as_list(dependency)
        else:
            explicit = _as_list(properties.get("dependencies"))
        inferred = self.inference.infer(properties) if self.inference else []
        return _unique([*explicit, *inferred])


__all__ = [
    "DEFAULT_SCRIPT_PROPERTIES",
    "DependencyExtractor",
    "NAME_PATTERN",
    "ScriptPathInference",
]
