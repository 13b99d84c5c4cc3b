"""Pydantic models shared by the interpreter, the extractor and the graph."""

from __future__ import annotations

from enum import Enum
from typing import Any, Iterator, Union

from pydantic import BaseModel, Field, field_validator, model_validator

PropertyValue = Union[str, list[str]]
PropertyMap = dict[str, PropertyValue]


class Dependency(BaseModel):
    """What a resource requires and the single name it provides."""

    resource: str = Field(..., min_length=1, description="Caller supplied identity of the manifest")
    requires: list[str] = Field(default_factory=list, description="Names that must load first")
    provides: str = Field(default="", description="Name other resources use to require this one")

    @model_validator(mode="before")
    @classmethod
    def _default_provides(cls, data: Any) -> Any:
        if isinstance(data, dict) and not data.get("provides"):
            data = {**data, "provides": data.get("resource")}
        return data

    @field_validator("provides")
    @classmethod
    def _provides_not_empty(cls, value: str) -> str:
        if not value:
            raise ValueError("provides must be non-empty")
        return value

    def is_dependency_of(self, other: Dependency) -> bool:
        """True when ``self`` requires ``other`` by resource name or provided name."""
        return any(name in self.requires for name in (other.resource, other.provides))


class DiagnosticKind(str, Enum):
    UNRECOGNIZED_STATEMENT = "unrecognized_statement"
    PROVIDES_OVERRIDE = "provides_override"
    IGNORED_NAME = "ignored_name"
    MISSING_DEPENDENCIES = "missing_dependencies"
    UNRESOLVED_REQUIREMENT = "unresolved_requirement"


class Diagnostic(BaseModel):
    """A non-fatal finding reported alongside a successful result."""

    kind: DiagnosticKind
    message: str
    resource: str | None = None
    line: int | None = None
    details: dict[str, Any] = Field(default_factory=dict)

    def __str__(self) -> str:
        return self.message


class Diagnostics:
    """Ordered sink that components append diagnostics to.

    Callers own the sink and decide how (and whether) to present its content.
    """

    def __init__(self) -> None:
        self._items: list[Diagnostic] = []

    def add(self, kind: DiagnosticKind, message: str, **fields: Any) -> Diagnostic:
        diagnostic = Diagnostic(kind=kind, message=message, **fields)
        self._items.append(diagnostic)
        return diagnostic

    def of_kind(self, kind: DiagnosticKind) -> list[Diagnostic]:
        return [d for d in self._items if d.kind == kind]

    @property
    def items(self) -> list[Diagnostic]:
        return list(self._items)

    def __iter__(self) -> Iterator[Diagnostic]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __bool__(self) -> bool:
        return bool(self._items)


class ResolutionResult(BaseModel):
    """Outcome of one resolution pass."""

    load_order: list[str] = Field(default_factory=list)
    dependencies: list[Dependency] = Field(default_factory=list)
    diagnostics: list[Diagnostic] = Field(default_factory=list)


__all__ = [
    "Dependency",
    "Diagnostic",
    "DiagnosticKind",
    "Diagnostics",
    "PropertyMap",
    "PropertyValue",
    "ResolutionResult",
]
