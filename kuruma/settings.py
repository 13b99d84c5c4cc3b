"""Pydantic models for the kuruma.yml settings file."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Mapping

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from interpreters.fxmanifest_interpreter import ManifestFileType
from resolver.errors import SettingsError
from resolver.extractor import DEFAULT_SCRIPT_PROPERTIES, DependencyExtractor

DEFAULT_SETTINGS_FILE = "kuruma.yml"


class ResolverSettings(BaseModel):
    """Options of one resolution pass."""

    infer_script_dependencies: bool = Field(default=False, description="Infer requirements from @resource/ script paths")
    script_properties: list[str] = Field(default_factory=lambda: list(DEFAULT_SCRIPT_PROPERTIES))
    manifest_files: list[ManifestFileType] = Field(
        default_factory=lambda: list(ManifestFileType),
        description="Manifest file names to look for, in priority order",
    )
    locale: str = Field(default="en", min_length=2, max_length=2, description="Locale of SQL files to keep")

    @field_validator("manifest_files")
    @classmethod
    def _at_least_one_manifest(cls, value: list[ManifestFileType]) -> list[ManifestFileType]:
        if not value:
            raise ValueError("manifest_files must not be empty")
        return value

    def merge(self, patch: Mapping[str, Any]) -> ResolverSettings:
        """Return a new ResolverSettings with ``patch`` applied (None values are ignored)."""
        payload = self.model_dump(mode="python")
        payload.update({key: value for key, value in patch.items() if value is not None})
        return ResolverSettings.model_validate(payload)

    def extractor(self) -> DependencyExtractor:
        return DependencyExtractor(
            infer_script_dependencies=self.infer_script_dependencies,
            script_properties=self.script_properties,
        )


# ---------------------------------------------------------------------------
# helpers


def load_settings(value: Any = None) -> ResolverSettings:
    """
    Normalize supported inputs into a ResolverSettings instance.

    Accepts None (defaults), a mapping, YAML/JSON text or bytes, or a Path to
    a kuruma.yml file (a missing file yields defaults). Settings live under the
    ``resolver`` key; a mapping without that key is taken as the settings
    themselves.
    """
    if value is None:
        return ResolverSettings()
    if isinstance(value, ResolverSettings):
        return value
    payload: Any
    if isinstance(value, Mapping):
        payload = value
    elif isinstance(value, (str, bytes)):
        payload = _load_text_payload(value)
    elif isinstance(value, Path):
        if not value.exists():
            return ResolverSettings()
        payload = _load_text_payload(value.read_text(encoding="utf-8"))
    else:
        raise TypeError("Unsupported value for settings")
    if not isinstance(payload, Mapping):
        raise SettingsError("Settings must be a mapping")
    section = payload.get("resolver", payload)
    if section is None:
        section = {}
    try:
        return ResolverSettings.model_validate(section)
    except ValidationError as exc:
        raise SettingsError(f"Invalid settings: {exc}") from exc


def _load_text_payload(raw: str | bytes) -> Any:
    """Interpret raw text as YAML first, falling back to JSON."""
    text = raw.decode() if isinstance(raw, bytes) else raw
    try:
        return yaml.safe_load(text) or {}
    except yaml.YAMLError:
        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            raise SettingsError(f"Settings are neither YAML nor JSON: {exc}") from exc


__all__ = [
    "DEFAULT_SETTINGS_FILE",
    "ResolverSettings",
    "load_settings",
]
