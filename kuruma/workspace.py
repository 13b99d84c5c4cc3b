"""
workspace.py
------------
Reads resources from local directories.

A resource is a directory holding a manifest file (fxmanifest.lua, or the
legacy __resource.lua). Its identity is the directory base name.
Also collects per-resource SQL files so they can be emitted in load order.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Iterable, Sequence

from interpreters.fxmanifest_interpreter import ManifestFileType
from interpreters.interpreter_manager import get_interpreter, is_manifest_file
from resolver import (
    Dependency,
    DependencyExtractor,
    Diagnostics,
    DuplicateResourceError,
    ManifestNotFoundError,
    PropertyMap,
    ResolutionResult,
    resolve_dependencies,
)

logger = logging.getLogger(__name__)

_LOCALE_PREFIX = re.compile(r"^([a-z]{2})[-_]", re.IGNORECASE)


def resource_identity(resource_dir: str | Path) -> str:
    path = Path(resource_dir).resolve()
    if path.is_file() and is_manifest_file(path.name):
        return path.parent.name
    return path.name


def resource_dirs_by_name(resource_dirs: Iterable[str | Path]) -> dict[str, Path]:
    """Map each resource identity to its directory, keeping the given order."""
    dirs_by_name: dict[str, Path] = {}
    for resource_dir in resource_dirs:
        path = Path(resource_dir)
        name = resource_identity(path)
        if name in dirs_by_name:
            raise DuplicateResourceError(name, [str(dirs_by_name[name]), str(path)])
        dirs_by_name[name] = path if path.is_dir() else path.parent
    return dirs_by_name


def read_manifest_source(
    resource_dir: str | Path,
    manifest_files: Sequence[ManifestFileType] = tuple(ManifestFileType),
) -> tuple[ManifestFileType, str]:
    """
    Return the type and text of the first manifest file found in ``resource_dir``.
    ``resource_dir`` may also be the path of a manifest file itself.
    """
    base = Path(resource_dir)
    if base.is_file() and is_manifest_file(base.name):
        return ManifestFileType(base.name), base.read_text(encoding="utf-8")
    for file_type in manifest_files:
        path = base / ManifestFileType(file_type).value
        if path.is_file():
            logger.debug("Reading %s", path)
            return ManifestFileType(file_type), path.read_text(encoding="utf-8")
    raise ManifestNotFoundError(str(base), [ManifestFileType(f).value for f in manifest_files])


def read_properties(
    resource_dir: str | Path,
    manifest_files: Sequence[ManifestFileType] = tuple(ManifestFileType),
    diagnostics: Diagnostics | None = None,
) -> PropertyMap:
    file_type, source = read_manifest_source(resource_dir, manifest_files)
    return get_interpreter(file_type).interpret(
        source, resource=resource_identity(resource_dir), diagnostics=diagnostics
    )


def load_dependencies(
    resource_dirs: Iterable[str | Path],
    extractor: DependencyExtractor | None = None,
    manifest_files: Sequence[ManifestFileType] = tuple(ManifestFileType),
    diagnostics: Diagnostics | None = None,
) -> list[Dependency]:
    """Interpret every resource directory and extract its Dependency, keeping the given order."""
    extractor = extractor or DependencyExtractor()
    dependencies = []
    for name, resource_dir in resource_dirs_by_name(resource_dirs).items():
        properties = read_properties(resource_dir, manifest_files, diagnostics)
        dependencies.append(extractor.extract(properties, name, diagnostics))
    return dependencies


def resolve_directories(
    resource_dirs: Iterable[str | Path],
    extractor: DependencyExtractor | None = None,
    manifest_files: Sequence[ManifestFileType] = tuple(ManifestFileType),
) -> ResolutionResult:
    diagnostics = Diagnostics()
    dependencies = load_dependencies(resource_dirs, extractor, manifest_files, diagnostics)
    return resolve_dependencies(dependencies, diagnostics)


def find_sql_files(resource_dir: str | Path, locale: str = "en") -> list[Path]:
    """
    All .sql files below ``resource_dir``, sorted by path.
    Files named like ``de-foo.sql`` or ``de_foo.sql`` are dropped unless their
    locale prefix is ``locale``.
    """
    files = sorted(path for path in Path(resource_dir).rglob("*.sql") if path.is_file())
    kept = []
    for path in files:
        match = _LOCALE_PREFIX.match(path.stem)
        if match and match.group(1).lower() != locale.lower():
            logger.info('Ignoring file %s because locale "%s" is not "%s"', path.name, match.group(1), locale)
            continue
        kept.append(path)
    return kept


def render_sql(
    load_order: Sequence[str],
    resource_dirs: Iterable[str | Path],
    locale: str = "en",
    transaction: bool = False,
) -> str:
    """Concatenate the SQL files of every resource in ``load_order``."""
    dirs_by_name = resource_dirs_by_name(resource_dirs)
    lines: list[str] = []
    if transaction:
        lines.append("START TRANSACTION; -- migration")
    for name in load_order:
        resource_dir = dirs_by_name[name]
        sql_files = find_sql_files(resource_dir, locale)
        if not sql_files:
            continue
        lines += ["", "-- RESOURCE", f"-- {name}", f"-- {resource_dir}"]
        if transaction:
            lines.append("START TRANSACTION; -- resource")
        for sql_file in sql_files:
            lines += ["", "-- FILE", f"-- {sql_file.relative_to(resource_dir).as_posix()}"]
            if transaction:
                lines.append("START TRANSACTION; -- file")
            lines.append(sql_file.read_text(encoding="utf-8").rstrip("\n"))
            if transaction:
                lines.append("COMMIT; -- file")
        if transaction:
            lines.append("COMMIT; -- resource")
    if transaction:
        lines.append("COMMIT; -- migration")
    return "\n".join(lines)


__all__ = [
    "find_sql_files",
    "load_dependencies",
    "read_manifest_source",
    "read_properties",
    "render_sql",
    "resource_dirs_by_name",
    "resolve_directories",
    "resource_identity",
]
