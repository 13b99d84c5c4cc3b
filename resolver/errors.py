"""Exceptions raised by the manifest interpreter and the resource graph."""

import logging
from typing import Sequence

mylogger = logging.getLogger(__name__)


class KurumaError(Exception):
    """Base exception with a message."""
    def __init__(self, message: str = "A resource resolution error occurred", log: bool = False):
        self.message = message
        super().__init__(self.message)
        if log:
            mylogger.error(message)


class ManifestSyntaxError(KurumaError):
    """The manifest text cannot be tokenized or its brackets do not balance."""
    def __init__(self, source: str, reason: str, line: int | None = None, resource: str | None = None):
        self.source = source
        self.reason = reason
        self.line = line
        self.resource = resource
        where = f" (line {line})" if line is not None else ""
        subject = f'manifest of "{resource}"' if resource else "manifest"
        super().__init__(f"Could not parse {subject}{where}: {reason}")


class ManifestNotFoundError(KurumaError):
    def __init__(self, path: str, candidates: Sequence[str] = ()):
        self.path = path
        self.candidates = list(candidates)
        tried = f" (looked for {', '.join(self.candidates)})" if self.candidates else ""
        super().__init__(f"No manifest files found in {path}{tried}")


class DuplicateResourceError(KurumaError):
    """Two resource directories share a base name, so they would share an identity."""
    def __init__(self, resource: str, paths: Sequence[str]):
        self.resource = resource
        self.paths = list(paths)
        super().__init__(f'Resource "{resource}" is given more than once ({", ".join(self.paths)})')


class MissingProviderError(KurumaError):
    def __init__(self, resource: str, requirement: str):
        self.resource = resource
        self.requirement = requirement
        super().__init__(
            f'Resource "{resource}" depends on "{requirement}", but it could not be found'
        )


class AmbiguousProviderError(KurumaError):
    def __init__(self, resource: str, requirement: str, providers: Sequence[str]):
        self.resource = resource
        self.requirement = requirement
        self.providers = list(providers)
        super().__init__(
            f'Resource "{resource}" depends on "{requirement}", '
            f"but multiple resources provide it ({'/'.join(self.providers)})"
        )


class CycleError(KurumaError):
    """The requires graph contains a cycle; ``cycle`` starts and ends on the same resource."""
    def __init__(self, cycle: Sequence[str]):
        self.cycle = list(cycle)
        super().__init__(f"Circular dependency detected: {' -> '.join(self.cycle)}")


class SettingsError(KurumaError, ValueError):
    """Invalid kuruma.yml content."""


__all__ = [
    "AmbiguousProviderError",
    "CycleError",
    "DuplicateResourceError",
    "KurumaError",
    "ManifestNotFoundError",
    "ManifestSyntaxError",
    "MissingProviderError",
    "SettingsError",
]
