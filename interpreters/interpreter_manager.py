# interpreter_manager.py
"""
interpreter_manager.py
----------------------
Maps manifest file names to interpreter instances

Holds in-memory interpreters for the supported manifest file types.

Creates interpreters as needed and reuses existing ones.
    Interpreters keep no per-manifest state, so one instance per
    file type serves every resource.

"""

from pathlib import PurePath

from interpreters.fxmanifest_interpreter import FxManifestInterpreter, ManifestFileType
from interpreters.interpreter_interface import ManifestInterpreter

# key: ManifestFileType
# value: ManifestInterpreter instance
_active_interpreters: dict[ManifestFileType, ManifestInterpreter] = {}


def is_manifest_file(file_name: str) -> bool:
    """True when the base name of ``file_name`` is a supported manifest file."""
    return PurePath(file_name).name in {file_type.value for file_type in ManifestFileType}


def get_interpreter(manifest_file: str | ManifestFileType) -> ManifestInterpreter:
    """
    Get or create the interpreter for the given manifest file.
    Accepts a ManifestFileType or a file name/path whose base name is one.
    """
    try:
        file_type = ManifestFileType(PurePath(str(getattr(manifest_file, "value", manifest_file))).name)
    except ValueError:
        raise ValueError(f"Unsupported manifest file: {manifest_file}") from None

    if file_type in _active_interpreters:
        return _active_interpreters[file_type]

    # both file types use the same Lua dialect
    interpreter = FxManifestInterpreter()
    _active_interpreters[file_type] = interpreter
    return interpreter
