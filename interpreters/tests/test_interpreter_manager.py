import pytest

from interpreters.fxmanifest_interpreter import FxManifestInterpreter, ManifestFileType
from interpreters.interpreter_manager import get_interpreter, is_manifest_file


def test_get_interpreter_reuses_instances():
    """The same file type always returns the same interpreter."""
    first = get_interpreter(ManifestFileType.FX_MANIFEST)
    second = get_interpreter("resources/[esx]/es_extended/fxmanifest.lua")
    assert first is second
    assert isinstance(first, FxManifestInterpreter)


def test_legacy_manifest_uses_the_same_dialect():
    interpreter = get_interpreter("__resource.lua")
    assert interpreter.dialect == "fxmanifest-lua"
    assert interpreter.interpret("dependency 'a'") == {"dependency": "a"}


def test_unsupported_manifest_file():
    with pytest.raises(ValueError, match="Unsupported manifest file"):
        get_interpreter("package.json")


@pytest.mark.parametrize(
    "file_name, expected",
    [
        ("fxmanifest.lua", True),
        ("some/dir/__resource.lua", True),
        ("client.lua", False),
        ("fxmanifest.lua.bak", False),
    ],
)
def test_is_manifest_file(file_name, expected):
    assert is_manifest_file(file_name) is expected
