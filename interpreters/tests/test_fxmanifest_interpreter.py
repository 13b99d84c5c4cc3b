import pytest

from interpreters.fxmanifest_interpreter import FxManifestInterpreter
from resolver.errors import ManifestSyntaxError
from resolver.models import DiagnosticKind, Diagnostics


@pytest.fixture
def interpreter():
    return FxManifestInterpreter()


def test_scalar_and_list_declarations(interpreter):
    """Both call shapes produce entries in the property map."""
    source = """
fx_version 'cerulean'
game "gta5"
dependencies { 'es_extended', "mysql-async" }
"""
    assert interpreter.interpret(source) == {
        "fx_version": "cerulean",
        "game": "gta5",
        "dependencies": ["es_extended", "mysql-async"],
    }


def test_empty_source(interpreter):
    assert interpreter.interpret("") == {}
    assert interpreter.interpret("  \n-- only a comment\n") == {}


def test_last_declaration_wins(interpreter):
    """A repeated key keeps the later value, whichever shapes were used."""
    assert interpreter.interpret("dependency 'a'\ndependency { 'b', 'c' }") == {"dependency": ["b", "c"]}
    assert interpreter.interpret("dependency { 'b', 'c' }\ndependency 'a'") == {"dependency": "a"}


def test_table_keeps_only_string_fields(interpreter):
    source = "files { 'a.lua', 42, other, { 'nested' }, key = 'kv', ['x'] = 'y', 'b' .. 'c', \"z.lua\" }"
    assert interpreter.interpret(source) == {"files": ["a.lua", "kv", "y", "z.lua"]}


def test_unrecognized_statements_are_reported(interpreter):
    """Other statements are dropped and reported with their line."""
    source = """fx_version 'cerulean'
print("hello")
local x = 1
data_file 'DLC_ITYP_REQUEST' 'stream/props.ytyp'
author 'me'
"""
    diagnostics = Diagnostics()
    properties = interpreter.interpret(source, resource="props", diagnostics=diagnostics)
    assert properties == {"fx_version": "cerulean", "author": "me"}
    unrecognized = diagnostics.of_kind(DiagnosticKind.UNRECOGNIZED_STATEMENT)
    assert [d.line for d in unrecognized] == [2, 3, 4]
    assert all(d.resource == "props" for d in unrecognized)
    assert "print" in unrecognized[0].message


def test_parenthesized_call_is_not_a_declaration(interpreter):
    diagnostics = Diagnostics()
    assert interpreter.interpret('dependency("es_extended")', diagnostics=diagnostics) == {}
    assert len(diagnostics) == 1


def test_comments_and_semicolons(interpreter):
    source = """-- a comment
--[[ long
comment ]]
name 'x'; description "y";
--[==[ another ]==]
client_scripts {
  'a.lua', -- trailing comment
  'b.lua',
}
"""
    assert interpreter.interpret(source) == {
        "name": "x",
        "description": "y",
        "client_scripts": ["a.lua", "b.lua"],
    }


def test_long_strings_and_escapes(interpreter):
    source = "description [[\nmulti\nline]]\nauthor 'O\\'Brien'\nnote \"tab\\there\\65\"\n"
    assert interpreter.interpret(source) == {
        "description": "multi\nline",
        "author": "O'Brien",
        "note": "tab\thereA",
    }


def test_statements_inside_blocks_are_not_declarations(interpreter):
    source = """if IsDuplicityVersion() then
  dependency 'server_only'
end
dependency 'es_extended'
"""
    diagnostics = Diagnostics()
    assert interpreter.interpret(source, diagnostics=diagnostics) == {"dependency": "es_extended"}
    assert [d.line for d in diagnostics] == [1]


def test_anonymous_function_argument(interpreter):
    source = "AddEventHandler('x', function() print('y') end)\nauthor 'me'\n"
    assert interpreter.interpret(source) == {"author": "me"}


def test_other_valid_lua_is_only_reported(interpreter):
    """Assignments, loops and operators parse fine and only produce diagnostics."""
    source = """local a, b = 1, 2
x = -1
t['k'] = not true
s = 'a' .. "b" .. #t
for k, v in pairs(t) do print(k) end
author 'me'
"""
    diagnostics = Diagnostics()
    assert interpreter.interpret(source, diagnostics=diagnostics) == {"author": "me"}
    assert [d.line for d in diagnostics] == [1, 2, 3, 4, 5]


def test_unicode_digit_escape_is_a_syntax_error(interpreter):
    with pytest.raises(ManifestSyntaxError, match="invalid escape sequence"):
        interpreter.interpret('name "\\²"')


def test_line_numbers_after_multiline_tokens(interpreter):
    diagnostics = Diagnostics()
    interpreter.interpret("files {\n 'a',\n 'b'\n}\n--[[\n\n]]\nfoo.bar 'x'\n", diagnostics=diagnostics)
    assert [d.line for d in diagnostics] == [8]


@pytest.mark.parametrize(
    "source",
    [
        "name 'unterminated",
        "name 'broken\nline'",
        "files { 'a', 'b'",
        "dependency 'a' )",
        "name 'x' $",
        "if true then name 'x'",
        "--[[ never closed",
        "name 'bad \\q escape'",
        "end",
        "name \"\\²\"",
        "name \"\\u{110000}\"",
        "dependency 'a' = 5",
        "= 'x'",
        "name 'x' , ,",
        "1 2 3",
        "fx_version 'c' + + +",
        "author 'me', 'you'",
        "x = 1 ..",
    ],
)
def test_unparseable_text_raises(interpreter, source):
    with pytest.raises(ManifestSyntaxError) as excinfo:
        interpreter.interpret(source, resource="broken")
    assert excinfo.value.source == source
    assert excinfo.value.resource == "broken"
    assert excinfo.value.line == 1


def test_syntax_error_reports_line(interpreter):
    with pytest.raises(ManifestSyntaxError) as excinfo:
        interpreter.interpret("fx_version 'cerulean'\ngame 'gta5'\nauthor \"me\n")
    assert excinfo.value.line == 3
    assert "unfinished string" in excinfo.value.message


def test_info(interpreter):
    info = interpreter.info
    assert info.dialect == "fxmanifest-lua"
    assert "fxmanifest.lua" in info.manifest_files
    assert "__resource.lua" in info.manifest_files
