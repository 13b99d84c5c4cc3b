"""
fxmanifest_interpreter.py
-------------------------
Interpreter for ``fxmanifest.lua`` / ``__resource.lua`` manifests.

Manifests are Lua source, but only two call shapes carry declarations:

    key "literal"            -> key: "literal"
    key { "a", "b", ... }    -> key: ["a", "b", ...]

This module recognizes exactly those two shapes. It tokenizes the whole text
(so broken Lua is reported as ManifestSyntaxError), splits the token stream
into top-level statements, rejects statements Lua would not parse and reports
every statement of any other shape as an ``unrecognized_statement`` diagnostic.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum

from box import Box

from interpreters.interpreter_interface import ManifestInterpreter
from resolver.errors import ManifestSyntaxError
from resolver.models import DiagnosticKind, Diagnostics, PropertyMap

logger = logging.getLogger(__name__)


class ManifestFileType(str, Enum):
    """Manifest file names, in lookup priority order."""
    FX_MANIFEST = "fxmanifest.lua"
    LEGACY_RESOURCE = "__resource.lua"


KEYWORDS = frozenset({
    "and", "break", "do", "else", "elseif", "end", "false", "for", "function",
    "goto", "if", "in", "local", "nil", "not", "or", "repeat", "return",
    "then", "true", "until", "while",
})

# keywords that begin a statement at block level
STATEMENT_KEYWORDS = frozenset({
    "break", "do", "for", "function", "goto", "if", "local", "repeat", "return", "while",
})

OPERATORS = (
    "...", "..", "==", "~=", "<=", ">=", "<<", ">>", "//", "::",
    "+", "-", "*", "/", "%", "^", "#", "&", "~", "|", "<", ">", "=",
    "(", ")", "{", "}", "[", "]", ";", ":", ",", ".",
)

BRACKET_PAIRS = {"(": ")", "{": "}", "[": "]"}
CLOSING_BRACKETS = {v: k for k, v in BRACKET_PAIRS.items()}
DIGITS = "0123456789"

# operators and keywords that must be followed by an operand
OPERAND_EXPECTED = frozenset({
    "+", "-", "*", "/", "//", "%", "^", "..", "==", "~=", "<", "<=", ">", ">=",
    "&", "|", "~", "<<", ">>", "#", "=", "and", "or", "not",
})
UNARY_OPERATORS = frozenset({"-", "~", "#", "not"})

SIMPLE_ESCAPES = {
    "a": "\a", "b": "\b", "f": "\f", "n": "\n", "r": "\r", "t": "\t", "v": "\v",
    "\\": "\\", '"': '"', "'": "'", "\n": "\n",
}

_NAME_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
_NUMBER_RE = re.compile(
    r"0[xX](?:[0-9a-fA-F]*\.?[0-9a-fA-F]*)(?:[pP][+-]?[0-9]+)?"
    r"|(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?"
)
_LONG_OPEN_RE = re.compile(r"\[(=*)\[")
_SPACE_RE = re.compile(r"[ \t\r\f\v]+")
_DECIMAL_ESCAPE_RE = re.compile(r"[0-9]{1,3}")
_UNICODE_ESCAPE_RE = re.compile(r"u\{([0-9a-fA-F]+)\}")


class TokenKind(str, Enum):
    NAME = "name"
    KEYWORD = "keyword"
    STRING = "string"
    NUMBER = "number"
    OP = "op"


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    value: str
    raw: str
    line: int

    def is_op(self, *symbols: str) -> bool:
        return self.kind is TokenKind.OP and self.value in symbols

    def is_keyword(self, *words: str) -> bool:
        return self.kind is TokenKind.KEYWORD and self.value in words

    @property
    def ends_expression(self) -> bool:
        if self.kind in (TokenKind.STRING, TokenKind.NUMBER, TokenKind.NAME):
            return True
        return self.is_keyword("end", "true", "false", "nil") or self.is_op(")", "}", "]", "...")


class _Lexer:
    """Splits manifest text into tokens, dropping whitespace and comments."""

    def __init__(self, source: str, resource: str | None = None):
        self.source = source
        self.resource = resource
        self.pos = 0
        self.line = 1

    def error(self, reason: str, line: int | None = None) -> ManifestSyntaxError:
        return ManifestSyntaxError(self.source, reason, line=line or self.line, resource=self.resource)

    def tokens(self) -> list[Token]:
        result: list[Token] = []
        src = self.source
        while self.pos < len(src):
            char = src[self.pos]
            if char == "\n":
                self.line += 1
                self.pos += 1
                continue
            space = _SPACE_RE.match(src, self.pos)
            if space:
                self.pos = space.end()
                continue
            if src.startswith("--", self.pos):
                self._skip_comment()
                continue
            start_line = self.line
            start = self.pos
            if char in "\"'":
                value = self._short_string(char)
                result.append(Token(TokenKind.STRING, value, src[start:self.pos], start_line))
                continue
            long_open = _LONG_OPEN_RE.match(src, self.pos)
            if long_open:
                value = self._long_bracket(long_open, "string")
                result.append(Token(TokenKind.STRING, value, src[start:self.pos], start_line))
                continue
            number = _NUMBER_RE.match(src, self.pos)
            if number and (char in DIGITS or (char == "." and number.end() > self.pos + 1)):
                self.pos = number.end()
                result.append(Token(TokenKind.NUMBER, number.group(), number.group(), start_line))
                continue
            name = _NAME_RE.match(src, self.pos)
            if name:
                self.pos = name.end()
                word = name.group()
                kind = TokenKind.KEYWORD if word in KEYWORDS else TokenKind.NAME
                result.append(Token(kind, word, word, start_line))
                continue
            for op in OPERATORS:
                if src.startswith(op, self.pos):
                    self.pos += len(op)
                    result.append(Token(TokenKind.OP, op, op, start_line))
                    break
            else:
                raise self.error(f"unexpected symbol near '{char}'")
        return result

    def _skip_comment(self) -> None:
        self.pos += 2
        long_open = _LONG_OPEN_RE.match(self.source, self.pos)
        if long_open:
            self._long_bracket(long_open, "comment")
            return
        end = self.source.find("\n", self.pos)
        self.pos = len(self.source) if end == -1 else end

    def _long_bracket(self, opening: re.Match, what: str) -> str:
        start_line = self.line
        closing = "]" + opening.group(1) + "]"
        body_start = opening.end()
        end = self.source.find(closing, body_start)
        if end == -1:
            raise self.error(f"unfinished long {what}", line=start_line)
        body = self.source[body_start:end]
        self.line += body.count("\n")
        self.pos = end + len(closing)
        # a newline right after the opening bracket is not part of the string
        if body.startswith("\r\n"):
            body = body[2:]
        elif body.startswith("\n"):
            body = body[1:]
        return body

    def _short_string(self, quote: str) -> str:
        src = self.source
        self.pos += 1
        chunks: list[str] = []
        while True:
            if self.pos >= len(src):
                raise self.error("unfinished string")
            char = src[self.pos]
            if char == quote:
                self.pos += 1
                return "".join(chunks)
            if char == "\n":
                raise self.error("unfinished string")
            if char == "\\":
                chunks.append(self._escape())
                continue
            chunks.append(char)
            self.pos += 1

    def _escape(self) -> str:
        src = self.source
        self.pos += 1
        if self.pos >= len(src):
            raise self.error("unfinished string")
        char = src[self.pos]
        if char == "\r":
            self.pos += 2 if src.startswith("\r\n", self.pos) else 1
            self.line += 1
            return "\n"
        if char in SIMPLE_ESCAPES:
            if char == "\n":
                self.line += 1
            self.pos += 1
            return SIMPLE_ESCAPES[char]
        if char == "z":
            self.pos += 1
            while self.pos < len(src) and src[self.pos].isspace():
                if src[self.pos] == "\n":
                    self.line += 1
                self.pos += 1
            return ""
        if char == "x":
            digits = src[self.pos + 1:self.pos + 3]
            if len(digits) != 2 or not all(c in "0123456789abcdefABCDEF" for c in digits):
                raise self.error("hexadecimal digit expected")
            self.pos += 3
            return chr(int(digits, 16))
        if char in DIGITS:
            match = _DECIMAL_ESCAPE_RE.match(src, self.pos)
            code = int(match.group())
            if code > 255:
                raise self.error("decimal escape too large")
            self.pos = match.end()
            return chr(code)
        if char == "u":
            match = _UNICODE_ESCAPE_RE.match(src, self.pos)
            if not match:
                raise self.error("missing '{' or '}' in \\u{xxxx}")
            code = int(match.group(1), 16)
            if code > 0x10FFFF:
                raise self.error("UTF-8 value too large")
            self.pos = match.end()
            return chr(code)
        raise self.error("invalid escape sequence")


def _split_statements(tokens: list[Token], lexer: _Lexer) -> list[list[Token]]:
    """Group tokens into top-level statements, checking bracket and block balance."""
    statements: list[list[Token]] = []
    current: list[Token] = []
    brackets: list[Token] = []
    blocks: list[Token] = []
    pending_loops = 0

    for tok in tokens:
        at_top = not brackets and not blocks
        starts_statement = tok.kind is TokenKind.NAME or tok.is_keyword(*STATEMENT_KEYWORDS)
        if at_top and starts_statement and current and current[-1].ends_expression:
            statements.append(current)
            current = []
        current.append(tok)

        if tok.kind is TokenKind.OP:
            if tok.value in BRACKET_PAIRS:
                brackets.append(tok)
            elif tok.value in CLOSING_BRACKETS:
                if not brackets or brackets[-1].value != CLOSING_BRACKETS[tok.value]:
                    raise lexer.error(f"unexpected symbol near '{tok.value}'", line=tok.line)
                brackets.pop()
            elif tok.value == ";" and at_top:
                statements.append(current)
                current = []
        elif tok.kind is TokenKind.KEYWORD:
            if tok.value in ("for", "while"):
                blocks.append(tok)
                pending_loops += 1
            elif tok.value == "do":
                if pending_loops:
                    pending_loops -= 1
                else:
                    blocks.append(tok)
            elif tok.value in ("if", "function", "repeat"):
                blocks.append(tok)
            elif tok.value in ("end", "until"):
                if not blocks:
                    raise lexer.error(f"'<eof>' expected near '{tok.value}'", line=tok.line)
                blocks.pop()

    if brackets:
        opener = brackets[-1]
        raise lexer.error(
            f"'{BRACKET_PAIRS[opener.value]}' expected (to close '{opener.value}' at line {opener.line})",
            line=opener.line,
        )
    if blocks:
        raise lexer.error(f"'end' expected (to close '{blocks[-1].value}' at line {blocks[-1].line})", line=blocks[-1].line)
    if current:
        statements.append(current)
    return statements


def _starts_operand(tok: Token) -> bool:
    if tok.kind in (TokenKind.NAME, TokenKind.STRING, TokenKind.NUMBER):
        return True
    if tok.kind is TokenKind.KEYWORD:
        return tok.value in ("nil", "true", "false", "function") or tok.value in UNARY_OPERATORS
    return tok.value in ("...", "(", "{") or tok.value in UNARY_OPERATORS


def _expects_operand(tok: Token) -> bool:
    if tok.kind is TokenKind.OP:
        return tok.value in OPERAND_EXPECTED
    return tok.is_keyword("and", "or", "not")


def _check_statement(statement: list[Token], lexer: _Lexer) -> None:
    """
    Reject a top-level statement that Lua itself would not parse.

    Catches a bad first token, assignment to something that is not a name or an
    index, an operator without an operand after it, and a comma list that is
    not part of an assignment.
    """
    first = statement[0]
    if not (first.kind is TokenKind.NAME or first.is_op("(", "::") or first.is_keyword(*STATEMENT_KEYWORDS)):
        raise lexer.error(f"unexpected symbol near '{first.raw}'", line=first.line)

    depth = 0
    bare_comma: Token | None = None
    assigns = False
    for index, tok in enumerate(statement):
        following = statement[index + 1] if index + 1 < len(statement) else None
        if tok.is_op(*BRACKET_PAIRS):
            depth += 1
        elif tok.is_op(*CLOSING_BRACKETS):
            depth -= 1
        elif tok.is_op("="):
            target = statement[index - 1]
            if not (target.kind is TokenKind.NAME or target.is_op("]")):
                raise lexer.error("syntax error near '='", line=tok.line)
            assigns = assigns or depth == 0
        elif tok.is_op(",") and depth == 0:
            bare_comma = bare_comma or tok
            if following is None or not _starts_operand(following):
                raise lexer.error(f"unexpected symbol near '{following.raw if following else ','}'", line=tok.line)
        if _expects_operand(tok) and (following is None or not _starts_operand(following)):
            near = following.raw if following else "<eof>"
            raise lexer.error(f"unexpected symbol near '{near}'", line=(following or tok).line)

    # `a, b = 1, 2` is fine, `name 'x', 'y'` is not
    if bare_comma is not None and first.kind is TokenKind.NAME and not assigns:
        raise lexer.error("syntax error near ','", line=bare_comma.line)


def _matching_close(tokens: list[Token], open_index: int) -> int:
    depth = 0
    for index in range(open_index, len(tokens)):
        tok = tokens[index]
        if tok.is_op(*BRACKET_PAIRS):
            depth += 1
        elif tok.is_op(*CLOSING_BRACKETS):
            depth -= 1
            if depth == 0:
                return index
    return -1


def _table_fields(tokens: list[Token]) -> list[list[Token]]:
    """Split the tokens between a table's braces into fields."""
    fields: list[list[Token]] = []
    field: list[Token] = []
    depth = 0
    for tok in tokens:
        if depth == 0 and tok.is_op(",", ";"):
            fields.append(field)
            field = []
            continue
        if tok.is_op(*BRACKET_PAIRS):
            depth += 1
        elif tok.is_op(*CLOSING_BRACKETS):
            depth -= 1
        field.append(tok)
    if field:
        fields.append(field)
    return fields


def _field_value(field: list[Token]) -> list[Token]:
    if len(field) >= 2 and field[0].kind is TokenKind.NAME and field[1].is_op("="):
        return field[2:]
    if field and field[0].is_op("["):
        close = _matching_close(field, 0)
        if close != -1 and close + 1 < len(field) and field[close + 1].is_op("="):
            return field[close + 2:]
    return field


def _statement_text(statement: list[Token], limit: int = 80) -> str:
    text = " ".join(tok.raw for tok in statement)
    return text if len(text) <= limit else text[:limit - 3] + "..."


class FxManifestInterpreter(ManifestInterpreter):
    """Recognizer for the two declaration shapes used by fxmanifest.lua files."""

    @property
    def dialect(self) -> str:
        return "fxmanifest-lua"

    @property
    def info(self) -> Box:
        return Box({
            "dialect": self.dialect,
            "manifest_files": [file_type.value for file_type in ManifestFileType],
            "shapes": ['key "literal"', 'key { "a", "b", ... }'],
        })

    def interpret(
        self,
        source: str,
        *,
        resource: str | None = None,
        diagnostics: Diagnostics | None = None,
    ) -> PropertyMap:
        lexer = _Lexer(source, resource=resource)
        statements = _split_statements(lexer.tokens(), lexer)
        properties: PropertyMap = {}
        for statement in statements:
            if statement and statement[-1].is_op(";"):
                statement = statement[:-1]
            if not statement:
                continue
            _check_statement(statement, lexer)
            declaration = self._declaration(statement)
            if declaration is None:
                if diagnostics is not None:
                    diagnostics.add(
                        DiagnosticKind.UNRECOGNIZED_STATEMENT,
                        f"Unsure how to interpret statement at line {statement[0].line}: {_statement_text(statement)}",
                        resource=resource,
                        line=statement[0].line,
                        details={"statement": _statement_text(statement, limit=500)},
                    )
                continue
            key, value = declaration
            properties[key] = value
        logger.debug("Interpreted %d declaration(s) for %s", len(properties), resource or "<manifest>")
        return properties

    @staticmethod
    def _declaration(statement: list[Token]) -> tuple[str, str | list[str]] | None:
        if len(statement) < 2 or statement[0].kind is not TokenKind.NAME:
            return None
        key, argument = statement[0].value, statement[1]
        if argument.kind is TokenKind.STRING:
            return (key, argument.value) if len(statement) == 2 else None
        if argument.is_op("{") and _matching_close(statement, 1) == len(statement) - 1:
            values = []
            for field in _table_fields(statement[2:-1]):
                value = _field_value(field)
                if len(value) == 1 and value[0].kind is TokenKind.STRING:
                    values.append(value[0].value)
            return key, values
        return None


__all__ = ["FxManifestInterpreter", "ManifestFileType"]
