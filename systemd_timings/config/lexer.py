"""
Lexer (tokenizer) for nginx-like configuration syntax.

Supports:
- Identifiers (keywords, directive names)
- Quoted strings (single or double quotes with backslash escapes)
- Numbers and durations (10, 2.5, 30s, 5m, 1h, 500ms)
- Booleans (on, off, true, false)
- Braces and semicolons
- Single-line (#) and multi-line (/* */) comments
"""

import re
from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum, auto


class TokenType(Enum):
    """Token types for the nginx-like config syntax."""

    IDENTIFIER = auto()
    STRING = auto()
    NUMBER = auto()
    DURATION = auto()  # value converted to seconds
    BOOLEAN = auto()
    LBRACE = auto()
    RBRACE = auto()
    SEMICOLON = auto()
    INCLUDE = auto()
    EOF = auto()


@dataclass
class Token:
    """A single token from the lexer."""

    type: TokenType
    value: str | int | float | bool
    line: int
    column: int

    def __repr__(self) -> str:
        return f"Token({self.type.name}, {self.value!r}, {self.line}:{self.column})"


class LexerError(Exception):
    """Exception raised for lexer errors."""

    def __init__(self, message: str, line: int, column: int):
        self.line = line
        self.column = column
        super().__init__(f"Line {line}, column {column}: {message}")


BOOLEAN_KEYWORDS = {"on": True, "off": False, "true": True, "false": False}

# Duration units in seconds
DURATION_UNITS = {
    "ms": 0.001,
    "s": 1,
    "m": 60,
    "h": 3600,
    "d": 86400,
}

ESCAPES = {"n": "\n", "t": "\t", "r": "\r"}

_TOKEN_RE = re.compile(
    r"""
    (?P<space>[ \t\r\n]+)
  | (?P<line_comment>\#[^\n]*)
  | (?P<block_comment>/\*.*?\*/)
  | (?P<open_comment>/\*)
  | (?P<string>"(?:[^"\\\n]|\\.)*"|'(?:[^'\\\n]|\\.)*')
  | (?P<open_string>["'])
  | (?P<number>\d+(?:\.\d+)?)(?P<unit>[A-Za-z]+)?
  | (?P<word>[A-Za-z_][A-Za-z0-9_\-]*)
  | (?P<punct>[{};])
    """,
    re.VERBOSE | re.DOTALL,
)

_PUNCTUATION = {"{": TokenType.LBRACE, "}": TokenType.RBRACE, ";": TokenType.SEMICOLON}


def _unescape(body: str) -> str:
    return re.sub(r"\\(.)", lambda m: ESCAPES.get(m.group(1), m.group(1)), body)


class Lexer:
    """
    Tokenizer for nginx-like configuration syntax.

    Example config:
        timings {
            unit_pattern "*.service";
            interval 10s;
        }
    """

    def __init__(self, source: str, filename: str = "<string>"):
        self.source = source
        self.filename = filename
        self.pos = 0
        self.line = 1
        self.line_start = 0

    @property
    def column(self) -> int:
        return self.pos - self.line_start + 1

    def _consume(self, text: str) -> None:
        """Move past text, keeping line bookkeeping."""
        newlines = text.count("\n")
        if newlines:
            self.line += newlines
            self.line_start = self.pos + text.rindex("\n") + 1
        self.pos += len(text)

    def next_token(self) -> Token:
        """Get the next token from the source."""
        while self.pos < len(self.source):
            match = _TOKEN_RE.match(self.source, self.pos)
            if match is None:
                raise LexerError(
                    f"Unexpected character: {self.source[self.pos]!r}", self.line, self.column
                )

            kind = match.lastgroup if match.lastgroup != "unit" else "number"
            line, column = self.line, self.column

            if kind == "open_comment":
                raise LexerError("Unterminated multi-line comment", line, column)
            if kind == "open_string":
                raise LexerError("Unterminated string literal", line, column)

            self._consume(match.group(0))

            if kind in ("space", "line_comment", "block_comment"):
                continue

            if kind == "string":
                return Token(TokenType.STRING, _unescape(match.group(0)[1:-1]), line, column)

            if kind == "number":
                return self._number_token(match.group("number"), match.group("unit"), line, column)

            if kind == "word":
                word = match.group(0)
                if word.lower() in BOOLEAN_KEYWORDS:
                    return Token(TokenType.BOOLEAN, BOOLEAN_KEYWORDS[word.lower()], line, column)
                if word.lower() == "include":
                    return Token(TokenType.INCLUDE, word, line, column)
                return Token(TokenType.IDENTIFIER, word, line, column)

            return Token(_PUNCTUATION[match.group(0)], match.group(0), line, column)

        return Token(TokenType.EOF, "", self.line, self.column)

    @staticmethod
    def _number_token(number: str, unit: str | None, line: int, column: int) -> Token:
        value: int | float = float(number) if "." in number else int(number)
        if unit is None:
            return Token(TokenType.NUMBER, value, line, column)

        unit = unit.lower()
        if unit not in DURATION_UNITS:
            raise LexerError(f"Unknown duration unit: {unit}", line, column)
        return Token(TokenType.DURATION, value * DURATION_UNITS[unit], line, column)

    def tokenize(self) -> Iterator[Token]:
        """Generate all tokens from the source."""
        while True:
            token = self.next_token()
            yield token
            if token.type == TokenType.EOF:
                break

    def __iter__(self) -> Iterator[Token]:
        return self.tokenize()


def tokenize(source: str, filename: str = "<string>") -> list[Token]:
    """Convenience function to tokenize a source string."""
    return list(Lexer(source, filename))
