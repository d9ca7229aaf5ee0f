"""
Recursive descent parser for nginx-like configuration syntax.

Grammar:
    document    := (block | directive | include)*
    block       := IDENTIFIER [value] '{' (block | directive | include)* '}'
    directive   := IDENTIFIER value* ';'
    value       := STRING | NUMBER | DURATION | BOOLEAN | IDENTIFIER
    include     := 'include' STRING ';'
"""

import glob as glob_module
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .lexer import Lexer, Token, TokenType


VALUE_TOKENS = (
    TokenType.STRING,
    TokenType.NUMBER,
    TokenType.DURATION,
    TokenType.BOOLEAN,
    TokenType.IDENTIFIER,
)


class ParseError(Exception):
    """Exception raised for parser errors."""

    def __init__(self, message: str, token: Token | None = None):
        self.token = token
        if token:
            super().__init__(f"Line {token.line}, column {token.column}: {message}")
        else:
            super().__init__(message)


@dataclass
class Directive:
    """
    A configuration directive with a name and values.

    Examples:
        host "localhost";   -> Directive(name="host", values=["localhost"])
        periodic on;        -> Directive(name="periodic", values=[True])
    """

    name: str
    values: list[Any] = field(default_factory=list)
    line: int = 0

    @property
    def value(self) -> Any:
        """Get single value (first) or None."""
        return self.values[0] if self.values else None


@dataclass
class Block:
    """A configuration block: `type ["name"] { ... }`."""

    type: str
    name: str | None = None
    directives: list[Directive] = field(default_factory=list)
    blocks: list["Block"] = field(default_factory=list)
    line: int = 0

    def get_directive(self, name: str) -> Directive | None:
        """Get the last directive with the given name (later ones win)."""
        found = None
        for directive in self.directives:
            if directive.name == name:
                found = directive
        return found

    def get_value(self, name: str, default: Any = None) -> Any:
        directive = self.get_directive(name)
        if directive is None or directive.value is None:
            return default
        return directive.value

    def get_all_values(self, name: str) -> list[Any]:
        """Values of every directive with the given name, in order."""
        return [d.value for d in self.directives if d.name == name and d.value is not None]

    def get_block(self, type_name: str) -> "Block | None":
        for block in self.blocks:
            if block.type == type_name:
                return block
        return None

    def get_blocks(self, type_name: str) -> list["Block"]:
        return [b for b in self.blocks if b.type == type_name]


@dataclass
class ConfigDocument(Block):
    """Root document; a nameless block holding the top-level entries."""

    type: str = "<root>"
    filename: str = "<string>"

    def merge(self, other: Block) -> None:
        """Merge an included document into this one."""
        self.blocks.extend(other.blocks)
        self.directives.extend(other.directives)


class ConfigParser:
    """Recursive descent parser for nginx-like configuration."""

    def __init__(
        self,
        source: str,
        filename: str = "<string>",
        base_path: Path | None = None,
        included_files: frozenset[str] = frozenset(),
    ):
        self.tokens = list(Lexer(source, filename))
        self.index = 0
        self.filename = filename
        self.base_path = base_path or Path.cwd()
        self.included_files = included_files

    @property
    def current(self) -> Token:
        return self.tokens[self.index]

    def _advance(self) -> Token:
        token = self.tokens[self.index]
        if token.type != TokenType.EOF:
            self.index += 1
        return token

    def _expect(self, token_type: TokenType, message: str) -> Token:
        if self.current.type != token_type:
            raise ParseError(message, self.current)
        return self._advance()

    def parse(self) -> ConfigDocument:
        """Parse the entire configuration document."""
        doc = ConfigDocument(filename=self.filename)
        self._parse_body(doc, closing=TokenType.EOF)
        return doc

    def _parse_body(self, block: Block, closing: TokenType) -> None:
        """Parse entries into block until the closing token."""
        while self.current.type != closing:
            if self.current.type == TokenType.INCLUDE:
                included = self._parse_include()
                block.directives.extend(included.directives)
                block.blocks.extend(included.blocks)
            elif self.current.type == TokenType.IDENTIFIER:
                entry = self._parse_entry()
                if isinstance(entry, Block):
                    block.blocks.append(entry)
                else:
                    block.directives.append(entry)
            elif self.current.type == TokenType.EOF:
                raise ParseError(f"Expected '}}' to close '{block.type}' block", self.current)
            else:
                raise ParseError(
                    f"Expected block, directive, or include; got {self.current.type.name}",
                    self.current,
                )

    def _parse_entry(self) -> Block | Directive:
        """Parse either a block or a directive."""
        name_token = self._advance()
        name = str(name_token.value)

        values: list[Any] = []
        while self.current.type in VALUE_TOKENS:
            values.append(self._advance().value)

        if self.current.type == TokenType.SEMICOLON:
            self._advance()
            return Directive(name=name, values=values, line=name_token.line)

        if self.current.type != TokenType.LBRACE:
            raise ParseError(f"Expected '{{' or ';' after directive '{name}'", self.current)

        if len(values) > 1:
            raise ParseError(
                f"Block '{name}' has too many arguments before '{{'; expected 0 or 1",
                self.current,
            )

        self._advance()
        block = Block(
            type=name,
            name=str(values[0]) if values else None,
            line=name_token.line,
        )
        self._parse_body(block, closing=TokenType.RBRACE)
        self._advance()
        return block

    def _parse_include(self) -> ConfigDocument:
        """Parse an include directive and load the matching file(s)."""
        include_token = self._advance()
        path_token = self._expect(TokenType.STRING, "Expected file path after 'include'")
        self._expect(TokenType.SEMICOLON, "Expected ';' after include path")

        pattern = Path(str(path_token.value))
        if not pattern.is_absolute():
            pattern = self.base_path / pattern

        merged = ConfigDocument()
        # No match is not an error
        for path in sorted(glob_module.glob(str(pattern))):
            resolved = str(Path(path).resolve())
            if resolved in self.included_files:
                raise ParseError(f"Circular include detected: {path}", include_token)

            parser = ConfigParser(
                source=Path(path).read_text(),
                filename=path,
                base_path=Path(path).parent,
                included_files=self.included_files | {resolved},
            )
            merged.merge(parser.parse())

        return merged


def parse_config(
    source: str,
    filename: str = "<string>",
    base_path: Path | None = None,
) -> ConfigDocument:
    """Parse a configuration string."""
    return ConfigParser(source, filename, base_path).parse()


def parse_config_file(path: str | Path) -> ConfigDocument:
    """Parse a configuration file; includes resolve relative to it."""
    path = Path(path)
    resolved = str(path.resolve())
    parser = ConfigParser(path.read_text(), str(path), path.parent, frozenset({resolved}))
    return parser.parse()
