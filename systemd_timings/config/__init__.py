"""
Configuration parsing module with nginx-like syntax support.
"""

from .lexer import Lexer, LexerError, Token, TokenType
from .loader import ConfigError, ConfigLoader
from .parser import ConfigParser, ParseError
from .schema import Config, TimingsConfig

__all__ = [
    "Lexer",
    "LexerError",
    "Token",
    "TokenType",
    "ConfigParser",
    "ParseError",
    "Config",
    "TimingsConfig",
    "ConfigError",
    "ConfigLoader",
]
