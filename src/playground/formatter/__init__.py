"""Dialect-aware SQL formatting of compiled queries."""

from playground.formatter.formatter import SqlFormatter
from playground.formatter.lexer import SqlLexer, Token, TokenKind
from playground.formatter.literals import render_literal

__all__ = [
    "SqlFormatter",
    "SqlLexer",
    "Token",
    "TokenKind",
    "render_literal",
]
