"""Token stream for compiled SQL templates, built on sqlglot's tokenizer.

sqlglot decides what is a string, a quoted identifier, a keyword or a
parameter for each dialect. This module only turns its tokens back into
source text the formatter can re-emit: every token keeps its exact source
slice, whether whitespace preceded it, and any comments sqlglot skipped
become tokens of their own. Numbered placeholders (``$1``, ``@1``) arrive
from sqlglot as a parameter sign followed by a number and are joined into
one placeholder token.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from sqlglot.dialects.dialect import Dialect as SqlglotDialect
from sqlglot.errors import TokenError
from sqlglot.tokens import Token as SqlglotToken
from sqlglot.tokens import TokenType

from playground.common.exceptions import FormatError
from playground.constants import Dialect, PlaceholderStyle


class TokenKind(Enum):
    WORD = "word"
    NUMBER = "number"
    STRING = "string"
    IDENTIFIER = "identifier"
    PLACEHOLDER = "placeholder"
    LITERAL = "literal"
    LINE_COMMENT = "line_comment"
    BLOCK_COMMENT = "block_comment"
    PUNCTUATION = "punctuation"


@dataclass(frozen=True)
class Token:
    """One lexical unit of a SQL template.

    Attributes:
        kind: Token category
        text: Source text of the token
        position: Offset of the token in the template
        space_before: Whether whitespace preceded the token
        token_type: sqlglot token type, None for comments and inlined literals
    """

    kind: TokenKind
    text: str
    position: int
    space_before: bool = False
    token_type: Optional[TokenType] = None

    @property
    def placeholder_index(self) -> int:
        """1-based number of a ``$n`` / ``@n`` placeholder."""
        return int(self.text[1:])

    @property
    def is_keyword(self) -> bool:
        return self.kind is TokenKind.WORD and self.token_type is not TokenType.VAR


_STRING_TYPES = frozenset({
    TokenType.STRING,
    TokenType.NATIONAL_STRING,
    TokenType.RAW_STRING,
    TokenType.BIT_STRING,
    TokenType.HEX_STRING,
    TokenType.BYTE_STRING,
    TokenType.HEREDOC_STRING,
})

_NUMBERED_PLACEHOLDER = {
    PlaceholderStyle.DOLLAR: re.compile(r"\$[1-9][0-9]*"),
    PlaceholderStyle.AT: re.compile(r"@[1-9][0-9]*"),
}


class SqlLexer:
    """Tokenizer for one dialect.

    Example:
        >>> tokens = SqlLexer(Dialect.POSTGRES).tokenize('select "a" from "t" where "a" = $1')
        >>> [t.kind.value for t in tokens][-1]
        'placeholder'
    """

    def __init__(self, dialect: Dialect):
        self.dialect = Dialect(dialect)
        self._sqlglot_dialect = SqlglotDialect.get_or_raise(self.dialect.sqlglot_dialect)
        self._style = self.dialect.placeholder_style

    def tokenize(self, sql: str) -> List[Token]:
        """Split ``sql`` into tokens, dropping whitespace.

        Raises:
            FormatError: If sqlglot cannot tokenize the template, for
                example on an unterminated string or identifier
        """
        try:
            raw_tokens = self._sqlglot_dialect.tokenizer.tokenize(sql)
        except TokenError as exc:
            raise FormatError(
                f"Cannot tokenize SQL: {exc}",
                details={"dialect": self.dialect.value},
                cause=exc,
            ) from exc

        tokens: List[Token] = []
        pos = 0
        i = 0
        while i < len(raw_tokens):
            raw = raw_tokens[i]
            space_before = self._take_gap(sql, pos, raw.start, tokens)

            end = raw.end + 1
            kind = self._classify(raw, sql[raw.start:end])
            token_type = raw.token_type

            following = raw_tokens[i + 1] if i + 1 < len(raw_tokens) else None
            if self._joins_numbered_placeholder(sql, raw, following):
                end = following.end + 1
                kind = TokenKind.PLACEHOLDER
                i += 1

            text = sql[raw.start:end]
            if kind is TokenKind.WORD:
                # Multi-word keywords such as ``order by`` are one sqlglot token.
                text = " ".join(text.split())
            tokens.append(Token(kind, text, raw.start, space_before, token_type))
            pos = end
            i += 1

        self._take_gap(sql, pos, len(sql), tokens)
        return tokens

    def _classify(self, raw: SqlglotToken, text: str) -> TokenKind:
        token_type = raw.token_type
        if token_type in _STRING_TYPES:
            return TokenKind.STRING
        if token_type is TokenType.IDENTIFIER:
            return TokenKind.IDENTIFIER
        if token_type is TokenType.NUMBER:
            return TokenKind.NUMBER
        if token_type is TokenType.PLACEHOLDER and self._style is PlaceholderStyle.QUESTION and text == "?":
            return TokenKind.PLACEHOLDER
        if self._style in _NUMBERED_PLACEHOLDER and _NUMBERED_PLACEHOLDER[self._style].fullmatch(text):
            return TokenKind.PLACEHOLDER
        if text[:1].isalpha() or text[:1] == "_":
            return TokenKind.WORD
        return TokenKind.PUNCTUATION

    def _joins_numbered_placeholder(self, sql: str, raw: SqlglotToken, following: Optional[SqlglotToken]) -> bool:
        pattern = _NUMBERED_PLACEHOLDER.get(self._style)
        if pattern is None or following is None or following.token_type is not TokenType.NUMBER:
            return False
        if following.start != raw.end + 1:
            return False
        return pattern.fullmatch(sql[raw.start:following.end + 1]) is not None

    @staticmethod
    def _take_gap(sql: str, start: int, end: int, tokens: List[Token]) -> bool:
        """Turn the text sqlglot skipped between two tokens into a comment token.

        Returns whether the next token is preceded by whitespace or a comment.
        """
        gap = sql[start:end]
        comment = gap.strip()
        if comment:
            kind = TokenKind.BLOCK_COMMENT if comment.endswith("*/") else TokenKind.LINE_COMMENT
            tokens.append(Token(kind, comment, start + gap.index(comment[0]), gap[:1].isspace()))
        return bool(gap)
