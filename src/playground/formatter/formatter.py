"""SQL formatter for compiled queries.

Formatting works on the sqlglot token stream produced by ``SqlLexer``
rather than on a parsed tree, so any template a builder can emit is
formatted without the formatter needing to understand it. Three passes
run in order:

1. Placeholders are checked against the parameters and, when requested,
   replaced by typed literals.
2. Unquoted keywords are re-cased. A word counts as a keyword when the
   sqlglot tokenizer of the dialect gives it a keyword token type.
3. The query is laid out: kept on one line when it fits ``line_width``,
   otherwise broken so each top-level clause starts a line and each item
   of its body is indented on a line of its own.
"""

from dataclasses import replace
from typing import Any, Iterator, List, Optional, Sequence, Tuple

from sqlglot.tokens import TokenType

from playground.common.exceptions import ErrorCode, format_error
from playground.constants import Dialect, KeywordCase
from playground.formatter.lexer import SqlLexer, Token, TokenKind
from playground.formatter.literals import render_literal
from playground.logging import get_logger
from playground.settings import FormatterSettings, get_settings
from playground.types import CompiledQuery, FormatOptions
from playground.utils.decorators import traced

logger = get_logger(__name__)

# Multi-word clauses come before their single-word prefixes.
_CLAUSES: Tuple[Tuple[TokenType, ...], ...] = (
    (TokenType.INSERT, TokenType.INTO),
    (TokenType.DELETE, TokenType.FROM),
    (TokenType.INSERT,),
    (TokenType.DELETE,),
    (TokenType.UNION, TokenType.ALL),
    (TokenType.LEFT, TokenType.OUTER, TokenType.JOIN),
    (TokenType.RIGHT, TokenType.OUTER, TokenType.JOIN),
    (TokenType.FULL, TokenType.OUTER, TokenType.JOIN),
    (TokenType.INNER, TokenType.JOIN),
    (TokenType.LEFT, TokenType.JOIN),
    (TokenType.RIGHT, TokenType.JOIN),
    (TokenType.FULL, TokenType.JOIN),
    (TokenType.CROSS, TokenType.JOIN),
    (TokenType.SELECT,),
    (TokenType.FROM,),
    (TokenType.JOIN,),
    (TokenType.WHERE,),
    (TokenType.GROUP_BY,),
    (TokenType.HAVING,),
    (TokenType.ORDER_BY,),
    (TokenType.LIMIT,),
    (TokenType.OFFSET,),
    (TokenType.FETCH,),
    (TokenType.VALUES,),
    (TokenType.UPDATE,),
    (TokenType.SET,),
    (TokenType.RETURNING,),
    (TokenType.UNION,),
)

_CONDITION_CLAUSES = frozenset({TokenType.WHERE, TokenType.HAVING})

Segment = Tuple[List[Token], List[Token]]


class SqlFormatter:
    """Dialect-aware SQL formatter.

    Attributes:
        default_options: Options used when a call passes none

    Example:
        >>> formatter = SqlFormatter()
        >>> formatter.format('select "id" from "person" where "id" = $1', [7], Dialect.POSTGRES,
        ...                  FormatOptions(inline_parameters=True))
        'select "id" from "person" where "id" = 7'
    """

    def __init__(self, default_options: Optional[FormatOptions] = None):
        self.default_options = default_options or FormatOptions()

    @classmethod
    def from_settings(cls, settings: Optional[FormatterSettings] = None) -> "SqlFormatter":
        settings = settings or get_settings().formatter
        return cls(default_options=settings.default_options)

    def format_query(
        self,
        compiled: CompiledQuery,
        dialect: Dialect,
        options: Optional[FormatOptions] = None,
    ) -> str:
        """Format a compiled query, refusing one produced for another dialect.

        Raises:
            FormatError: DIALECT_MISMATCH if ``compiled`` was not produced
                for ``dialect``, or any error raised by ``format``
        """
        dialect = Dialect(dialect)
        if compiled.dialect is not dialect:
            raise format_error(
                f"Query compiled for {compiled.dialect.value} cannot be formatted as {dialect.value}",
                error_code=ErrorCode.DIALECT_MISMATCH,
                query_dialect=compiled.dialect.value,
                dialect=dialect.value,
            )
        return self.format(compiled.sql, compiled.parameters, dialect, options)

    @traced(
        "playground.formatter.format",
        attribute_getter=lambda self, sql, parameters, dialect, options=None: {
            "playground.dialect": Dialect(dialect).value,
            "playground.sql.length": len(sql),
        },
    )
    def format(
        self,
        sql: str,
        parameters: Sequence[Any],
        dialect: Dialect,
        options: Optional[FormatOptions] = None,
    ) -> str:
        """Format a SQL template for display.

        Args:
            sql: SQL template with dialect placeholders
            parameters: Parameter values in placeholder order
            dialect: Dialect of the template
            options: Format options, defaults to ``default_options``

        Returns:
            Formatted SQL text

        Raises:
            FormatError: Unterminated literal (FORMAT_ERROR), placeholders
                not matching the parameters (PARAMETER_MISMATCH), or a
                parameter with no literal form (UNSUPPORTED_PARAMETER)
        """
        dialect = Dialect(dialect)
        options = options or self.default_options
        parameters = tuple(parameters)

        tokens = SqlLexer(dialect).tokenize(sql)
        _check_placeholders(tokens, parameters, dialect)

        if options.inline_parameters:
            tokens = _inline_parameters(tokens, parameters, dialect)
        if options.keyword_case is not KeywordCase.PRESERVE:
            tokens = _apply_keyword_case(tokens, options.keyword_case)

        return _layout(tokens, options)


def _check_placeholders(tokens: Sequence[Token], parameters: Tuple[Any, ...], dialect: Dialect) -> None:
    placeholders = [token for token in tokens if token.kind is TokenKind.PLACEHOLDER]

    if dialect.placeholder_style.is_numbered:
        used = sorted({token.placeholder_index for token in placeholders})
        if used != list(range(1, len(parameters) + 1)):
            raise format_error(
                f"Placeholders {used} do not match {len(parameters)} parameter(s)",
                error_code=ErrorCode.PARAMETER_MISMATCH,
                placeholders=used,
                parameters=len(parameters),
            )
    elif len(placeholders) != len(parameters):
        raise format_error(
            f"Found {len(placeholders)} placeholder(s) for {len(parameters)} parameter(s)",
            error_code=ErrorCode.PARAMETER_MISMATCH,
            placeholders=len(placeholders),
            parameters=len(parameters),
        )


def _inline_parameters(tokens: Sequence[Token], parameters: Tuple[Any, ...], dialect: Dialect) -> List[Token]:
    positional: Iterator[Any] = iter(parameters)
    numbered = dialect.placeholder_style.is_numbered
    result = []

    for token in tokens:
        if token.kind is TokenKind.PLACEHOLDER:
            value = parameters[token.placeholder_index - 1] if numbered else next(positional)
            token = replace(
                token, kind=TokenKind.LITERAL, text=render_literal(value, dialect), token_type=None
            )
        result.append(token)
    return result


def _apply_keyword_case(tokens: Sequence[Token], case: KeywordCase) -> List[Token]:
    result = []
    for token in tokens:
        # Inlined null, true and false are cased like keywords.
        inlined_word = token.kind is TokenKind.LITERAL and token.text.isalpha()
        if token.is_keyword or inlined_word:
            text = token.text.upper() if case is KeywordCase.UPPER else token.text.lower()
            token = replace(token, text=text)
        result.append(token)
    return result


def _layout(tokens: Sequence[Token], options: FormatOptions) -> str:
    has_line_comment = any(token.kind is TokenKind.LINE_COMMENT for token in tokens)
    if not has_line_comment:
        single_line = _join(tokens)
        if len(single_line) <= options.line_width:
            return single_line

    indent = options.indent
    lines: List[str] = []
    for head, body in _split_clauses(tokens):
        if not head:
            lines.append(_join(body))
            continue

        lines.append(_join(head))
        condition_clause = head[0].token_type in _CONDITION_CLAUSES
        for item in _split_items(body, split_conditions=condition_clause):
            lines.append(indent + _join(item, continuation=indent))

    return "\n".join(line for line in lines if line)


def _join(tokens: Sequence[Token], continuation: str = "") -> str:
    """Render tokens on one line, keeping single spaces where the source had whitespace."""
    parts: List[str] = []
    previous: Optional[Token] = None
    for token in tokens:
        if previous is not None:
            if previous.kind is TokenKind.LINE_COMMENT:
                parts.append("\n" + continuation)
            elif token.space_before:
                parts.append(" ")
        parts.append(token.text)
        previous = token
    return "".join(parts)


def _depth_change(token: Token) -> int:
    if token.token_type is TokenType.L_PAREN:
        return 1
    if token.token_type is TokenType.R_PAREN:
        return -1
    return 0


def _split_clauses(tokens: Sequence[Token]) -> List[Segment]:
    """Split tokens into (clause head, clause body) pairs at paren depth 0."""
    segments: List[Segment] = []
    head: List[Token] = []
    body: List[Token] = []
    depth = 0
    i = 0

    while i < len(tokens):
        token = tokens[i]
        clause = _match_clause(tokens, i) if depth == 0 else None

        if clause:
            if head or body:
                segments.append((head, body))
            head = list(tokens[i:i + len(clause)])
            body = []
            i += len(clause)
            if clause == (TokenType.SELECT,):
                i = _absorb_select_modifiers(tokens, i, head)
            continue

        depth = max(depth + _depth_change(token), 0)
        body.append(token)
        i += 1

    if head or body:
        segments.append((head, body))
    return segments


def _match_clause(tokens: Sequence[Token], start: int) -> Optional[Tuple[TokenType, ...]]:
    for clause in _CLAUSES:
        words = tokens[start:start + len(clause)]
        if len(words) == len(clause) and all(t.token_type is w for t, w in zip(words, clause)):
            return clause
    return None


def _absorb_select_modifiers(tokens: Sequence[Token], i: int, head: List[Token]) -> int:
    """Keep ``distinct`` and ``top (n)`` on the ``select`` line."""
    while i < len(tokens) and tokens[i].token_type in (TokenType.DISTINCT, TokenType.ALL):
        head.append(tokens[i])
        i += 1

    if i < len(tokens) and tokens[i].token_type is TokenType.TOP:
        head.append(tokens[i])
        i += 1
        if i < len(tokens) and tokens[i].token_type is TokenType.L_PAREN:
            depth = 0
            while i < len(tokens):
                head.append(tokens[i])
                depth += _depth_change(tokens[i])
                i += 1
                if depth == 0:
                    break
        elif i < len(tokens):
            head.append(tokens[i])
            i += 1
    return i


def _split_items(body: Sequence[Token], split_conditions: bool) -> List[List[Token]]:
    """Split a clause body at top-level commas, and at ``and`` / ``or`` in conditions."""
    items: List[List[Token]] = []
    current: List[Token] = []
    depth = 0
    in_between = False

    for token in body:
        depth = max(depth + _depth_change(token), 0)

        if depth == 0 and split_conditions:
            if token.token_type is TokenType.BETWEEN:
                in_between = True
            elif token.token_type in (TokenType.AND, TokenType.OR):
                if in_between and token.token_type is TokenType.AND:
                    in_between = False
                elif current:
                    items.append(current)
                    current = []

        current.append(token)

        if depth == 0 and token.token_type is TokenType.COMMA:
            items.append(current)
            current = []

    if current:
        items.append(current)
    return items
