"""Unit tests for the SQL formatter."""

from datetime import date, datetime
from decimal import Decimal

import pytest
from sqlglot.tokens import TokenType

from playground.common.exceptions import ErrorCode, FormatError
from playground.constants import Dialect, KeywordCase
from playground.formatter import SqlFormatter, SqlLexer, TokenKind, render_literal
from playground.settings import FormatterSettings
from playground.types import CompiledQuery, FormatOptions

SCENARIO_C_SQL = 'select "col" from "table" where "id" = $1'


@pytest.fixture
def formatter():
    return SqlFormatter()


class TestPlaceholders:
    """Placeholder retention, inlining and pairing checks."""

    def test_placeholders_are_kept_by_default(self, formatter):
        assert formatter.format(SCENARIO_C_SQL, [7], Dialect.POSTGRES) == SCENARIO_C_SQL

    def test_inline_parameters(self, formatter):
        result = formatter.format(
            SCENARIO_C_SQL, [7], Dialect.POSTGRES, FormatOptions(inline_parameters=True)
        )

        assert result == 'select "col" from "table" where "id" = 7'

    def test_inline_positional_placeholders_in_order(self, formatter):
        result = formatter.format(
            "select `a` from `t` where `a` = ? and `b` = ?",
            ["x", None],
            Dialect.MYSQL,
            FormatOptions(inline_parameters=True),
        )

        assert result == "select `a` from `t` where `a` = 'x' and `b` = null"

    def test_numbered_placeholder_may_repeat(self, formatter):
        result = formatter.format(
            'select "a" from "t" where "a" = $1 or "b" = $1',
            [3],
            Dialect.POSTGRES,
            FormatOptions(inline_parameters=True),
        )

        assert result == 'select "a" from "t" where "a" = 3 or "b" = 3'

    def test_question_mark_in_string_is_not_a_placeholder(self, formatter):
        sql = "select `a` from `t` where `a` = '?' and `b` = ?"

        assert formatter.format(sql, [1], Dialect.MYSQL) == sql

    @pytest.mark.parametrize(
        "sql, parameters, dialect",
        [
            ('select "a" from "t" where "a" = $1', [], Dialect.POSTGRES),
            ('select "a" from "t" where "a" = $1 and "b" = $3', [1, 2], Dialect.POSTGRES),
            ("select [a] from [t] where [a] = @2", [1], Dialect.MSSQL),
            ("select `a` from `t` where `a` = ?", [1, 2], Dialect.MYSQL),
            ('select "a" from "t"', [1], Dialect.SQLITE),
        ],
    )
    def test_pairing_mismatch(self, formatter, sql, parameters, dialect):
        with pytest.raises(FormatError) as exc_info:
            formatter.format(sql, parameters, dialect)

        assert exc_info.value.error_code is ErrorCode.PARAMETER_MISMATCH

    def test_unterminated_literal(self, formatter):
        with pytest.raises(FormatError) as exc_info:
            formatter.format("select 'abc from t", [], Dialect.POSTGRES)

        assert exc_info.value.error_code is ErrorCode.FORMAT_ERROR
        assert exc_info.value.details["dialect"] == "postgres"

    def test_unterminated_identifier(self, formatter):
        with pytest.raises(FormatError) as exc_info:
            formatter.format("select [a from t", [], Dialect.MSSQL)

        assert exc_info.value.error_code is ErrorCode.FORMAT_ERROR
        assert exc_info.value.details["dialect"] == "mssql"


class TestLiterals:
    """Typed literal rendering per dialect."""

    @pytest.mark.parametrize(
        "dialect, expected",
        [
            (Dialect.POSTGRES, "true"),
            (Dialect.MYSQL, "true"),
            (Dialect.SQLITE, "1"),
            (Dialect.MSSQL, "1"),
        ],
    )
    def test_booleans(self, dialect, expected):
        assert render_literal(True, dialect) == expected

    def test_false_on_mssql(self):
        assert render_literal(False, Dialect.MSSQL) == "0"

    def test_strings_double_single_quotes(self):
        assert render_literal("O'Reilly", Dialect.POSTGRES) == "'O''Reilly'"

    def test_mysql_escapes_backslash(self):
        assert render_literal("a\\b'c", Dialect.MYSQL) == "'a\\\\b''c'"

    def test_postgres_keeps_backslash(self):
        assert render_literal("a\\b", Dialect.POSTGRES) == "'a\\b'"

    @pytest.mark.parametrize(
        "value, expected",
        [
            (None, "null"),
            (42, "42"),
            (-1.5, "-1.5"),
            (Decimal("10.50"), "10.50"),
            (date(2024, 1, 2), "'2024-01-02'"),
            (datetime(2024, 1, 2, 3, 4, 5), "'2024-01-02 03:04:05'"),
        ],
    )
    def test_scalars(self, value, expected):
        assert render_literal(value, Dialect.POSTGRES) == expected

    @pytest.mark.parametrize(
        "dialect, expected",
        [
            (Dialect.POSTGRES, "'\\x0aff'::bytea"),
            (Dialect.MYSQL, "X'0AFF'"),
            (Dialect.SQLITE, "X'0AFF'"),
            (Dialect.MSSQL, "0x0AFF"),
        ],
    )
    def test_bytes(self, dialect, expected):
        assert render_literal(b"\x0a\xff", dialect) == expected

    @pytest.mark.parametrize("value", [float("nan"), float("inf"), Decimal("NaN"), object(), [1]])
    def test_unsupported_values(self, value):
        with pytest.raises(FormatError) as exc_info:
            render_literal(value, Dialect.POSTGRES)

        assert exc_info.value.error_code is ErrorCode.UNSUPPORTED_PARAMETER

    def test_unsupported_value_only_fails_when_inlined(self, formatter):
        sql = 'select "a" from "t" where "a" = $1'
        parameters = [float("nan")]

        assert formatter.format(sql, parameters, Dialect.POSTGRES) == sql
        with pytest.raises(FormatError):
            formatter.format(sql, parameters, Dialect.POSTGRES, FormatOptions(inline_parameters=True))


class TestKeywordCase:
    """Keyword casing leaves identifiers, strings and placeholders alone."""

    def test_upper(self, formatter):
        result = formatter.format(
            'select "select" from "t" where "a" = \'from\' and "b" is null',
            [],
            Dialect.POSTGRES,
            FormatOptions(keyword_case=KeywordCase.UPPER),
        )

        assert result == 'SELECT "select" FROM "t" WHERE "a" = \'from\' AND "b" IS NULL'

    def test_lower(self, formatter):
        result = formatter.format(
            'SELECT "A" FROM "T" ORDER BY "A" DESC',
            [],
            Dialect.POSTGRES,
            FormatOptions(keyword_case="lower"),
        )

        assert result == 'select "A" from "T" order by "A" desc'

    def test_inlined_null_follows_case(self, formatter):
        result = formatter.format(
            "select `a` from `t` where `a` = ?",
            [None],
            Dialect.MYSQL,
            FormatOptions(keyword_case=KeywordCase.UPPER, inline_parameters=True),
        )

        assert result == "SELECT `a` FROM `t` WHERE `a` = NULL"

    def test_unquoted_names_are_not_keywords(self, formatter):
        result = formatter.format(
            "select id from person", [], Dialect.POSTGRES, FormatOptions(keyword_case=KeywordCase.UPPER)
        )

        assert result == "SELECT id FROM person"


class TestLayout:
    """Single-line and clause-per-line layouts."""

    def test_short_query_stays_on_one_line(self, formatter):
        sql = 'select  "a",\n  "b"   from "t"'

        assert formatter.format(sql, [], Dialect.POSTGRES) == 'select "a", "b" from "t"'

    def test_long_query_breaks_into_clauses(self, formatter):
        sql = 'select "id", "first_name", "last_name" from "person" where "id" = $1 and "age" > $2'

        result = formatter.format(sql, [1, 2], Dialect.POSTGRES, FormatOptions(line_width=40))

        assert result == (
            "select\n"
            '  "id",\n'
            '  "first_name",\n'
            '  "last_name"\n'
            "from\n"
            '  "person"\n'
            "where\n"
            '  "id" = $1\n'
            '  and "age" > $2'
        )

    def test_indent_width_and_tabs(self, formatter):
        sql = 'select "a" from "t"'

        four = formatter.format(sql, [], Dialect.POSTGRES, FormatOptions(line_width=5, indent_width=4))
        tabs = formatter.format(sql, [], Dialect.POSTGRES, FormatOptions(line_width=5, use_tabs=True))

        assert four == 'select\n    "a"\nfrom\n    "t"'
        assert tabs == 'select\n\t"a"\nfrom\n\t"t"'

    def test_multi_word_clauses_and_top(self, formatter):
        sql = "select top (@1) [id], [name] from [person] order by [id]"

        result = formatter.format(sql, [5], Dialect.MSSQL, FormatOptions(line_width=20))

        assert result == (
            "select top (@1)\n"
            "  [id],\n"
            "  [name]\n"
            "from\n"
            "  [person]\n"
            "order by\n"
            "  [id]"
        )

    def test_delete_from_is_one_clause(self, formatter):
        result = formatter.format(
            'delete from "person" where "id" = $1', [1], Dialect.POSTGRES, FormatOptions(line_width=10)
        )

        assert result == 'delete from\n  "person"\nwhere\n  "id" = $1'

    def test_parentheses_keep_their_contents_together(self, formatter):
        sql = 'select "a" from "t" where "a" in ($1, $2) and ("b" = $3 or "c" = $4)'

        result = formatter.format(sql, [1, 2, 3, 4], Dialect.POSTGRES, FormatOptions(line_width=20))

        assert result.splitlines()[-2:] == ['  "a" in ($1, $2)', '  and ("b" = $3 or "c" = $4)']

    def test_format_is_deterministic(self, formatter):
        sql = "insert into `person` (`a`, `b`) values (?, ?), (?, ?)"
        options = FormatOptions(line_width=20, inline_parameters=True)

        first = formatter.format(sql, [1, "x", 2, "y"], Dialect.MYSQL, options)
        second = formatter.format(sql, [1, "x", 2, "y"], Dialect.MYSQL, options)

        assert first == second
        assert first.splitlines()[-2:] == ["  (1, 'x'),", "  (2, 'y')"]


class TestFormatQuery:
    """Formatting of compiled queries."""

    def test_dialect_mismatch(self, formatter):
        compiled = CompiledQuery(sql='select "a" from "t"', parameters=[], dialect=Dialect.POSTGRES)

        with pytest.raises(FormatError) as exc_info:
            formatter.format_query(compiled, Dialect.MYSQL)

        assert exc_info.value.error_code is ErrorCode.DIALECT_MISMATCH

    def test_uses_default_options(self):
        formatter = SqlFormatter(default_options=FormatOptions(inline_parameters=True))
        compiled = CompiledQuery(sql=SCENARIO_C_SQL, parameters=[7], dialect=Dialect.POSTGRES)

        assert formatter.format_query(compiled, Dialect.POSTGRES).endswith('"id" = 7')

    def test_from_settings(self):
        formatter = SqlFormatter.from_settings(FormatterSettings(keyword_case="upper", line_width=120))

        assert formatter.default_options.keyword_case is KeywordCase.UPPER
        assert formatter.default_options.line_width == 120

    def test_options_accept_camel_case(self):
        options = FormatOptions.model_validate({"inlineParameters": True, "indentWidth": 4})

        assert options.inline_parameters is True
        assert options.indent == "    "


class TestLexer:
    """Token boundaries the formatter relies on."""

    def test_token_kinds(self):
        tokens = SqlLexer(Dialect.POSTGRES).tokenize("select \"a b\", 'c''d' from t where x = $12 -- note")

        kinds = [token.kind for token in tokens]
        assert kinds == [
            TokenKind.WORD,
            TokenKind.IDENTIFIER,
            TokenKind.PUNCTUATION,
            TokenKind.STRING,
            TokenKind.WORD,
            TokenKind.WORD,
            TokenKind.WORD,
            TokenKind.WORD,
            TokenKind.PUNCTUATION,
            TokenKind.PLACEHOLDER,
            TokenKind.LINE_COMMENT,
        ]
        assert tokens[0].token_type is TokenType.SELECT
        assert tokens[3].text == "'c''d'"
        assert tokens[9].placeholder_index == 12
        assert tokens[10].text == "-- note"

    def test_mssql_variable_is_not_a_placeholder(self):
        tokens = SqlLexer(Dialect.MSSQL).tokenize("select @name, @1")

        placeholders = [t for t in tokens if t.kind is TokenKind.PLACEHOLDER]
        assert [t.text for t in placeholders] == ["@1"]

    def test_mssql_variable_survives_formatting(self, formatter):
        sql = "select [a] from [t] where [a] = @name and [b] = @1"

        assert formatter.format(sql, [1], Dialect.MSSQL) == sql

    def test_escaped_bracket_in_identifier(self):
        tokens = SqlLexer(Dialect.MSSQL).tokenize("select [a]]b]")

        assert tokens[1].kind is TokenKind.IDENTIFIER
        assert tokens[1].text == "[a]]b]"

    def test_multi_word_keyword_is_one_token(self):
        tokens = SqlLexer(Dialect.POSTGRES).tokenize('select "a" from "t" group   by "a"')

        assert tokens[-2].text == "group by"
        assert tokens[-2].token_type is TokenType.GROUP_BY
        assert tokens[-2].is_keyword

    def test_block_comment_is_kept(self, formatter):
        sql = 'select "a" /* note */ from "t"'

        assert formatter.format(sql, [], Dialect.POSTGRES) == sql
