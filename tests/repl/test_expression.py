"""Tests for locating source fragments around a cursor."""

from nodejs_repl.repl.expression import current_line, last_expression


class TestCurrentLine:
    """Test current_line function."""

    SOURCE = "const a = 1;\nconst b = 2;\nconsole.log(a + b);"

    def test_first_line(self) -> None:
        assert current_line(self.SOURCE, 0) == "const a = 1;"

    def test_middle_line(self) -> None:
        assert current_line(self.SOURCE, 15) == "const b = 2;"

    def test_point_at_end(self) -> None:
        assert current_line(self.SOURCE, len(self.SOURCE)) == "console.log(a + b);"

    def test_point_out_of_range(self) -> None:
        assert current_line(self.SOURCE, 1000) == "console.log(a + b);"

    def test_empty_source(self) -> None:
        assert current_line("", 0) == ""


class TestLastExpression:
    """Test last_expression function."""

    def _at_end(self, source: str) -> str:
        return last_expression(source, len(source))

    def test_identifier(self) -> None:
        assert self._at_end("a + b") == "b"

    def test_member_call(self) -> None:
        assert self._at_end("foo.bar(1, 2)") == "foo.bar(1, 2)"

    def test_trailing_semicolon_and_whitespace(self) -> None:
        source = "let x = 1;\nconsole.log(x);  \n"
        assert self._at_end(source) == "console.log(x)"

    def test_optional_chaining(self) -> None:
        assert self._at_end("foo?.bar") == "foo?.bar"

    def test_index(self) -> None:
        assert self._at_end("x = arr[0]") == "arr[0]"

    def test_new_expression(self) -> None:
        assert self._at_end("const d = new Date()") == "new Date()"

    def test_parenthesized(self) -> None:
        assert self._at_end("x = (1 + 2)") == "(1 + 2)"

    def test_string_with_brackets(self) -> None:
        """Brackets inside string literals do not count."""
        assert self._at_end("log(')')") == "log(')')"

    def test_chained_calls(self) -> None:
        source = "[1, 2].map(x => x * 2).filter(Boolean)"
        assert self._at_end(source) == source

    def test_unbalanced(self) -> None:
        assert self._at_end("foo)") == ""

    def test_point_inside_source(self) -> None:
        source = "a.b\nc.d"
        assert last_expression(source, 3) == "a.b"

    def test_nothing_before_point(self) -> None:
        assert last_expression("   ", 3) == ""
