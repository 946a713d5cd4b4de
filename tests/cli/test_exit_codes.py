"""Tests for exit codes module."""

import pytest

from nodejs_repl.cli.exit_codes import ExitCode, describe


class TestExitCode:
    """Test exit code values."""

    def test_unix_conventions(self) -> None:
        assert ExitCode.SUCCESS == 0
        assert ExitCode.GENERAL_ERROR == 1
        assert ExitCode.CANCELLED == 130

    def test_session_and_spawn_codes(self) -> None:
        """Session and spawn failures have their own codes."""
        assert ExitCode.SESSION_ERROR == 3
        assert ExitCode.SPAWN_ERROR == 4

    def test_codes_are_distinct(self) -> None:
        assert len({int(code) for code in ExitCode}) == len(ExitCode)

    @pytest.mark.parametrize("code", list(ExitCode))
    def test_every_code_has_description(self, code: ExitCode) -> None:
        assert code.description
        assert describe(int(code)) == code.description


class TestDescribe:
    """Test describe()."""

    def test_spawn_error(self) -> None:
        assert "started" in describe(ExitCode.SPAWN_ERROR)

    def test_unknown_code(self) -> None:
        text = describe(999)
        assert "Unknown" in text
        assert "999" in text
