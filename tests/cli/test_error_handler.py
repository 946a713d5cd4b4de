"""Tests for error handler module."""

import pytest
import typer
from unittest.mock import patch

from nodejs_repl.cli.error_handler import (
    ConfigurationError,
    NodeReplError,
    NotFoundError,
    ValidationError,
    exit_code_for,
    get_error_context,
    handle_errors,
)
from nodejs_repl.cli.exit_codes import ExitCode
from nodejs_repl.repl.exceptions import (
    DisplayBufferMissing,
    NoActiveSession,
    ReplError,
    SpawnError,
    UnknownVersion,
    VersionManagerUnavailable,
)


class TestNodeReplError:
    """Test base NodeReplError class."""

    def test_basic_error(self) -> None:
        error = NodeReplError("Test error")
        assert error.message == "Test error"
        assert error.exit_code == ExitCode.GENERAL_ERROR
        assert error.details == {}

    def test_error_with_exit_code(self) -> None:
        error = NodeReplError("Test error", exit_code=ExitCode.SESSION_ERROR)
        assert error.exit_code == ExitCode.SESSION_ERROR

    def test_error_str_with_details(self) -> None:
        """Details are appended to the message."""
        error = NodeReplError("Test error", details={"key": "value"})
        assert "Test error" in str(error)
        assert "key=value" in str(error)

    def test_subclass_exit_codes(self) -> None:
        assert ConfigurationError("x").exit_code == ExitCode.CONFIGURATION_ERROR
        assert ValidationError("x").exit_code == ExitCode.INVALID_ARGUMENT
        assert NotFoundError("x").exit_code == ExitCode.NOT_FOUND


class TestExitCodeFor:
    """Test mapping of session-layer errors to exit codes."""

    def test_session_errors(self) -> None:
        assert exit_code_for(NoActiveSession("nodejs")) == ExitCode.SESSION_ERROR
        assert exit_code_for(DisplayBufferMissing("nodejs")) == ExitCode.SESSION_ERROR

    def test_spawn_error(self) -> None:
        error = SpawnError("No such file", session="nodejs", command=["nodex"])
        assert exit_code_for(error) == ExitCode.SPAWN_ERROR

    def test_version_errors(self) -> None:
        assert exit_code_for(VersionManagerUnavailable()) == ExitCode.NOT_FOUND
        assert exit_code_for(UnknownVersion("v99")) == ExitCode.NOT_FOUND

    def test_unmapped_error(self) -> None:
        assert exit_code_for(ReplError("boom")) == ExitCode.GENERAL_ERROR


class TestHandleErrors:
    """Test handle_errors decorator."""

    def test_successful_execution(self) -> None:
        @handle_errors
        def test_func():
            return "success"

        assert test_func() == "success"

    def test_node_repl_error_handling(self) -> None:
        @handle_errors
        def test_func():
            raise ConfigurationError("Test config error")

        with pytest.raises(typer.Exit) as exc_info:
            with patch("nodejs_repl.cli.error_handler.console"):
                test_func()

        assert exc_info.value.exit_code == ExitCode.CONFIGURATION_ERROR

    def test_repl_error_handling(self) -> None:
        """Errors from the session layer get their mapped exit code."""
        @handle_errors
        def test_func():
            raise NoActiveSession("nodejs")

        with pytest.raises(typer.Exit) as exc_info:
            with patch("nodejs_repl.cli.error_handler.console") as mock_console:
                test_func()

        assert exc_info.value.exit_code == ExitCode.SESSION_ERROR
        printed = [call.args[0] for call in mock_console.print.call_args_list]
        assert "nodejs" in printed[0]
        assert "No usable REPL session" in printed[1]

    def test_keyboard_interrupt_handling(self) -> None:
        @handle_errors
        def test_func():
            raise KeyboardInterrupt()

        with pytest.raises(typer.Exit) as exc_info:
            with patch("nodejs_repl.cli.error_handler.console"):
                test_func()

        assert exc_info.value.exit_code == ExitCode.CANCELLED

    def test_generic_exception_handling(self) -> None:
        @handle_errors
        def test_func():
            raise ValueError("Test error")

        with pytest.raises(typer.Exit) as exc_info:
            with patch("nodejs_repl.cli.error_handler.console"):
                test_func()

        assert exc_info.value.exit_code == ExitCode.GENERAL_ERROR

    def test_typer_exit_re_raised(self) -> None:
        @handle_errors
        def test_func():
            raise typer.Exit(code=42)

        with pytest.raises(typer.Exit) as exc_info:
            test_func()

        assert exc_info.value.exit_code == 42


class TestGetErrorContext:
    """Test get_error_context function."""

    def test_context_without_verbose(self) -> None:
        try:
            raise ValueError("Test error")
        except ValueError:
            context = get_error_context(verbose=False)
            assert "ValueError" in context or "Test error" in context

    def test_context_with_verbose(self) -> None:
        try:
            raise ValueError("Test error")
        except ValueError:
            context = get_error_context(verbose=True)
            assert "Traceback" in context

    def test_context_no_exception(self) -> None:
        assert isinstance(get_error_context(verbose=False), str)
