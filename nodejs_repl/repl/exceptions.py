"""Exceptions for REPL session operations."""


class ReplError(Exception):
    """Base exception for REPL session errors."""

    def __init__(self, message: str, session: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.session = session

    def __str__(self) -> str:
        if self.session:
            return f"{self.message} (session: {self.session})"
        return self.message


class NoActiveSession(ReplError):
    """Raised when an operation needs a live REPL process and none exists."""

    def __init__(self, session: str) -> None:
        super().__init__("No active Node.js REPL session", session)


class DisplayBufferMissing(ReplError):
    """Raised when a display buffer is requested for a session never started."""

    def __init__(self, session: str) -> None:
        super().__init__("No REPL buffer exists for this session", session)


class SpawnError(ReplError):
    """Raised when the interpreter process cannot be spawned."""

    def __init__(
        self,
        message: str,
        session: str | None = None,
        command: list[str] | None = None,
    ) -> None:
        super().__init__(message, session)
        self.command = command or []

    def __str__(self) -> str:
        parts = [self.message]
        if self.session:
            parts.append(f"(session: {self.session})")
        if self.command:
            parts.append(f"(command: {self.command[0]})")
        return " ".join(parts)


class VersionManagerUnavailable(ReplError):
    """Raised when a Node.js version switch is requested without a version manager."""

    def __init__(self, message: str = "No Node.js version manager is available") -> None:
        super().__init__(message)


class UnknownVersion(ReplError):
    """Raised when the version manager has no installation for a version."""
    pass
