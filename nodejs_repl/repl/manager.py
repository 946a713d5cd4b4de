"""Node.js REPL Session Manager.

Keeps a registry of named REPL sessions, each with at most one live
interpreter process and one display buffer. Processes are started lazily,
reused while alive and replaced on reset. A process that exits on its own is
detached and closed once its output ends or its session is next accessed.
"""

from __future__ import annotations

import asyncio
import logging
import os
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Optional

from nodejs_repl.config import ReplSettings, load_project_settings, save_project_settings

from .command import (
    EXIT_COMMAND,
    INTERRUPT_BYTE,
    build_environment,
    build_invocation,
    load_file_command,
    repl_code,
    wrap_input,
)
from .display import DisplayHost, MemoryDisplayHost, ReplBuffer
from .exceptions import DisplayBufferMissing, NoActiveSession, VersionManagerUnavailable
from .expression import current_line, last_expression
from .process import ProcessSpawner, PtySpawner, ReplProcess
from .sanitizer import EchoFilter, OutputSanitizer
from .versions import VersionManager

logger = logging.getLogger(__name__)

DEFAULT_SESSION = "nodejs"


@dataclass
class Session:
    """One named REPL: its process, display buffer and launch parameters."""

    name: str
    buffer_id: str
    prompt: str
    command: Optional[str] = None
    args: Optional[list[str]] = None
    env_overrides: dict[str, str] = field(default_factory=dict)
    cwd: Optional[Path] = None
    process: Optional[ReplProcess] = None
    sanitizer: Optional[OutputSanitizer] = None
    echo: EchoFilter = field(default_factory=EchoFilter)
    process_echoes: bool = True


def _terminal_columns() -> int:
    return shutil.get_terminal_size().columns


class SessionManager:
    """Owns every REPL session and the processes behind them.

    All methods are meant to be called from one asyncio event loop; output
    callbacks run on the same loop, so session state needs no locking.

    Example:
        manager = SessionManager(settings)
        await manager.start_or_switch()
        manager.send(DEFAULT_SESSION, "1 + 1")
        ...
        await manager.shutdown()
    """

    def __init__(
        self,
        settings: Optional[ReplSettings] = None,
        spawner: Optional[ProcessSpawner] = None,
        display: Optional[DisplayHost] = None,
        version_manager: Optional[VersionManager] = None,
        cwd: Optional[Path] = None,
        columns: Callable[[], int] = _terminal_columns,
        environ: Optional[dict[str, str]] = None,
    ) -> None:
        self.settings = settings or ReplSettings()
        self.spawner: ProcessSpawner = spawner or PtySpawner()
        self.display: DisplayHost = display or MemoryDisplayHost()
        self.version_manager = version_manager
        self.cwd = cwd or Path.cwd()
        self._columns = columns
        self._environ = environ
        self._sessions: dict[str, Session] = {}
        self._closing: set[asyncio.Task] = set()
        self._global_paths = list(self.settings.node_paths)

    # Session registry

    def get_session(self, name: str = DEFAULT_SESSION) -> Optional[Session]:
        return self._sessions.get(name)

    @property
    def session_names(self) -> list[str]:
        return list(self._sessions)

    def get_process(self, name: str = DEFAULT_SESSION) -> Optional[ReplProcess]:
        """Return the live process of a session, or None.

        A process found dead is dropped from its session and closed.
        """
        session = self._sessions.get(name)
        if session is None or session.process is None:
            return None
        if not session.process.is_alive():
            self._drop_process(session, session.process)
            return None
        return session.process

    def _drop_process(self, session: Session, process: ReplProcess) -> None:
        """Detach an exited process from its session and release its terminal."""
        if session.process is not process:
            return
        logger.info(f"REPL {session.name} exited with code {process.returncode}")
        session.process = None
        task = asyncio.get_running_loop().create_task(process.close())
        self._closing.add(task)
        task.add_done_callback(self._closing.discard)

    def _process_exited(self, process: ReplProcess, code: Optional[int]) -> None:
        session = self._sessions.get(process.name)
        if session is not None:
            self._drop_process(session, process)

    def get_buffer(self, name: str = DEFAULT_SESSION) -> ReplBuffer:
        """Display buffer of a session.

        Raises:
            DisplayBufferMissing: If the session was never started
        """
        session = self._sessions.get(name)
        buffer = self.display.get_buffer(session.buffer_id) if session else None
        if buffer is None:
            raise DisplayBufferMissing(name)
        return buffer

    # Lifecycle

    async def start_or_switch(
        self,
        name: str = DEFAULT_SESSION,
        command: Optional[str] = None,
        args: Optional[list[str]] = None,
        env_overrides: Optional[dict[str, str]] = None,
        show: bool = True,
    ) -> ReplProcess:
        """Return the session's live process, starting one if needed.

        Calling this again while the process is alive only brings its buffer
        to front and returns the same handle.

        Args:
            name: Session name
            command: Interpreter override (configured command when None)
            args: Extra interpreter arguments override
            env_overrides: Extra environment variables for the process
            show: Whether to bring the session buffer to front

        Raises:
            SpawnError: If the interpreter cannot be started
        """
        session = self._sessions.get(name)
        process = self.get_process(name)
        if process is not None and session is not None:
            if show:
                self.display.show_buffer(session.buffer_id)
            return process

        if session is None:
            session = Session(name=name, buffer_id=f"*{name}*", prompt=self.settings.prompt)
            self._sessions[name] = session
        if command is not None:
            session.command = command
        if args is not None:
            session.args = list(args)
        if env_overrides:
            session.env_overrides.update(env_overrides)

        process = await self._spawn(session)

        if show:
            self.display.show_buffer(session.buffer_id)
        return process

    async def _spawn(self, session: Session) -> ReplProcess:
        settings = self.settings
        command = session.command or settings.command
        args = session.args if session.args is not None else list(settings.arguments)
        cwd = session.cwd or self.cwd

        session.prompt = settings.prompt
        code = repl_code(self._columns(), settings.prompt, settings.repl_mode)
        argv = build_invocation(command, args, code)

        base_env = self._environ if self._environ is not None else dict(os.environ)
        env = build_environment(
            base_env,
            cwd,
            settings.node_paths,
            auto_env=settings.auto_env,
            overrides=session.env_overrides,
        )

        buffer = self.display.create_buffer(session.buffer_id)
        buffer.ignore_dups = settings.ignore_dups
        session.sanitizer = OutputSanitizer(settings.output_filters)
        session.process_echoes = settings.process_echoes
        session.echo = EchoFilter()

        logger.info(f"Starting REPL {session.name} with {command}")
        process = await self.spawner.spawn(session.name, argv[0], argv[1:], env, cwd)
        process.set_output_callback(self._output_handler(session, buffer))
        process.set_exit_callback(self._process_exited)
        session.process = process
        return process

    def _output_handler(self, session: Session, buffer: ReplBuffer) -> Callable[[str], None]:
        sanitizer = session.sanitizer or OutputSanitizer()

        def handle(chunk: str) -> None:
            chunk = session.echo.feed(chunk)
            if not chunk:
                return
            buffer.append_output(chunk)
            sanitizer.sanitize_span(buffer)
            buffer.output_finished()

        return handle

    async def reset(self, name: str = DEFAULT_SESSION) -> ReplProcess:
        """Exit the session's process if alive and start a fresh one.

        The old process gets ``exit_timeout`` seconds to exit after ``.exit``
        and is terminated if it is still running.
        """
        process = self.get_process(name)
        if process is not None:
            self._sessions[name].process = None
            logger.info(f"Resetting REPL {name}")
            try:
                process.write(f"{EXIT_COMMAND}\n".encode())
            except OSError as e:
                logger.debug(f"Could not send exit command to {name}: {e}")

            code = await process.wait(self.settings.exit_timeout)
            if code is None:
                logger.warning(f"REPL {name} did not exit within {self.settings.exit_timeout}s")
                await process.terminate()
            else:
                await process.close()

        return await self.start_or_switch(name)

    def quit_or_cancel(self, name: str = DEFAULT_SESSION) -> None:
        """Interrupt the current evaluation.

        Raises:
            NoActiveSession: If the session has no live process
        """
        process = self.get_process(name)
        if process is None:
            raise NoActiveSession(name)
        process.write(INTERRUPT_BYTE)

    async def shutdown(self) -> None:
        """Terminate every live process."""
        for name, session in self._sessions.items():
            process = session.process
            if process is not None:
                session.process = None
                await process.terminate()
                logger.info(f"REPL {name} stopped")
        if self._closing:
            await asyncio.gather(*self._closing)

    # Sending input

    def send(self, name: str, text: str) -> None:
        """Write a chunk of source to the session's process.

        Multi-line text is wrapped in editor mode and followed by end of
        input so the REPL evaluates it as one block.

        Raises:
            NoActiveSession: If the session has no live process
        """
        process = self.get_process(name)
        if process is None:
            raise NoActiveSession(name)

        session = self._sessions[name]
        buffer = self.display.get_buffer(session.buffer_id)
        payload, needs_eof = wrap_input(text)

        # Editor mode echoes its own banner, so only single lines are matched
        track_echo = session.process_echoes and not needs_eof
        if track_echo:
            session.echo.expect(text)

        process.write(payload.encode())
        if needs_eof:
            process.close_input()

        if buffer is not None:
            if track_echo:
                buffer.insert_input(text)
            else:
                buffer.record_input(text)

    async def _ensure_process(self, name: str) -> None:
        if self.get_process(name) is None:
            await self.start_or_switch(name, show=False)

    async def send_region(self, name: str, source: str, start: int, end: int) -> str:
        """Send ``source[start:end]``; returns the text sent."""
        if start > end:
            start, end = end, start
        text = source[start:end]
        await self._ensure_process(name)
        self.send(name, text)
        return text

    async def send_line(self, name: str, source: str, point: int) -> str:
        """Send the line containing ``point``."""
        text = current_line(source, point)
        await self._ensure_process(name)
        self.send(name, text)
        return text

    async def send_last_expression(self, name: str, source: str, point: int) -> str:
        """Send the expression that ends just before ``point``."""
        text = last_expression(source, point)
        await self._ensure_process(name)
        self.send(name, text)
        return text

    async def send_buffer(self, name: str, source: str) -> str:
        """Send a whole source file's text."""
        await self._ensure_process(name)
        self.send(name, source)
        return source

    async def load_file(self, name: str, path: Path) -> str:
        """Load and run a file in the session."""
        statement = load_file_command(path.resolve())
        await self._ensure_process(name)
        self.send(name, statement)
        return statement

    def clear(self, name: str = DEFAULT_SESSION) -> None:
        """Erase the session's display buffer.

        Raises:
            DisplayBufferMissing: If the session was never started
        """
        buffer = self.get_buffer(name)
        self.display.clear_buffer(buffer.buffer_id)

    # Module paths

    def add_module_path(self, path: Path | str) -> bool:
        """Add a directory to the configured module paths.

        Returns:
            False if it was already present
        """
        entry = str(Path(path).expanduser().resolve())
        if entry in self.settings.node_paths:
            return False
        self.settings.node_paths.append(entry)
        logger.info(f"Added module path {entry}")
        return True

    def remove_module_path(self, path: Path | str) -> bool:
        """Remove a directory from the configured module paths.

        Returns:
            False if it was not present
        """
        candidates = {str(path), str(Path(path).expanduser().resolve())}
        before = len(self.settings.node_paths)
        self.settings.node_paths = [p for p in self.settings.node_paths if p not in candidates]
        removed = len(self.settings.node_paths) != before
        if removed:
            logger.info(f"Removed module path {path}")
        return removed

    def load_module_paths(self, project_dir: Optional[Path] = None) -> list[str]:
        """Merge module paths saved for a project into the configured list."""
        for entry in load_project_settings(project_dir or self.cwd):
            if entry not in self.settings.node_paths:
                self.settings.node_paths.append(entry)
        return list(self.settings.node_paths)

    def save_module_paths(self, project_dir: Optional[Path] = None, include_global: bool = False) -> Path:
        """Persist module paths to the project settings file.

        Args:
            project_dir: Directory holding the settings file (manager cwd by default)
            include_global: Also write the entries the manager was created
                with, i.e. those of the global config
        """
        entries = [
            p for p in self.settings.node_paths
            if include_global or p not in self._global_paths
        ]
        path = save_project_settings(project_dir or self.cwd, entries)
        logger.info(f"Saved {len(entries)} module path(s) to {path}")
        return path

    # Node.js versions

    def list_versions(self) -> list[str]:
        if self.version_manager is None:
            raise VersionManagerUnavailable()
        return self.version_manager.list_versions()

    def switch_version(self, version: str) -> Path:
        """Use another installed Node.js for sessions started from now on.

        Raises:
            VersionManagerUnavailable: If no version manager was provided
            UnknownVersion: If the version is not installed
        """
        if self.version_manager is None:
            raise VersionManagerUnavailable()
        executable = self.version_manager.resolve(version)
        self.settings.command = str(executable)
        logger.info(f"Switched Node.js to {version} ({executable})")
        return executable
