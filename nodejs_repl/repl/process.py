"""
REPL subprocess handles.

Runs the interpreter in a pseudo-terminal so Node.js starts its interactive
REPL (line editing, echo, editor mode). Output is read by an asyncio task and
handed to a callback on the event loop.
"""

from __future__ import annotations

import asyncio
import codecs
import logging
import os
import pty
import signal
import subprocess
from pathlib import Path
from typing import Callable, Optional, Protocol

from .command import EOF_BYTE
from .exceptions import SpawnError

logger = logging.getLogger(__name__)

OutputCallback = Callable[[str], None]
ExitCallback = Callable[["ReplProcess", Optional[int]], None]


class ProcessSpawner(Protocol):
    """Spawn interface consumed by the session manager."""

    async def spawn(
        self,
        name: str,
        command: str,
        args: list[str],
        env: dict[str, str],
        cwd: Optional[Path] = None,
    ) -> "ReplProcess": ...


class ReplProcess:
    """A Node.js REPL running in a pseudo-terminal.

    The process gets its own session and process group so signals reach
    the interpreter and anything it spawned.
    """

    def __init__(
        self,
        name: str,
        argv: list[str],
        proc: subprocess.Popen,
        master_fd: int,
    ) -> None:
        self.name = name
        self.argv = argv
        self._proc = proc
        self._master_fd = master_fd
        self._reader_task: Optional[asyncio.Task] = None
        self._on_output: Optional[OutputCallback] = None
        self._on_exit: Optional[ExitCallback] = None
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")

    @property
    def pid(self) -> int:
        return self._proc.pid

    @property
    def returncode(self) -> Optional[int]:
        return self._proc.poll()

    def is_alive(self) -> bool:
        return self._proc.poll() is None

    def set_output_callback(self, callback: OutputCallback) -> None:
        """Set the function receiving decoded output chunks."""
        self._on_output = callback

    def set_exit_callback(self, callback: ExitCallback) -> None:
        """Set the function called once the output stream ends."""
        self._on_exit = callback

    def start_reading(self) -> None:
        """Start the output reader task on the running loop."""
        if self._reader_task is None:
            self._reader_task = asyncio.create_task(
                self._read_loop(), name=f"nodejs_repl_reader_{self.name}"
            )

    def write(self, data: bytes) -> None:
        """Write raw bytes to the terminal."""
        if not self.is_alive():
            raise BrokenPipeError(f"REPL process {self.pid} has exited")
        view = memoryview(data)
        while view:
            written = os.write(self._master_fd, view)
            view = view[written:]
        logger.debug(f"Wrote {len(data)} bytes to {self.name}")

    def close_input(self) -> None:
        """Signal end of input.

        On a terminal this is the EOF character; the process keeps running.
        """
        self.write(EOF_BYTE)

    def send_signal(self, sig: int) -> None:
        """Send a signal to the REPL's process group."""
        if not self.is_alive():
            return
        try:
            os.killpg(os.getpgid(self.pid), sig)
        except ProcessLookupError:
            pass

    async def wait(self, timeout: Optional[float] = None) -> Optional[int]:
        """Wait for the process to exit.

        Returns:
            The exit code, or None if it was still running after ``timeout``
        """
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(None, self._proc.wait, timeout)
        except subprocess.TimeoutExpired:
            return None

    async def terminate(self, timeout: float = 2.0) -> Optional[int]:
        """Stop the process: SIGTERM, then SIGKILL after ``timeout``."""
        if self.is_alive():
            self.send_signal(signal.SIGTERM)
            code = await self.wait(timeout)
            if code is None:
                logger.warning(f"REPL {self.name} ignored SIGTERM, killing")
                self.send_signal(signal.SIGKILL)
                code = await self.wait()
        await self.close()
        return self._proc.returncode

    async def close(self) -> None:
        """Release the terminal and stop the reader task."""
        if self._reader_task is not None:
            self._reader_task.cancel()
            try:
                await self._reader_task
            except asyncio.CancelledError:
                pass
            self._reader_task = None

        if self._master_fd >= 0:
            try:
                os.close(self._master_fd)
            except OSError:
                pass
            self._master_fd = -1

    async def _read_loop(self) -> None:
        """Read output from the terminal until it closes."""
        loop = asyncio.get_running_loop()
        while True:
            fd = self._master_fd
            if fd < 0:
                break
            try:
                data = await loop.run_in_executor(None, os.read, fd, 4096)
            except OSError:
                # EIO once the child side of the pty is gone
                break
            if not data:
                break

            text = self._decoder.decode(data)
            if text and self._on_output is not None:
                try:
                    self._on_output(text)
                except Exception as e:
                    logger.error(f"Output handler error: {e}")

        code = await self.wait(0.5)
        logger.info(f"REPL {self.name} output closed (exit code {code})")
        if self._on_exit is not None:
            self._on_exit(self, code)


class PtySpawner:
    """Spawn interpreters in pseudo-terminals (POSIX only)."""

    def __init__(self, term: str = "dumb") -> None:
        self.term = term

    async def spawn(
        self,
        name: str,
        command: str,
        args: list[str],
        env: dict[str, str],
        cwd: Optional[Path] = None,
    ) -> ReplProcess:
        """Start ``command`` with ``args`` in a new pty.

        Raises:
            SpawnError: If the executable cannot be started
        """
        argv = [command, *args]
        master_fd, slave_fd = pty.openpty()

        child_env = dict(env)
        child_env["TERM"] = self.term

        try:
            proc = subprocess.Popen(
                argv,
                stdin=slave_fd,
                stdout=slave_fd,
                stderr=slave_fd,
                start_new_session=True,
                env=child_env,
                cwd=str(cwd) if cwd else None,
            )
        except OSError as e:
            os.close(master_fd)
            raise SpawnError(str(e), session=name, command=argv) from e
        finally:
            os.close(slave_fd)

        logger.info(f"Started REPL {name}: pid={proc.pid} cmd={command}")
        process = ReplProcess(name, argv, proc, master_fd)
        process.start_reading()
        return process
