"""Tests for pty-backed REPL processes."""

import asyncio
import os
import shutil

import pytest

from nodejs_repl.repl.exceptions import SpawnError
from nodejs_repl.repl.process import PtySpawner

pytestmark = pytest.mark.skipif(shutil.which("cat") is None, reason="needs cat")


async def _wait_for(predicate, timeout: float = 5.0) -> None:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not met in time")
        await asyncio.sleep(0.02)


class TestPtySpawner:
    """Test PtySpawner with a simple terminal program."""

    @pytest.mark.asyncio
    async def test_spawn_write_and_read(self, tmp_path) -> None:
        chunks: list[str] = []
        process = await PtySpawner().spawn("test", "cat", [], dict(os.environ), tmp_path)
        process.set_output_callback(chunks.append)
        try:
            assert process.is_alive()
            process.write(b"hello\n")
            await _wait_for(lambda: "hello" in "".join(chunks))
        finally:
            await process.terminate()

        assert not process.is_alive()
        assert process.returncode is not None

    @pytest.mark.asyncio
    async def test_exit_callback(self, tmp_path) -> None:
        exited = []
        process = await PtySpawner().spawn("test", "cat", [], dict(os.environ), tmp_path)
        process.set_exit_callback(lambda proc, code: exited.append(code))

        # EOF at the start of a line ends cat
        process.close_input()

        assert await process.wait(5.0) == 0
        await _wait_for(lambda: exited)
        await process.close()

    @pytest.mark.asyncio
    async def test_terminal_type_replaces_inherited(self, tmp_path) -> None:
        """The child always runs on a dumb terminal so node prints no colours."""
        chunks: list[str] = []
        env = dict(os.environ, TERM="xterm-256color")
        process = await PtySpawner().spawn("test", "printenv", ["TERM"], env, tmp_path)
        process.set_output_callback(chunks.append)
        try:
            await process.wait(5.0)
            await _wait_for(lambda: "\n" in "".join(chunks))
        finally:
            await process.terminate()

        assert "".join(chunks).strip() == "dumb"

    @pytest.mark.asyncio
    async def test_wait_timeout(self, tmp_path) -> None:
        process = await PtySpawner().spawn("test", "cat", [], dict(os.environ), tmp_path)
        try:
            assert await process.wait(0.05) is None
        finally:
            await process.terminate()

    @pytest.mark.asyncio
    async def test_write_after_exit(self, tmp_path) -> None:
        process = await PtySpawner().spawn("test", "cat", [], dict(os.environ), tmp_path)
        await process.terminate()
        with pytest.raises(BrokenPipeError):
            process.write(b"x\n")

    @pytest.mark.asyncio
    async def test_missing_executable(self, tmp_path) -> None:
        with pytest.raises(SpawnError) as exc_info:
            await PtySpawner().spawn("test", "definitely-not-node", [], {}, tmp_path)
        assert exc_info.value.session == "test"
        assert exc_info.value.command[0] == "definitely-not-node"
