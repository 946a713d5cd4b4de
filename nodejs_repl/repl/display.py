"""
Display surfaces for REPL sessions.

The host owns how output is shown; this module defines the interface the
session manager calls and an in-memory implementation used by the terminal
front-end and by tests.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional, Protocol

logger = logging.getLogger(__name__)

# Called with (buffer, newly displayed text) after output has been sanitized
OutputListener = Callable[["ReplBuffer", str], None]


class ReplBuffer:
    """Scrollback text for one REPL session.

    Output is appended in chunks. ``last_output_start`` marks where the most
    recent chunk begins; everything before it is history and is never edited.

    Input sent to the process is kept in ``history``. When ``ignore_dups``
    is set, a chunk equal to the previous entry is not recorded again.
    """

    def __init__(self, buffer_id: str, ignore_dups: bool = True) -> None:
        self.buffer_id = buffer_id
        self.ignore_dups = ignore_dups
        self.text = ""
        self.last_output_start = 0
        self.history: list[str] = []
        self.visible = False
        self._listeners: list[OutputListener] = []

    def append_output(self, chunk: str) -> tuple[int, int]:
        """Append raw output and mark it as the fresh span.

        Returns:
            The (start, end) offsets of the appended span
        """
        self.last_output_start = len(self.text)
        self.text += chunk
        return self.last_output_start, len(self.text)

    def replace_range(self, start: int, end: int, replacement: str) -> None:
        """Replace ``text[start:end]``; only the fresh span may be edited."""
        if start < self.last_output_start:
            raise ValueError("Cannot edit text before the last output start")
        self.text = self.text[:start] + replacement + self.text[end:]

    def output_finished(self) -> None:
        """Notify listeners about the fresh span once it has been cleaned."""
        fresh = self.text[self.last_output_start:]
        for listener in list(self._listeners):
            try:
                listener(self, fresh)
            except Exception as e:
                logger.error(f"Output listener error: {e}")

    def insert_input(self, text: str) -> None:
        """Append sent input to the scrollback and record it in history.

        The input becomes history: the next output starts after it.
        """
        self.text += text if text.endswith("\n") else text + "\n"
        self.last_output_start = len(self.text)
        self.record_input(text)

    def record_input(self, text: str) -> None:
        if self.ignore_dups and self.history and self.history[-1] == text:
            return
        self.history.append(text)

    def clear(self) -> None:
        """Erase the scrollback; input history is kept."""
        self.text = ""
        self.last_output_start = 0

    def add_listener(self, listener: OutputListener) -> Callable[[], None]:
        """Register an output listener.

        Returns:
            A function that unregisters the listener
        """
        self._listeners.append(listener)

        def unregister() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unregister


class DisplayHost(Protocol):
    """Display operations the session manager needs from its host."""

    def create_buffer(self, buffer_id: str) -> ReplBuffer: ...

    def get_buffer(self, buffer_id: str) -> Optional[ReplBuffer]: ...

    def show_buffer(self, buffer_id: str) -> None: ...

    def clear_buffer(self, buffer_id: str) -> None: ...


class MemoryDisplayHost:
    """Display host keeping every buffer in memory.

    ``on_show`` is called with the buffer whenever it is brought to front.
    """

    def __init__(
        self,
        ignore_dups: bool = True,
        on_show: Optional[Callable[[ReplBuffer], None]] = None,
    ) -> None:
        self._buffers: dict[str, ReplBuffer] = {}
        self._ignore_dups = ignore_dups
        self._on_show = on_show
        self.current: Optional[str] = None

    def create_buffer(self, buffer_id: str) -> ReplBuffer:
        """Return the buffer for ``buffer_id``, creating it if needed."""
        buffer = self._buffers.get(buffer_id)
        if buffer is None:
            buffer = ReplBuffer(buffer_id, ignore_dups=self._ignore_dups)
            self._buffers[buffer_id] = buffer
            logger.debug(f"Created display buffer {buffer_id}")
        return buffer

    def get_buffer(self, buffer_id: str) -> Optional[ReplBuffer]:
        return self._buffers.get(buffer_id)

    def show_buffer(self, buffer_id: str) -> None:
        buffer = self._buffers.get(buffer_id)
        if buffer is None:
            return
        for other in self._buffers.values():
            other.visible = other is buffer
        self.current = buffer_id
        if self._on_show is not None:
            self._on_show(buffer)

    def clear_buffer(self, buffer_id: str) -> None:
        buffer = self._buffers.get(buffer_id)
        if buffer is not None:
            buffer.clear()

    @property
    def buffer_ids(self) -> list[str]:
        return list(self._buffers)
