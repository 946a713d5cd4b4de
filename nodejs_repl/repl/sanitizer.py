"""Output sanitizer for freshly arrived REPL output."""

from __future__ import annotations

import logging
import re
from typing import Iterable, Optional, Protocol

from nodejs_repl.config import DEFAULT_OUTPUT_FILTERS

logger = logging.getLogger(__name__)


class OutputSpan(Protocol):
    """A text surface whose tail after ``last_output_start`` is fresh output."""

    text: str
    last_output_start: int

    def replace_range(self, start: int, end: int, replacement: str) -> None: ...


class OutputSanitizer:
    """Remove terminal noise from new REPL output.

    Holds only the compiled patterns; nothing is carried between calls.

    Example:
        sanitizer = OutputSanitizer()
        sanitizer.clean("\\x1b[2Kfoo\\r\\nundefined\\r\\n")  # "foo\\r\\n"
    """

    def __init__(self, patterns: Optional[Iterable[str]] = None) -> None:
        if patterns is None:
            patterns = DEFAULT_OUTPUT_FILTERS
        self._patterns = [re.compile(p) for p in patterns]

    @property
    def patterns(self) -> list[re.Pattern[str]]:
        return list(self._patterns)

    def clean(self, text: str, start: int = 0, end: Optional[int] = None) -> str:
        """Return ``text`` with every noise match inside ``[start, end)`` removed.

        Content outside the range is returned unchanged.
        """
        cleaned, _ = self._clean_range(text, start, len(text) if end is None else end)
        return cleaned

    def sanitize_span(self, surface: OutputSpan, end: Optional[int] = None) -> None:
        """Clean the fresh output of ``surface`` in place.

        Args:
            surface: Display surface with ``text`` and ``last_output_start``
            end: End of the fresh output (defaults to end of text)
        """
        start = surface.last_output_start
        if end is None:
            end = len(surface.text)
        if start >= end:
            return

        cleaned, new_end = self._clean_range(surface.text, start, end)
        if new_end != end:
            logger.debug(f"Removed {end - new_end} noise characters from output")
            surface.replace_range(start, end, cleaned[start:new_end])

    def _clean_range(self, text: str, start: int, end: int) -> tuple[str, int]:
        """Apply every pattern to ``text[start:end]``.

        Matching sees the whole string, so ``^`` only matches at real line
        starts, while ``endpos`` keeps matches inside the range.

        Returns:
            The new text and the new end offset of the range
        """
        for pattern in self._patterns:
            if start >= end:
                break
            pieces: list[str] = []
            position = start
            for match in pattern.finditer(text, start, end):
                if match.start() == match.end():
                    continue
                pieces.append(text[position:match.start()])
                position = match.end()
            if position == start and not pieces:
                continue
            pieces.append(text[position:end])
            span = "".join(pieces)
            text = text[:start] + span + text[end:]
            end = start + len(span)
        return text, end


class EchoFilter:
    """Drop the terminal's echo of input that was already recorded.

    ``expect`` queues the text the pty will echo back; ``feed`` removes it
    from the head of incoming output, across chunk boundaries. Carriage
    returns before a newline are skipped, since line disciplines and
    readline end an echoed line with any run of ``\\r`` followed by ``\\n``.
    Output that diverges from the expected echo cancels the pending echo.
    """

    def __init__(self) -> None:
        self._pending = ""

    @property
    def pending(self) -> str:
        return self._pending

    def expect(self, text: str) -> None:
        self._pending += text + "\n"

    def feed(self, chunk: str) -> str:
        if not self._pending:
            return chunk

        pending = self._pending
        matched = 0
        while matched < len(chunk) and pending:
            char = chunk[matched]
            if char == "\r" and pending[0] == "\n":
                matched += 1
            elif char == pending[0]:
                matched += 1
                pending = pending[1:]
            else:
                break

        if matched < len(chunk) and pending:
            logger.debug("Output diverged from expected echo")
            pending = ""
        self._pending = pending
        return chunk[matched:]
