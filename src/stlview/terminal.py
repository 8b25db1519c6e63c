"""Raw-mode terminal handling for the interactive viewer window."""

from __future__ import annotations

import logging
import os
import select
import shutil
import sys
import termios
import tty
from typing import List, Optional, TextIO, Tuple

logger = logging.getLogger(__name__)

TermiosAttr = List[int | List[bytes | int]]

CSI_KEYS = {
    "A": "UP",
    "B": "DOWN",
    "C": "RIGHT",
    "D": "LEFT",
    "H": "HOME",
    "F": "END",
}


class TerminalController:
    """Context manager that owns the terminal while frames are being shown.

    On entry the screen is cleared, the cursor hidden and stdin switched to
    cbreak mode so single key presses can be polled without blocking. Every
    change is undone by :meth:`restore`, which is safe to call twice.
    """

    def __init__(self, *, clear: bool = True, stream: Optional[TextIO] = None) -> None:
        self._clear = clear
        self._stream = stream if stream is not None else sys.stdout
        self._cursor_hidden = False
        self._stdin_fd: Optional[int] = None
        self._termios_before: Optional[TermiosAttr] = None

    @property
    def interactive(self) -> bool:
        return self._stdin_fd is not None

    def __enter__(self) -> "TerminalController":
        out = self._stream
        if self._clear:
            out.write("\033[2J")
        out.write("\033[H\033[?25l")
        out.flush()
        self._cursor_hidden = True

        if sys.stdin.isatty():
            fd = sys.stdin.fileno()
            try:
                self._termios_before = termios.tcgetattr(fd)
                tty.setcbreak(fd)
                self._stdin_fd = fd
            except termios.error as exc:
                logger.warning("Keyboard input unavailable: %s", exc)
                self._termios_before = None
        else:
            logger.info("stdin is not a terminal; keyboard controls disabled")
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.restore()

    def restore(self) -> None:
        if self._cursor_hidden:
            self._stream.write("\033[0m\033[?25h\n")
            self._stream.flush()
            self._cursor_hidden = False

        if self._stdin_fd is not None and self._termios_before is not None:
            try:
                termios.tcsetattr(self._stdin_fd, termios.TCSADRAIN, self._termios_before)
            except termios.error as exc:
                logger.warning("Could not restore terminal attributes: %s", exc)
        self._stdin_fd = None
        self._termios_before = None

    def draw(self, frame: str) -> None:
        out = self._stream
        out.write("\033[H")
        out.write(frame)
        out.write("\033[0m")
        out.flush()

    def size_tuple(self) -> Tuple[int, int]:
        size = shutil.get_terminal_size(fallback=(100, 40))
        return size.columns, size.lines

    def pixel_size(self) -> Tuple[int, int]:
        """Frame-buffer size that fills the window: two pixel rows per text row."""
        columns, lines = self.size_tuple()
        # Leave the last line free so the final newline never scrolls the frame.
        return max(1, columns), max(2, (lines - 1) * 2)

    def poll_keys(self) -> List[str]:
        """Return the keys pressed since the last call without blocking.

        Printable keys are returned as themselves, cursor keys by name
        (``"UP"``, ``"LEFT"`` ...), a lone escape as ``"ESC"``.
        """
        if self._stdin_fd is None:
            return []

        keys: List[str] = []
        try:
            while self._readable():
                char = self._read_char()
                if char is None:
                    break
                if char == "\x03":
                    raise KeyboardInterrupt
                if char == "\x1b":
                    key = _map_escape_sequence(self._read_escape_sequence())
                    if key is not None:
                        keys.append(key)
                    continue
                if char:
                    keys.append(char)
        except OSError as exc:
            logger.debug("Stopped reading keys: %s", exc)
        return keys

    def _readable(self) -> bool:
        readable, _, _ = select.select([self._stdin_fd], [], [], 0)
        return bool(readable)

    def _read_char(self) -> Optional[str]:
        assert self._stdin_fd is not None
        data = os.read(self._stdin_fd, 1)
        if not data:
            return None
        return data.decode("utf-8", errors="ignore")

    def _read_escape_sequence(self) -> str:
        sequence = "\x1b"
        while self._readable():
            char = self._read_char()
            if char is None:
                break
            sequence += char
            if len(sequence) > 2 and (char.isalpha() or char == "~"):
                break
        return sequence


def _map_escape_sequence(sequence: str) -> Optional[str]:
    if sequence == "\x1b":
        return "ESC"
    # Both CSI ("\x1b[A") and SS3 ("\x1bOA") forms, with optional modifiers.
    if len(sequence) >= 3 and sequence[1] in "[O":
        return CSI_KEYS.get(sequence[-1])
    return None
