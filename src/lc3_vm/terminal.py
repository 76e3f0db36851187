"""Character I/O collaborators for the VM.

The engine talks to the outside world only through the ``Terminal``
interface: a non-blocking poll, a blocking single-byte read, and byte
output. ``ConsoleTerminal`` drives the real stdin/stdout; it is a context
manager that switches the tty to cbreak mode and always restores it.
``BufferedTerminal`` replays scripted input and captures output.
"""

import logging
import os
import select
import sys
from typing import BinaryIO, Optional, Protocol, Union


logger = logging.getLogger(__name__)

EOF_CHAR = 0xFFFF


class Terminal(Protocol):
    """Interface the VM uses for keyboard and display."""

    def poll_input(self) -> bool:
        ...

    def read_char(self) -> int:
        ...

    def write_char(self, char: int) -> None:
        ...

    def write_text(self, text: str) -> None:
        ...

    def flush(self) -> None:
        ...


class ConsoleTerminal:
    """Terminal backed by the process's stdin and stdout.

    Use as a context manager to disable line buffering and echo for the
    duration of a run:

        with ConsoleTerminal() as term:
            vm = LC3VM(terminal=term)
            ...

    The saved tty attributes are restored on exit, including when the
    block is left through an exception or KeyboardInterrupt. When stdin is
    not a tty the mode change is skipped.
    """

    def __init__(self, stdin_fd: Optional[int] = None, stdout: Optional[BinaryIO] = None):
        self._stdin_fd = stdin_fd
        self._stdout = stdout
        self._saved_attrs = None

    @property
    def _fd(self) -> int:
        if self._stdin_fd is None:
            self._stdin_fd = sys.stdin.fileno()
        return self._stdin_fd

    @property
    def _out(self) -> BinaryIO:
        if self._stdout is None:
            self._stdout = sys.stdout.buffer
        return self._stdout

    def __enter__(self) -> "ConsoleTerminal":
        if os.isatty(self._fd):
            import termios
            import tty

            self._saved_attrs = termios.tcgetattr(self._fd)
            tty.setcbreak(self._fd, termios.TCSANOW)
            logger.debug("Terminal switched to cbreak mode")
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        try:
            self.flush()
        finally:
            self.restore()

    def restore(self) -> None:
        """Put the tty back the way ``__enter__`` found it."""
        if self._saved_attrs is not None:
            import termios

            termios.tcsetattr(self._fd, termios.TCSANOW, self._saved_attrs)
            self._saved_attrs = None
            logger.debug("Terminal mode restored")

    def poll_input(self) -> bool:
        self.flush()
        readable, _, _ = select.select([self._fd], [], [], 0)
        return bool(readable)

    def read_char(self) -> int:
        """Block until one byte is available; EOF reads as 0xFFFF."""
        self.flush()
        data = os.read(self._fd, 1)
        if not data:
            return EOF_CHAR
        return data[0]

    def write_char(self, char: int) -> None:
        self._out.write(bytes((char & 0xFF,)))

    def write_text(self, text: str) -> None:
        self._out.write(text.encode("latin-1", errors="replace"))

    def flush(self) -> None:
        self._out.flush()


class BufferedTerminal:
    """In-memory terminal with scripted input and captured output.

    Args:
        input_data: Bytes (or latin-1 text) handed out by ``read_char``
    """

    def __init__(self, input_data: Union[bytes, str] = b""):
        if isinstance(input_data, str):
            input_data = input_data.encode("latin-1")
        self._input = bytearray(input_data)
        self._output = bytearray()
        self.flush_count = 0

    def __enter__(self) -> "BufferedTerminal":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.flush()

    def feed(self, data: Union[bytes, str]) -> None:
        """Append more scripted input."""
        if isinstance(data, str):
            data = data.encode("latin-1")
        self._input.extend(data)

    def poll_input(self) -> bool:
        return bool(self._input)

    def read_char(self) -> int:
        if not self._input:
            raise EOFError("No scripted input left")
        return self._input.pop(0)

    def write_char(self, char: int) -> None:
        self._output.append(char & 0xFF)

    def write_text(self, text: str) -> None:
        self._output.extend(text.encode("latin-1", errors="replace"))

    def flush(self) -> None:
        self.flush_count += 1

    @property
    def output(self) -> str:
        """Everything written so far, decoded as latin-1."""
        return self._output.decode("latin-1")

    @property
    def pending_input(self) -> int:
        return len(self._input)
