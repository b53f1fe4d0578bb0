import io
import logging
import sys
from abc import ABC, abstractmethod
from typing import Iterable, Iterator, Optional

logger = logging.getLogger(__name__)

STDIN_PATH = "-"


class SourceOpenError(Exception):
    """Raised when an input cannot be opened. Nothing has been read yet."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"cannot open '{path}': {reason}")


def strip_line_ending(line: str) -> str:
    """Removes a single trailing '\\n' or '\\r\\n'."""
    if line.endswith("\n"):
        line = line[:-1]
    if line.endswith("\r"):
        line = line[:-1]
    return line


class LineSource(ABC):
    """
    A lazy, forward-only supply of text lines.

    next_line() returns None at end of input. A read failure part-way
    through is logged once and then reported exactly like end of input,
    so consumers only ever see lines or None.
    """

    def __init__(self, name: str):
        self.name = name
        self.lines_read = 0
        self._exhausted = False

    @abstractmethod
    def _read_raw(self) -> Optional[str]:
        """Returns the next raw line, or None when there is nothing left."""
        pass

    @property
    def exhausted(self) -> bool:
        return self._exhausted

    def next_line(self) -> Optional[str]:
        if self._exhausted:
            return None
        try:
            raw = self._read_raw()
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("Read failure on %s after %d lines, treating as end of input: %s",
                           self.name, self.lines_read, exc)
            raw = None

        if raw is None:
            self._exhausted = True
            self.close()
            return None

        self.lines_read += 1
        return strip_line_ending(raw)

    def close(self):
        pass

    def __iter__(self) -> Iterator[str]:
        while True:
            line = self.next_line()
            if line is None:
                return
            yield line

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False


class FileLineSource(LineSource):
    """Reads lines from a text file, or from standard input when path is '-'."""

    def __init__(self, path: str, encoding: str = "utf-8", errors: str = "replace"):
        super().__init__(path)
        self.path = path
        self._detached = False
        if path == STDIN_PATH:
            # Decode the raw bytes ourselves so --encoding applies to stdin too
            try:
                self._handle = io.TextIOWrapper(sys.stdin.buffer, encoding=encoding, errors=errors)
            except LookupError as exc:
                raise SourceOpenError(path, str(exc)) from exc
            self._owns_handle = False
            logger.debug("Reading standard input (encoding=%s)", encoding)
            return
        try:
            self._handle = open(path, "r", encoding=encoding, errors=errors)
        except OSError as exc:
            raise SourceOpenError(path, exc.strerror or str(exc)) from exc
        except LookupError as exc:
            raise SourceOpenError(path, str(exc)) from exc
        self._owns_handle = True
        logger.debug("Opened %s (encoding=%s)", path, encoding)

    def _read_raw(self) -> Optional[str]:
        line = self._handle.readline()
        return line if line else None

    def close(self):
        if self._owns_handle:
            if not self._handle.closed:
                self._handle.close()
        elif not self._detached:
            # Leave sys.stdin.buffer open for the rest of the process
            self._handle.detach()
            self._detached = True


class SequenceLineSource(LineSource):
    """Wraps an in-memory sequence or any iterator of strings."""

    def __init__(self, lines: Iterable[str], name: str = "<sequence>"):
        super().__init__(name)
        self._iterator = iter(lines)

    def _read_raw(self) -> Optional[str]:
        return next(self._iterator, None)


def open_source(path: str, encoding: str = "utf-8", errors: str = "replace") -> FileLineSource:
    """
    Opens a path as a line source.

    Args:
        path (str): File path, or '-' for standard input.
        encoding (str): Text encoding of the file.
        errors (str): Decoding error policy passed to open().

    Returns:
        FileLineSource: The opened source.

    Raises:
        SourceOpenError: If the file cannot be opened.
    """
    return FileLineSource(path, encoding=encoding, errors=errors)


class ChunkReader:
    """
    Buffered binary reader that splits a file on edge bytes.

    Keeps one byte of lookahead so that runs of consecutive edge bytes
    (e.g. '\\r\\n') stay attached to the chunk they terminate.
    """
    BUFFER_SIZE = 4 * 1024
    EDGE_BYTES = b"\n\r\0"

    def __init__(self, path: str, buffer_size: int = BUFFER_SIZE):
        self.path = path
        self.buffer_size = buffer_size
        try:
            self._handle = open(path, "rb")
        except OSError as exc:
            raise SourceOpenError(path, exc.strerror or str(exc)) from exc
        self._raw = b""
        self._pointer = 0
        self._held: Optional[int] = None
        self._eof_reached = False

    def _ingest(self):
        if self._eof_reached or self._pointer < len(self._raw):
            return
        self._raw = self._handle.read(self.buffer_size)
        self._pointer = 0
        if not self._raw:
            self._eof_reached = True

    def _next_byte(self) -> Optional[int]:
        self._ingest()
        if self._pointer >= len(self._raw):
            return None
        byte = self._raw[self._pointer]
        self._pointer += 1
        return byte

    def peek(self, consume: bool = False) -> Optional[int]:
        """Returns the next byte (None at EOF), consuming it if asked."""
        if self._held is None:
            self._held = self._next_byte()
        byte = self._held
        if consume:
            self._held = None
        return byte

    def read(self) -> Optional[int]:
        return self.peek(consume=True)

    def at_eof(self) -> bool:
        if self._held is not None:
            return False
        self._ingest()
        return self._eof_reached and self._pointer >= len(self._raw)

    def read_until(self, edge_bytes: bytes = EDGE_BYTES) -> bytes:
        """
        Reads up to and including the next edge byte, plus any edge bytes
        that immediately follow it.

        Returns:
            bytes: The chunk, or b"" if the reader is already at EOF.
        """
        chunk = bytearray()
        while not self.at_eof():
            byte = self.read()
            chunk.append(byte)
            if byte in edge_bytes:
                # Swallow the rest of the edge run
                while True:
                    nxt = self.peek()
                    if nxt is None or nxt not in edge_bytes:
                        break
                    chunk.append(self.read())
                break
        return bytes(chunk)

    def read_remaining(self) -> bytes:
        chunk = bytearray()
        while not self.at_eof():
            chunk.append(self.read())
        return bytes(chunk)

    def close(self):
        if not self._handle.closed:
            self._handle.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False
