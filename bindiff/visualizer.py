import html
import logging
import os
import sys
from abc import ABC, abstractmethod
from typing import Iterable, List, Optional, TextIO

from .models import DiffKind, DiffLine

logger = logging.getLogger(__name__)

COLOR_MODES = ("auto", "always", "never")


def resolve_color(mode: str, stream: TextIO) -> bool:
    """
    Decides whether ANSI colours should be written to `stream`.

    'auto' colours only a terminal, and honours the NO_COLOR convention.
    """
    if mode == "always":
        return True
    if mode == "never":
        return False
    if os.environ.get("NO_COLOR"):
        return False
    isatty = getattr(stream, "isatty", None)
    return bool(isatty and isatty())


def enable_windows_ansi():
    """Turns on virtual terminal processing so the Windows console renders ANSI codes."""
    if os.name != "nt":
        return
    import ctypes
    kernel32 = ctypes.windll.kernel32
    handle = kernel32.GetStdHandle(-11)  # STD_OUTPUT_HANDLE
    mode = ctypes.c_uint32()
    if kernel32.GetConsoleMode(handle, ctypes.byref(mode)):
        kernel32.SetConsoleMode(handle, mode.value | 0x0004)  # ENABLE_VIRTUAL_TERMINAL_PROCESSING


class OutputSink(ABC):
    """Receives classified lines from the matcher."""

    @abstractmethod
    def emit(self, diff_line: DiffLine):
        pass

    def close(self):
        pass


class ConsoleSink(OutputSink):
    """
    Writes one line per event: '- ' deleted, '+ ' inserted, two spaces unchanged.
    """

    # ANSI Color Codes
    RED = '\033[31m'
    GREEN = '\033[32m'
    RESET = '\033[0m'

    PREFIXES = {
        DiffKind.DELETED: "- ",
        DiffKind.INSERTED: "+ ",
        DiffKind.UNCHANGED: "  ",
    }

    def __init__(self, stream: Optional[TextIO] = None, color: bool = False):
        self.stream = stream if stream is not None else sys.stdout
        self.color = color
        if color:
            enable_windows_ansi()

    def format(self, diff_line: DiffLine) -> str:
        text = self.PREFIXES[diff_line.kind] + diff_line.content
        if not self.color:
            return text
        if diff_line.kind is DiffKind.DELETED:
            return f"{self.RED}{text}{self.RESET}"
        if diff_line.kind is DiffKind.INSERTED:
            return f"{self.GREEN}{text}{self.RESET}"
        return text

    def emit(self, diff_line: DiffLine):
        self.stream.write(self.format(diff_line) + "\n")

    def close(self):
        self.stream.flush()


class BufferSink(OutputSink):
    """Keeps every emitted line in memory."""

    def __init__(self):
        self.lines: List[DiffLine] = []
        self._formatter = ConsoleSink(color=False)

    def emit(self, diff_line: DiffLine):
        self.lines.append(diff_line)

    def text(self) -> str:
        return "".join(self._formatter.format(d) + "\n" for d in self.lines)


class HTMLVisualizer(OutputSink):
    """
    Streams a side-by-side HTML diff report to a file.

    Rows are written as they arrive, so the report never holds the whole
    comparison in memory.
    """

    HEAD_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="utf-8">
    <title>{title}</title>
    <style>
        body {{ font-family: -apple-system, "Segoe UI", Helvetica, Arial, sans-serif; background: #f6f8fa; color: #24292f; margin: 0; padding: 20px; }}
        .container {{ max-width: 1600px; margin: 0 auto; background: #ffffff; border: 1px solid #d0d7de; border-radius: 6px; overflow: hidden; }}
        .header {{ padding: 16px; border-bottom: 1px solid #d0d7de; }}
        h2 {{ margin: 0; font-size: 16px; }}
        table {{ width: 100%; border-collapse: collapse; table-layout: fixed; font-size: 12px; font-family: ui-monospace, Menlo, Consolas, monospace; }}
        td {{ padding: 0; vertical-align: top; line-height: 20px; }}
        .line-num {{ width: 50px; text-align: right; padding-right: 10px; color: #6e7781; user-select: none; border-right: 1px solid #d0d7de; }}
        .code-content {{ padding-left: 10px; white-space: pre-wrap; word-break: break-all; }}
        .row-added {{ background-color: #e6ffec; }}
        .row-deleted {{ background-color: #ffebe9; }}
        .empty {{ background-color: #f6f8fa; }}
    </style>
</head>
<body>
    <div class="container">
        <div class="header"><h2>{title}</h2></div>
        <table>
            <col width="4%">
            <col width="46%">
            <col width="4%">
            <col width="46%">
"""

    FOOT_TEMPLATE = """        </table>
    </div>
</body>
</html>
"""

    ROW_CLASSES = {
        DiffKind.DELETED: "row-deleted",
        DiffKind.INSERTED: "row-added",
        DiffKind.UNCHANGED: "",
    }

    def __init__(self, output_path: str = "bindiff_report.html", title: str = "bindiff report"):
        self.output_path = output_path
        self._file = open(output_path, "w", encoding="utf-8")
        self._file.write(self.HEAD_TEMPLATE.format(title=html.escape(title)))

    def emit(self, diff_line: DiffLine):
        content = html.escape(diff_line.content)
        left_num = right_num = ""
        left_code = right_code = '<td class="code-content empty"></td>'

        if diff_line.old_lineno is not None:
            left_num = str(diff_line.old_lineno)
            left_code = f'<td class="code-content">{content}</td>'
        if diff_line.new_lineno is not None:
            right_num = str(diff_line.new_lineno)
            right_code = f'<td class="code-content">{content}</td>'

        self._file.write(
            f'            <tr class="{self.ROW_CLASSES[diff_line.kind]}">'
            f'<td class="line-num">{left_num}</td>{left_code}'
            f'<td class="line-num">{right_num}</td>{right_code}</tr>\n'
        )

    def close(self):
        if self._file.closed:
            return
        self._file.write(self.FOOT_TEMPLATE)
        self._file.close()
        logger.info("Report generated at: %s", os.path.abspath(self.output_path))

    def generate(self, diff_lines: Iterable[DiffLine]):
        """
        Batch API: writes a complete report for an already computed diff and
        closes the file. For streaming, pass the visualizer to
        WindowedLineMatcher.run() as a sink instead.
        """
        try:
            for diff_line in diff_lines:
                self.emit(diff_line)
        finally:
            self.close()


class HexDumpPrinter:
    """
    Formats raw bytes as hex and printable-ASCII columns.

    Each row covers width // 2 bytes. The first row of a chunk is framed
    with '|', continuation rows with ':'.
    """

    def __init__(self, width: int = 32):
        if width < 2 or width % 2 != 0:
            raise ValueError(f"Width must be a positive multiple of two, got {width}")
        self.width = width
        self._output: Optional[TextIO] = None

    def set_output_file(self, path: str):
        """Redirects print() to `path`. Raises OSError if it cannot be opened."""
        self._output = open(path, "w", encoding="utf-8")

    @staticmethod
    def _printable(chunk: bytes) -> str:
        return "".join(chr(b) if 32 <= b <= 126 else "." for b in chunk)

    def format_lines(self, data: bytes) -> List[str]:
        row_bytes = self.width // 2
        hex_width = self.width + row_bytes - 1
        bar = "|"
        lines = []

        for start in range(0, len(data), row_bytes):
            chunk = data[start:start + row_bytes]
            spaced = " ".join(f"{b:02x}" for b in chunk)
            cleansed = self._printable(chunk)
            lines.append(f"{bar} {spaced.ljust(hex_width)}  {bar}  {cleansed.ljust(self.width)} {bar}")
            bar = ":"

        return lines

    def print(self, data: bytes):
        stream = self._output if self._output is not None else sys.stdout
        for line in self.format_lines(data):
            stream.write(line + "\n")

    def close(self):
        if self._output is not None:
            self._output.close()
            self._output = None
