"""
bindiff Package
===============

This package implements a single-pass line diff that only ever looks a
bounded number of lines ahead in each input, so memory stays constant
however large the files are.

Modules:
    - engine: WindowedLineMatcher, the windowed matching loop.
    - input_controller: Line sources (files, stdin, sequences) and the byte ChunkReader.
    - models: Data structures (Line, DiffLine).
    - visualizer: Console/buffer/HTML sinks and the hex dump printer.
    - chunker: The binchunk hex dump command.
"""
from .engine import WindowedLineMatcher, compare
from .input_controller import FileLineSource, SequenceLineSource, SourceOpenError, open_source
from .models import DiffKind, DiffLine, Line, Stream

__all__ = [
    "WindowedLineMatcher",
    "compare",
    "FileLineSource",
    "SequenceLineSource",
    "SourceOpenError",
    "open_source",
    "DiffKind",
    "DiffLine",
    "Line",
    "Stream",
]
