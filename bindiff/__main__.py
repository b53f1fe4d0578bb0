"""
bindiff Entry Point
===================

Command-line interface for the windowed line diff. Opens both inputs,
runs the matcher and renders the result to the console (and optionally
an HTML report).

Usage:
    python -m bindiff <file1> <file2> [--window N] [--color MODE] [--html PATH]
"""
import argparse
import logging
import os
import sys

from .engine import WindowedLineMatcher
from .input_controller import STDIN_PATH, SourceOpenError, open_source
from .models import DiffKind
from .visualizer import COLOR_MODES, ConsoleSink, HTMLVisualizer, resolve_color

logger = logging.getLogger("bindiff")

# Default Configuration
DEFAULT_CONFIG = {
    "WINDOW_SIZE": 100,           # Lookahead lines held per input
    "COLOR": "auto",              # auto | always | never
    "ENCODING": "utf-8",
    "ENCODING_ERRORS": "replace",  # Undecodable bytes become U+FFFD
}


def positive_int(value):
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {number}")
    return number


def build_parser():
    parser = argparse.ArgumentParser(
        prog="bindiff",
        description="bindiff: line-by-line diff of two files using a bounded lookahead window")
    parser.add_argument("file1", help="Old file ('-' for standard input)")
    parser.add_argument("file2", help="New file ('-' for standard input)")
    parser.add_argument("--window", type=positive_int, default=DEFAULT_CONFIG["WINDOW_SIZE"],
                        help="Lines of lookahead per file (default: %(default)s)")
    parser.add_argument("--color", choices=COLOR_MODES, default=DEFAULT_CONFIG["COLOR"],
                        help="Colorize output (default: %(default)s)")
    parser.add_argument("--encoding", default=DEFAULT_CONFIG["ENCODING"],
                        help="Text encoding of both files (default: %(default)s)")
    parser.add_argument("--html", metavar="PATH", help="Also write an HTML report to PATH")
    parser.add_argument("--summary", action="store_true",
                        help="Print line counts per change type to stderr")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser


def main(argv=None):
    """
    Main execution function.

    1. Parses command line arguments.
    2. Opens both inputs, failing before any output if either cannot be opened.
    3. Runs the windowed matcher into the console (and HTML) sinks.
    4. Optionally prints a summary.

    Returns:
        int: Process exit status.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format="[%(levelname)s] %(message)s")

    if args.file1 == STDIN_PATH and args.file2 == STDIN_PATH:
        parser.error("only one input can be read from standard input")

    # 1. Open Inputs
    sources = []
    try:
        for path in (args.file1, args.file2):
            sources.append(open_source(path, encoding=args.encoding,
                                       errors=DEFAULT_CONFIG["ENCODING_ERRORS"]))
    except SourceOpenError as exc:
        for source in sources:
            source.close()
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    source_a, source_b = sources

    # 2. Prepare Sinks
    sinks = [ConsoleSink(sys.stdout, color=resolve_color(args.color, sys.stdout))]
    if args.html:
        try:
            sinks.append(HTMLVisualizer(args.html, title=f"{args.file1} vs {args.file2}"))
        except OSError as exc:
            source_a.close()
            source_b.close()
            print(f"Error: cannot write report '{args.html}': {exc.strerror or exc}", file=sys.stderr)
            return 1

    # 3. Run Diff
    matcher = WindowedLineMatcher(source_a, source_b, capacity=args.window)
    logger.debug("Comparing %s and %s with a window of %d lines", args.file1, args.file2, args.window)
    try:
        counts = matcher.run(*sinks)
    except BrokenPipeError:
        # Downstream reader went away (e.g. piped into head)
        devnull = os.open(os.devnull, os.O_WRONLY)
        os.dup2(devnull, sys.stdout.fileno())
        return 1
    finally:
        for sink in sinks:
            sink.close()
        source_a.close()
        source_b.close()

    # 4. Summary
    if args.summary:
        print(f"{counts[DiffKind.DELETED]} deleted, {counts[DiffKind.INSERTED]} inserted, "
              f"{counts[DiffKind.UNCHANGED]} unchanged", file=sys.stderr)
    return 0


if __name__ == "__main__":
    sys.exit(main())
