"""
binchunk Entry Point
====================

Dumps a file as hex and printable ASCII, one block per edge-delimited
chunk (edge bytes are '\\n', '\\r' and '\\0').

Usage:
    python -m bindiff.chunker <inputfile> [-O FILE | -o]
"""
import argparse
import logging
import sys

from .input_controller import ChunkReader, SourceOpenError
from .visualizer import HexDumpPrinter

logger = logging.getLogger("bindiff.chunker")

HEX_WIDTH = 32


def build_parser():
    parser = argparse.ArgumentParser(
        prog="binchunk",
        description="binchunk: hex dump of a file split on line-ending bytes")
    parser.add_argument("inputfile", help="File to dump")
    target = parser.add_mutually_exclusive_group()
    target.add_argument("-O", dest="output", metavar="FILE", help="Write output to FILE")
    target.add_argument("-o", dest="default_output", action="store_true",
                        help="Write output to <inputfile>.chunk")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser


def dump(reader: ChunkReader, printer: HexDumpPrinter) -> int:
    """Prints every chunk of `reader`, then any trailing bytes. Returns the chunk count."""
    count = 0
    while True:
        chunk = reader.read_until()
        if not chunk:
            break
        printer.print(chunk)
        count += 1

    remaining = reader.read_remaining()
    if remaining:
        printer.print(remaining)
        count += 1
    return count


def main(argv=None):
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format="[%(levelname)s] %(message)s")

    output = args.output
    if args.default_output:
        output = args.inputfile + ".chunk"

    printer = HexDumpPrinter(HEX_WIDTH)
    if output:
        try:
            printer.set_output_file(output)
        except OSError as exc:
            print(f"Error: failed to open output file '{output}': {exc.strerror or exc}", file=sys.stderr)
            return 1

    try:
        with ChunkReader(args.inputfile) as reader:
            count = dump(reader, printer)
    except (SourceOpenError, OSError) as exc:
        print(f"Error processing file {args.inputfile}: {exc}", file=sys.stderr)
        return 1
    finally:
        printer.close()

    logger.debug("Dumped %d chunks from %s", count, args.inputfile)
    return 0


if __name__ == "__main__":
    sys.exit(main())
