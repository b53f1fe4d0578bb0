import io
import os
import tempfile
import unittest
from unittest import mock

from bindiff.engine import WindowedLineMatcher, compare
from bindiff.input_controller import SequenceLineSource
from bindiff.models import DiffKind, DiffLine
from bindiff.visualizer import (BufferSink, ConsoleSink, HexDumpPrinter, HTMLVisualizer,
                                resolve_color)

SAMPLE = [
    DiffLine(DiffKind.DELETED, "gone", old_lineno=1),
    DiffLine(DiffKind.INSERTED, "new", new_lineno=1),
    DiffLine(DiffKind.UNCHANGED, "same", old_lineno=2, new_lineno=2),
]


class TestConsoleSink(unittest.TestCase):
    def test_plain_prefixes(self):
        out = io.StringIO()
        sink = ConsoleSink(out, color=False)
        for diff_line in SAMPLE:
            sink.emit(diff_line)
        self.assertEqual(out.getvalue(), "- gone\n+ new\n  same\n")

    def test_colored_output(self):
        out = io.StringIO()
        sink = ConsoleSink(out, color=True)
        for diff_line in SAMPLE:
            sink.emit(diff_line)
        self.assertEqual(out.getvalue(),
                         "\033[31m- gone\033[0m\n\033[32m+ new\033[0m\n  same\n")

    def test_resolve_color(self):
        self.assertTrue(resolve_color("always", io.StringIO()))
        self.assertFalse(resolve_color("never", io.StringIO()))
        self.assertFalse(resolve_color("auto", io.StringIO()))

    def test_no_color_env_wins_over_tty(self):
        tty = mock.Mock()
        tty.isatty.return_value = True
        with mock.patch.dict(os.environ, {"NO_COLOR": "1"}):
            self.assertFalse(resolve_color("auto", tty))
        with mock.patch.dict(os.environ, {}, clear=True):
            self.assertTrue(resolve_color("auto", tty))


class TestBufferSink(unittest.TestCase):
    def test_collects_and_renders(self):
        sink = BufferSink()
        for diff_line in compare(["a", "b"], ["a", "x", "b"]):
            sink.emit(diff_line)
        self.assertEqual(len(sink.lines), 3)
        self.assertEqual(sink.text(), "  a\n+ x\n  b\n")


class TestHTMLVisualizer(unittest.TestCase):
    def test_report(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, "report.html")
            lines = SAMPLE + [DiffLine(DiffKind.INSERTED, "<b>&", new_lineno=3)]
            HTMLVisualizer(path, title="old vs new").generate(lines)
            with open(path, encoding="utf-8") as f:
                report = f.read()

        self.assertIn("<title>old vs new</title>", report)
        self.assertIn('class="row-deleted"', report)
        self.assertIn('class="row-added"', report)
        self.assertIn("&lt;b&gt;&amp;", report)
        self.assertEqual(report.count("<tr "), 4)
        self.assertTrue(report.rstrip().endswith("</html>"))

    def test_streams_as_matcher_sink(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, "stream.html")
            report = HTMLVisualizer(path)
            matcher = WindowedLineMatcher(SequenceLineSource(["a", "b"]), SequenceLineSource(["a", "c"]))
            matcher.run(report)
            report.close()
            report.close()
            with open(path, encoding="utf-8") as f:
                content = f.read()

        self.assertEqual(content.count("<tr "), 3)
        self.assertEqual(content.count("</html>"), 1)


class TestHexDumpPrinter(unittest.TestCase):
    def test_single_row(self):
        printer = HexDumpPrinter(32)
        expected = "| " + "41 42 0a".ljust(47) + "  |  " + "AB.".ljust(32) + " |"
        self.assertEqual(printer.format_lines(b"AB\n"), [expected])

    def test_continuation_rows(self):
        printer = HexDumpPrinter(4)
        self.assertEqual(printer.format_lines(b"abcde"), [
            "| 61 62  |  ab   |",
            ": 63 64  :  cd   :",
            ": 65     :  e    :",
        ])

    def test_non_printable_bytes(self):
        line = HexDumpPrinter(4).format_lines(b"\x7f~")[0]
        self.assertEqual(line, "| 7f 7e  |  .~   |")

    def test_empty(self):
        self.assertEqual(HexDumpPrinter().format_lines(b""), [])

    def test_width_must_be_even(self):
        with self.assertRaises(ValueError):
            HexDumpPrinter(31)

    def test_print_to_file(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, "out.chunk")
            printer = HexDumpPrinter(4)
            printer.set_output_file(path)
            printer.print(b"hi")
            printer.close()
            with open(path, encoding="utf-8") as f:
                self.assertEqual(f.read(), "| 68 69  |  hi   |\n")


if __name__ == '__main__':
    unittest.main()
