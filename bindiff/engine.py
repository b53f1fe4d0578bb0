import logging
from collections import Counter, defaultdict, deque
from typing import Deque, Dict, Iterable, Iterator, List, Optional

from .input_controller import LineSource, SequenceLineSource
from .models import DiffKind, DiffLine, Line, Stream

logger = logging.getLogger(__name__)


class LineWindow:
    """
    Bounded lookahead buffer over one line source.

    Holds at most `capacity` lines that have been read but not yet emitted.
    Lines leave from the front and are replenished at the back.
    """

    def __init__(self, source: LineSource, stream: Stream, capacity: int):
        self.source = source
        self.stream = stream
        self.capacity = capacity
        self.lines: Deque[Line] = deque()
        self.exhausted = False
        self._pulled = 0

    def refill(self):
        while len(self.lines) < self.capacity and not self.exhausted:
            content = self.source.next_line()
            if content is None:
                self.exhausted = True
                logger.debug("Stream %s exhausted after %d lines", self.stream.name, self._pulled)
                break
            self._pulled += 1
            self.lines.append(Line(content, self.stream, self._pulled))

    def front(self) -> Optional[Line]:
        return self.lines[0] if self.lines else None

    def evict(self) -> Line:
        return self.lines.popleft()

    def __len__(self):
        return len(self.lines)


class WindowedLineMatcher:
    """
    Single forward pass line diff over two bounded windows.

    Every iteration pairs up identical lines inside the current windows,
    emits the unmatched lines at the front of A (deleted) and of B
    (inserted), then at most one unchanged pair if both fronts agree.
    When an iteration emits nothing, the front line of each window is
    forced out so the total number of buffered lines always shrinks.
    """
    DEFAULT_CAPACITY = 100

    def __init__(self, source_a: LineSource, source_b: LineSource,
                 capacity: int = DEFAULT_CAPACITY):
        """
        Args:
            source_a (LineSource): The old side.
            source_b (LineSource): The new side.
            capacity (int): Maximum number of lines held per window.
        """
        if capacity < 1:
            raise ValueError(f"Window capacity must be at least 1, got {capacity}")
        self.capacity = capacity
        self.window_a = LineWindow(source_a, Stream.A, capacity)
        self.window_b = LineWindow(source_b, Stream.B, capacity)
        self.iterations = 0
        self.stalls = 0
        self._started = False

    def _match_pass(self):
        """Pairs each unmatched A line with the earliest unmatched identical B line."""
        candidates = defaultdict(deque)
        for line in self.window_b.lines:
            if not line.matched:
                candidates[line.content].append(line)

        for line in self.window_a.lines:
            if line.matched:
                continue
            partners = candidates.get(line.content)
            if partners:
                partner = partners.popleft()
                line.matched = True
                partner.matched = True

    def __iter__(self) -> Iterator[DiffLine]:
        if self._started:
            raise RuntimeError("WindowedLineMatcher can only be consumed once")
        self._started = True

        window_a, window_b = self.window_a, self.window_b
        window_a.refill()
        window_b.refill()

        while window_a.lines or window_b.lines:
            self.iterations += 1
            emitted = 0

            self._match_pass()

            # Leading unmatched runs
            while window_a.lines and not window_a.front().matched:
                yield DiffLine.deleted(window_a.evict())
                emitted += 1
            while window_b.lines and not window_b.front().matched:
                yield DiffLine.inserted(window_b.evict())
                emitted += 1

            # One aligned pair; a misaligned pair waits for a later iteration
            front_a, front_b = window_a.front(), window_b.front()
            if front_a is not None and front_b is not None and front_a.content == front_b.content:
                yield DiffLine.unchanged(window_a.evict(), window_b.evict())
                emitted += 2

            window_a.refill()
            window_b.refill()

            if emitted == 0:
                self.stalls += 1
                logger.debug("No progress on iteration %d, forcing out front lines", self.iterations)
                if window_a.lines:
                    yield DiffLine.deleted(window_a.evict())
                if window_b.lines:
                    yield DiffLine.inserted(window_b.evict())
                window_a.refill()
                window_b.refill()

        logger.debug("Comparison finished after %d iterations (%d forced)", self.iterations, self.stalls)

    def run(self, *sinks) -> Dict[DiffKind, int]:
        """
        Drives the comparison to completion, pushing every line to each sink.

        Returns:
            Dict[DiffKind, int]: Number of lines emitted per kind.
        """
        counts = Counter({kind: 0 for kind in DiffKind})
        for diff_line in self:
            for sink in sinks:
                sink.emit(diff_line)
            counts[diff_line.kind] += 1
        return dict(counts)


def compare(lines_a: Iterable[str], lines_b: Iterable[str],
            capacity: int = WindowedLineMatcher.DEFAULT_CAPACITY) -> List[DiffLine]:
    """Compares two in-memory line sequences and returns the classified lines."""
    matcher = WindowedLineMatcher(SequenceLineSource(lines_a, name="a"),
                                  SequenceLineSource(lines_b, name="b"),
                                  capacity=capacity)
    return list(matcher)
