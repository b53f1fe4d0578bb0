from dataclasses import dataclass
from enum import Enum
from typing import Optional


class Stream(Enum):
    """Identifies which input a line came from."""
    A = "a"
    B = "b"


class DiffKind(Enum):
    DELETED = "deleted"
    INSERTED = "inserted"
    UNCHANGED = "unchanged"


@dataclass
class Line:
    """
    A single line pulled from one input stream.

    Attributes:
        content (str): The text of the line, without its line terminator.
        stream (Stream): The input the line belongs to.
        number (int): The original 1-based line number within its stream.
        matched (bool): Whether an identical partner was found in the
            opposite window. Only ever goes from False to True.
    """
    content: str
    stream: Stream
    number: int
    matched: bool = False


@dataclass(frozen=True)
class DiffLine:
    """
    One classified output line.

    Attributes:
        kind (DiffKind): Deleted, inserted or unchanged.
        content (str): The text of the line.
        old_lineno (Optional[int]): Line number in A, None for insertions.
        new_lineno (Optional[int]): Line number in B, None for deletions.
    """
    kind: DiffKind
    content: str
    old_lineno: Optional[int] = None
    new_lineno: Optional[int] = None

    @classmethod
    def deleted(cls, line: Line) -> "DiffLine":
        return cls(DiffKind.DELETED, line.content, old_lineno=line.number)

    @classmethod
    def inserted(cls, line: Line) -> "DiffLine":
        return cls(DiffKind.INSERTED, line.content, new_lineno=line.number)

    @classmethod
    def unchanged(cls, line_a: Line, line_b: Line) -> "DiffLine":
        return cls(DiffKind.UNCHANGED, line_a.content,
                   old_lineno=line_a.number, new_lineno=line_b.number)
