"""
Line/column bookkeeping over an immutable source text.
"""

import re
from bisect import bisect_right
from typing import List, Tuple

LINE_BREAK = re.compile(r"\r\n|\r|\n")


class TextDocument:
    """1-based line/column <-> offset mapping for one snapshot of a text."""

    def __init__(self, text: str):
        self.text = text
        self._starts: List[int] = [0]
        self._ends: List[int] = []
        for match in LINE_BREAK.finditer(text):
            self._ends.append(match.start())
            self._starts.append(match.end())
        self._ends.append(len(text))
        self.eol = "\r\n" if "\r\n" in text else "\n"

    @property
    def line_count(self) -> int:
        return len(self._starts)

    def _index(self, line: int) -> int:
        return min(max(line, 1), self.line_count) - 1

    def line_start(self, line: int) -> int:
        return self._starts[self._index(line)]

    def line_end(self, line: int) -> int:
        """Offset of the end of the line's content, before its terminator."""
        return self._ends[self._index(line)]

    def line_break_end(self, line: int) -> int:
        """Offset just past the line's terminator (end of text on the last line)."""
        index = self._index(line)
        if index + 1 < len(self._starts):
            return self._starts[index + 1]
        return len(self.text)

    def line_text(self, line: int) -> str:
        return self.text[self.line_start(line):self.line_end(line)]

    def indentation(self, line: int) -> str:
        content = self.line_text(line)
        return content[:len(content) - len(content.lstrip(" \t"))]

    def offset_at(self, line: int, column: int) -> int:
        start = self.line_start(line)
        return min(start + max(column, 1) - 1, self.line_end(line))

    def position_at(self, offset: int) -> Tuple[int, int]:
        offset = min(max(offset, 0), len(self.text))
        index = bisect_right(self._starts, offset) - 1
        return index + 1, offset - self._starts[index] + 1
