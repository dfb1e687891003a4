"""Mapping of UTF-8 byte offsets to line and column numbers."""

from __future__ import annotations

from bisect import bisect_right
from typing import Final


class UTF8PositionMapper:
    """Locates byte offsets of a UTF-8 document by line and column.

    Line starts are recorded once, when the mapper is built. Build it
    before the document bytes are altered so later terminators do not
    hide line breaks.
    """

    def __init__(self, data: bytes | bytearray, length: int | None = None):
        """Record line starts of the document.

        Args:
            data: The encoded document
            length: Number of document bytes (default: all of data)
        """
        self.length: Final = len(data) if length is None else length
        self.line_starts: list[int] = [0]
        self._is_ascii_only = True

        ascii_limit = 127
        for offset in range(self.length):
            byte = data[offset]
            if byte == 0x0A:
                self.line_starts.append(offset + 1)
            elif byte > ascii_limit:
                self._is_ascii_only = False

        # Column counting needs the original bytes of non-ASCII documents
        self._data = None if self._is_ascii_only else bytes(data[: self.length])

    def locate(self, byte_pos: int) -> tuple[int, int]:
        """Convert a byte offset to a 1-based (line, column) pair.

        Columns count characters, not bytes.
        """
        byte_pos = max(0, min(byte_pos, self.length))
        line = bisect_right(self.line_starts, byte_pos)
        line_start = self.line_starts[line - 1]

        # Fast path for ASCII-only text
        if self._data is None:
            return line, byte_pos - line_start + 1

        # Count lead bytes only; continuation bytes look like 0b10xxxxxx
        chars = sum(
            1
            for byte in self._data[line_start:byte_pos]
            if byte & 0xC0 != 0x80
        )
        return line, chars + 1
