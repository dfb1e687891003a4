"""
Source buffers holding the JSON bytes of a decoding session.

A buffer is built in one of three modes: copied from caller text, loaded
from a file, or wrapped around a caller-owned bytearray. Construction is
all-or-nothing and failures raise ConstructionError.
"""

import os
from dataclasses import dataclass
from enum import Enum
from typing import Any

from ._diagnostics import ConstructionError
from ._diagnostics import Status


class Mode(Enum):
    """Creation modes for a session buffer."""

    DUP = 0
    LOAD = 1
    RAW = 2


@dataclass
class SourceBuffer:
    """
    Mutable document bytes shared by a session and its tokens.

    The document ends at *length*; owned buffers keep a NUL byte there.
    """

    data: bytearray
    length: int
    path: str | None = None
    owned: bool = True

    @classmethod
    def from_argument(cls, arg: Any, mode: Mode) -> "SourceBuffer":
        if mode is Mode.LOAD:
            return cls.load(arg)
        if mode is Mode.DUP:
            return cls.duplicate(arg)
        if mode is Mode.RAW:
            return cls.wrap(arg)
        raise ConstructionError(
            Status.INVALID_MODE, f"invalid mode ({mode!r})"
        )

    @classmethod
    def duplicate(cls, text: str | bytes | bytearray) -> "SourceBuffer":
        """Copies caller text into an owned, NUL terminated buffer."""
        if isinstance(text, str):
            text = text.encode("utf-8")
        if not isinstance(text, bytes | bytearray | memoryview):
            raise ConstructionError(
                Status.INVALID_MODE,
                f"cannot duplicate {type(text).__name__} data",
            )
        try:
            data = bytearray(text)
            data.append(0)
        except MemoryError as e:
            raise ConstructionError(
                Status.OUT_OF_MEMORY, "could not allocate memory"
            ) from e
        return cls(data, _document_length(data))

    @classmethod
    def load(cls, path: str | os.PathLike[str]) -> "SourceBuffer":
        """Reads a whole file into an owned, NUL terminated buffer."""
        try:
            path = os.fspath(path)
        except TypeError as e:
            raise ConstructionError(
                Status.INVALID_MODE, f"invalid file path ({path!r})"
            ) from e

        try:
            with open(path, "rb") as stream:
                expected = os.fstat(stream.fileno()).st_size
                data = bytearray(expected + 1)
                nread = stream.readinto(memoryview(data)[:expected])
        except MemoryError as e:
            raise ConstructionError(
                Status.OUT_OF_MEMORY, "could not allocate memory", source=path
            ) from e
        except OSError as e:
            raise ConstructionError(
                Status.IO_ERROR, f"could not open file `{path}`", source=path
            ) from e

        if nread != expected:
            raise ConstructionError(
                Status.IO_ERROR,
                f"error while reading file `{path}` ({nread} != {expected})",
                source=path,
            )
        return cls(data, _document_length(data), path=path)

    @classmethod
    def wrap(cls, data: bytearray) -> "SourceBuffer":
        """Uses a caller bytearray in place; the caller keeps ownership."""
        if not isinstance(data, bytearray):
            raise ConstructionError(
                Status.INVALID_MODE,
                f"raw mode requires a bytearray, not {type(data).__name__}",
            )
        return cls(data, _document_length(data), owned=False)

    def describe(self) -> str:
        return self.path if self.path is not None else "<string>"


def _document_length(data: bytearray) -> int:
    end = data.find(0)
    return len(data) if end < 0 else end
