"""
Error taxonomy and reporting for decoding sessions.

Every failure is described by a DecodeError value carrying its status,
the failing operation and its position. Diagnostics decides whether the
error is emitted and whether the failure handler runs; the status is
returned to the caller either way.
"""

import inspect
import logging
from collections.abc import Callable
from enum import IntEnum
from typing import Any
from typing import TextIO

logger = logging.getLogger("jtea")


class Status(IntEnum):
    """Result codes returned by every decoding operation."""

    SUCCESS = 0
    OUT_OF_MEMORY = -1
    MALFORMED_INPUT = -2
    INVALID_MODE = -3
    TYPE_MISMATCH = -4
    MISSING_VALUE = -5
    INVALID_VALUE = -6
    IO_ERROR = -7


# Failure handlers take no argument, or the operation name and status
ErrorHandler = Callable[[], Any] | Callable[[str, Status], Any] | None


class DecodeError(ValueError):
    """
    Describes a decoding failure with its operation and position.

    Instances are handed back to the caller inside a Result rather than
    raised; Result.unwrap() raises them on demand.
    """

    def __init__(
        self,
        status: Status,
        msg: str,
        *,
        operation: str = "",
        index: int | None = None,
        source: str | None = None,
        line: int | None = None,
        column: int | None = None,
    ) -> None:
        if not isinstance(status, Status):
            raise TypeError("status must be a Status")

        self.status = status
        self.msg = msg
        self.operation = operation
        self.index = index
        self.source = source
        self.line = line
        self.column = column

        super().__init__(self._format())

    def _format(self) -> str:
        where = self.source if self.source is not None else "<string>"
        if self.index is not None:
            where = f"{where} #{self.index}"
        text = f"[{where}] "
        if self.operation:
            text += f"{self.operation}: "
        text += self.msg
        if self.line is not None:
            text += f" (line {self.line}, column {self.column})"
        return text


class ConstructionError(DecodeError):
    """Raised when a session cannot be built from its source."""


def _accepts_details(handler: Callable[..., Any]) -> bool:
    """Tells whether a handler takes the (operation, status) form."""
    try:
        signature = inspect.signature(handler)
    except (TypeError, ValueError):
        return False
    try:
        signature.bind("operation", Status.SUCCESS)
    except TypeError:
        return False
    return True


class Diagnostics:
    """
    Emits decoding errors to a stream and a failure handler.

    Suppression only silences the side effects: report() returns the
    error status whether or not anything was emitted.
    """

    def __init__(
        self,
        stream: TextIO | None = None,
        handler: ErrorHandler = None,
        source: str | None = None,
    ) -> None:
        self.stream = stream
        self.handler = handler
        self.source = source
        self.enabled = True

    @property
    def handler(self) -> ErrorHandler:
        return self._handler

    @handler.setter
    def handler(self, handler: ErrorHandler) -> None:
        """Replaces the failure handler and detects its form."""
        self._handler = handler
        self._detailed = handler is not None and _accepts_details(handler)

    def enable(self) -> None:
        self.enabled = True

    def disable(self) -> None:
        self.enabled = False

    def report(self, error: DecodeError) -> Status:
        """Emits the error unless suppressed, then returns its status."""
        if not self.enabled:
            return error.status

        logger.debug("%s", error)
        if self.stream is not None:
            self.stream.write(f"{error}\n")
        if self.handler is not None:
            if self._detailed:
                self.handler(error.operation, error.status)  # type: ignore[call-arg]
            else:
                self.handler()  # type: ignore[call-arg]
        return error.status
