"""
Pull-style JSON decoding over a flat token stream.

A Session holds one JSON document, its tokens and a cursor. Callers
consume the document one token at a time with typed operations, skip
whole subtrees without visiting them and recover raw text spans. Every
operation returns a Result; failures are reported through pluggable
diagnostics and never unwind on their own.
"""

import os
from dataclasses import dataclass
from typing import Any
from typing import TextIO

from ._converters import NumberKind
from ._converters import is_null
from ._converters import to_bool
from ._converters import to_number
from ._diagnostics import ConstructionError
from ._diagnostics import DecodeError
from ._diagnostics import Diagnostics
from ._diagnostics import ErrorHandler
from ._diagnostics import Status
from ._diagnostics import logger
from ._profiling import HotPathStats
from ._profiling import ProfileContext
from ._profiling import clear_hot_path_stats
from ._profiling import get_hot_path_stats
from ._source import Mode
from ._source import SourceBuffer
from ._tokenizer import Token
from ._tokenizer import Tokenizer
from ._tokenizer import TokenizerError
from ._tokenizer import TokenType
from ._tokens import TokenStore
from ._utf8_mapper import UTF8PositionMapper

__version__ = "0.1.0"

type Position = int

_TERMINATOR = 0

# Enclosing delimiters of compound and string tokens
_DELIMITERS = {
    TokenType.OBJECT: (ord("{"), ord("}")),
    TokenType.ARRAY: (ord("["), ord("]")),
    TokenType.STRING: (ord('"'), ord('"')),
}


@dataclass(frozen=True)
class SessionConfig:
    """
    Configures session construction and cursor behavior.

    null_advances=False keeps the legacy cursor behavior where reading
    a null leaves the index on the null token.
    """

    initial_token_capacity: int = 64
    max_token_capacity: int | None = None
    null_advances: bool = True

    def __post_init__(self) -> None:
        if not isinstance(self.null_advances, bool):
            raise TypeError("null_advances must be a boolean")
        if self.initial_token_capacity <= 0:
            raise ValueError("initial_token_capacity must be positive")
        if self.max_token_capacity is not None and self.max_token_capacity <= 0:
            raise ValueError("max_token_capacity must be positive")


@dataclass(frozen=True)
class Result[T]:
    """
    Outcome of a decoding operation.

    The status is always set. On failure, error carries the positioned
    DecodeError that was reported (or would have been, if suppressed).
    """

    status: Status
    value: T | None = None
    error: DecodeError | None = None

    @property
    def ok(self) -> bool:
        return self.status is Status.SUCCESS

    def unwrap(self) -> T | None:
        """Returns the value, or raises the carried DecodeError."""
        if self.error is not None:
            raise self.error
        return self.value


class Session:
    """
    Cursor over the tokens of one JSON document.

    The session owns the document bytes and the token store for its whole
    lifetime. Reading a string or primitive writes a NUL terminator right
    after its span; the byte is never restored, so raw spans of values
    whose content was already read show those terminators.
    """

    def __init__(
        self,
        source: SourceBuffer,
        tokens: TokenStore,
        diagnostics: Diagnostics | None = None,
        config: SessionConfig | None = None,
    ) -> None:
        self._source = source
        self._tokens = tokens
        self._diagnostics = diagnostics or Diagnostics(source=source.path)
        self._config = config or SessionConfig()
        self._mapper = UTF8PositionMapper(source.data, source.length)
        self._index: Position = 0
        self._closed = False

    def __enter__(self) -> "Session":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()

    def close(self) -> None:
        """Releases the document buffer and the tokens together."""
        if self._closed:
            return
        self._closed = True
        self._source = SourceBuffer(bytearray(), 0, self._source.path)
        self._tokens = TokenStore([])
        self._index = 0

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def source(self) -> str | None:
        """File path of the document, or None for in-memory text."""
        return self._source.path

    @property
    def buffer(self) -> bytearray:
        self._check_open()
        return self._source.data

    @property
    def config(self) -> SessionConfig:
        return self._config

    @property
    def index(self) -> Position:
        return self._index

    @index.setter
    def index(self, value: Position) -> None:
        self._check_open()
        if not 0 <= value <= len(self._tokens):
            raise ValueError(
                f"index {value} out of range [0, {len(self._tokens)}]"
            )
        self._index = value

    @property
    def token(self) -> Token | None:
        """Token at the cursor, or None once every token is consumed."""
        self._check_open()
        if self._index >= len(self._tokens):
            return None
        return self._tokens[self._index]

    @property
    def token_count(self) -> int:
        return len(self._tokens)

    def __len__(self) -> int:
        return len(self._tokens)

    # Diagnostics

    @property
    def errors_enabled(self) -> bool:
        return self._diagnostics.enabled

    @property
    def error_handler(self) -> ErrorHandler:
        return self._diagnostics.handler

    @error_handler.setter
    def error_handler(self, handler: ErrorHandler) -> None:
        self._diagnostics.handler = handler

    @property
    def error_stream(self) -> TextIO | None:
        return self._diagnostics.stream

    @error_stream.setter
    def error_stream(self, stream: TextIO | None) -> None:
        self._diagnostics.stream = stream

    def enable_errors(self) -> None:
        """Reports errors again. New sessions start enabled."""
        self._diagnostics.enable()

    def disable_errors(self) -> None:
        """
        Silences error reporting and the failure handler.

        Operations still return their failure status.
        """
        self._diagnostics.disable()

    def raise_error(self, status: Status, message: str, *args: Any) -> Status:
        """Reports a caller defined error at the current position."""
        if args:
            message = message % args
        return self._fail(status, "raise_error", message).status

    def position_tag(self) -> str:
        """Short description of the cursor position for messages."""
        self._check_open()
        parts = [f"#{self._index}"]
        key = self._enclosing_key()
        if key is not None:
            parts.append(f'"{key}"')
        token = self.token
        if token is not None:
            line, column = self._mapper.locate(token.start)
            parts.append(f"(line {line}, column {column})")
        return " ".join(parts)

    # Typed consumers

    def next_object(self) -> Result[int]:
        """Consumes an object header; the value is its key/value pair count."""
        return self._next_compound("next_object", TokenType.OBJECT)

    def next_array(self) -> Result[int]:
        """Consumes an array header; the value is its element count."""
        return self._next_compound("next_array", TokenType.ARRAY)

    def next_string(self, key: bool = False) -> Result[str]:
        """
        Consumes a string, or a key when key=True.

        A null literal stands for a missing string value (the result value
        is None) but never for a key. Escape sequences are returned as
        written in the document.
        """
        operation = "next_string"
        token = self._peek()
        if token is None:
            return self._unexpected_end(operation)

        if token.type is TokenType.PRIMITIVE and not key:
            if is_null(self._span(token)):
                self._consume(token, self._config.null_advances)
                return Result(Status.SUCCESS, None)

        if token.type is not TokenType.STRING:
            return self._fail(
                Status.TYPE_MISMATCH,
                operation,
                f"unexpected type ({token.type.name})",
            )
        if key and token.size != 1:
            return self._fail(
                Status.MISSING_VALUE,
                operation,
                "expected an object key, got a string value",
            )

        raw = self._span(token)
        try:
            text = raw.decode("utf-8")
        except UnicodeDecodeError:
            return self._fail(
                Status.INVALID_VALUE,
                operation,
                f"invalid value. Expected UTF-8 text. Got {raw!r}",
            )
        self._consume(token)
        return Result(Status.SUCCESS, text)

    def next_number(
        self, kind: NumberKind = NumberKind.FLOAT64
    ) -> Result[int | float]:
        """Consumes a number stored with the width and type of *kind*."""
        if not isinstance(kind, NumberKind):
            raise TypeError("kind must be a NumberKind")

        operation = "next_number"
        token = self._peek()
        if token is None:
            return self._unexpected_end(operation)
        if token.type is not TokenType.PRIMITIVE:
            return self._fail(
                Status.TYPE_MISMATCH,
                operation,
                f"unexpected type ({token.type.name})",
            )

        try:
            value = to_number(self._span(token), kind)
        except ValueError as e:
            return self._fail(
                Status.INVALID_VALUE, operation, f"invalid value. {e}"
            )
        self._consume(token)
        return Result(Status.SUCCESS, value)

    def next_bool(self) -> Result[bool]:
        operation = "next_bool"
        token = self._peek()
        if token is None:
            return self._unexpected_end(operation)
        if token.type is not TokenType.PRIMITIVE:
            return self._fail(
                Status.TYPE_MISMATCH,
                operation,
                f"unexpected type ({token.type.name})",
            )

        try:
            value = to_bool(self._span(token))
        except ValueError as e:
            return self._fail(
                Status.INVALID_VALUE, operation, f"invalid value. {e}"
            )
        self._consume(token)
        return Result(Status.SUCCESS, value)

    def next_null(self) -> Result[None]:
        """
        Consumes a null literal.

        Anything else is a type mismatch. With null_advances=False the
        index stays on the null token after success.
        """
        operation = "next_null"
        token = self._peek()
        if token is None:
            return self._unexpected_end(operation)
        if token.type is not TokenType.PRIMITIVE or not is_null(
            self._span(token)
        ):
            return self._fail(
                Status.TYPE_MISMATCH,
                operation,
                f"unexpected type ({token.type.name}), expected null",
            )
        self._consume(token, self._config.null_advances)
        return Result(Status.SUCCESS, None)

    # Structure

    def skip(self) -> Result[int]:
        """
        Skips the current value with all of its descendants.

        Walks child counts only, with an explicit pending count instead
        of recursion. The value is the number of tokens skipped.
        """
        self._check_open()
        start = self._index
        index = start
        pending = 1
        with ProfileContext("skip"):
            while pending:
                if index >= len(self._tokens):
                    return self._fail(
                        Status.MALFORMED_INPUT, "skip", "incomplete input"
                    )
                token = self._tokens[index]
                index += 1
                pending -= 1
                if token.type is TokenType.ARRAY:
                    pending += token.size
                elif token.type is TokenType.OBJECT:
                    pending += 2 * token.size
        self._index = index
        return Result(Status.SUCCESS, index - start)

    def token_raw(self, copy: bool = True) -> Result[bytes | memoryview]:
        """
        Returns the source text of the current token with its delimiters.

        A terminator is written right after the returned span. With
        copy=False the value is a memoryview into the session buffer.
        The cursor does not move.
        """
        operation = "token_raw"
        token = self._peek()
        if token is None:
            return self._unexpected_end(operation)

        start, end = self._delimited_span(token)
        data = self._source.data
        if end < len(data):
            data[end] = _TERMINATOR
        if copy:
            return Result(Status.SUCCESS, bytes(data[start:end]))
        return Result(Status.SUCCESS, memoryview(data)[start:end])

    # Internals

    def _check_open(self) -> None:
        if self._closed:
            raise ValueError("operation on a closed session")

    def _peek(self) -> Token | None:
        return self.token

    def _next_compound(self, operation: str, expected: TokenType) -> Result[int]:
        token = self._peek()
        if token is None:
            return self._unexpected_end(operation)
        if token.type is not expected:
            return self._fail(
                Status.TYPE_MISMATCH,
                operation,
                f"unexpected type ({token.type.name})",
            )
        self._index += 1
        return Result(Status.SUCCESS, token.size)

    def _span(self, token: Token) -> bytes:
        return bytes(self._source.data[token.start : token.end])

    def _consume(self, token: Token, advance: bool = True) -> None:
        """Terminates a read string or primitive span in place."""
        data = self._source.data
        if token.end < len(data):
            data[token.end] = _TERMINATOR
        if advance:
            self._index += 1

    def _delimited_span(self, token: Token) -> tuple[int, int]:
        """
        Locates the delimiters around a token within its own bounds.

        String quotes sit just outside the token span while brackets sit
        on its edges. A delimiter overwritten by a terminator is assumed
        at its expected offset.
        """
        delimiters = _DELIMITERS.get(token.type)
        if delimiters is None:
            return token.start, token.end

        opening, closing = delimiters
        outside = 1 if token.type is TokenType.STRING else 0
        data = self._source.data

        start = data.rfind(opening, 0, token.start + 1 - outside)
        if start < 0:
            start = token.start - outside
        last = data.find(closing, token.end - 1 + outside, token.end + outside)
        if last < 0:
            last = token.end - 1 + outside
        return start, last + 1

    def _enclosing_key(self) -> str | None:
        if self._index == 0 or self._index > len(self._tokens):
            return None
        previous = self._tokens[self._index - 1]
        if previous.type is not TokenType.STRING or previous.size != 1:
            return None
        raw = self._source.data[previous.start : previous.end]
        return raw.decode("utf-8", errors="replace")

    def _unexpected_end(self, operation: str) -> Result[Any]:
        return self._fail(
            Status.MALFORMED_INPUT, operation, "unexpected end of tokens"
        )

    def _fail(self, status: Status, operation: str, message: str) -> Result[Any]:
        """Builds the positioned error, reports it and wraps it."""
        line = column = None
        token = self.token
        if token is not None:
            line, column = self._mapper.locate(token.start)
        error = DecodeError(
            status,
            message,
            operation=operation,
            index=self._index,
            source=self._source.path,
            line=line,
            column=column,
        )
        self._diagnostics.report(error)
        return Result(status, None, error)


def _source_label(source: Any, mode: Mode) -> str | None:
    if mode is Mode.LOAD and isinstance(source, str | os.PathLike):
        return os.fspath(source)
    return None


def create(
    source: Any,
    mode: Mode = Mode.DUP,
    *,
    error_handler: ErrorHandler = None,
    error_stream: TextIO | None = None,
    config: SessionConfig | None = None,
) -> Session:
    """
    Builds a session from JSON text, a file path or a caller bytearray.

    Construction is all-or-nothing. A failure is reported once through
    the error stream and handler, then raised as ConstructionError.
    """
    if config is None:
        config = SessionConfig()
    diagnostics = Diagnostics(
        error_stream, error_handler, source=_source_label(source, mode)
    )

    try:
        buffer = SourceBuffer.from_argument(source, mode)
        tokens = TokenStore.build(
            buffer, config.initial_token_capacity, config.max_token_capacity
        )
    except ConstructionError as error:
        diagnostics.report(error)
        raise

    logger.debug("created session for %s", buffer.describe())
    return Session(buffer, tokens, diagnostics, config)


def loads(text: str | bytes | bytearray, **kwargs: Any) -> Session:
    """Builds a session over a private copy of *text*."""
    return create(text, Mode.DUP, **kwargs)


def load(path: str | os.PathLike[str], **kwargs: Any) -> Session:
    """Builds a session over the contents of a file."""
    return create(path, Mode.LOAD, **kwargs)


__all__ = [
    "ConstructionError",
    "DecodeError",
    "Diagnostics",
    "ErrorHandler",
    "HotPathStats",
    "Mode",
    "NumberKind",
    "Result",
    "Session",
    "SessionConfig",
    "SourceBuffer",
    "Status",
    "Token",
    "TokenStore",
    "TokenType",
    "Tokenizer",
    "TokenizerError",
    "UTF8PositionMapper",
    "clear_hot_path_stats",
    "create",
    "get_hot_path_stats",
    "load",
    "loads",
]
