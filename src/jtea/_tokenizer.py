"""
Flat JSON tokenizer producing jsmn-layout tokens.

Tokens are emitted in pre-order. String spans exclude the quotes, object
and array spans include their brackets, and every container records the
number of its immediate children: key/value pairs for objects, elements
for arrays. Object keys are string tokens of size 1.
"""

import re
from dataclasses import dataclass
from enum import IntEnum

from ._profiling import ProfileContext


class TokenType(IntEnum):
    """Token type tags, numbered as in jsmn."""

    UNDEFINED = 0
    OBJECT = 1
    ARRAY = 2
    STRING = 3
    PRIMITIVE = 4


class TokenizerError(IntEnum):
    """Negative parse results."""

    NOMEM = -1  # token array too small
    INVAL = -2  # invalid character or structure
    PART = -3  # input ended before the document was complete


@dataclass(frozen=True)
class Token:
    """One JSON syntactic unit, addressed by its position in the store."""

    type: TokenType
    start: int
    end: int
    size: int = 0


class _Expect(IntEnum):
    """What the state machine accepts next."""

    VALUE = 0
    VALUE_OR_CLOSE = 1
    KEY = 2
    KEY_OR_CLOSE = 3
    COLON = 4
    COMMA_OR_CLOSE = 5
    DONE = 6


_VALUE_STATES = frozenset((_Expect.VALUE, _Expect.VALUE_OR_CLOSE))
_KEY_STATES = frozenset((_Expect.KEY, _Expect.KEY_OR_CLOSE))

_WHITESPACE = frozenset(b" \t\n\r")
_PRIMITIVE_STOP = frozenset(b" \t\n\r,]}:")
_ESCAPES = frozenset(b'"\\/bfnrtu')
_HEX_DIGITS = frozenset(b"0123456789abcdefABCDEF")
_LITERALS = frozenset((b"true", b"false", b"null"))
_NUMBER = re.compile(rb"-?(?:0|[1-9][0-9]*)(?:\.[0-9]+)?(?:[eE][+-]?[0-9]+)?")

_LBRACE, _RBRACE = ord("{"), ord("}")
_LBRACKET, _RBRACKET = ord("["), ord("]")
_QUOTE, _BACKSLASH = ord('"'), ord("\\")
_COLON, _COMMA = ord(":"), ord(",")


class _Failure(Exception):
    def __init__(self, code: TokenizerError) -> None:
        super().__init__(code.name)
        self.code = code


class Tokenizer:
    """
    Splits a JSON document into a flat token sequence.

    The document ends at the first NUL byte or at *length*. parse() can be
    called repeatedly, e.g. with a larger token array after NOMEM.
    """

    def __init__(self, buffer: bytes | bytearray, length: int | None = None):
        self.buffer = buffer
        if length is None:
            length = buffer.find(0)
            if length < 0:
                length = len(buffer)
        self.length = length

    def parse(self, tokens: list[Token | None] | None = None) -> int:
        """
        Tokenizes the whole document.

        With tokens=None only the token count is returned. Otherwise the
        list is filled from its start and the count is returned, or a
        negative TokenizerError value.
        """
        with ProfileContext("tokenize", self.length):
            try:
                return self._scan(tokens)
            except _Failure as failure:
                return int(failure.code)

    def _scan(self, tokens: list[Token | None] | None) -> int:
        buf = self.buffer
        end = self.length
        capacity = None if tokens is None else len(tokens)
        # [type, start, end, size] per token, frozen once complete
        scratch: list[list[int]] = []
        stack: list[int] = []
        expect = _Expect.VALUE
        pos = 0

        while pos < end:
            char = buf[pos]
            if char in _WHITESPACE:
                pos += 1
                continue
            if expect is _Expect.DONE:
                raise _Failure(TokenizerError.INVAL)

            if char == _LBRACE or char == _LBRACKET:
                if expect not in _VALUE_STATES:
                    raise _Failure(TokenizerError.INVAL)
                kind = TokenType.OBJECT if char == _LBRACE else TokenType.ARRAY
                self._attach(scratch, stack)
                stack.append(
                    self._allocate(scratch, capacity, kind, pos, -1)
                )
                expect = (
                    _Expect.KEY_OR_CLOSE
                    if kind is TokenType.OBJECT
                    else _Expect.VALUE_OR_CLOSE
                )
                pos += 1

            elif char == _RBRACE or char == _RBRACKET:
                kind = TokenType.OBJECT if char == _RBRACE else TokenType.ARRAY
                empty = (
                    _Expect.KEY_OR_CLOSE
                    if kind is TokenType.OBJECT
                    else _Expect.VALUE_OR_CLOSE
                )
                if not stack or scratch[stack[-1]][0] != kind:
                    raise _Failure(TokenizerError.INVAL)
                if expect is not _Expect.COMMA_OR_CLOSE and expect is not empty:
                    raise _Failure(TokenizerError.INVAL)
                scratch[stack.pop()][2] = pos + 1
                expect = _Expect.COMMA_OR_CLOSE if stack else _Expect.DONE
                pos += 1

            elif char == _QUOTE:
                if expect in _KEY_STATES:
                    closing = self._scan_string(pos + 1)
                    scratch[stack[-1]][3] += 1
                    expect = _Expect.COLON
                elif expect in _VALUE_STATES:
                    closing = self._scan_string(pos + 1)
                    self._attach(scratch, stack)
                    expect = _Expect.COMMA_OR_CLOSE if stack else _Expect.DONE
                else:
                    raise _Failure(TokenizerError.INVAL)
                self._allocate(
                    scratch, capacity, TokenType.STRING, pos + 1, closing
                )
                pos = closing + 1

            elif char == _COLON:
                if expect is not _Expect.COLON:
                    raise _Failure(TokenizerError.INVAL)
                # The key is the last token allocated
                scratch[-1][3] = 1
                expect = _Expect.VALUE
                pos += 1

            elif char == _COMMA:
                if expect is not _Expect.COMMA_OR_CLOSE:
                    raise _Failure(TokenizerError.INVAL)
                expect = (
                    _Expect.KEY
                    if scratch[stack[-1]][0] == TokenType.OBJECT
                    else _Expect.VALUE
                )
                pos += 1

            else:
                if expect not in _VALUE_STATES:
                    raise _Failure(TokenizerError.INVAL)
                stop = self._scan_primitive(pos)
                self._attach(scratch, stack)
                self._allocate(
                    scratch, capacity, TokenType.PRIMITIVE, pos, stop
                )
                expect = _Expect.COMMA_OR_CLOSE if stack else _Expect.DONE
                pos = stop

        if expect is not _Expect.DONE:
            if not scratch:
                return 0
            raise _Failure(TokenizerError.PART)

        if tokens is not None:
            for i, (kind, start, stop, size) in enumerate(scratch):
                tokens[i] = Token(TokenType(kind), start, stop, size)
        return len(scratch)

    @staticmethod
    def _allocate(
        scratch: list[list[int]],
        capacity: int | None,
        kind: TokenType,
        start: int,
        end: int,
    ) -> int:
        if capacity is not None and len(scratch) >= capacity:
            raise _Failure(TokenizerError.NOMEM)
        scratch.append([kind, start, end, 0])
        return len(scratch) - 1

    @staticmethod
    def _attach(scratch: list[list[int]], stack: list[int]) -> None:
        """Counts a new value as an element of the enclosing array."""
        if stack and scratch[stack[-1]][0] == TokenType.ARRAY:
            scratch[stack[-1]][3] += 1

    def _scan_string(self, pos: int) -> int:
        """Returns the offset of the closing quote of a string."""
        buf = self.buffer
        end = self.length
        while pos < end:
            char = buf[pos]
            if char == _QUOTE:
                return pos
            if char == _BACKSLASH:
                if pos + 1 >= end:
                    raise _Failure(TokenizerError.PART)
                escape = buf[pos + 1]
                if escape not in _ESCAPES:
                    raise _Failure(TokenizerError.INVAL)
                if escape == ord("u"):
                    digits = buf[pos + 2 : min(pos + 6, end)]
                    if any(digit not in _HEX_DIGITS for digit in digits):
                        raise _Failure(TokenizerError.INVAL)
                    if len(digits) < 4:
                        raise _Failure(TokenizerError.PART)
                    pos += 6
                else:
                    pos += 2
                continue
            if char < 0x20:
                raise _Failure(TokenizerError.INVAL)
            pos += 1
        raise _Failure(TokenizerError.PART)

    def _scan_primitive(self, pos: int) -> int:
        """Returns the end offset of a literal or number."""
        buf = self.buffer
        end = self.length
        stop = pos
        while stop < end and buf[stop] not in _PRIMITIVE_STOP:
            stop += 1
        text = bytes(buf[pos:stop])
        if text not in _LITERALS and _NUMBER.fullmatch(text) is None:
            raise _Failure(TokenizerError.INVAL)
        return stop
