"""Token storage grown until the tokenizer fits the whole document."""

from collections.abc import Iterator

from ._diagnostics import ConstructionError
from ._diagnostics import Status
from ._diagnostics import logger
from ._source import SourceBuffer
from ._tokenizer import Token
from ._tokenizer import Tokenizer
from ._tokenizer import TokenizerError


class TokenStore:
    """
    Flat, immutable sequence of the tokens of one document.

    Tokens are addressed by index only.
    """

    def __init__(self, tokens: list[Token]) -> None:
        self._tokens = tokens

    @classmethod
    def build(
        cls,
        source: SourceBuffer,
        initial_capacity: int = 64,
        max_capacity: int | None = None,
    ) -> "TokenStore":
        """
        Tokenizes the source, doubling the token array on NOMEM.

        The array is trimmed to the exact token count on success.
        """
        tokenizer = Tokenizer(source.data, source.length)
        capacity = initial_capacity
        if max_capacity is not None:
            capacity = min(capacity, max_capacity)

        while True:
            try:
                tokens: list[Token | None] = [None] * capacity
            except MemoryError as e:
                raise ConstructionError(
                    Status.OUT_OF_MEMORY,
                    "could not allocate memory",
                    source=source.path,
                ) from e

            count = tokenizer.parse(tokens)
            if count != TokenizerError.NOMEM:
                break

            if max_capacity is not None and capacity >= max_capacity:
                raise ConstructionError(
                    Status.OUT_OF_MEMORY,
                    f"token limit reached ({max_capacity})",
                    source=source.path,
                )
            capacity *= 2
            if max_capacity is not None:
                capacity = min(capacity, max_capacity)
            logger.debug("growing token capacity to %d", capacity)

        if count <= 0:
            reason = TokenizerError(count).name if count < 0 else "EMPTY"
            raise ConstructionError(
                Status.MALFORMED_INPUT,
                f"invalid JSON `{source.describe()}` ({reason})",
                source=source.path,
            )

        del tokens[count:]
        logger.debug("tokenized %s into %d tokens", source.describe(), count)
        return cls(tokens)  # type: ignore[arg-type]

    def __len__(self) -> int:
        return len(self._tokens)

    def __getitem__(self, index: int) -> Token:
        return self._tokens[index]

    def __iter__(self) -> Iterator[Token]:
        return iter(self._tokens)
