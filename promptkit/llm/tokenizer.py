"""Token encoding and decoding.

Anything with ``encode(text) -> list[int]`` and ``decode(tokens) -> str``
satisfies the Tokenizer protocol. The default implementation wraps tiktoken:

  tok = TiktokenTokenizer("gpt-4o")
  tokens = tok.encode("Hello world")
  tok.decode(tokens)  → "Hello world"

Model names tiktoken does not know (local models, other providers) fall back
to config.DEFAULT_ENCODING. Encoders are cached per model name, so building
many tokenizers for the same model is cheap.
"""

from typing import Protocol, Sequence, runtime_checkable

import tiktoken

from promptkit import config
from promptkit.utils.logging import log, get_logger

MODULE = "llm.tokenizer"
logger = get_logger()

_encoding_cache: dict[str, tiktoken.Encoding] = {}


@runtime_checkable
class Tokenizer(Protocol):
    """Encode text to a token sequence and back."""

    def encode(self, text: str) -> list[int]:
        ...

    def decode(self, tokens: Sequence[int]) -> str:
        ...


def get_encoding(model: str) -> tiktoken.Encoding:
    """Get or cache the tiktoken encoding for a model name."""
    if model not in _encoding_cache:
        try:
            _encoding_cache[model] = tiktoken.encoding_for_model(model)
        except KeyError:
            log.debug(logger, MODULE, "encoding_fallback",
                      "No dedicated encoding for model, using default",
                      model=model, encoding=config.DEFAULT_ENCODING)
            _encoding_cache[model] = tiktoken.get_encoding(config.DEFAULT_ENCODING)
    return _encoding_cache[model]


class TiktokenTokenizer:
    """Tokenizer backed by tiktoken. The encoding is loaded on first use."""

    def __init__(self, model: str = config.DEFAULT_MODEL):
        self.model = model

    def __repr__(self) -> str:
        return f"TiktokenTokenizer(model={self.model!r})"

    def __eq__(self, other: object) -> bool:
        return isinstance(other, TiktokenTokenizer) and other.model == self.model

    def __hash__(self) -> int:
        return hash(("tiktoken", self.model))

    @property
    def encoding(self) -> tiktoken.Encoding:
        return get_encoding(self.model)

    def encode(self, text: str) -> list[int]:
        # Special-token text is treated as plain text, never as control tokens
        return self.encoding.encode(text, disallowed_special=())

    def decode(self, tokens: Sequence[int]) -> str:
        return self.encoding.decode(list(tokens))


def encode(text: str, model: str = config.DEFAULT_MODEL) -> list[int]:
    """Encode text with the tokenizer for ``model``."""
    return TiktokenTokenizer(model).encode(text)


def decode(tokens: Sequence[int], model: str = config.DEFAULT_MODEL) -> str:
    """Decode tokens with the tokenizer for ``model``."""
    return TiktokenTokenizer(model).decode(tokens)


def count_tokens(text: str, model: str = config.DEFAULT_MODEL) -> int:
    """Count tokens in a single text."""
    if not text:
        return 0
    return len(encode(text, model))
