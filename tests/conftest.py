"""Shared fixtures: a character-level tokenizer and small models."""

import pytest

from promptkit.llm.model import Model


class CharTokenizer:
    """One token per character. decode(encode(x)) == x for any string."""

    def encode(self, text):
        return [ord(c) for c in text]

    def decode(self, tokens):
        return "".join(chr(t) for t in tokens)


@pytest.fixture
def char_tokenizer():
    return CharTokenizer()


@pytest.fixture
def tiny_model(char_tokenizer):
    """Model with a 4-token window."""
    return Model(name="char-4", context_window=4, tokenizer=char_tokenizer)


@pytest.fixture
def char_model(char_tokenizer):
    """Model with a 20-token window."""
    return Model(name="char-20", context_window=20, tokenizer=char_tokenizer)
