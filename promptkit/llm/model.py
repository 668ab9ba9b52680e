"""Model descriptor used for token budgeting.

A Model only knows what the prompt layer needs: its name, how many tokens
fit in one call, and how to tokenize text for it. Provider selection,
pricing and transport live elsewhere.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from promptkit import config
from promptkit.llm.tokenizer import TiktokenTokenizer, Tokenizer

# Context windows (tokens) for commonly used models
KNOWN_CONTEXT_WINDOWS: dict[str, int] = {
    # OpenAI
    "gpt-4o": 128000,
    "gpt-4o-mini": 128000,
    "gpt-4-turbo": 128000,
    "gpt-4": 8192,
    "gpt-3.5-turbo": 16385,
    # Anthropic
    "claude-3-5-sonnet-20241022": 200000,
    "claude-3-opus-20240229": 200000,
    "claude-3-haiku-20240307": 200000,
    # Google
    "gemini-1.5-pro": 2097152,
    "gemini-1.5-flash": 1048576,
}


class Model(BaseModel):
    """Token budget descriptor: name + context window + tokenizer."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str = Field(..., min_length=1)
    context_window: int = Field(..., gt=0, description="Max tokens per call")
    tokenizer: Any = Field(default=None, description="Object with encode/decode")

    @model_validator(mode="before")
    @classmethod
    def default_tokenizer(cls, data: Any) -> Any:
        """Use a tiktoken tokenizer for the model name when none is given."""
        if isinstance(data, dict) and data.get("tokenizer") is None and data.get("name"):
            data = {**data, "tokenizer": TiktokenTokenizer(data["name"])}
        return data

    @field_validator("tokenizer")
    @classmethod
    def check_tokenizer(cls, v: Any) -> Any:
        if not isinstance(v, Tokenizer):
            raise ValueError("tokenizer must provide encode(text) and decode(tokens)")
        return v

    @classmethod
    def from_name(
        cls,
        name: Optional[str] = None,
        context_window: Optional[int] = None,
        tokenizer: Optional[Tokenizer] = None,
    ) -> "Model":
        """Build a Model from a name, looking up its context window.

        Unknown names get config.DEFAULT_CONTEXT_WINDOW unless
        ``context_window`` is passed explicitly.
        """
        name = name or config.DEFAULT_MODEL
        if context_window is None:
            context_window = KNOWN_CONTEXT_WINDOWS.get(name, config.DEFAULT_CONTEXT_WINDOW)
        return cls(name=name, context_window=context_window, tokenizer=tokenizer)

    def encode(self, text: str) -> list[int]:
        return self.tokenizer.encode(text)

    def decode(self, tokens) -> str:
        return self.tokenizer.decode(tokens)
