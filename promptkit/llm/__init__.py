"""Model-side collaborators of the prompt layer.

  tokenizer.py → Tokenizer protocol, tiktoken implementation, count_tokens
  model.py     → Model descriptor (name, context window, tokenizer)
"""

from promptkit.llm.tokenizer import (
    Tokenizer,
    TiktokenTokenizer,
    encode,
    decode,
    count_tokens,
)
from promptkit.llm.model import Model, KNOWN_CONTEXT_WINDOWS

__all__ = [
    "Tokenizer",
    "TiktokenTokenizer",
    "encode",
    "decode",
    "count_tokens",
    "Model",
    "KNOWN_CONTEXT_WINDOWS",
]
