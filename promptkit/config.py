"""Environment-driven settings.

Values are read once at import time. Override them with environment
variables before importing promptkit:

  PROMPTKIT_MODEL               → default model name for Model.from_name()
  PROMPTKIT_CONTEXT_WINDOW      → context window assumed for unknown models
  PROMPTKIT_ENCODING            → tiktoken encoding for unknown model names
  PROMPTKIT_TEMPLATE_CACHE_SIZE → how many compiled templates to keep
"""

import os

DEFAULT_MODEL = os.getenv("PROMPTKIT_MODEL", "gpt-4o-mini")
DEFAULT_CONTEXT_WINDOW = int(os.getenv("PROMPTKIT_CONTEXT_WINDOW", "8192"))
DEFAULT_ENCODING = os.getenv("PROMPTKIT_ENCODING", "cl100k_base")
TEMPLATE_CACHE_SIZE = int(os.getenv("PROMPTKIT_TEMPLATE_CACHE_SIZE", "256"))

# Rough heuristic used by Template.estimate_tokens (~4 chars per token)
CHARS_PER_TOKEN = 4
