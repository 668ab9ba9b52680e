"""promptkit: provider-agnostic prompt construction for LLM calls.

  from promptkit import Prompt, Template, Splitter, Model

  prompt = Prompt.new("user", "Hello {{ name }}", engine="jinja2").with_temperature(0.2)
  payload = prompt.render_with_options({"name": "Alice"})
  # → {"temperature": 0.2, "messages": [{"role": "user", "content": "Hello Alice"}]}

Packages:
  prompts/ → MessageItem, Template, Prompt, compose, Splitter
  llm/     → Tokenizer, Model
  utils/   → structured logging

Nothing here talks to a provider. Hand the rendered payload (or
Prompt.to_langchain_messages()) to whatever client makes the call.
"""

from promptkit.errors import (
    PromptkitError,
    ValidationError,
    TemplateError,
    TemplateSyntaxError,
    TemplateRenderError,
    RollbackNotFoundError,
    VersionNotFoundError,
)
from promptkit.llm import Model, TiktokenTokenizer, Tokenizer
from promptkit.prompts import (
    MessageItem,
    Template,
    Prompt,
    PromptParam,
    PromptFn,
    Promptable,
    Splitter,
    compose,
    prompt_fn,
    prompt_function,
    validate_prompt_opts,
    text_part,
    image_part,
    file_part,
)

__version__ = "0.1.0"

__all__ = [
    # Errors
    "PromptkitError",
    "ValidationError",
    "TemplateError",
    "TemplateSyntaxError",
    "TemplateRenderError",
    "RollbackNotFoundError",
    "VersionNotFoundError",
    # Model side
    "Model",
    "TiktokenTokenizer",
    "Tokenizer",
    # Prompt construction
    "MessageItem",
    "Template",
    "Prompt",
    "PromptParam",
    "PromptFn",
    "Promptable",
    "Splitter",
    "compose",
    "prompt_fn",
    "prompt_function",
    "validate_prompt_opts",
    "text_part",
    "image_part",
    "file_part",
]
