"""Prompt construction.

  message_item.py → MessageItem and content parts (one conversational turn)
  template.py     → Template: deferred-render Jinja2 text, versions, analytics
  prompt.py       → Prompt: versioned conversation + generation options
  compose.py      → compose() over PromptFn / Promptable units
  splitter.py     → Splitter: token-budget chunking of oversized inputs
  engine.py       → Jinja2 compile/render with distinct syntax/render errors
"""

from promptkit.prompts.message_item import (
    MessageItem,
    TextPart,
    ImagePart,
    FilePart,
    ContentPart,
    text_part,
    image_part,
    file_part,
)
from promptkit.prompts.template import (
    Template,
    TemplateVersion,
    PerformanceStats,
)
from promptkit.prompts.prompt import (
    Prompt,
    PromptSnapshot,
    PromptParam,
    validate_prompt_opts,
)
from promptkit.prompts.compose import (
    PromptFn,
    Promptable,
    compose,
    prompt_fn,
    prompt_function,
)
from promptkit.prompts.splitter import Splitter

__all__ = [
    # Messages
    "MessageItem",
    "TextPart",
    "ImagePart",
    "FilePart",
    "ContentPart",
    "text_part",
    "image_part",
    "file_part",
    # Templates
    "Template",
    "TemplateVersion",
    "PerformanceStats",
    # Prompts
    "Prompt",
    "PromptSnapshot",
    "PromptParam",
    "validate_prompt_opts",
    # Composition
    "PromptFn",
    "Promptable",
    "compose",
    "prompt_fn",
    "prompt_function",
    # Chunking
    "Splitter",
]
