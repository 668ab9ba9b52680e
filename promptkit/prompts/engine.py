"""Templating engine (Jinja2).

Two operations, kept separate so callers can tell a broken template from
bad inputs:

  compile_text(text)        → parse only; raises TemplateSyntaxError
  render_text(text, inputs) → parse + render; raises TemplateSyntaxError
                              or TemplateRenderError

Undefined variables are errors (StrictUndefined), not silent blanks.

    render_text("Hello {{ name }}!", {"name": "Alice"})  → "Hello Alice!"
    render_text("Hello {{ name }}!", {})                 → TemplateRenderError
    compile_text("Hello {{ name")                        → TemplateSyntaxError
"""

from functools import lru_cache
from typing import Any, Mapping

import jinja2
from jinja2 import BaseLoader, Environment, StrictUndefined

from promptkit import config
from promptkit.errors import TemplateRenderError, TemplateSyntaxError
from promptkit.utils.logging import log, get_logger

MODULE = "prompts.engine"
logger = get_logger()

ENGINE_NAME = "jinja2"

_env = Environment(
    loader=BaseLoader(),
    autoescape=False,  # prompts are not HTML
    keep_trailing_newline=True,
    undefined=StrictUndefined,
)


def _syntax_error(e: jinja2.TemplateSyntaxError, text: str) -> TemplateSyntaxError:
    return TemplateSyntaxError(
        f"Template compilation error: {e.message}",
        details={"line": e.lineno, "text": text[:200]},
        lineno=e.lineno,
    )


def compile_text(text: str) -> None:
    """Parse template text without evaluating it."""
    try:
        _env.parse(text)
    except jinja2.TemplateSyntaxError as e:
        log.warning(logger, MODULE, "compile_failed", "Template has invalid syntax",
                    error=e.message, line=e.lineno)
        raise _syntax_error(e, text) from e


@lru_cache(maxsize=config.TEMPLATE_CACHE_SIZE)
def _compiled(text: str) -> jinja2.Template:
    return _env.from_string(text)


def render_text(text: str, inputs: Mapping[str, Any]) -> str:
    """Render template text against ``inputs``.

    Keys are stringified so callers may pass enums or other hashables as
    assign names.
    """
    try:
        template = _compiled(text)
    except jinja2.TemplateSyntaxError as e:
        log.warning(logger, MODULE, "compile_failed", "Template has invalid syntax",
                    error=e.message, line=e.lineno)
        raise _syntax_error(e, text) from e

    assigns = {str(k): v for k, v in inputs.items()}
    try:
        return template.render(assigns)
    except jinja2.UndefinedError as e:
        log.warning(logger, MODULE, "render_failed", "Template references a missing input",
                    error=str(e), inputs=sorted(assigns))
        raise TemplateRenderError(
            f"Template formatting error: {e}",
            details={"inputs": sorted(assigns)},
        ) from e
    except Exception as e:
        log.warning(logger, MODULE, "render_failed", "Template raised while rendering",
                    error=str(e), error_type=type(e).__name__)
        raise TemplateRenderError(
            f"Unexpected error: {e}",
            details={"error_type": type(e).__name__},
        ) from e
