"""Compose one prompt string from mixed prompt-producing units.

Two kinds of unit are accepted, and each must be tagged explicitly:

  PromptFn      wraps a function ``context -> str``
  Promptable    a pydantic model that renders itself with ``to_prompt()``

    @prompt_function
    def greeting(context):
        return f"Hey {context.get('name', 'friend')}!"

    class User(Promptable):
        name: str
        age: int

        def to_prompt(self) -> str:
            return f"User {self.name} is {self.age} years old"

    compose([greeting, User(name="Alice", age=30)], {"name": "Alice", "age": 35})
    → "Hey Alice!\\n\\nUser Alice is 35 years old"

Context values override a Promptable's fields of the same name before it
is rendered; keys that are not fields are ignored.
"""

from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional, Sequence, Union

from pydantic import BaseModel

from promptkit.utils.logging import log, get_logger

MODULE = "prompts.compose"
logger = get_logger()


@dataclass(frozen=True)
class PromptFn:
    """A function-based prompt unit: ``fn(context) -> str``."""

    fn: Callable[[Mapping[str, Any]], str]
    name: Optional[str] = None

    def __call__(self, context: Optional[Mapping[str, Any]] = None) -> str:
        result = self.fn(dict(context or {}))
        if not isinstance(result, str):
            raise TypeError(
                f"Prompt function {self.name or self.fn!r} returned "
                f"{type(result).__name__}, expected str"
            )
        return result


class Promptable(BaseModel):
    """Base class for data that can project itself into a prompt string."""

    def to_prompt(self) -> str:
        raise NotImplementedError(f"{type(self).__name__} must implement to_prompt()")

    def with_context(self, context: Mapping[str, Any]) -> "Promptable":
        """Copy with context values applied over matching fields."""
        overrides = {k: v for k, v in context.items() if k in type(self).model_fields}
        if not overrides:
            return self
        return type(self).model_validate({**self.model_dump(), **overrides})


PromptUnit = Union[PromptFn, Promptable]


def prompt_fn(text: str) -> PromptFn:
    """Wrap a fixed string as a prompt unit that ignores its context."""
    if not isinstance(text, str):
        raise TypeError(f"Expected a string, got: {type(text).__name__}")
    return PromptFn(lambda _context: text, name="static")


def prompt_function(fn: Callable[[Mapping[str, Any]], str]) -> PromptFn:
    """Decorator turning ``fn(context) -> str`` into a PromptFn."""
    return PromptFn(fn, name=getattr(fn, "__name__", None))


def render_unit(item: Any, context: Mapping[str, Any]) -> str:
    """Render a single unit.

    Raises:
        TypeError: item is neither a PromptFn nor a Promptable
    """
    if isinstance(item, PromptFn):
        return item(context)
    if isinstance(item, Promptable):
        if not context:
            return item.to_prompt()
        return item.with_context(context).to_prompt()
    raise TypeError(
        f"Expected a PromptFn or Promptable, got: {item!r}"
    )


def compose(
    items: Sequence[Any],
    context: Optional[Mapping[str, Any]] = None,
    separator: str = "\n\n",
) -> str:
    """Render each unit with ``context`` and join the results in order.

    Raises:
        TypeError: an item is neither a PromptFn nor a Promptable
    """
    context = dict(context or {})
    parts = [render_unit(item, context) for item in items]
    log.debug(logger, MODULE, "compose_done", "Composed prompt units",
              units=len(parts), length=sum(len(p) for p in parts))
    return separator.join(parts)
