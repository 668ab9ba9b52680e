"""Versioned conversations with generation options.

A Prompt is the unit handed to the model-invocation layer: an ordered list
of MessageItems, template parameters, generation options (temperature,
max_tokens, ...) and an optional pydantic output schema.

    prompt = (
        Prompt.new("system", "You are a {{ persona }}.", engine="jinja2")
        .add_message("user", "Summarise this article.")
        .with_temperature(0.2)
        .with_max_tokens(500)
    )
    prompt.render_with_options({"persona": "careful editor"})
    → {"messages": [{"role": "system", "content": "You are a careful editor."},
                    {"role": "user", "content": "Summarise this article."}],
       "temperature": 0.2, "max_tokens": 500}

Prompts are immutable. new_version() records the current messages in the
version history before applying a change, so earlier states stay
retrievable:

    p2 = prompt.new_version(lambda p: p.add_message("assistant", "Sure."))
    p2.version                 → 2
    p2.get_version(1).messages → the two original messages
"""

import uuid
from typing import Annotated, Any, Callable, Mapping, Optional, Sequence, Union

from langchain_core.messages import AIMessage, FunctionMessage, HumanMessage, SystemMessage
from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, create_model
from pydantic import ValidationError as PydanticValidationError

from promptkit.errors import ValidationError, VersionNotFoundError
from promptkit.prompts import engine as template_engine
from promptkit.prompts.message_item import MessageItem, TextPart
from promptkit.utils.logging import log, get_logger

MODULE = "prompts.prompt"
logger = get_logger()

MessageLike = Union[MessageItem, Mapping[str, Any]]


def _new_id() -> str:
    return str(uuid.uuid4())


def _to_message(item: MessageLike) -> MessageItem:
    if isinstance(item, MessageItem):
        return item
    if isinstance(item, Mapping):
        return MessageItem.new(item)
    raise ValidationError(
        f"Expected a MessageItem or mapping, got: {item!r}",
        details={"type": type(item).__name__},
    )


class PromptSnapshot(BaseModel):
    """State of a Prompt at one version, captured by new_version()."""
    model_config = ConfigDict(frozen=True)

    version: int
    messages: tuple[MessageItem, ...]
    params: dict[str, Any] = Field(default_factory=dict)
    options: dict[str, Any] = Field(default_factory=dict)
    output_schema: Optional[type[BaseModel]] = None


class Prompt(BaseModel):
    """An ordered, versioned conversation plus generation options."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=_new_id)
    messages: tuple[MessageItem, ...] = ()
    version: int = Field(default=1, ge=1)
    version_history: tuple[PromptSnapshot, ...] = Field(
        default=(),
        description="Earlier versions, most recent first",
    )
    params: dict[str, Any] = Field(
        default_factory=dict,
        description="Inputs for templated messages",
    )
    options: dict[str, Any] = Field(
        default_factory=dict,
        description="Generation options (temperature, max_tokens, ...)",
    )
    output_schema: Optional[type[BaseModel]] = None
    metadata: dict[str, Any] = Field(default_factory=dict)

    # -------------------------------------------------------------------------
    # Construction
    # -------------------------------------------------------------------------

    @classmethod
    def new(
        cls,
        role_or_attrs: Union[str, Mapping[str, Any]],
        content: Any = None,
        *,
        engine: str = "none",
    ) -> "Prompt":
        """Create a version-1 Prompt.

            Prompt.new("user", "Hello")
            Prompt.new({"messages": [{"role": "user", "content": "Hi {{ name }}", "engine": "jinja2"}],
                        "params": {"name": "Alice"}})

        Raises:
            ValidationError: malformed messages or attributes
        """
        if isinstance(role_or_attrs, Mapping):
            attrs = dict(role_or_attrs)
        else:
            attrs = {"messages": [{"role": role_or_attrs, "content": content, "engine": engine}]}

        messages = tuple(_to_message(m) for m in attrs.pop("messages", ()))
        for reserved in ("version", "version_history"):
            attrs.pop(reserved, None)

        try:
            return cls.model_validate({**attrs, "messages": messages})
        except PydanticValidationError as e:
            errors = e.errors(include_url=False)
            raise ValidationError(
                f"Invalid prompt: {errors[0]['msg']}",
                details={"errors": errors},
            ) from e

    def add_message(
        self,
        role: str,
        content: Any,
        engine: str = "none",
        name: Optional[str] = None,
    ) -> "Prompt":
        """Append a message. Does not create a new version."""
        message = MessageItem.new(role=role, content=content, engine=engine, name=name)
        return self.model_copy(update={"messages": self.messages + (message,)})

    # -------------------------------------------------------------------------
    # Versioning
    # -------------------------------------------------------------------------

    def _snapshot(self) -> PromptSnapshot:
        return PromptSnapshot(
            version=self.version,
            messages=self.messages,
            params=dict(self.params),
            options=dict(self.options),
            output_schema=self.output_schema,
        )

    def new_version(self, transform: Callable[["Prompt"], "Prompt"]) -> "Prompt":
        """Record the current state in history, then apply ``transform``.

        The result is at ``version + 1``. Options and output schema carry
        forward unless ``transform`` changes them.
        """
        updated = transform(self)
        if not isinstance(updated, Prompt):
            raise TypeError(
                f"new_version transform must return a Prompt, got {type(updated).__name__}"
            )

        history = (self._snapshot(),) + self.version_history
        log.debug(logger, MODULE, "version_created", "Prompt version created",
                  prompt_id=self.id, version=self.version + 1,
                  messages=len(updated.messages))
        return updated.model_copy(update={
            "id": self.id,
            "version": self.version + 1,
            "version_history": history,
        })

    def get_version(self, version: int) -> "Prompt":
        """Return the Prompt as it was at ``version``.

        Raises:
            VersionNotFoundError: neither current nor in history
        """
        if version == self.version:
            return self

        for snapshot in self.version_history:
            if snapshot.version == version:
                older = tuple(s for s in self.version_history if s.version < version)
                return self.model_copy(update={
                    "version": snapshot.version,
                    "messages": snapshot.messages,
                    "params": dict(snapshot.params),
                    "options": dict(snapshot.options),
                    "output_schema": snapshot.output_schema,
                    "version_history": older,
                })

        available = [self.version] + [s.version for s in self.version_history]
        log.warning(logger, MODULE, "version_not_found", "Requested prompt version not found",
                    prompt_id=self.id, version=version, available=available)
        raise VersionNotFoundError(version, available)

    def safe_get_version(
        self, version: int
    ) -> tuple[Optional["Prompt"], Optional[VersionNotFoundError]]:
        """Like get_version(), but returns ``(prompt, None)`` or ``(None, error)``."""
        try:
            return self.get_version(version), None
        except VersionNotFoundError as e:
            return None, e

    def list_versions(self) -> list[int]:
        """All reachable versions, current first."""
        return [self.version] + [s.version for s in self.version_history]

    # -------------------------------------------------------------------------
    # Options
    # -------------------------------------------------------------------------

    def with_options(self, options: Optional[Mapping[str, Any]] = None, **kwargs: Any) -> "Prompt":
        """Set several generation options at once. Later values win."""
        merged = {**self.options, **(options or {}), **kwargs}
        return self.model_copy(update={"options": merged})

    def with_temperature(self, temperature: float) -> "Prompt":
        return self.with_options(temperature=temperature)

    def with_max_tokens(self, max_tokens: int) -> "Prompt":
        return self.with_options(max_tokens=max_tokens)

    def with_top_p(self, top_p: float) -> "Prompt":
        return self.with_options(top_p=top_p)

    def with_timeout(self, timeout: int) -> "Prompt":
        return self.with_options(timeout=timeout)

    def with_stop(self, stop: Union[str, Sequence[str]]) -> "Prompt":
        """Set stop sequences. A single value is wrapped in a list."""
        if isinstance(stop, (list, tuple)):
            return self.with_options(stop=list(stop))
        return self.with_options(stop=[stop])

    def with_output_schema(self, schema: type[BaseModel]) -> "Prompt":
        """Attach a pydantic model describing the expected structured output."""
        if not (isinstance(schema, type) and issubclass(schema, BaseModel)):
            raise ValidationError(
                f"Output schema must be a pydantic model class, got: {schema!r}",
                details={"type": type(schema).__name__},
            )
        return self.model_copy(update={"output_schema": schema})

    def with_new_output_schema(
        self,
        fields: Mapping[str, Any],
        name: str = "OutputSchema",
    ) -> "Prompt":
        """Build an output schema from field definitions and attach it.

        Each value is a type (required field) or a ``(type, default)`` tuple:

            prompt.with_new_output_schema({"name": str, "age": (int, 0)})
        """
        definitions = {
            key: field if isinstance(field, tuple) else (field, ...)
            for key, field in fields.items()
        }
        return self.with_output_schema(create_model(name, **definitions))

    # -------------------------------------------------------------------------
    # Rendering
    # -------------------------------------------------------------------------

    def _render_content(self, message: MessageItem, assigns: Mapping[str, Any]) -> Any:
        if isinstance(message.content, str):
            if message.is_template:
                return template_engine.render_text(message.content, assigns)
            return message.content

        parts = []
        for part in message.content:
            if message.is_template and isinstance(part, TextPart):
                part = TextPart(text=template_engine.render_text(part.text, assigns))
            parts.append(part.to_provider())
        return parts

    def render(self, overrides: Optional[Mapping[str, Any]] = None) -> list[dict[str, Any]]:
        """Render every message to a ``{"role", "content"}`` dict.

        Templated messages are rendered against ``params`` merged with
        ``overrides`` (overrides win); plain messages pass through.

        Raises:
            TemplateRenderError: a templated message cannot be rendered
        """
        assigns = {**self.params, **(overrides or {})}
        rendered = []
        for message in self.messages:
            entry: dict[str, Any] = {
                "role": message.role,
                "content": self._render_content(message, assigns),
            }
            if message.name is not None:
                entry["name"] = message.name
            rendered.append(entry)
        return rendered

    def render_with_options(self, overrides: Optional[Mapping[str, Any]] = None) -> dict[str, Any]:
        """Rendered messages plus the generation options, in one dict.

        ``overrides`` only affect message templates, never options.
        """
        return {**self.options, "messages": self.render(overrides)}

    def to_text(self) -> str:
        """One ``[role] content`` line per message (unrendered)."""
        lines = []
        for message in self.messages:
            if isinstance(message.content, str):
                body = message.content
            else:
                body = " ".join(
                    part.text if isinstance(part, TextPart) else f"<{part.type}: {part.url}>"
                    for part in message.content
                )
            lines.append(f"[{message.role}] {body}")
        return "\n".join(lines)

    def to_langchain_messages(self, overrides: Optional[Mapping[str, Any]] = None) -> list:
        """Render and convert to langchain_core message objects."""
        converted = []
        for entry in self.render(overrides):
            role, content = entry["role"], entry["content"]
            if role == "system":
                converted.append(SystemMessage(content=content))
            elif role == "assistant":
                converted.append(AIMessage(content=content))
            elif role == "function":
                converted.append(FunctionMessage(content=content, name=entry.get("name", "function")))
            else:
                converted.append(HumanMessage(content=content))
        return converted


# =============================================================================
# VALIDATION HOOK
# =============================================================================

def validate_prompt_opts(value: Any) -> Prompt:
    """Normalize a prompt parameter.

    A string becomes a single system-message Prompt; a Prompt passes through.

    Raises:
        ValidationError: anything else
    """
    if isinstance(value, Prompt):
        return value
    if isinstance(value, str):
        return Prompt.new("system", value)
    raise ValidationError(
        f"Expected a string or a Prompt, got: {type(value).__name__}",
        details={"type": type(value).__name__},
    )


# Declarative form for pydantic schemas: `prompt: PromptParam`
PromptParam = Annotated[Prompt, BeforeValidator(validate_prompt_opts)]
