"""Deferred-render prompt templates with version history and usage analytics.

A Template holds Jinja2 text and renders it later, once the input values are
known:

    template = Template.from_string("What's a good name for a company that makes {{ product }}?")

    # later
    template.format({"product": "colorful socks"})
    → "What's a good name for a company that makes colorful socks?"

Default inputs stored on the template are used for any key the caller does
not supply:

    template = Template.from_string_with_defaults(
        "Hello {{ name }}, welcome to {{ service }}!",
        {"service": "promptkit"},
    )
    template.format({"name": "Alice"})  → "Hello Alice, welcome to promptkit!"

Templates are immutable. Versioning and analytics calls return a new
Template:

    v2 = template.update_text("Name a company that sells {{ product }}.")
    v2.version                          → 2
    v2.version_history[0].text          → the old text
    v2.rollback_to_version(1).text      → the old text again (version stays 2)

Errors:
    ValidationError      bad attributes passed to new()
    TemplateSyntaxError  text does not parse (raised at construction)
    TemplateRenderError  text parsed but inputs do not satisfy it
"""

import re
from datetime import datetime, timezone
from typing import Any, Callable, Literal, Mapping, Optional, Sequence, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from promptkit import config
from promptkit.errors import (
    PromptkitError,
    RollbackNotFoundError,
    TemplateError,
    ValidationError,
)
from promptkit.prompts import engine as template_engine
from promptkit.prompts.message_item import MessageItem, Role, normalize_engine, normalize_role
from promptkit.utils.logging import log, get_logger

MODULE = "prompts.template"
logger = get_logger()

Hook = Callable[[Any], Any]

# An opening brace directly before {, % or # starts a tag; a space breaks it
_TAG_START = re.compile(r"\{(?=[{%#])")


def _sanitize_value(value: Any) -> Any:
    if isinstance(value, str):
        return _TAG_START.sub("{ ", value)
    if isinstance(value, list):
        return [_sanitize_value(v) for v in value]
    return value


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _running_average(current: Optional[float], count: int, value: float) -> float:
    """Mean after adding ``value`` as the ``count``-th observation."""
    if current is None:
        return value
    return (current * (count - 1) + value) / count


# =============================================================================
# SUPPORTING MODELS
# =============================================================================

class TemplateVersion(BaseModel):
    """A superseded template text and the version it had while live."""
    model_config = ConfigDict(frozen=True)

    version: int
    text: str


class PerformanceStats(BaseModel):
    """Usage analytics accumulated by Template.record_usage."""
    model_config = ConfigDict(frozen=True)

    usage_count: int = 0
    avg_tokens: Optional[float] = None
    avg_response_time: Optional[float] = None
    success_count: int = 0
    last_used_at: Optional[datetime] = None


# =============================================================================
# TEMPLATE
# =============================================================================

class Template(BaseModel):
    """A versioned, analytics-tracking prompt template."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    text: str = Field(..., description="The template text to format")
    role: Role = Field(default="user", description="Role of messages built from this template")
    engine: Literal["jinja2"] = Field(default="jinja2", description="Template engine")
    version: int = Field(default=1, ge=1)
    version_history: tuple[TemplateVersion, ...] = Field(
        default=(),
        description="Previous versions, most recent first",
    )
    inputs: dict[str, Any] = Field(
        default_factory=dict,
        description="Default inputs used when formatting",
    )
    cacheable: bool = True
    estimated_tokens: Optional[int] = None
    sample_inputs: dict[str, Any] = Field(
        default_factory=dict,
        description="Inputs used for token estimation",
    )
    created_at: datetime = Field(default_factory=_utcnow)
    performance_stats: PerformanceStats = Field(default_factory=PerformanceStats)

    @field_validator("role", mode="before")
    @classmethod
    def _normalize_role(cls, v: Any) -> Any:
        return normalize_role(v)

    @field_validator("engine", mode="before")
    @classmethod
    def _normalize_engine(cls, v: Any) -> Any:
        return normalize_engine(v)

    # -------------------------------------------------------------------------
    # Construction
    # -------------------------------------------------------------------------

    @classmethod
    def new(cls, attrs: Optional[Mapping[str, Any]] = None, **kwargs: Any) -> "Template":
        """Create a Template, validating attributes and template syntax.

        If ``sample_inputs`` is given, ``estimated_tokens`` is computed
        immediately.

        Raises:
            ValidationError: missing text, unknown role/engine, unknown keys
            TemplateSyntaxError: the text does not parse
        """
        data = {**(attrs or {}), **kwargs}
        try:
            template = cls.model_validate(data)
        except PydanticValidationError as e:
            errors = e.errors(include_url=False)
            first = errors[0]
            field = ".".join(str(p) for p in first["loc"]) or "template"
            log.warning(logger, MODULE, "create_failed", "Invalid template attributes",
                        field=field, error=first["msg"])
            raise ValidationError(
                f"Invalid prompt template: {field}: {first['msg']}",
                details={"errors": errors},
            ) from e

        template.compile()

        if template.sample_inputs:
            estimated = template.estimate_tokens(template.sample_inputs)
            template = template.model_copy(update={"estimated_tokens": estimated})

        log.debug(logger, MODULE, "create_done", "Template created",
                  role=template.role, version=template.version,
                  estimated_tokens=template.estimated_tokens)
        return template

    @classmethod
    def safe_new(
        cls, attrs: Optional[Mapping[str, Any]] = None, **kwargs: Any
    ) -> tuple[Optional["Template"], Optional[PromptkitError]]:
        """Like new(), but returns ``(template, None)`` or ``(None, error)``."""
        try:
            return cls.new(attrs, **kwargs), None
        except (ValidationError, TemplateError) as e:
            return None, e

    @classmethod
    def from_string(cls, text: str, role: str = "user", engine: str = "jinja2") -> "Template":
        """Shortcut for building a template from text (user role by default)."""
        if text is None:
            raise ValidationError("Prompt template text cannot be None")
        return cls.new(text=text, role=role, engine=engine)

    @classmethod
    def from_string_with_defaults(
        cls,
        text: str,
        defaults: Optional[Mapping[str, Any]] = None,
        role: str = "user",
        engine: str = "jinja2",
    ) -> "Template":
        """Build a template whose ``inputs`` hold default values."""
        return cls.new(text=text, role=role, engine=engine, inputs=dict(defaults or {}))

    # -------------------------------------------------------------------------
    # Rendering
    # -------------------------------------------------------------------------

    def compile(self) -> None:
        """Check the template syntax without rendering it.

        Raises:
            TemplateSyntaxError: the text does not parse
        """
        template_engine.compile_text(self.text)

    @staticmethod
    def format_text(text: str, inputs: Optional[Mapping[str, Any]] = None) -> str:
        """Render raw template text, without a Template instance."""
        return template_engine.render_text(text, inputs or {})

    @staticmethod
    def sanitize_inputs(inputs: Mapping[str, Any]) -> dict[str, Any]:
        """Neutralise template tags in untrusted input values.

        Strings (and strings inside lists) have their ``{{``, ``{%`` and
        ``{#`` openers broken apart, so the value stays literal text even if
        it is later spliced into template source. Other values pass through.

            Template.sanitize_inputs({"q": "{{ secret }}", "n": 42})
            → {"q": "{ { secret }}", "n": 42}
        """
        return {key: _sanitize_value(value) for key, value in inputs.items()}

    def format(
        self,
        inputs: Optional[Mapping[str, Any]] = None,
        *,
        pre_hook: Optional[Hook] = None,
        post_hook: Optional[Hook] = None,
    ) -> str:
        """Render the template.

        Stored default inputs are merged with ``inputs`` (caller wins),
        passed through ``pre_hook``, rendered, and the resulting string is
        passed through ``post_hook``.

        Raises:
            TemplateRenderError: an input is missing or rendering failed
        """
        merged = {**self.inputs, **(inputs or {})}
        if pre_hook is not None:
            merged = pre_hook(merged)
        rendered = template_engine.render_text(self.text, merged)
        if post_hook is not None:
            rendered = post_hook(rendered)
        return rendered

    def safe_format(
        self,
        inputs: Optional[Mapping[str, Any]] = None,
        *,
        pre_hook: Optional[Hook] = None,
        post_hook: Optional[Hook] = None,
    ) -> tuple[Optional[str], Optional[TemplateError]]:
        """Like format(), but returns ``(text, None)`` or ``(None, error)``."""
        try:
            return self.format(inputs, pre_hook=pre_hook, post_hook=post_hook), None
        except TemplateError as e:
            return None, e

    def format_composed(
        self,
        sub_templates: Mapping[str, Union["Template", str]],
        inputs: Optional[Mapping[str, Any]] = None,
    ) -> str:
        """Render sub-templates first, then feed them to this template.

            main = Template.from_string("Header: {{ intro }}\\nBody: {{ body }}")
            intro = Template.from_string("Welcome {{ name }}!")
            main.format_composed({"intro": intro, "body": "Plain text."}, {"name": "Alice"})
            → "Header: Welcome Alice!\\nBody: Plain text."
        """
        formatted = {}
        for key, sub in sub_templates.items():
            if isinstance(sub, Template):
                formatted[key] = sub.format(inputs)
            elif isinstance(sub, str):
                formatted[key] = sub
            else:
                raise ValidationError(
                    f"Invalid sub-template for {key!r}: {sub!r}",
                    details={"key": key, "type": type(sub).__name__},
                )
        return self.format(formatted)

    def to_message(self, inputs: Optional[Mapping[str, Any]] = None) -> MessageItem:
        """Render and wrap the result as a MessageItem with this template's role."""
        return MessageItem.new(role=self.role, content=self.format(inputs))

    def safe_to_message(
        self, inputs: Optional[Mapping[str, Any]] = None
    ) -> tuple[Optional[MessageItem], Optional[TemplateError]]:
        """Like to_message(), but returns ``(message, None)`` or ``(None, error)``."""
        try:
            return self.to_message(inputs), None
        except TemplateError as e:
            return None, e

    @staticmethod
    def to_messages(
        items: Sequence[Union["Template", MessageItem, str]],
        inputs: Optional[Mapping[str, Any]] = None,
    ) -> list[MessageItem]:
        """Turn templates, messages and plain strings into MessageItems.

        Templates are rendered with ``inputs``, MessageItems pass through,
        strings become user messages.
        """
        messages = []
        for item in items:
            if isinstance(item, Template):
                messages.append(item.to_message(inputs))
            elif isinstance(item, MessageItem):
                messages.append(item)
            elif isinstance(item, str):
                messages.append(MessageItem.new(role="user", content=item))
            else:
                raise ValidationError(
                    f"Expected a Template, MessageItem or string, got: {item!r}",
                    details={"type": type(item).__name__},
                )
        return messages

    def estimate_tokens(self, inputs: Optional[Mapping[str, Any]] = None) -> int:
        """Rough token count of the rendered text (~4 characters per token).

        Uses ``sample_inputs`` when no inputs are given. Returns 0 if the
        template cannot be rendered.
        """
        try:
            rendered = self.format(inputs or self.sample_inputs)
        except TemplateError:
            return 0
        # Half-up rounding; round() would round 2.5 down to 2
        return int(len(rendered) / config.CHARS_PER_TOKEN + 0.5)

    # -------------------------------------------------------------------------
    # Usage analytics
    # -------------------------------------------------------------------------

    def record_usage(self, metrics: Optional[Mapping[str, Any]] = None, **kwargs: Any) -> "Template":
        """Record one use of the template.

        Recognised metrics:
            tokens_used       → running mean in avg_tokens
            response_time_ms  → running mean in avg_response_time
            success           → success_count += 1 when true

            template = template.record_usage(
                {"tokens_used": 150, "response_time_ms": 500, "success": True}
            )
        """
        metrics = {**(metrics or {}), **kwargs}
        stats = self.performance_stats
        count = stats.usage_count + 1

        update: dict[str, Any] = {
            "usage_count": count,
            "last_used_at": _utcnow(),
        }
        if metrics.get("tokens_used") is not None:
            update["avg_tokens"] = _running_average(
                stats.avg_tokens, count, metrics["tokens_used"]
            )
        if metrics.get("response_time_ms") is not None:
            update["avg_response_time"] = _running_average(
                stats.avg_response_time, count, metrics["response_time_ms"]
            )
        if "success" in metrics and metrics["success"]:
            update["success_count"] = stats.success_count + 1

        return self.model_copy(update={"performance_stats": stats.model_copy(update=update)})

    # -------------------------------------------------------------------------
    # Versioning
    # -------------------------------------------------------------------------

    def increment_version(self) -> "Template":
        """Push the current text onto the history and bump the version."""
        entry = TemplateVersion(version=self.version, text=self.text)
        log.debug(logger, MODULE, "version_incremented", "Template version incremented",
                  from_version=self.version, to_version=self.version + 1)
        return self.model_copy(update={
            "version": self.version + 1,
            "version_history": (entry,) + self.version_history,
        })

    def update_text(self, new_text: str) -> "Template":
        """Replace the text, recording the current text as a previous version."""
        return self.increment_version().model_copy(update={"text": new_text})

    def rollback_to_version(self, version: int) -> "Template":
        """Restore the text of a previous version.

        The entry is removed from the history. The live ``version`` number
        is left unchanged.

        Raises:
            RollbackNotFoundError: no history entry has that version
        """
        entry = next((e for e in self.version_history if e.version == version), None)
        if entry is None:
            available = [e.version for e in self.version_history]
            log.warning(logger, MODULE, "rollback_failed", "Version not found in history",
                        version=version, available=available)
            raise RollbackNotFoundError(version, available)

        history = tuple(e for e in self.version_history if e.version != version)
        log.debug(logger, MODULE, "rollback_done", "Template text rolled back",
                  restored=version, current_version=self.version)
        return self.model_copy(update={"text": entry.text, "version_history": history})

    def safe_rollback_to_version(
        self, version: int
    ) -> tuple["Template", Optional[RollbackNotFoundError]]:
        """Like rollback_to_version(), but never raises.

        Returns ``(restored, None)`` or ``(self, error)``; on failure the
        template comes back unchanged.
        """
        try:
            return self.rollback_to_version(version), None
        except RollbackNotFoundError as e:
            return self, e

    def list_versions(self) -> list[dict[str, Any]]:
        """Current version first, then history, each flagged ``current``."""
        return [{"version": self.version, "current": True}] + [
            {"version": e.version, "current": False} for e in self.version_history
        ]

    def create_clean_copy(self) -> "Template":
        """Copy reset to version 1 with no history."""
        return self.model_copy(update={"version": 1, "version_history": ()})
