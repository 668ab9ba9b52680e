"""A single conversational turn.

Each message has a role and content. Content is plain text, Jinja2 template
text (``engine="jinja2"``) rendered later by Prompt.render, or a tuple of
content parts for rich media:

    MessageItem.new({"role": "user", "content": "Hello"})
    MessageItem.new({"role": "system", "content": "You are {{ persona }}", "engine": "jinja2"})
    MessageItem.new_multipart("user", [
        text_part("Check out this image:"),
        image_part("https://example.com/image.jpg"),
    ])
"""

from typing import Annotated, Any, Literal, Mapping, Optional, Sequence, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from promptkit.errors import ValidationError

Role = Literal["system", "user", "assistant", "function"]
Engine = Literal["none", "jinja2"]

ROLES: tuple[str, ...] = ("system", "user", "assistant", "function")

# Loose spellings accepted for the template engine
ENGINE_ALIASES = {
    "template": "jinja2",
    "jinja": "jinja2",
    "eex": "jinja2",
    "text": "none",
    "plain": "none",
}


def normalize_role(v: Any) -> Any:
    """Coerce ``" User "`` / ``"USER"`` to ``"user"``. Other types pass through."""
    if isinstance(v, str):
        return v.strip().lower()
    return v


def normalize_engine(v: Any) -> Any:
    """Coerce engine spellings to the canonical names."""
    if v is None:
        return "none"
    if isinstance(v, str):
        v = v.strip().lower()
        return ENGINE_ALIASES.get(v, v)
    return v


# =============================================================================
# CONTENT PARTS
# =============================================================================

class TextPart(BaseModel):
    """Plain text inside a multipart message."""
    model_config = ConfigDict(frozen=True)

    type: Literal["text"] = "text"
    text: str

    def to_provider(self) -> dict:
        return {"type": "text", "text": self.text}


class ImagePart(BaseModel):
    """Image referenced by URL (http(s) or data URL)."""
    model_config = ConfigDict(frozen=True)

    type: Literal["image_url"] = "image_url"
    url: str

    def to_provider(self) -> dict:
        return {"type": "image_url", "image_url": {"url": self.url}}


class FilePart(BaseModel):
    """File referenced by URL."""
    model_config = ConfigDict(frozen=True)

    type: Literal["file_url"] = "file_url"
    url: str

    def to_provider(self) -> dict:
        return {"type": "file_url", "file_url": {"url": self.url}}


ContentPart = Annotated[Union[TextPart, ImagePart, FilePart], Field(discriminator="type")]


def text_part(text: str) -> TextPart:
    return TextPart(text=text)


def image_part(url: str) -> ImagePart:
    return ImagePart(url=url)


def file_part(url: str) -> FilePart:
    return FilePart(url=url)


# =============================================================================
# MESSAGE ITEM
# =============================================================================

class MessageItem(BaseModel):
    """One turn of a conversation. Immutable."""

    model_config = ConfigDict(frozen=True)

    role: Role = Field(default="user", description="system, user, assistant or function")
    content: Union[str, tuple[ContentPart, ...]] = Field(
        default="",
        description="Text, template text, or content parts",
    )
    engine: Engine = Field(
        default="none",
        description="'jinja2' if content is a template rendered at Prompt.render time",
    )
    name: Optional[str] = Field(
        default=None,
        description="Optional name, e.g. the function name for function messages",
    )

    @field_validator("role", mode="before")
    @classmethod
    def _normalize_role(cls, v: Any) -> Any:
        return normalize_role(v)

    @field_validator("engine", mode="before")
    @classmethod
    def _normalize_engine(cls, v: Any) -> Any:
        return normalize_engine(v)

    @classmethod
    def new(cls, attrs: Optional[Mapping[str, Any]] = None, **kwargs: Any) -> "MessageItem":
        """Build a MessageItem from a mapping and/or keyword arguments.

        Raises:
            ValidationError: on an unknown role/engine or malformed content
        """
        data = {**(attrs or {}), **kwargs}
        try:
            return cls.model_validate(data)
        except PydanticValidationError as e:
            raise ValidationError(
                f"Invalid message item: {e.errors(include_url=False)[0]['msg']}",
                details={"errors": e.errors(include_url=False)},
            ) from e

    @classmethod
    def from_loose_map(cls, data: Mapping[str, Any]) -> "MessageItem":
        """Build a MessageItem from string-keyed external data (e.g. parsed JSON).

        ``role`` and ``content`` are required; ``engine`` and ``name`` are
        optional.

        Raises:
            ValidationError: if role or content is missing or invalid
        """
        missing = [key for key in ("role", "content") if key not in data]
        if missing:
            raise ValidationError(
                f"Message is missing required field(s): {', '.join(missing)}",
                details={"missing": missing, "keys": sorted(str(k) for k in data)},
            )
        return cls.new(
            role=data["role"],
            content=data["content"],
            engine=data.get("engine", "none"),
            name=data.get("name"),
        )

    @classmethod
    def new_multipart(cls, role: str, parts: Sequence[Any]) -> "MessageItem":
        """Build a MessageItem whose content is a list of content parts."""
        return cls.new(role=role, content=tuple(parts))

    @property
    def is_template(self) -> bool:
        return self.engine != "none"

    @property
    def is_multipart(self) -> bool:
        return not isinstance(self.content, str)

    def provider_content(self) -> Union[str, list[dict]]:
        """Content as a chat SDK expects it: text, or a list of content blocks."""
        if isinstance(self.content, str):
            return self.content
        return [part.to_provider() for part in self.content]
