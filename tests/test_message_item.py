"""Tests for MessageItem and content parts."""

import pytest
from pydantic import ValidationError as PydanticValidationError

from promptkit.errors import ValidationError
from promptkit.prompts.message_item import (
    FilePart,
    ImagePart,
    MessageItem,
    TextPart,
    file_part,
    image_part,
    text_part,
)


def test_new_defaults():
    """A bare message is an empty plain user message."""
    msg = MessageItem.new({})
    assert msg.role == "user"
    assert msg.content == ""
    assert msg.engine == "none"
    assert msg.name is None


def test_new_with_values():
    msg = MessageItem.new({
        "role": "system",
        "content": "You are {{ assistant_type }}",
        "engine": "jinja2",
        "name": "setup",
    })
    assert msg.role == "system"
    assert msg.engine == "jinja2"
    assert msg.name == "setup"
    assert msg.is_template


def test_new_accepts_keywords():
    msg = MessageItem.new(role="assistant", content="Hi there!")
    assert msg.role == "assistant"
    assert msg.content == "Hi there!"
    assert not msg.is_template


def test_new_rejects_unknown_role():
    with pytest.raises(ValidationError):
        MessageItem.new(role="robot", content="beep")


def test_from_loose_map_coerces_strings():
    """Roles and engines from JSON are normalized."""
    msg = MessageItem.from_loose_map({"role": " USER ", "content": "Hello", "engine": "template"})
    assert msg.role == "user"
    assert msg.engine == "jinja2"


@pytest.mark.parametrize("role", ["system", "user", "assistant", "function"])
def test_from_loose_map_handles_every_role(role):
    msg = MessageItem.from_loose_map({"role": role, "content": "x"})
    assert msg.role == role


def test_from_loose_map_keeps_name():
    msg = MessageItem.from_loose_map({"role": "function", "content": "42", "name": "calculator"})
    assert msg.name == "calculator"


@pytest.mark.parametrize("data", [
    {"content": "no role"},
    {"role": "user"},
    {},
])
def test_from_loose_map_requires_role_and_content(data):
    with pytest.raises(ValidationError) as exc:
        MessageItem.from_loose_map(data)
    assert exc.value.details["missing"]


def test_part_constructors():
    assert text_part("Hello") == TextPart(text="Hello")
    assert image_part("https://example.com/a.jpg") == ImagePart(url="https://example.com/a.jpg")
    assert file_part("https://example.com/a.pdf") == FilePart(url="https://example.com/a.pdf")
    assert image_part("u").type == "image_url"
    assert file_part("u").type == "file_url"


def test_new_multipart():
    msg = MessageItem.new_multipart("user", [
        text_part("Check out this image:"),
        image_part("https://example.com/image.jpg"),
    ])
    assert msg.role == "user"
    assert msg.is_multipart
    assert len(msg.content) == 2
    assert msg.content[0].text == "Check out this image:"
    assert msg.content[1].url == "https://example.com/image.jpg"


def test_multipart_from_dicts():
    """Parts given as dicts are parsed by their ``type`` tag."""
    msg = MessageItem.from_loose_map({
        "role": "user",
        "content": [
            {"type": "text", "text": "Read this"},
            {"type": "file_url", "url": "https://example.com/doc.pdf"},
        ],
    })
    assert isinstance(msg.content[0], TextPart)
    assert isinstance(msg.content[1], FilePart)


def test_provider_content():
    msg = MessageItem.new_multipart("user", [text_part("Look"), image_part("https://x/y.png")])
    assert msg.provider_content() == [
        {"type": "text", "text": "Look"},
        {"type": "image_url", "image_url": {"url": "https://x/y.png"}},
    ]
    assert MessageItem.new(content="plain").provider_content() == "plain"


def test_message_items_are_immutable():
    msg = MessageItem.new(content="Hello")
    with pytest.raises(PydanticValidationError):
        msg.content = "changed"
