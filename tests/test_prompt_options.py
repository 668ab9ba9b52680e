"""Tests for Prompt generation options and output schemas."""

import pytest
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from promptkit.errors import ValidationError
from promptkit.prompts.prompt import Prompt


class Verdict(BaseModel):
    label: str
    confidence: float


def test_option_builders():
    prompt = (
        Prompt.new("user", "Hi")
        .with_temperature(0.7)
        .with_max_tokens(256)
        .with_top_p(0.9)
        .with_timeout(30)
    )
    assert prompt.options == {
        "temperature": 0.7,
        "max_tokens": 256,
        "top_p": 0.9,
        "timeout": 30,
    }


def test_option_builders_leave_original_untouched():
    prompt = Prompt.new("user", "Hi")
    prompt.with_temperature(0.3)
    assert prompt.options == {}


def test_with_options_merges():
    prompt = Prompt.new("user", "Hi").with_temperature(0.1)
    prompt = prompt.with_options({"temperature": 0.5, "seed": 7}, max_tokens=10)
    assert prompt.options == {"temperature": 0.5, "seed": 7, "max_tokens": 10}


@pytest.mark.parametrize("stop,expected", [
    ("END", ["END"]),
    (["a", "b"], ["a", "b"]),
    (("x",), ["x"]),
])
def test_with_stop(stop, expected):
    assert Prompt.new("user", "Hi").with_stop(stop).options["stop"] == expected


def test_render_with_options():
    prompt = (
        Prompt.new("user", "Hi {{ name }}", engine="jinja2")
        .with_temperature(0.2)
        .with_max_tokens(50)
    )
    assert prompt.render_with_options({"name": "Ann"}) == {
        "temperature": 0.2,
        "max_tokens": 50,
        "messages": [{"role": "user", "content": "Hi Ann"}],
    }


def test_render_overrides_do_not_touch_options():
    prompt = Prompt.new("user", "{{ temperature }}", engine="jinja2").with_temperature(0.2)
    payload = prompt.render_with_options({"temperature": "hot"})
    assert payload["temperature"] == 0.2
    assert payload["messages"][0]["content"] == "hot"


def test_with_output_schema():
    prompt = Prompt.new("user", "Classify").with_output_schema(Verdict)
    assert prompt.output_schema is Verdict


def test_with_output_schema_rejects_non_models():
    prompt = Prompt.new("user", "Classify")
    with pytest.raises(ValidationError):
        prompt.with_output_schema(dict)
    with pytest.raises(ValidationError):
        prompt.with_output_schema(Verdict(label="a", confidence=1.0))


def test_with_new_output_schema():
    prompt = Prompt.new("user", "Extract").with_new_output_schema(
        {"name": str, "age": (int, 0)},
        name="Person",
    )
    schema = prompt.output_schema
    assert schema.__name__ == "Person"

    person = schema(name="Alice")
    assert person.name == "Alice"
    assert person.age == 0

    with pytest.raises(PydanticValidationError):
        schema(age=3)


def test_options_and_schema_survive_new_version():
    prompt = Prompt.new("user", "Hi").with_temperature(0.4).with_output_schema(Verdict)
    updated = prompt.new_version(lambda p: p.add_message("assistant", "Hello"))
    assert updated.options == {"temperature": 0.4}
    assert updated.output_schema is Verdict
    assert updated.version_history[0].output_schema is Verdict
