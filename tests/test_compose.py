"""Tests for compose and prompt units."""

import pytest

from promptkit.prompts.compose import (
    PromptFn,
    Promptable,
    compose,
    prompt_fn,
    prompt_function,
    render_unit,
)


class User(Promptable):
    name: str
    age: int

    def to_prompt(self) -> str:
        return f"User {self.name} is {self.age} years old"


@prompt_function
def greeting(context):
    return f"Hey {context.get('name', 'friend')}!"


def test_compose_mixes_functions_and_models():
    result = compose([greeting, User(name="Alice", age=30)], {"name": "Alice", "age": 35})
    assert result == "Hey Alice!\n\nUser Alice is 35 years old"


def test_compose_without_context():
    result = compose([greeting, User(name="Bob", age=40)])
    assert result == "Hey friend!\n\nUser Bob is 40 years old"


def test_compose_custom_separator():
    assert compose([prompt_fn("a"), prompt_fn("b")], separator=" | ") == "a | b"


def test_compose_empty():
    assert compose([]) == ""


def test_context_keys_that_are_not_fields_are_ignored():
    user = User(name="Carol", age=20)
    assert render_unit(user, {"mood": "happy"}) == "User Carol is 20 years old"


def test_context_does_not_mutate_unit():
    user = User(name="Dan", age=50)
    compose([user], {"age": 51})
    assert user.age == 50


def test_compose_rejects_untagged_items():
    with pytest.raises(TypeError, match="Expected a PromptFn or Promptable"):
        compose([greeting, "plain string"])
    with pytest.raises(TypeError):
        compose([lambda ctx: "untagged"])


def test_prompt_function_keeps_name():
    assert isinstance(greeting, PromptFn)
    assert greeting.name == "greeting"


def test_prompt_fn_ignores_context():
    unit = prompt_fn("Always the same")
    assert unit({"anything": 1}) == "Always the same"


def test_prompt_fn_requires_string():
    with pytest.raises(TypeError):
        prompt_fn(42)


def test_prompt_function_must_return_string():
    unit = PromptFn(lambda ctx: 3)
    with pytest.raises(TypeError):
        unit({})


def test_promptable_without_to_prompt():
    class Bare(Promptable):
        value: int = 1

    with pytest.raises(NotImplementedError):
        compose([Bare()])
