"""Tests for the Jinja2 engine wrapper."""

import pytest

from promptkit.errors import TemplateRenderError, TemplateSyntaxError
from promptkit.prompts.engine import compile_text, render_text


def test_render_substitutes_inputs():
    assert render_text("Hello {{ name }}!", {"name": "Alice"}) == "Hello Alice!"


def test_render_supports_control_flow():
    text = "{% for item in items %}[{{ loop.index }}] {{ item }}\n{% endfor %}"
    assert render_text(text, {"items": ["a", "b"]}) == "[1] a\n[2] b\n"


def test_render_does_not_escape_html():
    assert render_text("{{ x }}", {"x": "<b>&</b>"}) == "<b>&</b>"


def test_missing_input_is_a_render_error():
    with pytest.raises(TemplateRenderError):
        render_text("Hello {{ name }}!", {})


def test_bad_syntax_is_a_syntax_error():
    with pytest.raises(TemplateSyntaxError) as exc:
        render_text("Hello {{ name", {"name": "Alice"})
    assert exc.value.lineno == 1


def test_compile_checks_syntax_without_inputs():
    """Compilation never needs inputs."""
    compile_text("Hello {{ name }}")
    with pytest.raises(TemplateSyntaxError):
        compile_text("{% if x %}unterminated")


def test_error_kinds_are_distinct():
    assert not issubclass(TemplateRenderError, TemplateSyntaxError)
    assert not issubclass(TemplateSyntaxError, TemplateRenderError)


def test_exception_in_filter_is_a_render_error():
    with pytest.raises(TemplateRenderError) as exc:
        render_text("{{ value + 1 }}", {"value": "text"})
    assert exc.value.details["error_type"] == "TypeError"
