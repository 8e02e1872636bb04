"""Unit tests for core/math.py"""

import pytest

from richdoc.core import math as math_mod
from richdoc.core.math import render_math, replace_legacy_math


@pytest.fixture(name="recorded")
def recorded_fixture(monkeypatch):
    """Replace render_math with a recorder that tags each call with its mode."""
    calls = []

    def _record(latex, display_mode=False):
        calls.append((latex, display_mode))
        return f"[{'D' if display_mode else 'I'}:{latex}]"

    monkeypatch.setattr(math_mod, "render_math", _record)
    return calls


def test_render_math_inline():
    out = render_math("x^2")
    assert out.startswith("<math")
    assert "<msup>" in out


def test_render_math_display_mode():
    assert 'display="block"' in render_math("x^2", display_mode=True)


def test_render_math_empty():
    """An empty expression renders as empty output, not an error."""
    assert render_math("") == ""


def test_render_math_never_raises(monkeypatch):
    """Converter failures produce the escaped source instead of an exception."""
    def _boom(latex, display="inline"):
        raise IndexError("unbalanced")

    monkeypatch.setattr(math_mod, "convert", _boom)
    out = render_math("a<b")
    assert out == '<span class="math-error" title="unbalanced">a&lt;b</span>'


def test_legacy_block_then_inline(recorded):
    """$$..$$ is substituted before $..$."""
    assert replace_legacy_math("<p>$$x^2$$ and $y$</p>") == "<p>[D:x^2] and [I:y]</p>"
    assert recorded == [("x^2", True), ("y", False)]


def test_legacy_block_is_not_split_into_inline(recorded):
    assert replace_legacy_math("$$a + b$$") == "[D:a + b]"


def test_legacy_multiline_block(recorded):
    assert replace_legacy_math("$$\na\n$$") == "[D:\na\n]"


def test_legacy_unescapes_entities(recorded):
    """Expressions are HTML-unescaped before typesetting."""
    replace_legacy_math("<p>$a &lt; b$</p>")
    assert recorded == [("a < b", False)]


def test_legacy_without_delimiters_is_unchanged(recorded):
    assert replace_legacy_math("<p>no math here</p>") == "<p>no math here</p>"
    assert recorded == []


def test_legacy_lone_dollar_is_unchanged(recorded):
    assert replace_legacy_math("<p>costs $5</p>") == "<p>costs $5</p>"


def test_legacy_ignores_dollars_inside_tags(recorded):
    """A dollar in an attribute value never pairs with one in later text."""
    markup = '<img src="a.png" alt="costs $5"><p>and $x$</p>'
    assert replace_legacy_math(markup) == '<img src="a.png" alt="costs $5"><p>and [I:x]</p>'
    assert recorded == [("x", False)]


def test_legacy_ignores_math_node_latex_attribute(recorded):
    markup = '<span data-type="inline-math" data-latex="$a$">m</span><p>$b$</p>'
    assert replace_legacy_math(markup) == '<span data-type="inline-math" data-latex="$a$">m</span><p>[I:b]</p>'
