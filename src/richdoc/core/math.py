"""LaTeX math rendering to static MathML, plus the legacy $$...$$ / $...$ text fallback"""

import html
import re

from latex2mathml.converter import convert
from markdown_it.common.utils import escapeHtml

from richdoc.core.utils.logger import get_logger


logger = get_logger(__name__)

BLOCK_MATH_RE = re.compile(r'\$\$([\s\S]+?)\$\$')
INLINE_MATH_RE = re.compile(r'\$([^$]+?)\$')
TAG_RE = re.compile(r'(<[^>]*>)')


def _error_markup(latex: str, error: Exception) -> str:
    """Raw expression shown in place of an expression that failed to convert."""
    return (
        f'<span class="math-error" title="{escapeHtml(str(error))}">'
        f'{escapeHtml(latex)}</span>'
    )


def render_math(latex: str, display_mode: bool = False) -> str:
    """Render one LaTeX expression to MathML. Never raises; malformed input yields the escaped source."""
    if not latex:
        return ""
    try:
        return convert(latex, display="block" if display_mode else "inline")
    except Exception as e:
        logger.debug("Math fallback for %r: %s", latex, e)
        return _error_markup(latex, e)


def _replace_in_text(segment: str) -> str:
    segment = BLOCK_MATH_RE.sub(lambda m: render_math(html.unescape(m.group(1)), True), segment)
    return INLINE_MATH_RE.sub(lambda m: render_math(html.unescape(m.group(1)), False), segment)


def replace_legacy_math(markup: str) -> str:
    """Typeset $$...$$ (display) and then $...$ (inline) spans left in rendered HTML text.

    Only text between tags is searched, so a dollar sign inside an attribute value
    never pairs with one in later text. Block substitution must run first; the
    inline pattern would otherwise match the inner text of a $$-delimited expression.
    """
    parts = TAG_RE.split(markup)
    # split() with a capture group puts tags at odd indices
    return "".join(part if i % 2 else _replace_in_text(part) for i, part in enumerate(parts))
