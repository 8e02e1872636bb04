"""Article page composition: lead + body rendering, body wrapper, stored-text decoding"""

import json
from collections.abc import Mapping
from typing import Any, Optional, Union

from markdown_it.common.utils import escapeHtml

from richdoc.config import Settings
from richdoc.core.models import Post, RenderedPost
from richdoc.core.render import render


PROSE_CLASS = "prose prose-slate max-w-none"


def decode_escaped_text(value: Optional[str]) -> str:
    """Decode literal backslash escapes (\\u3042, \\n) left in stored titles; undecodable text is returned as-is."""
    if not value:
        return ""
    safe = value.replace('"', '\\"')
    try:
        decoded = json.loads(f'"{safe}"', strict=False)
    except ValueError:
        return value
    return decoded if isinstance(decoded, str) else value


def article_body(html: str, settings: Optional[Settings] = None) -> str:
    """Wrap rendered HTML for the page; an empty render shows the fallback message instead."""
    settings = settings or Settings()
    if not html:
        return f'<div class="{PROSE_CLASS} text-slate-500"><p>{escapeHtml(settings.empty_message)}</p></div>'
    return f'<div class="{PROSE_CLASS}">{html}</div>'


def build_page(rendered: RenderedPost, settings: Optional[Settings] = None) -> str:
    """Standalone article markup: title, optional lead, then the body (or its fallback message)."""
    parts = ["<article>"]
    if rendered.title:
        parts.append(f"<h1>{escapeHtml(rendered.title)}</h1>")
    if rendered.lead_html:
        parts.append(f'<div class="{PROSE_CLASS} text-base leading-relaxed text-slate-700">{rendered.lead_html}</div>')
    parts.append(article_body(rendered.body_html, settings))
    parts.append("</article>")
    return "\n".join(parts)


def render_post(post: Union[Post, Mapping[str, Any]], settings: Optional[Settings] = None) -> RenderedPost:
    """Render a post's lead and body. Only the body contributes table-of-contents headings."""
    if not isinstance(post, Post):
        post = Post.model_validate(dict(post))

    body = render(post.content, settings)
    lead_html = render(post.lead, settings).html if post.lead else ""
    return RenderedPost(
        title=decode_escaped_text(post.title),
        description=decode_escaped_text(post.description),
        lead_html=lead_html,
        body_html=body.html,
        headings=body.headings,
    )
