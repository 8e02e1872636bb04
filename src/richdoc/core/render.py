"""Document to HTML rendering with table-of-contents heading extraction"""

import json
import re
from collections.abc import Mapping
from typing import Any, Callable, Optional
from urllib.parse import urlparse

from markdown_it.common.utils import escapeHtml

from richdoc.config import Settings
from richdoc.core.math import render_math, replace_legacy_math
from richdoc.core.models import HeadingAnchor, RenderResult
from richdoc.core.schema import (
    Document, Mark, MarkType, MARK_RANK, Node, NodeType, SchemaViolation, parse, tree_depth,
)
from richdoc.core.utils.logger import get_logger
from richdoc.core.utils.slug import SlugRegistry


logger = get_logger(__name__)

TOC_LEVEL = 2
SAFE_URL_SCHEMES = {"http", "https", "mailto", "tel"}

_CONTROL_CHARS_RE = re.compile(r'[\x00-\x20\x7f]')

# Block nodes that map one-to-one onto an element wrapping their children.
CONTAINER_TAGS: dict[NodeType, str] = {
    NodeType.bullet_list: "ul",
    NodeType.list_item:   "li",
    NodeType.blockquote:  "blockquote",
    NodeType.table_row:   "tr",
}

SIMPLE_MARK_TAGS: dict[MarkType, str] = {
    MarkType.bold:      "strong",
    MarkType.italic:    "em",
    MarkType.strike:    "s",
    MarkType.underline: "u",
    MarkType.code:      "code",
    MarkType.highlight: "mark",
}


def is_safe_url(url: str) -> bool:
    """True for relative URLs and http(s)/mailto/tel; browsers ignore control chars, so strip them first."""
    cleaned = _CONTROL_CHARS_RE.sub("", url)
    if not cleaned:
        return False
    return urlparse(cleaned).scheme.lower() in SAFE_URL_SCHEMES | {""}


def _attr_string(attrs: dict[str, Any]) -> str:
    """Serialize non-None attributes as ` key="value"` pairs in insertion order."""
    return "".join(f' {k}="{escapeHtml(str(v))}"' for k, v in attrs.items() if v is not None)


class HtmlWriter:
    """Single-use depth-first walk of a Document, collecting HTML fragments and h2 anchors."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self.headings: list[HeadingAnchor] = []
        self._slugs = SlugRegistry(settings.slug_max_length)
        self._out: list[str] = []
        self._handlers: dict[NodeType, Callable[[Node], None]] = {
            NodeType.paragraph:       self._paragraph,
            NodeType.heading:         self._heading,
            NodeType.ordered_list:    self._ordered_list,
            NodeType.table:           self._table,
            NodeType.table_cell:      self._cell,
            NodeType.table_header:    self._cell,
            NodeType.code_block:      self._code_block,
            NodeType.image:           self._image,
            NodeType.horizontal_rule: self._horizontal_rule,
            NodeType.math_block:      self._math_block,
        }

    def write(self, doc: Document) -> str:
        self._blocks(doc.content)
        return "".join(self._out)

    # --- blocks ---

    def _blocks(self, nodes: tuple[Node, ...]) -> None:
        for node in nodes:
            if node.type in CONTAINER_TAGS:
                tag = CONTAINER_TAGS[node.type]
                self._out.append(f"<{tag}>")
                self._blocks(node.content)
                self._out.append(f"</{tag}>")
            elif handler := self._handlers.get(node.type):
                handler(node)
            else:
                logger.debug("No block rendering for %s", node.type.value)

    def _paragraph(self, node: Node) -> None:
        self._out.append("<p>")
        self._inline(node.content)
        self._out.append("</p>")

    def _heading(self, node: Node) -> None:
        level = node.attrs.level
        attrs = ""
        if level == TOC_LEVEL:
            text = (node.text_content() or f"section-{len(self.headings) + 1}").strip()
            anchor = HeadingAnchor(id=self._slugs.assign(text), text=text, level=level)
            self.headings.append(anchor)
            attrs = _attr_string({"id": anchor.id})
        self._out.append(f"<h{level}{attrs}>")
        self._inline(node.content)
        self._out.append(f"</h{level}>")

    def _ordered_list(self, node: Node) -> None:
        start = node.attrs.start
        self._out.append(f"<ol{_attr_string({'start': start if start != 1 else None})}>")
        self._blocks(node.content)
        self._out.append("</ol>")

    def _table(self, node: Node) -> None:
        self._out.append("<table><tbody>")
        self._blocks(node.content)
        self._out.append("</tbody></table>")

    def _cell(self, node: Node) -> None:
        tag = "th" if node.type is NodeType.table_header else "td"
        attrs = _attr_string({
            "colspan": node.attrs.colspan if node.attrs.colspan != 1 else None,
            "rowspan": node.attrs.rowspan if node.attrs.rowspan != 1 else None,
        })
        self._out.append(f"<{tag}{attrs}>")
        self._blocks(node.content)
        self._out.append(f"</{tag}>")

    def _code_block(self, node: Node) -> None:
        language = node.attrs.language
        attrs = _attr_string({"class": f"language-{language}" if language else None})
        code = "".join(child.text or "" for child in node.content)
        self._out.append(f"<pre><code{attrs}>{escapeHtml(code)}</code></pre>")

    def _image(self, node: Node) -> None:
        a = node.attrs
        attrs = _attr_string({
            "src": a.src, "alt": a.alt, "title": a.title,
            "width": a.width, "height": a.height,
            "class": self.settings.image_class,
        })
        self._out.append(f"<img{attrs}>")

    def _horizontal_rule(self, node: Node) -> None:
        self._out.append(f"<hr{_attr_string({'class': self.settings.rule_class})}>")

    def _math_block(self, node: Node) -> None:
        latex = node.attrs.latex
        attrs = _attr_string({"data-type": "block-math", "data-latex": latex})
        self._out.append(f"<div{attrs}>{render_math(latex, display_mode=True)}</div>")

    # --- inline ---

    def _marks_for(self, node: Node) -> list[Mark]:
        """Marks that produce a wrapper, in rank order regardless of serialized order."""
        marks = []
        for mark in node.marks:
            if mark.type is MarkType.link and not is_safe_url(mark.attrs.href):
                logger.debug("Dropping link with unsafe href %r", mark.attrs.href)
                continue
            if mark.type is MarkType.text_size and mark.attrs.size != "s":
                continue
            marks.append(mark)
        return sorted(marks, key=lambda m: MARK_RANK[m.type])

    def _open_mark(self, mark: Mark) -> str:
        if mark.type is MarkType.link:
            a = mark.attrs
            attrs = {"href": a.href, "target": a.target or "_blank", "rel": a.rel or self.settings.link_rel}
            return f"<a{_attr_string(attrs)}>"
        if mark.type is MarkType.text_size:
            return '<span data-size="s" class="text-size-s">'
        return f"<{SIMPLE_MARK_TAGS[mark.type]}>"

    def _close_mark(self, mark: Mark) -> str:
        if mark.type is MarkType.link:
            return "</a>"
        if mark.type is MarkType.text_size:
            return "</span>"
        return f"</{SIMPLE_MARK_TAGS[mark.type]}>"

    def _inline(self, nodes: tuple[Node, ...]) -> None:
        """Emit inline content, keeping wrappers open across siblings that share leading marks."""
        active: list[Mark] = []
        for node in nodes:
            marks = self._marks_for(node)
            keep = 0
            while keep < min(len(active), len(marks)) and active[keep] == marks[keep]:
                keep += 1
            self._out.extend(self._close_mark(m) for m in reversed(active[keep:]))
            self._out.extend(self._open_mark(m) for m in marks[keep:])
            active = marks

            if node.type is NodeType.text:
                self._out.append(escapeHtml(node.text))
            elif node.type is NodeType.hard_break:
                self._out.append("<br>")
            elif node.type is NodeType.math_inline:
                latex = node.attrs.latex
                attrs = _attr_string({"data-type": "inline-math", "data-latex": latex})
                self._out.append(f"<span{attrs}>{render_math(latex, display_mode=False)}</span>")
        self._out.extend(self._close_mark(m) for m in reversed(active))


def _normalize_content(content: Any) -> Optional[Any]:
    """Accept a Document, a JSON mapping, or a JSON string; anything else is unrenderable."""
    if isinstance(content, Node):
        return content
    if not content:
        return None
    if isinstance(content, (str, bytes)):
        try:
            return json.loads(content)
        except (ValueError, RecursionError):
            return None
    if isinstance(content, Mapping):
        return content
    return None


def render(content: Any, settings: Optional[Settings] = None) -> RenderResult:
    """Render stored content to HTML plus h2 anchors. Never raises; bad input gives an empty result."""
    settings = settings or Settings()
    data = _normalize_content(content)
    if data is None:
        return RenderResult()

    try:
        doc = data if isinstance(data, Node) else parse(data, strict=False, max_depth=settings.max_depth)
        if doc.type is not NodeType.doc:
            raise SchemaViolation("root node type must be 'doc'", "/type")
        if isinstance(data, Node) and tree_depth(doc) > settings.max_depth:
            raise SchemaViolation(f"nesting exceeds max depth {settings.max_depth}")
        writer = HtmlWriter(settings)
        markup = replace_legacy_math(writer.write(doc))
    except SchemaViolation as e:
        logger.warning("Unrenderable document: %s", e)
        return RenderResult()
    except Exception:
        logger.exception("Document render failed")
        return RenderResult()
    return RenderResult(html=markup, headings=writer.headings)
