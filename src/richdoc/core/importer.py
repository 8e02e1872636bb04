"""Markdown to Document conversion for posts written before the structured editor"""

from typing import Optional

from markdown_it import MarkdownIt
from markdown_it.tree import SyntaxTreeNode
from mdit_py_plugins.dollarmath import dollarmath_plugin

from richdoc.core.schema import (
    CellAttrs, CodeBlockAttrs, Document, HEADING_LEVELS, HeadingAttrs, ImageAttrs, LinkAttrs,
    Mark, MarkType, MathAttrs, Node, NodeType, OrderedListAttrs,
)
from richdoc.core.utils.logger import get_logger


logger = get_logger(__name__)

# markdown-it inline container -> mark it applies to its children
INLINE_MARKS: dict[str, MarkType] = {
    "strong": MarkType.bold,
    "em":     MarkType.italic,
    "s":      MarkType.strike,
}

SIMPLE_BLOCKS: dict[str, NodeType] = {
    "bullet_list": NodeType.bullet_list,
    "list_item":   NodeType.list_item,
    "blockquote":  NodeType.blockquote,
}


def _make_parser() -> MarkdownIt:
    """CommonMark plus tables, strikethrough and $/$$ math."""
    md = MarkdownIt("commonmark")
    md.enable("table")
    md.enable("strikethrough")
    dollarmath_plugin(md)
    return md


def _text(text: str, marks: tuple[Mark, ...]) -> Node:
    return Node(NodeType.text, marks=marks, text=text)


def _merge_text(nodes: list[Node]) -> list[Node]:
    """Join adjacent text nodes carrying identical marks."""
    merged: list[Node] = []
    for node in nodes:
        prev = merged[-1] if merged else None
        if prev and prev.type is node.type is NodeType.text and prev.marks == node.marks:
            merged[-1] = _text(prev.text + node.text, prev.marks)
        else:
            merged.append(node)
    return merged


def _with_mark(marks: tuple[Mark, ...], mark: Mark) -> tuple[Mark, ...]:
    if any(m.type is mark.type for m in marks):
        return marks
    return marks + (mark,)


class MarkdownImporter:
    """Walk a markdown-it syntax tree and build the equivalent Document."""

    def __init__(self) -> None:
        self._md = _make_parser()

    def convert(self, text: str) -> Document:
        tree = SyntaxTreeNode(self._md.parse(text))
        return Node(NodeType.doc, content=tuple(self._blocks(tree.children)))

    # --- blocks ---

    def _blocks(self, nodes: list[SyntaxTreeNode]) -> list[Node]:
        blocks: list[Node] = []
        for node in nodes:
            block = self._block(node)
            if block is not None:
                blocks.append(block)
        return blocks

    def _block(self, node: SyntaxTreeNode) -> Optional[Node]:
        if node.type in SIMPLE_BLOCKS:
            content = self._blocks(node.children)
            if node.type == "list_item" and not content:
                content = [Node(NodeType.paragraph)]
            return Node(SIMPLE_BLOCKS[node.type], content=tuple(content))
        if node.type == "heading":
            level = min(max(int(node.tag[1:]), HEADING_LEVELS[0]), HEADING_LEVELS[-1])
            return Node(NodeType.heading, HeadingAttrs(level=level), tuple(self._inline_of(node)))
        if node.type == "paragraph":
            return self._paragraph(node)
        if node.type == "ordered_list":
            attrs = OrderedListAttrs(start=int(node.attrs.get("start", 1)))
            return Node(NodeType.ordered_list, attrs, tuple(self._blocks(node.children)))
        if node.type in ("fence", "code_block"):
            return self._code(node)
        if node.type == "hr":
            return Node(NodeType.horizontal_rule)
        if node.type == "table":
            return self._table(node)
        if node.type in ("math_block", "math_block_label"):
            return Node(NodeType.math_block, MathAttrs(latex=node.content.strip()))
        logger.debug("Skipping unsupported markdown block %s", node.type)
        return None

    def _paragraph(self, node: SyntaxTreeNode) -> Node:
        inline = node.children[0] if node.children else None
        if inline is not None:
            # A paragraph holding nothing but an image is a standalone figure.
            non_ws = [c for c in inline.children if c.type not in ("softbreak", "hardbreak")]
            if len(non_ws) == 1 and non_ws[0].type == "image":
                return self._image(non_ws[0])
        return Node(NodeType.paragraph, content=tuple(self._inline_of(node)))

    def _image(self, node: SyntaxTreeNode) -> Node:
        fields = {"src": node.attrs.get("src", ""), "alt": node.content or None, "title": node.attrs.get("title")}
        return Node(NodeType.image, ImageAttrs(**{k: v for k, v in fields.items() if v is not None}))

    def _code(self, node: SyntaxTreeNode) -> Node:
        code = node.content[:-1] if node.content.endswith("\n") else node.content
        language = node.info.split()[0] if node.info.strip() else None
        attrs = CodeBlockAttrs(language=language) if language else CodeBlockAttrs()
        content = (_text(code, ()),) if code else ()
        return Node(NodeType.code_block, attrs, content)

    def _table(self, node: SyntaxTreeNode) -> Node:
        rows = []
        for section in node.children:           # thead / tbody
            for tr in section.children:
                cells = []
                for cell in tr.children:
                    cell_type = NodeType.table_header if cell.type == "th" else NodeType.table_cell
                    paragraph = Node(NodeType.paragraph, content=tuple(self._inline_of(cell)))
                    cells.append(Node(cell_type, CellAttrs(), (paragraph,)))
                rows.append(Node(NodeType.table_row, content=tuple(cells)))
        return Node(NodeType.table, content=tuple(rows))

    # --- inline ---

    def _inline_of(self, node: SyntaxTreeNode) -> list[Node]:
        """Inline content of a block whose single child is an 'inline' node."""
        if not node.children:
            return []
        return _merge_text(self._inline(node.children[0].children, ()))

    def _inline(self, nodes: list[SyntaxTreeNode], marks: tuple[Mark, ...]) -> list[Node]:
        out: list[Node] = []
        for node in nodes:
            if node.type == "text" and node.content:
                out.append(_text(node.content, marks))
            elif node.type == "softbreak":
                out.append(_text("\n", marks))
            elif node.type == "hardbreak":
                out.append(Node(NodeType.hard_break))
            elif node.type in INLINE_MARKS:
                out.extend(self._inline(node.children, _with_mark(marks, Mark(INLINE_MARKS[node.type]))))
            elif node.type == "link":
                link = Mark(MarkType.link, LinkAttrs(href=node.attrs.get("href", "")))
                out.extend(self._inline(node.children, _with_mark(marks, link)))
            elif node.type == "code_inline" and node.content:
                out.append(_text(node.content, _with_mark(marks, Mark(MarkType.code))))
            elif node.type == "image" and node.content:
                out.append(_text(node.content, marks))
            elif node.type == "math_inline":
                out.append(Node(NodeType.math_inline, MathAttrs(latex=node.content)))
            else:
                logger.debug("Skipping unsupported markdown inline %s", node.type)
        return out


def import_markdown(text: str) -> Document:
    """Convert Markdown source into a Document."""
    return MarkdownImporter().convert(text)
