"""Document schema: node/mark vocabulary, attribute models, nesting rules and JSON (de)serialization

A Document is a tree of ``Node`` values rooted at a ``doc`` node. Every node
carries a ``NodeType`` discriminant and a typed attribute payload whose model
is chosen by the schema table below. Attribute models allow extra keys so that
attributes added by newer editor versions survive a parse/serialize round-trip.

``parse`` has two modes. Strict mode (the default, used on the authoring path)
raises ``SchemaViolation`` for anything outside the closed vocabulary. Lenient
mode (used on the public render path) drops offending nodes and marks, clamps
heading levels into range, and only raises for a bad root or runaway depth.
"""

import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from richdoc.core.utils.logger import get_logger


logger = get_logger(__name__)

DEFAULT_MAX_DEPTH = 64
HEADING_LEVELS = (2, 3, 4)


class SchemaViolation(ValueError):
    """Input does not conform to the document schema."""

    def __init__(self, message: str, path: str = "") -> None:
        super().__init__(f"{path or '/'}: {message}")
        self.message = message
        self.path = path


class NodeType(str, Enum):
    """Closed set of node types"""
    doc = "doc"
    paragraph = "paragraph"
    heading = "heading"
    bullet_list = "bulletList"
    ordered_list = "orderedList"
    list_item = "listItem"
    blockquote = "blockquote"
    table = "table"
    table_row = "tableRow"
    table_cell = "tableCell"
    table_header = "tableHeader"
    image = "image"
    code_block = "codeBlock"
    horizontal_rule = "horizontalRule"
    hard_break = "hardBreak"
    text = "text"
    math_inline = "mathInline"
    math_block = "mathBlock"


class MarkType(str, Enum):
    """Closed set of inline marks; declaration order is the rendering rank, outermost first"""
    link = "link"
    bold = "bold"
    italic = "italic"
    strike = "strike"
    underline = "underline"
    code = "code"
    highlight = "highlight"
    text_size = "textSize"


# Names emitted by other versions of the math extension.
TYPE_ALIASES: dict[str, NodeType] = {
    "inlineMath":  NodeType.math_inline,
    "math_inline": NodeType.math_inline,
    "blockMath":   NodeType.math_block,
    "math_block":  NodeType.math_block,
}


# --- attribute models ---

class Attrs(BaseModel):
    """Base attribute payload; unknown keys pass through untouched."""
    model_config = ConfigDict(extra="allow", populate_by_name=True)


class EmptyAttrs(Attrs):
    pass


class HeadingAttrs(Attrs):
    level: int = Field(..., ge=HEADING_LEVELS[0], le=HEADING_LEVELS[-1])


class OrderedListAttrs(Attrs):
    start: int = 1


class CodeBlockAttrs(Attrs):
    language: Optional[str] = None


class ImageAttrs(Attrs):
    src:    str
    alt:    Optional[str] = None
    title:  Optional[str] = None
    width:  Optional[Union[int, str]] = None
    height: Optional[Union[int, str]] = None


class CellAttrs(Attrs):
    colspan:  int = Field(default=1, ge=1)
    rowspan:  int = Field(default=1, ge=1)
    colwidth: Optional[list[int]] = None


class MathAttrs(Attrs):
    latex: str


class LinkAttrs(Attrs):
    href:      str
    target:    Optional[str] = None
    rel:       Optional[str] = None
    css_class: Optional[str] = Field(default=None, alias="class")


class HighlightAttrs(Attrs):
    color: Optional[str] = None


class TextSizeAttrs(Attrs):
    size: Optional[Literal["s"]] = None


# --- schema table ---

@dataclass(frozen=True)
class NodeSpec:
    """Attribute model and permitted children for one node type."""
    attrs:    type[Attrs] = EmptyAttrs
    children: frozenset = frozenset()   # empty for leaf types
    marks:    bool = True               # whether text children may carry marks

    @property
    def is_leaf(self) -> bool:
        return not self.children


BLOCK_TYPES = frozenset({
    NodeType.paragraph, NodeType.heading, NodeType.bullet_list, NodeType.ordered_list,
    NodeType.blockquote, NodeType.code_block, NodeType.horizontal_rule, NodeType.table,
    NodeType.image, NodeType.math_block,
})
INLINE_TYPES = frozenset({NodeType.text, NodeType.hard_break, NodeType.math_inline})
CELL_TYPES = frozenset({NodeType.table_cell, NodeType.table_header})

SCHEMA: dict[NodeType, NodeSpec] = {
    NodeType.doc:             NodeSpec(children=BLOCK_TYPES),
    NodeType.paragraph:       NodeSpec(children=INLINE_TYPES),
    NodeType.heading:         NodeSpec(HeadingAttrs, INLINE_TYPES),
    NodeType.bullet_list:     NodeSpec(children=frozenset({NodeType.list_item})),
    NodeType.ordered_list:    NodeSpec(OrderedListAttrs, frozenset({NodeType.list_item})),
    NodeType.list_item:       NodeSpec(children=BLOCK_TYPES),
    NodeType.blockquote:      NodeSpec(children=BLOCK_TYPES),
    NodeType.table:           NodeSpec(children=frozenset({NodeType.table_row})),
    NodeType.table_row:       NodeSpec(children=CELL_TYPES),
    NodeType.table_cell:      NodeSpec(CellAttrs, BLOCK_TYPES),
    NodeType.table_header:    NodeSpec(CellAttrs, BLOCK_TYPES),
    NodeType.code_block:      NodeSpec(CodeBlockAttrs, frozenset({NodeType.text}), marks=False),
    NodeType.image:           NodeSpec(ImageAttrs),
    NodeType.horizontal_rule: NodeSpec(),
    NodeType.hard_break:      NodeSpec(),
    NodeType.text:            NodeSpec(),
    NodeType.math_inline:     NodeSpec(MathAttrs),
    NodeType.math_block:      NodeSpec(MathAttrs),
}

MARK_ATTRS: dict[MarkType, type[Attrs]] = {
    MarkType.link:      LinkAttrs,
    MarkType.bold:      EmptyAttrs,
    MarkType.italic:    EmptyAttrs,
    MarkType.strike:    EmptyAttrs,
    MarkType.underline: EmptyAttrs,
    MarkType.code:      EmptyAttrs,
    MarkType.highlight: HighlightAttrs,
    MarkType.text_size: TextSizeAttrs,
}

MARK_RANK: dict[MarkType, int] = {m: i for i, m in enumerate(MarkType)}


# --- tree values ---

@dataclass(frozen=True)
class Mark:
    type:  MarkType
    attrs: Attrs = field(default_factory=EmptyAttrs)


@dataclass(frozen=True)
class Node:
    """One node of a document tree. ``text`` and ``marks`` are only set on text nodes."""
    type:    NodeType
    attrs:   Attrs = field(default_factory=EmptyAttrs)
    content: tuple["Node", ...] = ()
    marks:   tuple[Mark, ...] = ()
    text:    Optional[str] = None

    def text_content(self) -> str:
        """Concatenated text of this subtree; inline math contributes its LaTeX source."""
        if self.type is NodeType.text:
            return self.text or ""
        if self.type is NodeType.math_inline:
            return self.attrs.latex
        return "".join(child.text_content() for child in self.content)


Document = Node


# --- parsing ---

def _node_type(value: Any) -> Optional[NodeType]:
    if not isinstance(value, str):
        return None
    if value in TYPE_ALIASES:
        return TYPE_ALIASES[value]
    try:
        return NodeType(value)
    except ValueError:
        return None


def _mark_type(value: Any) -> Optional[MarkType]:
    try:
        return MarkType(value)
    except ValueError:
        return None


def _describe(error: ValidationError) -> str:
    """Condense a pydantic ValidationError into a single line."""
    first = error.errors()[0]
    loc = ".".join(str(part) for part in first["loc"])
    return f"{loc}: {first['msg']}" if loc else first["msg"]


def _clamp_heading(raw: Any) -> Any:
    """Pull an integer heading level into the supported range."""
    if isinstance(raw, Mapping):
        level = raw.get("level")
        if isinstance(level, int) and not isinstance(level, bool):
            return {**raw, "level": min(max(level, HEADING_LEVELS[0]), HEADING_LEVELS[-1])}
    return raw


class _Parser:
    """Recursive-descent conversion of JSON values to Nodes, bounded by max_depth."""

    def __init__(self, strict: bool, max_depth: int) -> None:
        self.strict = strict
        self.max_depth = max_depth

    def _reject(self, message: str, path: str) -> None:
        """Raise in strict mode; otherwise note the drop and return None."""
        if self.strict:
            raise SchemaViolation(message, path)
        logger.debug("Dropping %s: %s", path or "/", message)
        return None

    def node(self, raw: Any, path: str, depth: int, parent: NodeSpec) -> Optional[Node]:
        if depth > self.max_depth:
            raise SchemaViolation(f"nesting exceeds max depth {self.max_depth}", path)
        if not isinstance(raw, Mapping):
            return self._reject("node must be a JSON object", path)

        node_type = _node_type(raw.get("type"))
        if node_type is None:
            return self._reject(f"unknown node type {raw.get('type')!r}", f"{path}/type")
        if node_type not in parent.children:
            return self._reject(f"'{node_type.value}' is not allowed here", path)

        spec = SCHEMA[node_type]
        raw_attrs = raw.get("attrs")
        if node_type is NodeType.heading and not self.strict:
            raw_attrs = _clamp_heading(raw_attrs)
        attrs = self.attrs(spec.attrs, raw_attrs, f"{path}/attrs")
        if attrs is None:
            return None

        if node_type is NodeType.text:
            return self.text(raw, attrs, path, parent.marks)
        return Node(node_type, attrs, self.children(raw.get("content"), path, depth, spec))

    def attrs(self, model: type[Attrs], raw: Any, path: str) -> Optional[Attrs]:
        if raw is None:
            raw = {}
        if not isinstance(raw, Mapping):
            return self._reject("attrs must be a JSON object", path)
        try:
            return model.model_validate(dict(raw))
        except ValidationError as e:
            return self._reject(_describe(e), path)

    def text(self, raw: Mapping, attrs: Attrs, path: str, marks_allowed: bool) -> Optional[Node]:
        text = raw.get("text")
        if not isinstance(text, str) or not text:
            return self._reject("text node requires non-empty text", f"{path}/text")
        marks = self.marks(raw.get("marks"), f"{path}/marks", marks_allowed)
        return Node(NodeType.text, attrs, marks=marks, text=text)

    def marks(self, raw: Any, path: str, allowed: bool) -> tuple[Mark, ...]:
        if not raw:
            return ()
        if not isinstance(raw, list):
            self._reject("marks must be a JSON array", path)
            return ()
        if not allowed:
            self._reject("marks are not allowed here", path)
            return ()

        marks: list[Mark] = []
        seen: set[MarkType] = set()
        for i, item in enumerate(raw):
            item_path = f"{path}/{i}"
            mark_type = _mark_type(item.get("type")) if isinstance(item, Mapping) else None
            if mark_type is None:
                self._reject("unknown mark", item_path)
                continue
            if mark_type in seen:
                self._reject(f"duplicate '{mark_type.value}' mark", item_path)
                continue
            attrs = self.attrs(MARK_ATTRS[mark_type], item.get("attrs"), f"{item_path}/attrs")
            if attrs is None:
                continue
            seen.add(mark_type)
            marks.append(Mark(mark_type, attrs))
        return tuple(marks)

    def children(self, raw: Any, path: str, depth: int, spec: NodeSpec) -> tuple[Node, ...]:
        if not raw:
            return ()
        if not isinstance(raw, list):
            self._reject("content must be a JSON array", f"{path}/content")
            return ()
        if spec.is_leaf:
            self._reject("leaf node cannot have content", f"{path}/content")
            return ()

        nodes = []
        for i, child in enumerate(raw):
            node = self.node(child, f"{path}/content/{i}", depth + 1, spec)
            if node is not None:
                nodes.append(node)
        return tuple(nodes)


def tree_depth(node: Node) -> int:
    """Nesting depth of a built tree, counting the root as 1. Iterative so deep trees cannot exhaust the stack."""
    deepest = 0
    stack = [(node, 1)]
    while stack:
        current, depth = stack.pop()
        deepest = max(deepest, depth)
        stack.extend((child, depth + 1) for child in current.content)
    return deepest


# The root is parsed as the only child of a virtual parent that admits just 'doc'.
_ROOT = NodeSpec(children=frozenset({NodeType.doc}))


def parse(data: Any, *, strict: bool = True, max_depth: int = DEFAULT_MAX_DEPTH) -> Document:
    """Build a Document from its JSON form (a mapping or a JSON string)."""
    if isinstance(data, (str, bytes)):
        try:
            data = json.loads(data)
        except json.JSONDecodeError as e:
            raise SchemaViolation(f"invalid JSON: {e}") from e
        except RecursionError as e:
            raise SchemaViolation(f"nesting exceeds max depth {max_depth}") from e
    if not isinstance(data, Mapping):
        raise SchemaViolation("document must be a JSON object")
    if data.get("type") != NodeType.doc.value:
        raise SchemaViolation("root node type must be 'doc'", "/type")
    return _Parser(strict, max_depth).node(data, "", 1, _ROOT)


# --- serialization ---

def _dump_attrs(attrs: Attrs) -> dict[str, Any]:
    """Attributes that were present on input (or set in code), plus pass-through extras."""
    fields = type(attrs).model_fields
    keep = {fields[name].alias or name for name in attrs.model_fields_set if name in fields}
    keep.update(attrs.model_extra or {})
    data = attrs.model_dump(mode="json", by_alias=True)
    return {k: v for k, v in data.items() if k in keep}


def _serialize_mark(mark: Mark) -> dict[str, Any]:
    out: dict[str, Any] = {"type": mark.type.value}
    if attrs := _dump_attrs(mark.attrs):
        out["attrs"] = attrs
    return out


def serialize(node: Node) -> dict[str, Any]:
    """Inverse of parse: the JSON-compatible form of a node and its subtree."""
    out: dict[str, Any] = {"type": node.type.value}
    if attrs := _dump_attrs(node.attrs):
        out["attrs"] = attrs
    if node.content:
        out["content"] = [serialize(child) for child in node.content]
    if node.marks:
        out["marks"] = [_serialize_mark(m) for m in node.marks]
    if node.text is not None:
        out["text"] = node.text
    return out


def to_json(node: Node, indent: Optional[int] = None) -> str:
    return json.dumps(serialize(node), ensure_ascii=False, indent=indent)


def empty_document() -> dict[str, Any]:
    """Canonical JSON for a post saved without a body."""
    return {"type": NodeType.doc.value, "content": []}
