"""Builders for document JSON used across core tests"""


def text(value: str, *marks: dict) -> dict:
    node = {"type": "text", "text": value}
    if marks:
        node["marks"] = list(marks)
    return node


def paragraph(*children: dict) -> dict:
    return {"type": "paragraph", "content": list(children)}


def heading(level: int, value: str) -> dict:
    return {"type": "heading", "attrs": {"level": level}, "content": [text(value)]}


def doc(*children: dict) -> dict:
    return {"type": "doc", "content": list(children)}


def nested_doc(depth: int) -> dict:
    """A paragraph wrapped in `depth` blockquotes."""
    node = paragraph(text("deep"))
    for _ in range(depth):
        node = {"type": "blockquote", "content": [node]}
    return doc(node)
