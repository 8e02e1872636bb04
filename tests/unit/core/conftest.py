"""Shared fixtures for core unit tests"""

import copy

import pytest

from docbuilders import doc, heading, paragraph, text


SAMPLE_DOC = doc(
    heading(2, "Introduction"),
    paragraph(
        text("A "),
        text("bold", {"type": "bold"}),
        text(" link", {"type": "link", "attrs": {"href": "https://example.com", "target": "_blank"}}),
        {"type": "hardBreak"},
        {"type": "mathInline", "attrs": {"latex": "E=mc^2"}},
    ),
    heading(3, "Details"),
    {"type": "bulletList", "content": [
        {"type": "listItem", "content": [paragraph(text("one"))]},
        {"type": "listItem", "content": [paragraph(text("two"))]},
    ]},
    {"type": "table", "content": [
        {"type": "tableRow", "content": [
            {"type": "tableHeader", "attrs": {"colspan": 1, "rowspan": 1, "colwidth": None},
             "content": [paragraph(text("Name"))]},
        ]},
        {"type": "tableRow", "content": [
            {"type": "tableCell", "attrs": {"colspan": 1, "rowspan": 1, "colwidth": None},
             "content": [paragraph(text("Value"))]},
        ]},
    ]},
    {"type": "image", "attrs": {"src": "https://cdn.example.com/a.png", "alt": "diagram", "title": None}},
    {"type": "codeBlock", "attrs": {"language": "python"}, "content": [text("print('hi')")]},
    {"type": "horizontalRule"},
    {"type": "mathBlock", "attrs": {"latex": "\\sum_i x_i"}},
)


@pytest.fixture(name="sample_doc")
def sample_doc_fixture():
    return copy.deepcopy(SAMPLE_DOC)
