"""Unit tests for core/pipeline.py"""

import json

import pytest

from docbuilders import doc, heading, nested_doc, paragraph, text
from richdoc.config import Settings
from richdoc.core.pipeline import run_import, run_render, run_validate


@pytest.fixture(name="out_dir")
def out_dir_fixture(tmp_path):
    return tmp_path / "dist"


@pytest.fixture(autouse=True)
def chdir_tmp(tmp_path, monkeypatch):
    """Run each test from a clean tmp directory so relative paths are isolated."""
    monkeypatch.chdir(tmp_path)


def _write(path, data):
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


# --- run_render ---

def test_run_render_bare_document(tmp_path, out_dir):
    """A bare document renders to <stem>.html."""
    _write(tmp_path / "hello.json", doc(paragraph(text("Hello"))))
    results = run_render("hello.json", out_dir, Settings())
    assert len(results) == 1
    src, out_file = results[0]
    assert src.name == "hello.json"
    assert out_file == out_dir / "hello.html"
    assert "<p>Hello</p>" in out_file.read_text(encoding="utf-8")


def test_run_render_post_record_with_toc(tmp_path, out_dir):
    """A post record renders title, lead and body; --toc writes the h2 anchors."""
    _write(tmp_path / "post.json", {
        "title": "Post",
        "lead": doc(paragraph(text("Lead"))),
        "content": doc(heading(2, "Intro"), heading(2, "Intro")),
    })
    run_render(str(tmp_path), out_dir, Settings(), toc=True)
    page = (out_dir / "post.html").read_text(encoding="utf-8")
    assert "<h1>Post</h1>" in page
    assert "<p>Lead</p>" in page
    toc = json.loads((out_dir / "post.toc.json").read_text(encoding="utf-8"))
    assert [h["id"] for h in toc] == ["intro", "intro-2"]


def test_run_render_bad_document_uses_fallback(tmp_path, out_dir):
    """Unrenderable content still produces a page, with the fallback message."""
    _write(tmp_path / "bad.json", {"type": "nope"})
    run_render("bad.json", out_dir, Settings(empty_message="Unavailable"))
    assert "Unavailable" in (out_dir / "bad.html").read_text(encoding="utf-8")


def test_run_render_invalid_json_raises(tmp_path, out_dir):
    (tmp_path / "broken.json").write_text("{", encoding="utf-8")
    with pytest.raises(RuntimeError, match="Failed to read"):
        run_render("broken.json", out_dir, Settings())


# --- run_validate ---

def test_run_validate_reports_each_file(tmp_path):
    _write(tmp_path / "a_ok.json", doc(paragraph(text("fine"))))
    _write(tmp_path / "b_bad.json", doc(heading(1, "bad level")))
    _write(tmp_path / "c_post.json", {"content": doc(), "lead": {"type": "doc", "content": [{"type": "x"}]}})
    results = run_validate(str(tmp_path), max_depth=64)
    errors = {p.name: err for p, err in results}
    assert errors["a_ok.json"] is None
    assert "/content/0/attrs" in errors["b_bad.json"]
    assert errors["c_post.json"].startswith("/content/0/type: lead:")


def test_run_validate_depth(tmp_path):
    _write(tmp_path / "deep.json", nested_doc(10))
    [(_, error)] = run_validate("deep.json", max_depth=5)
    assert "max depth" in error


def test_run_validate_invalid_json(tmp_path):
    (tmp_path / "broken.json").write_text("{", encoding="utf-8")
    [(_, error)] = run_validate("broken.json", max_depth=64)
    assert "Invalid JSON" in error


# --- run_import ---

def test_run_import_writes_records(tmp_path, out_dir):
    (tmp_path / "first-post.md").write_text("---\ntitle: First\n---\n## Hi\n\n$x$\n", encoding="utf-8")
    results = run_import(str(tmp_path), out_dir)
    assert [out.name for _, out in results] == ["first-post.json"]
    record = json.loads((out_dir / "first-post.json").read_text(encoding="utf-8"))
    assert record["title"] == "First"
    assert record["content"]["content"][1]["content"][0]["type"] == "mathInline"


def test_run_import_bad_frontmatter_raises(tmp_path, out_dir):
    (tmp_path / "bad.md").write_text("---\n[unclosed\n---\nbody\n", encoding="utf-8")
    with pytest.raises(RuntimeError, match="Failed to import"):
        run_import("bad.md", out_dir)
