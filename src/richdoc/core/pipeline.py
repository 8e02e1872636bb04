"""Pipeline step functions: render, validate, and import orchestration over files"""

import json
from pathlib import Path
from typing import Optional

from richdoc.config import Settings
from richdoc.core.article import build_page, render_post
from richdoc.core.parse import (
    JSON_EXTENSIONS, MD_EXTENSIONS, discover_files, is_post_record, load_record, markdown_to_record,
)
from richdoc.core.schema import SchemaViolation, parse


def _as_post(record) -> dict:
    """Treat a bare document as the body of an untitled post."""
    return record if is_post_record(record) else {"content": record}


def run_render(
    path: str,
    output_dir: Path,
    settings: Settings,
    toc: bool = False,
    ) -> list[tuple[Path, Path]]:
    """Render every JSON document/post under path to HTML. Returns (source_path, html_file) pairs."""
    output_dir.mkdir(parents=True, exist_ok=True)
    results = []
    for p in discover_files(Path(path), JSON_EXTENSIONS):
        try:
            record = load_record(p)
        except ValueError as e:
            raise RuntimeError(f"Failed to read {p}: {e}") from e

        rendered = render_post(_as_post(record), settings)
        out_file = output_dir / f"{p.stem}.html"
        out_file.write_text(build_page(rendered, settings), encoding='utf-8')
        if toc:
            toc_file = output_dir / f"{p.stem}.toc.json"
            toc_file.write_text(
                json.dumps([h.model_dump() for h in rendered.headings], ensure_ascii=False, indent=2),
                encoding='utf-8',
            )
        results.append((p, out_file))
    return results


def run_validate(path: str, max_depth: int) -> list[tuple[Path, Optional[str]]]:
    """Strictly parse every JSON document/post under path. Returns (path, error or None) pairs."""
    results = []
    for p in discover_files(Path(path), JSON_EXTENSIONS):
        try:
            post = _as_post(load_record(p))
            for field in ("content", "lead"):
                if post.get(field) is not None:
                    try:
                        parse(post[field], max_depth=max_depth)
                    except SchemaViolation as e:
                        raise SchemaViolation(f"{field}: {e.message}", e.path) from e
        except ValueError as e:
            results.append((p, str(e)))
        else:
            results.append((p, None))
    return results


def run_import(path: str, output_dir: Path) -> list[tuple[Path, Path]]:
    """Convert markdown files under path into post-record JSON. Returns (source_path, json_file) pairs."""
    output_dir.mkdir(parents=True, exist_ok=True)
    results = []
    for p in discover_files(Path(path), MD_EXTENSIONS):
        try:
            record = markdown_to_record(p)
        except ValueError as e:
            raise RuntimeError(f"Failed to import {p}: {e}") from e
        out_file = output_dir / f"{record['slug']}.json"
        out_file.write_text(json.dumps(record, ensure_ascii=False, indent=2), encoding='utf-8')
        results.append((p, out_file))
    return results
