"""File discovery, frontmatter extraction, and stored-record loading"""

import json
import re
from pathlib import Path
from typing import Any

import yaml

from richdoc.core.importer import import_markdown
from richdoc.core.schema import serialize
from richdoc.core.utils.slug import slugify


FRONTMATTER_RE = re.compile(r'^---\s*\n(.*?)\n---\s*\n', re.DOTALL)
JSON_EXTENSIONS = {'.json'}
MD_EXTENSIONS = {'.md', '.mdx'}


def _strip_frontmatter(text: str) -> tuple[dict[str, Any], str]:
    """Return (frontmatter_dict, body) with YAML header removed."""
    m = FRONTMATTER_RE.match(text)
    if m:
        try:
            fm = yaml.safe_load(m.group(1)) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML frontmatter: {e}") from e
        if not isinstance(fm, dict):
            raise ValueError(f"Invalid YAML frontmatter: expected a mapping, got {type(fm).__name__}")
        return fm, text[m.end():]
    return {}, text


def discover_files(path: Path, extensions: set[str]) -> list[Path]:
    """Return sorted files with a matching suffix under path, or [path] if a single file."""
    if path.is_file():
        return [path] if path.suffix in extensions else []
    return sorted(p for p in path.rglob('*') if p.suffix in extensions)


def is_post_record(record: Any) -> bool:
    """True for a post row (content/lead fields) rather than a bare document."""
    return isinstance(record, dict) and "type" not in record and ("content" in record or "lead" in record)


def load_record(path: Path) -> Any:
    """Read a stored document or post record from a JSON file."""
    try:
        return json.loads(path.read_text(encoding='utf-8'))
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON: {e}") from e


def markdown_to_record(path: Path) -> dict[str, Any]:
    """Convert a markdown file into a post record; frontmatter supplies title, slug and description."""
    frontmatter, body = _strip_frontmatter(path.read_text(encoding='utf-8'))
    return {
        "title": str(frontmatter.get('title') or path.stem),
        "slug": frontmatter.get('slug') or slugify(path.stem),
        "description": frontmatter.get('description'),
        "content": serialize(import_markdown(body)),
    }
