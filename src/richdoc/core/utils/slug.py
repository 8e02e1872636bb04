"""Slug generation for heading anchors"""

import re


# ASCII alphanumerics plus the kanji, hiragana and katakana ranges used by the blog.
_DISALLOWED_RE = re.compile(r'[^a-z0-9一-龠ぁ-んァ-ンー]+')
_EDGE_HYPHENS_RE = re.compile(r'(^-|-$)+')

DEFAULT_SLUG = "heading"


def slugify(text: str, max_length: int = 80) -> str:
    """Convert heading text to a lowercase, hyphen-separated anchor id."""
    text = _DISALLOWED_RE.sub('-', text.lower())
    text = _EDGE_HYPHENS_RE.sub('', text)
    return text[:max_length] or DEFAULT_SLUG


class SlugRegistry:
    """Hand out unique slugs within one document, suffixing repeats with -2, -3, ...

    A suffixed candidate that another heading already produced is skipped, so
    "a-2", "a", "a" yields a-2, a, a-3.
    """

    def __init__(self, max_length: int = 80) -> None:
        self._max_length = max_length
        self._counts: dict[str, int] = {}
        self._issued: set[str] = set()

    def assign(self, text: str) -> str:
        base = slugify(text, self._max_length)
        count = self._counts.get(base, 0)
        slug = base if count == 0 else f"{base}-{count + 1}"
        while slug in self._issued:
            count += 1
            slug = f"{base}-{count + 1}"
        self._counts[base] = count + 1
        self._issued.add(slug)
        return slug
