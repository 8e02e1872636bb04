"""Render contracts and the post record consumed from the external store"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict


class HeadingAnchor(BaseModel):
    """A table-of-contents entry derived from a level-2 heading."""
    id: str
    text: str
    level: int


class RenderResult(BaseModel):
    """Output of a whole-document render; empty on degraded input."""
    html: str = ""
    headings: list[HeadingAnchor] = []


class Post(BaseModel):
    """A post row as returned by the hosted database; content and lead hold document JSON."""
    model_config = ConfigDict(extra="ignore")

    id:           Optional[str] = None
    title:        str = ""
    slug:         str = ""
    description:  Optional[str] = None
    lead:         Any = None            # document JSON, rendered before the body
    content:      Any = None            # document JSON
    category:     Optional[str] = None
    tags:         Optional[list[str]] = None
    status:       str = "draft"
    cover_url:    Optional[str] = None
    published_at: Optional[datetime] = None
    updated_at:   Optional[datetime] = None


class RenderedPost(BaseModel):
    """Display-ready pieces of an article page."""
    title:       str
    description: str
    lead_html:   str = ""
    body_html:   str = ""
    headings:    list[HeadingAnchor] = []
